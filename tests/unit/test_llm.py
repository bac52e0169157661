"""Unit tests for GeminiTaskExtractor.

All tests use mocks -- no real Gemini API calls are made.  The tests cover
happy-path extraction, code fences and bare arrays, malformed output with a
single retry, API failures, and the request configuration.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
from unittest.mock import MagicMock, patch

import pytest
from google.genai import errors as genai_errors

from syllabus_sync.exceptions import ExtractionFailedError, MalformedOutputError
from syllabus_sync.llm import GeminiTaskExtractor, strip_code_fences
from syllabus_sync.models.task import LLMResponseSchema

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _task(**overrides: object) -> dict:
    """Return a single valid LLM-response task dict."""
    task: dict = {
        "title": "Contracts I – Week 1 (Mon)",
        "date": "2024-08-19",
        "start_time": "09:00",
        "end_time": "10:50",
        "description": "Hawkins v. McGee",
    }
    task.update(overrides)
    return task


def _response_json(tasks: list[dict]) -> str:
    return json.dumps({"tasks": tasks})


def _mock_extractor(*response_texts: str | None) -> GeminiTaskExtractor:
    """Create an extractor whose ``generate_content`` returns each text in turn."""
    with patch("syllabus_sync.llm.genai.Client"):
        extractor = GeminiTaskExtractor(api_key="fake-key")

    responses = []
    for text in response_texts:
        response = MagicMock()
        response.text = text
        responses.append(response)
    extractor._client.models.generate_content = MagicMock(side_effect=responses)
    return extractor


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


class TestHappyPath:
    def test_extract_single_task(self) -> None:
        extractor = _mock_extractor(_response_json([_task()]))

        (task,) = extractor.extract_tasks("Contracts I ...")

        assert task.title == "Contracts I – Week 1 (Mon)"
        assert task.date == dt.date(2024, 8, 19)
        assert task.start_time == dt.time(9, 0)
        assert task.end_time == dt.time(10, 50)
        assert task.description == "Hawkins v. McGee"

    def test_null_times_mean_all_day(self) -> None:
        extractor = _mock_extractor(
            _response_json([_task(title="Final exam", start_time=None, end_time=None)])
        )

        (task,) = extractor.extract_tasks("...")

        assert task.start_time is None
        assert task.end_time is None

    def test_results_are_deduplicated_and_sorted(self) -> None:
        later = _task(title="Contracts I – Week 1 (Wed)", date="2024-08-21")
        extractor = _mock_extractor(_response_json([later, _task(), _task()]))

        tasks = extractor.extract_tasks("...")

        assert [task.title for task in tasks] == [
            "Contracts I – Week 1 (Mon)",
            "Contracts I – Week 1 (Wed)",
        ]

    def test_code_fenced_response(self) -> None:
        raw = "```json\n" + _response_json([_task()]) + "\n```"
        extractor = _mock_extractor(raw)

        assert len(extractor.extract_tasks("...")) == 1

    def test_bare_array_response(self) -> None:
        extractor = _mock_extractor(json.dumps([_task()]))

        assert len(extractor.extract_tasks("...")) == 1

    def test_empty_task_list(self) -> None:
        extractor = _mock_extractor(_response_json([]))

        assert extractor.extract_tasks("...") == []


# ---------------------------------------------------------------------------
# Malformed output
# ---------------------------------------------------------------------------


class TestMalformedOutput:
    def test_retry_succeeds(self, caplog: pytest.LogCaptureFixture) -> None:
        extractor = _mock_extractor("not json", _response_json([_task()]))

        with caplog.at_level(logging.WARNING, logger="syllabus_sync.llm"):
            tasks = extractor.extract_tasks("...")

        assert len(tasks) == 1
        assert extractor._client.models.generate_content.call_count == 2
        assert "retrying" in caplog.text

    def test_two_failures_raise_with_raw_output(self) -> None:
        extractor = _mock_extractor("not json", "still not json")

        with pytest.raises(MalformedOutputError, match="Error parsing tasks") as exc_info:
            extractor.extract_tasks("...")

        assert exc_info.value.raw_output == "still not json"
        assert extractor._client.models.generate_content.call_count == 2

    def test_schema_violation(self) -> None:
        bad = _response_json([_task(date="next Tuesday")])
        extractor = _mock_extractor(bad, bad)

        with pytest.raises(MalformedOutputError, match="Schema validation failed"):
            extractor.extract_tasks("...")

    def test_bad_time_format(self) -> None:
        bad = _response_json([_task(start_time="9am")])
        extractor = _mock_extractor(bad, bad)

        with pytest.raises(MalformedOutputError):
            extractor.extract_tasks("...")

    def test_object_without_tasks_key(self) -> None:
        extractor = _mock_extractor('{"events": []}', '{"events": []}')

        with pytest.raises(MalformedOutputError, match="Expected a JSON array"):
            extractor.extract_tasks("...")

    def test_empty_response(self) -> None:
        extractor = _mock_extractor(None, "")

        with pytest.raises(MalformedOutputError, match="Empty response"):
            extractor.extract_tasks("...")


# ---------------------------------------------------------------------------
# API integration
# ---------------------------------------------------------------------------


class TestApiIntegration:
    def test_api_error_raises_extraction_failed(self) -> None:
        with patch("syllabus_sync.llm.genai.Client"):
            extractor = GeminiTaskExtractor(api_key="fake-key")

        extractor._client.models.generate_content = MagicMock(
            side_effect=genai_errors.APIError(
                code=503, response_json={"error": "Service unavailable"}
            )
        )

        with pytest.raises(ExtractionFailedError, match="Gemini API call failed"):
            extractor.extract_tasks("...")
        assert extractor._client.models.generate_content.call_count == 1

    def test_client_receives_api_key(self) -> None:
        with patch("syllabus_sync.llm.genai.Client") as client_cls:
            GeminiTaskExtractor(api_key="fake-key")

        client_cls.assert_called_once_with(api_key="fake-key")

    def test_request_configuration(self) -> None:
        with patch("syllabus_sync.llm.genai.Client"):
            extractor = GeminiTaskExtractor(api_key="fake-key", model="gemini-2.0-pro")
        response = MagicMock()
        response.text = _response_json([])
        extractor._client.models.generate_content = MagicMock(return_value=response)

        extractor.extract_tasks("Contracts I")

        kwargs = extractor._client.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-2.0-pro"
        assert "Contracts I" in kwargs["contents"]
        config = kwargs["config"]
        assert config.response_mime_type == "application/json"
        assert config.response_schema is LLMResponseSchema
        assert "scheduling assistant" in config.system_instruction


class TestStripCodeFences:
    def test_json_fence(self) -> None:
        assert strip_code_fences('```json\n{"tasks": []}\n```') == '{"tasks": []}'

    def test_plain_fence(self) -> None:
        assert strip_code_fences("```\n[]\n```") == "[]"

    def test_unfenced(self) -> None:
        assert strip_code_fences('  {"tasks": []} ') == '{"tasks": []}'
