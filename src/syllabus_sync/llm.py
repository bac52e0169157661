"""Gemini LLM extractor for syllabus tasks.

Wraps the Google ``google-genai`` SDK as an alternative to the rules-based
resolver.  Handles prompt construction, API calls, code-fence stripping,
response parsing and validation, and a single retry on malformed output.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types
from pydantic import ValidationError

from syllabus_sync.exceptions import ExtractionFailedError, MalformedOutputError
from syllabus_sync.models.task import LLMResponseSchema, Task
from syllabus_sync.prompts import build_system_prompt, build_user_prompt
from syllabus_sync.resolver import dedupe_tasks

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*|\s*```\s*$", re.IGNORECASE)


def strip_code_fences(raw_text: str) -> str:
    """Remove a surrounding Markdown code fence (```json ... ```)."""
    return _FENCE_RE.sub("", raw_text).strip()


class GeminiTaskExtractor:
    """Extracts dated tasks from syllabus text via Google Gemini.

    Wraps the ``google.genai.Client`` to call Gemini with structured JSON
    output and Pydantic-based parsing/validation.

    Args:
        api_key: Google Gemini API key.
        model: Model identifier to use for generation.  Defaults to
            ``"gemini-2.5-flash"``.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
    ) -> None:
        self._client = genai.Client(api_key=api_key)
        self._model = model

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract_tasks(self, text: str) -> list[Task]:
        """Extract dated tasks from syllabus text.

        Calls the Gemini API with structured JSON output, then parses and
        validates the response.  On a parse failure the call is retried
        **once**; a second failure raises.

        Args:
            text: Plain syllabus text.

        Returns:
            Deduplicated tasks in chronological order.

        Raises:
            ExtractionFailedError: If the Gemini API is unreachable or
                returns a non-recoverable error.
            MalformedOutputError: If both attempts return output that does
                not match the task schema.  ``raw_output`` holds the last
                response.
        """
        system_prompt = build_system_prompt()
        user_prompt = build_user_prompt(text)
        logger.debug("User prompt sent to Gemini:\n%s", user_prompt)

        config = genai_types.GenerateContentConfig(
            system_instruction=system_prompt,
            response_mime_type="application/json",
            response_schema=LLMResponseSchema,
        )

        last_error: MalformedOutputError | None = None
        for attempt in range(1, 3):  # attempts 1 and 2
            raw_text = self._call_api(user_prompt, config)
            logger.debug("Raw LLM response (attempt %d):\n%s", attempt, raw_text)

            try:
                tasks = self._parse_response(raw_text)
            except MalformedOutputError as exc:
                last_error = exc
                if attempt == 1:
                    logger.warning(
                        "Malformed LLM response on attempt %d, retrying: %s",
                        attempt,
                        exc,
                    )
                    continue
            else:
                result = dedupe_tasks(tasks)
                logger.info(
                    "Gemini extracted %d tasks (%d after dedup)", len(tasks), len(result)
                )
                return result

        logger.error("LLM response malformed after 2 attempts: %s", last_error)
        raise last_error or MalformedOutputError("No response from LLM")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _call_api(
        self,
        user_prompt: str,
        config: genai_types.GenerateContentConfig,
    ) -> str:
        """Call the Gemini API and return the raw response text.

        Raises:
            ExtractionFailedError: On API-level failures (network, auth, etc.).
        """
        try:
            response = self._client.models.generate_content(
                model=self._model,
                contents=user_prompt,
                config=config,
            )
        except genai_errors.APIError as exc:
            logger.error("Gemini API error: %s", exc)
            raise ExtractionFailedError(f"Gemini API call failed: {exc}") from exc

        return response.text or ""

    def _parse_response(self, raw_text: str) -> list[Task]:
        """Parse raw model output into tasks.

        Accepts either ``{"tasks": [...]}`` or a bare JSON array, optionally
        wrapped in a Markdown code fence.

        Raises:
            MalformedOutputError: If the text is empty, not JSON, or does not
                conform to the task schema.
        """
        cleaned = strip_code_fences(raw_text or "")
        if not cleaned:
            raise MalformedOutputError("Empty response from LLM", raw_output=raw_text or "")

        try:
            data: Any = json.loads(cleaned)
        except json.JSONDecodeError as exc:
            raise MalformedOutputError(
                f"Error parsing tasks: {exc}", raw_output=cleaned
            ) from exc

        if isinstance(data, dict):
            data = data.get("tasks")
        if not isinstance(data, list):
            raise MalformedOutputError(
                "Expected a JSON array of tasks", raw_output=cleaned
            )

        try:
            return [Task.model_validate(_drop_nulls(entry)) for entry in data]
        except (ValidationError, TypeError) as exc:
            raise MalformedOutputError(
                f"Schema validation failed: {exc}", raw_output=cleaned
            ) from exc


def _drop_nulls(entry: Any) -> Any:
    if isinstance(entry, dict):
        return {key: value for key, value in entry.items() if value is not None}
    return entry
