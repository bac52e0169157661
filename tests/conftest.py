"""Shared fixtures for syllabus-sync tests."""

from __future__ import annotations

import logging
from collections.abc import Generator

import pytest

_ENV_VARS = (
    "GEMINI_API_KEY",
    "GEMINI_MODEL",
    "GOOGLE_CLIENT_ID",
    "GOOGLE_CLIENT_SECRET",
    "GOOGLE_CREDENTIALS_PATH",
    "GOOGLE_TOKEN_PATH",
    "SUPABASE_URL",
    "SUPABASE_KEY",
    "OWNER_ID",
    "EXTRACTOR",
    "WEEKDAY_ALIASES",
    "LOG_LEVEL",
    "TIMEZONE",
)

CONTRACTS_SYLLABUS = """\
Contracts I
Fall 2024
MW 9:00–10:50am

Week 1 (Mon): Hawkins v. McGee
Week 1 (Wed): Offer and acceptance, pp. 1-30
Week 2 (Mon): Consideration
Week 2 (Wed): Promissory estoppel. Case brief due before class.
Week 3 (Mon): Labor Day Holiday
Week 3 (Wed): Statute of frauds
"""


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove all syllabus-sync environment variables.

    Patches ``load_dotenv`` so a real ``.env`` file cannot re-inject values
    that the test explicitly removed.
    """
    monkeypatch.setattr("syllabus_sync.config.load_dotenv", lambda *_a, **_kw: None)
    for key in _ENV_VARS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def monkeypatch_env(clean_env: None, monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set a typical environment: Gemini key, owner, and OAuth client.

    Returns the dict of variables so tests can inspect or override values.
    """
    env_vars = {
        "GEMINI_API_KEY": "test-gemini-key-12345",
        "GOOGLE_CLIENT_ID": "client-id.apps.googleusercontent.com",
        "GOOGLE_CLIENT_SECRET": "client-secret",
        "OWNER_ID": "student@example.edu",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture()
def contracts_syllabus() -> str:
    """A small Fall 2024 syllabus anchored only by Labor Day."""
    return CONTRACTS_SYLLABUS


@pytest.fixture(autouse=True)
def _reset_root_logger() -> Generator[None, None, None]:
    """Reset the root logger after each test to prevent handler leaks."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
