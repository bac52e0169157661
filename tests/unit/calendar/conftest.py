"""Shared fixtures for Google Calendar unit tests."""

from __future__ import annotations

import datetime as dt
from pathlib import Path
from unittest.mock import MagicMock, create_autospec

import pytest
from google.oauth2.credentials import Credentials

from syllabus_sync.calendar.auth import SCOPES, AuthSession, GoogleTokenRefresher
from syllabus_sync.calendar.client import GoogleCalendarClient
from syllabus_sync.models.task import Task


@pytest.fixture()
def mock_credentials() -> MagicMock:
    """Return a mock Credentials object that reports as valid."""
    creds = create_autospec(Credentials, instance=True)
    creds.valid = True
    creds.expired = False
    creds.refresh_token = "fake-refresh-token"
    creds.to_json.return_value = '{"token": "fake"}'
    return creds


@pytest.fixture()
def mock_expired_credentials() -> MagicMock:
    """Return a mock Credentials object that is expired but has a refresh token."""
    creds = create_autospec(Credentials, instance=True)
    creds.valid = False
    creds.expired = True
    creds.refresh_token = "fake-refresh-token"
    creds.to_json.return_value = '{"token": "refreshed"}'
    return creds


@pytest.fixture()
def tmp_credentials_file(tmp_path: Path) -> Path:
    """Write a minimal credentials.json to a temp directory and return its path."""
    creds_path = tmp_path / "credentials.json"
    creds_path.write_text('{"installed": {"client_id": "fake", "client_secret": "fake"}}')
    return creds_path


@pytest.fixture()
def tmp_token_file(tmp_path: Path) -> Path:
    """Return a path for token.json in a temp directory (file does not exist yet)."""
    return tmp_path / "token.json"


@pytest.fixture()
def scopes() -> list[str]:
    """Return the expected OAuth 2.0 scopes."""
    return SCOPES


@pytest.fixture()
def session() -> AuthSession:
    """A session with no known expiry, so it is never refreshed pre-emptively."""
    return AuthSession(
        access_token="access-1",
        refresh_token="refresh-1",
        user_id="student@example.edu",
    )


@pytest.fixture()
def refresher() -> MagicMock:
    """A ``GoogleTokenRefresher`` double that swaps in a new access token."""
    mock = create_autospec(GoogleTokenRefresher, instance=True)

    def _refresh(session: AuthSession) -> AuthSession:
        session.access_token = "access-2"
        session.expires_at = None
        return session

    mock.refresh.side_effect = _refresh
    return mock


@pytest.fixture()
def calendar_service() -> MagicMock:
    """A Calendar v3 service mock with no existing events."""
    service = MagicMock()
    service.events.return_value.list.return_value.execute.return_value = {"items": []}
    service.events.return_value.insert.return_value.execute.return_value = {
        "id": "evt-1",
        "htmlLink": "https://calendar.google.com/event?eid=evt-1",
    }
    return service


@pytest.fixture()
def calendar_client(calendar_service: MagicMock, refresher: MagicMock) -> GoogleCalendarClient:
    """A client wired to ``calendar_service`` and ``refresher``."""
    return GoogleCalendarClient(
        refresher=refresher,
        timezone="America/New_York",
        service_factory=lambda _session: calendar_service,
    )


@pytest.fixture()
def meeting_task() -> Task:
    return Task(
        title="Contracts I – Week 1 (Mon)",
        date=dt.date(2024, 8, 19),
        start_time=dt.time(9, 0),
        end_time=dt.time(10, 50),
        description="Hawkins v. McGee",
    )


@pytest.fixture()
def exam_task() -> Task:
    return Task(title="Final exam", date=dt.date(2024, 12, 10), description="Room 101")
