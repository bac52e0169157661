"""Tests for calendar exceptions and the ``@with_retry`` decorator.

Covers the exception hierarchy in :mod:`syllabus_sync.calendar.exceptions`
and the decorator's handling of rate limits, expired sessions, network
timeouts, and non-retryable responses.

Test matrix:

| Test | Scenario | Expected |
|---|---|---|
| test_api_rate_limit_429_retries | HTTP 429 once, then OK | Retries, succeeds on 2nd call |
| test_api_rate_limit_429_max_retries_exceeded | HTTP 429 four times | Raises CalendarRateLimitError |
| test_api_auth_expired_401_triggers_refresh | HTTP 401 once | Refreshes session, retries, succeeds |
| test_session_passed_by_keyword | session=... | Same session refreshed |
| test_api_auth_expired_401_refresh_fails | HTTP 401, refresh fails | Raises CalendarAuthError |
| test_refresh_auth_error_propagates | Refresh raises CalendarAuthError | Same error, not wrapped |
| test_no_refresh_hook | Client without hook | Raises CalendarAuthError |
| test_network_timeout_retries | Timeout once, then OK | Retries, succeeds |
| test_network_timeout_max_retries_exceeded | Timeout four times | Raises CalendarAPIError |
| test_not_found_404 | HTTP 404 | Raises CalendarNotFoundError, no retry |
| test_other_status_is_not_retried | HTTP 500 | CalendarAPIError with status_code |
"""

from __future__ import annotations

import pytest
from googleapiclient.errors import HttpError
from httplib2 import Response

from syllabus_sync.calendar.auth import AuthSession
from syllabus_sync.calendar.exceptions import (
    CalendarAPIError,
    CalendarAuthError,
    CalendarNotFoundError,
    CalendarRateLimitError,
    with_retry,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_http_error(status: int) -> HttpError:
    """Create a ``googleapiclient.errors.HttpError`` with the given status code."""
    resp = Response({"status": str(status)})
    return HttpError(resp, b"simulated error")


class _FakeClient:
    """Minimal stand-in for ``GoogleCalendarClient`` used to test ``@with_retry``.

    The decorator looks for ``_refresh_credentials`` on the first positional
    argument and passes it the session argument.
    """

    def __init__(self, *, refresh_side_effect: Exception | None = None) -> None:
        self.refreshed: list[AuthSession | None] = []
        self._refresh_side_effect = refresh_side_effect

    def _refresh_credentials(self, session: AuthSession | None) -> None:
        self.refreshed.append(session)
        if self._refresh_side_effect is not None:
            raise self._refresh_side_effect


class _FakeClientNoRefresh:
    """Client without ``_refresh_credentials`` -- simulates missing hook."""


@pytest.fixture()
def session() -> AuthSession:
    return AuthSession(access_token="access-1", refresh_token="refresh-1")


# ---------------------------------------------------------------------------
# Exception hierarchy
# ---------------------------------------------------------------------------


class TestHierarchy:
    @pytest.mark.parametrize(
        ("exc", "status"),
        [
            (CalendarAuthError(), 401),
            (CalendarRateLimitError(), 429),
            (CalendarNotFoundError(), 404),
        ],
    )
    def test_subclasses_carry_status(self, exc: CalendarAPIError, status: int) -> None:
        assert isinstance(exc, CalendarAPIError)
        assert exc.status_code == status

    def test_base_error_without_status(self) -> None:
        assert CalendarAPIError("boom").status_code is None


# ---------------------------------------------------------------------------
# Rate limit (429)
# ---------------------------------------------------------------------------


class TestApiRateLimit429:
    def test_api_rate_limit_429_retries(self, session: AuthSession) -> None:
        """Decorator retries after a single 429 and returns success."""
        call_count = 0

        @with_retry(max_retries=3, base_delay=0.0)
        def api_call(self_arg: object, session: AuthSession) -> str:
            nonlocal call_count
            call_count += 1
            if call_count == 1:
                raise _make_http_error(429)
            return "ok"

        result = api_call(_FakeClient(), session)

        assert result == "ok"
        assert call_count == 2

    def test_api_rate_limit_429_max_retries_exceeded(self, session: AuthSession) -> None:
        """CalendarRateLimitError is raised after exhausting all retries."""
        call_count = 0

        @with_retry(max_retries=3, base_delay=0.0)
        def api_call(self_arg: object, session: AuthSession) -> str:
            nonlocal call_count
            call_count += 1
            raise _make_http_error(429)

        with pytest.raises(CalendarRateLimitError):
            api_call(_FakeClient(), session)

        # 1 initial attempt + 3 retries = 4 total calls
        assert call_count == 4


# ---------------------------------------------------------------------------
# Auth expired (401)
# ---------------------------------------------------------------------------


class TestApiAuthExpired401:
    def test_api_auth_expired_401_triggers_refresh(self, session: AuthSession) -> None:
        """Session is refreshed and the retried call succeeds."""
        call_count = 0

        @with_retry(max_retries=3, base_delay=0.0)
        def api_call(self_arg: object, session: AuthSession) -> str:
            nonlocal call_count
            call_count += 1
            if call_count == 1:
                raise _make_http_error(401)
            return "refreshed-ok"

        client = _FakeClient()
        result = api_call(client, session)

        assert result == "refreshed-ok"
        assert call_count == 2
        assert client.refreshed == [session]

    def test_session_passed_by_keyword(self, session: AuthSession) -> None:
        call_count = 0

        @with_retry(max_retries=3, base_delay=0.0)
        def api_call(self_arg: object, session: AuthSession) -> str:
            nonlocal call_count
            call_count += 1
            if call_count == 1:
                raise _make_http_error(401)
            return "ok"

        client = _FakeClient()
        api_call(client, session=session)

        assert client.refreshed == [session]

    def test_second_401_raises(self, session: AuthSession) -> None:
        @with_retry(max_retries=3, base_delay=0.0)
        def api_call(self_arg: object, session: AuthSession) -> str:
            raise _make_http_error(401)

        client = _FakeClient()

        with pytest.raises(CalendarAuthError):
            api_call(client, session)

        assert len(client.refreshed) == 1

    def test_api_auth_expired_401_refresh_fails(self, session: AuthSession) -> None:
        """CalendarAuthError is raised when the refresh itself fails."""

        @with_retry(max_retries=3, base_delay=0.0)
        def api_call(self_arg: object, session: AuthSession) -> str:
            raise _make_http_error(401)

        client = _FakeClient(refresh_side_effect=RuntimeError("refresh broken"))

        with pytest.raises(CalendarAuthError, match="Token refresh failed: refresh broken"):
            api_call(client, session)

        assert len(client.refreshed) == 1

    def test_refresh_auth_error_propagates(self, session: AuthSession) -> None:
        @with_retry(max_retries=3, base_delay=0.0)
        def api_call(self_arg: object, session: AuthSession) -> str:
            raise _make_http_error(401)

        original = CalendarAuthError("revoked")
        client = _FakeClient(refresh_side_effect=original)

        with pytest.raises(CalendarAuthError) as exc_info:
            api_call(client, session)

        assert exc_info.value is original

    def test_no_refresh_hook(self, session: AuthSession) -> None:
        @with_retry(max_retries=3, base_delay=0.0)
        def api_call(self_arg: object, session: AuthSession) -> str:
            raise _make_http_error(401)

        with pytest.raises(CalendarAuthError):
            api_call(_FakeClientNoRefresh(), session)


# ---------------------------------------------------------------------------
# Network timeout / OSError
# ---------------------------------------------------------------------------


class TestNetworkErrors:
    def test_network_timeout_retries(self, session: AuthSession) -> None:
        """Decorator retries after a single TimeoutError and succeeds."""
        call_count = 0

        @with_retry(max_retries=3, base_delay=0.0)
        def api_call(self_arg: object, session: AuthSession) -> str:
            nonlocal call_count
            call_count += 1
            if call_count == 1:
                raise TimeoutError("connection timed out")
            return "recovered"

        result = api_call(_FakeClient(), session)

        assert result == "recovered"
        assert call_count == 2

    def test_network_timeout_max_retries_exceeded(self, session: AuthSession) -> None:
        """CalendarAPIError is raised after exhausting all network retries."""
        call_count = 0

        @with_retry(max_retries=3, base_delay=0.0)
        def api_call(self_arg: object, session: AuthSession) -> str:
            nonlocal call_count
            call_count += 1
            raise ConnectionResetError("connection reset")

        with pytest.raises(CalendarAPIError, match="Network error"):
            api_call(_FakeClient(), session)

        # 1 initial attempt + 3 retries = 4 total calls
        assert call_count == 4


# ---------------------------------------------------------------------------
# Non-retryable responses
# ---------------------------------------------------------------------------


class TestNonRetryable:
    def test_not_found_404(self, session: AuthSession) -> None:
        """CalendarNotFoundError is raised immediately without retry."""
        call_count = 0

        @with_retry(max_retries=3, base_delay=0.0)
        def api_call(self_arg: object, session: AuthSession) -> None:
            nonlocal call_count
            call_count += 1
            raise _make_http_error(404)

        with pytest.raises(CalendarNotFoundError):
            api_call(_FakeClient(), session)

        assert call_count == 1

    def test_other_status_is_not_retried(self, session: AuthSession) -> None:
        call_count = 0

        @with_retry(max_retries=3, base_delay=0.0)
        def api_call(self_arg: object, session: AuthSession) -> None:
            nonlocal call_count
            call_count += 1
            raise _make_http_error(500)

        with pytest.raises(CalendarAPIError) as exc_info:
            api_call(_FakeClient(), session)

        assert exc_info.value.status_code == 500
        assert call_count == 1
