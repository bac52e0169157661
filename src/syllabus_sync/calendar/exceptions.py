"""Calendar API exceptions and the ``@with_retry`` policy.

Exception hierarchy::

    CalendarAPIError           (any Calendar API failure)
    +-- CalendarAuthError      (session rejected after a refresh, or refresh failed)
    +-- CalendarRateLimitError (HTTP 429 after every backoff)
    +-- CalendarNotFoundError  (HTTP 404)

``@with_retry`` decorates the API methods of
:class:`~syllabus_sync.calendar.client.GoogleCalendarClient`, which take the
caller's :class:`~syllabus_sync.calendar.auth.AuthSession` right after
``self``.  On a 401 the decorator hands that session to the client's
``_refresh_credentials`` hook and tries the call once more.
"""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import Callable
from typing import Any, TypeVar

from googleapiclient.errors import HttpError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------


class CalendarAPIError(Exception):
    """A Google Calendar request failed.

    Attributes:
        status_code: HTTP status of the failed response; ``None`` for
            network failures.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CalendarAuthError(CalendarAPIError):
    """The user has to sign in again."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, status_code=401)


class CalendarRateLimitError(CalendarAPIError):
    def __init__(self, message: str = "Calendar API rate limit exceeded") -> None:
        super().__init__(message, status_code=429)


class CalendarNotFoundError(CalendarAPIError):
    def __init__(self, message: str = "Calendar resource not found") -> None:
        super().__init__(message, status_code=404)


_ERRORS_BY_STATUS: dict[int, type[CalendarAPIError]] = {
    401: CalendarAuthError,
    404: CalendarNotFoundError,
    429: CalendarRateLimitError,
}


def classify_http_error(error: HttpError) -> CalendarAPIError:
    """Translate a client-library ``HttpError`` into a calendar exception."""
    status = error.resp.status
    error_cls = _ERRORS_BY_STATUS.get(status)
    if error_cls is None:
        return CalendarAPIError(str(error), status_code=status)
    return error_cls(str(error))


# ---------------------------------------------------------------------------
# Retry decorator
# ---------------------------------------------------------------------------

_DEFAULT_MAX_RETRIES = 3
_DEFAULT_BASE_DELAY = 1.0  # seconds


def _call_session(args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
    if "session" in kwargs:
        return kwargs["session"]
    return args[1] if len(args) > 1 else None


def _refresh_for_retry(
    args: tuple[Any, ...], kwargs: dict[str, Any], error: CalendarAuthError
) -> None:
    """Ask the decorated client to refresh the call's session."""
    hook = getattr(args[0] if args else None, "_refresh_credentials", None)
    if not callable(hook):
        raise error
    try:
        hook(_call_session(args, kwargs))
    except CalendarAuthError:
        raise
    except Exception as exc:
        logger.error("Could not refresh the calendar session: %s", exc)
        raise CalendarAuthError(f"Token refresh failed: {exc}") from exc


def with_retry(
    max_retries: int = _DEFAULT_MAX_RETRIES,
    base_delay: float = _DEFAULT_BASE_DELAY,
) -> Callable[[F], F]:
    """Retry a Calendar API method on transient failures.

    - HTTP 429 and network errors (``OSError``) back off exponentially,
      ``base_delay * 2**n`` seconds, for at most *max_retries* retries.
    - HTTP 401 refreshes the session through ``self._refresh_credentials``
      and retries once; a second 401 raises :class:`CalendarAuthError`.
    - HTTP 404 raises :class:`CalendarNotFoundError` straight away, and any
      other HTTP error raises :class:`CalendarAPIError`.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            backoffs = 0
            refreshed = False

            while True:
                try:
                    return func(*args, **kwargs)
                except HttpError as exc:
                    error = classify_http_error(exc)
                    if isinstance(error, CalendarAuthError) and not refreshed:
                        logger.warning("Calendar returned 401; refreshing the session")
                        refreshed = True
                        _refresh_for_retry(args, kwargs, error)
                        continue
                    if isinstance(error, CalendarRateLimitError) and backoffs < max_retries:
                        reason = "rate limited"
                    else:
                        logger.error("%s failed (HTTP %s): %s", func.__name__, error.status_code, exc)
                        raise error from exc
                except OSError as exc:
                    if backoffs >= max_retries:
                        logger.error("%s failed after %d retries: %s", func.__name__, max_retries, exc)
                        raise CalendarAPIError(
                            f"Network error after {max_retries} retries: {exc}"
                        ) from exc
                    reason = f"network error ({exc})"

                delay = base_delay * (2**backoffs)
                backoffs += 1
                logger.warning(
                    "%s %s; retry %d/%d in %.1fs",
                    func.__name__,
                    reason,
                    backoffs,
                    max_retries,
                    delay,
                )
                time.sleep(delay)

        return wrapper  # type: ignore[return-value]

    return decorator
