"""OAuth 2.0 sessions for Google Calendar.

Two ways to get a usable :class:`AuthSession`:

- **CLI sign-in** -- :func:`get_calendar_credentials` runs the installed-app
  flow (cached token, refresh, then browser) and
  :func:`session_from_credentials` wraps the result.
- **Existing tokens** -- build an :class:`AuthSession` from stored
  access/refresh tokens and call :func:`ensure_fresh` before each use.

Expired access tokens are refreshed lazily by :class:`GoogleTokenRefresher`.
If Google does not return a new refresh token the old one is kept.  A
failed refresh marks the session with ``error = "RefreshAccessTokenError"``
and raises :class:`~syllabus_sync.calendar.exceptions.CalendarAuthError`.

Concurrent refreshes of one user's session are not coordinated.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
from dataclasses import dataclass
from pathlib import Path

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from syllabus_sync.calendar.exceptions import CalendarAuthError

logger = logging.getLogger(__name__)

SCOPES: list[str] = ["https://www.googleapis.com/auth/calendar.events"]
"""OAuth 2.0 scope: read and write events on the user's calendars."""

TOKEN_URI = "https://oauth2.googleapis.com/token"
REFRESH_ERROR = "RefreshAccessTokenError"


@dataclass
class AuthSession:
    """Tokens for one signed-in user.

    Passed explicitly to every calendar call; refreshing updates it in place.

    Attributes:
        access_token: Current OAuth access token.
        refresh_token: Long-lived refresh token, or ``None``.
        expires_at: UTC instant the access token expires, or ``None`` if
            unknown (treated as still valid).
        user_id: Stable identity of the user (Google subject ID or e-mail).
        error: ``"RefreshAccessTokenError"`` after a failed refresh.
    """

    access_token: str
    refresh_token: str | None = None
    expires_at: dt.datetime | None = None
    user_id: str = ""
    error: str | None = None

    def is_expired(self, now: dt.datetime | None = None) -> bool:
        """Whether the access token has expired at *now* (UTC)."""
        if self.expires_at is None:
            return False
        now = now or dt.datetime.now(dt.timezone.utc)
        return now >= self.expires_at


class GoogleTokenRefresher:
    """Exchanges a refresh token for a new access token.

    Args:
        client_id: OAuth client ID.
        client_secret: OAuth client secret.
    """

    def __init__(self, client_id: str, client_secret: str) -> None:
        self._client_id = client_id
        self._client_secret = client_secret

    def refresh(self, session: AuthSession) -> AuthSession:
        """Refresh *session* in place and return it.

        Raises:
            CalendarAuthError: If the session has no refresh token or Google
                rejects it.  ``session.error`` is set before raising.
        """
        if not session.refresh_token:
            session.error = REFRESH_ERROR
            logger.error("Cannot refresh session for %s: no refresh token", session.user_id)
            raise CalendarAuthError("Unauthorized: no refresh token")

        creds = Credentials(
            token=None,
            refresh_token=session.refresh_token,
            token_uri=TOKEN_URI,
            client_id=self._client_id,
            client_secret=self._client_secret,
            scopes=SCOPES,
        )
        try:
            creds.refresh(Request())
        except RefreshError as exc:
            session.error = REFRESH_ERROR
            logger.error("Error refreshing token for %s: %s", session.user_id, exc)
            raise CalendarAuthError(f"Token refresh failed: {exc}") from exc

        session.access_token = creds.token
        # Keep the old refresh token if Google does not return a new one.
        session.refresh_token = creds.refresh_token or session.refresh_token
        session.expires_at = _as_utc(creds.expiry)
        session.error = None
        logger.info("Access token refreshed for %s", session.user_id or "<unknown>")
        return session


def ensure_fresh(
    session: AuthSession,
    refresher: GoogleTokenRefresher,
    now: dt.datetime | None = None,
) -> AuthSession:
    """Refresh *session* if its access token has expired at *now*."""
    if session.is_expired(now):
        logger.info("Access token expired, refreshing")
        refresher.refresh(session)
    return session


def session_from_credentials(creds: Credentials, user_id: str = "") -> AuthSession:
    """Wrap ``google.oauth2`` credentials in an :class:`AuthSession`."""
    return AuthSession(
        access_token=creds.token,
        refresh_token=creds.refresh_token,
        expires_at=_as_utc(creds.expiry),
        user_id=user_id,
    )


def _as_utc(expiry: dt.datetime | None) -> dt.datetime | None:
    # google-auth reports expiry as a naive UTC datetime.
    if expiry is None:
        return None
    if expiry.tzinfo is None:
        return expiry.replace(tzinfo=dt.timezone.utc)
    return expiry


# ---------------------------------------------------------------------------
# Installed-app sign-in (CLI)
# ---------------------------------------------------------------------------


def get_calendar_credentials(
    credentials_path: Path | str,
    token_path: Path | str,
) -> Credentials:
    """Obtain valid Google Calendar OAuth 2.0 credentials.

    Follows a three-step strategy:

    1. **Cached token** -- load ``token_path`` and return it if still valid.
    2. **Refresh** -- if the cached token is expired but has a refresh token,
       refresh it and save the result.
    3. **Browser flow** -- otherwise launch the ``InstalledAppFlow``
       local-server flow.

    Args:
        credentials_path: OAuth client secrets file (``credentials.json``).
        token_path: Where the cached user token is stored (``token.json``).

    Returns:
        Valid :class:`google.oauth2.credentials.Credentials`.

    Raises:
        CalendarAuthError: If a browser flow is needed but
            ``credentials_path`` does not exist.
    """
    credentials_path = Path(credentials_path)
    token_path = Path(token_path)

    creds = _load_cached_token(token_path)

    if creds is not None and creds.valid:
        logger.info("Loaded valid cached token from %s", token_path)
        return creds

    if creds is not None and creds.expired and creds.refresh_token:
        logger.info("Cached token expired, attempting refresh")
        try:
            creds.refresh(Request())
        except RefreshError as exc:
            logger.warning("Token refresh failed, falling back to browser flow: %s", exc)
        else:
            _save_token(creds, token_path)
            return creds

    logger.info("Starting browser-based OAuth flow")
    creds = _run_browser_flow(credentials_path)
    _save_token(creds, token_path)
    return creds


def _load_cached_token(token_path: Path) -> Credentials | None:
    if not token_path.exists():
        logger.info("No cached token found at %s", token_path)
        return None

    try:
        return Credentials.from_authorized_user_file(str(token_path), SCOPES)
    except (json.JSONDecodeError, ValueError, KeyError) as exc:
        logger.warning("Failed to parse cached token at %s: %s", token_path, exc)
        return None


def _run_browser_flow(credentials_path: Path) -> Credentials:
    if not credentials_path.exists():
        msg = f"OAuth client secrets file not found: {credentials_path}"
        logger.error(msg)
        raise CalendarAuthError(msg)

    flow = InstalledAppFlow.from_client_secrets_file(str(credentials_path), scopes=SCOPES)
    creds = flow.run_local_server(port=0)
    logger.info("Browser OAuth flow completed successfully")
    return creds


def _save_token(creds: Credentials, token_path: Path) -> None:
    token_path.parent.mkdir(parents=True, exist_ok=True)
    token_path.write_text(creds.to_json())
    logger.info("Token saved to %s", token_path)
