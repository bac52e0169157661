"""Configuration loading for syllabus-sync.

Reads settings from environment variables (with .env support via
python-dotenv).  Nothing is required globally: each command asks
:func:`load_settings` for the variables it cannot run without, e.g. the
Gemini extractor requires ``GEMINI_API_KEY``.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""


_EXTRACTORS = ("rules", "gemini")


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables.

    Attributes:
        gemini_api_key: API key for Google Gemini, or ``None``.
        gemini_model: Gemini model used by the LLM extractor.
        google_client_id: OAuth client ID used to refresh access tokens.
        google_client_secret: OAuth client secret used to refresh tokens.
        google_credentials_path: OAuth client secrets file for the
            installed-app sign-in flow.
        google_token_path: Cached user token written after sign-in.
        supabase_url: Supabase project URL, or ``None``.
        supabase_key: Supabase service key, or ``None``.
        owner_id: Default owner identity for stored tasks.
        extractor: ``"rules"`` (deterministic resolver) or ``"gemini"``.
        weekday_aliases: Overrides for the weekday abbreviation table,
            e.g. ``{"T": "Tue"}``.
        log_level: Logging level (default ``"INFO"``).
        timezone: IANA timezone for timed calendar events.
    """

    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.5-flash"
    google_client_id: str | None = None
    google_client_secret: str | None = None
    google_credentials_path: Path = Path("credentials.json")
    google_token_path: Path = Path("token.json")
    supabase_url: str | None = None
    supabase_key: str | None = None
    owner_id: str | None = None
    extractor: str = "rules"
    weekday_aliases: dict[str, str] = field(default_factory=dict)
    log_level: str = "INFO"
    timezone: str = "America/New_York"

    @property
    def supabase_configured(self) -> bool:
        """Whether both Supabase URL and key are present."""
        return bool(self.supabase_url and self.supabase_key)

    def __repr__(self) -> str:
        return (
            f"Settings(gemini_api_key={_mask(self.gemini_api_key)}, "
            f"gemini_model={self.gemini_model!r}, "
            f"google_client_id={self.google_client_id!r}, "
            f"google_client_secret={_mask(self.google_client_secret)}, "
            f"supabase_url={self.supabase_url!r}, "
            f"supabase_key={_mask(self.supabase_key)}, "
            f"owner_id={self.owner_id!r}, "
            f"extractor={self.extractor!r}, "
            f"log_level={self.log_level!r}, "
            f"timezone={self.timezone!r})"
        )


# Environment variable -> Settings field, for plain string values.
_STRING_VARS = {
    "GEMINI_API_KEY": "gemini_api_key",
    "GEMINI_MODEL": "gemini_model",
    "GOOGLE_CLIENT_ID": "google_client_id",
    "GOOGLE_CLIENT_SECRET": "google_client_secret",
    "SUPABASE_URL": "supabase_url",
    "SUPABASE_KEY": "supabase_key",
    "OWNER_ID": "owner_id",
    "LOG_LEVEL": "log_level",
    "TIMEZONE": "timezone",
}

_PATH_VARS = {
    "GOOGLE_CREDENTIALS_PATH": "google_credentials_path",
    "GOOGLE_TOKEN_PATH": "google_token_path",
}


def load_settings(required: Iterable[str] = ()) -> Settings:
    """Load and validate settings from environment variables.

    Calls :func:`dotenv.load_dotenv` so a ``.env`` file in the working
    directory is picked up automatically.

    Args:
        required: Environment variable names that must be set and
            non-blank for the caller to proceed.

    Returns:
        A validated :class:`Settings` instance.

    Raises:
        ConfigError: If any required variable is missing or whitespace-only
            (the message names **all** of them), if ``EXTRACTOR`` is not a
            known extractor, or if ``WEEKDAY_ALIASES`` is malformed.
    """
    load_dotenv()

    missing = [name for name in required if not os.environ.get(name, "").strip()]
    if missing:
        names = ", ".join(missing)
        raise ConfigError(f"Missing required environment variables: {names}")

    values: dict[str, object] = {}

    for env_var, field_name in _STRING_VARS.items():
        raw = os.environ.get(env_var, "").strip()
        if raw:
            values[field_name] = raw

    for env_var, field_name in _PATH_VARS.items():
        raw = os.environ.get(env_var, "").strip()
        if raw:
            values[field_name] = Path(raw)

    extractor = os.environ.get("EXTRACTOR", "").strip().lower()
    if extractor:
        if extractor not in _EXTRACTORS:
            raise ConfigError(
                f"EXTRACTOR must be one of {', '.join(_EXTRACTORS)}, got {extractor!r}"
            )
        values["extractor"] = extractor

    aliases = os.environ.get("WEEKDAY_ALIASES", "").strip()
    if aliases:
        values["weekday_aliases"] = parse_weekday_aliases(aliases)

    return Settings(**values)


def parse_weekday_aliases(raw: str) -> dict[str, str]:
    """Parse ``"T=Tue,R=Thu"`` into ``{"T": "Tue", "R": "Thu"}``.

    Raises:
        ConfigError: If a pair is not of the form ``alias=day``.
    """
    aliases: dict[str, str] = {}
    for pair in raw.split(","):
        if not pair.strip():
            continue
        alias, sep, day = pair.partition("=")
        if not sep or not alias.strip() or not day.strip():
            raise ConfigError(f"Invalid WEEKDAY_ALIASES entry: {pair.strip()!r}")
        aliases[alias.strip()] = day.strip()
    return aliases


def _mask(secret: str | None) -> str:
    return "'***'" if secret else "None"
