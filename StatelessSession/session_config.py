"""
SESSION CONFIG
==============
Immutable middleware options, their defaults and environment loading.
"""

# FLOW:
# - build_options() validates inputs and fills cookie defaults once.
# - options_from_env() reads SESSION_* variables (and the active .env file).
# WHY:
# - Misconfiguration must fail at startup, not on the first request.
# HOW:
# - Frozen dataclasses; ConfigurationError on any invalid field.

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field, fields
from typing import Any, Mapping

import dotenv

from StatelessSession.errors import ConfigurationError
from StatelessSession.extraction import DEFAULT_COOKIE_NAME, TokenExtractor, get_session_id_from_cookie
from StatelessSession.session_logging import get_logger


logger = get_logger("config")

MIN_SECRET_LENGTH = 32
# Cookie lifetime when token expiry is disabled. Never 0: that would make a session cookie.
DEFAULT_COOKIE_MAX_AGE = 60 * 60 * 24 * 7
SAME_SITE_VALUES = {"lax", "strict", "none"}


def get_bool(name: str, default: bool = False) -> bool:
    return os.getenv(name, str(default)).lower() == "true"


def get_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def get_str(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def is_production() -> bool:
    return os.getenv("APP_ENV", "").strip().lower() in {"prod", "production"}


def _env_name() -> str:
    if is_production():
        return ".env.production"
    if os.getenv("APP_ENV", "").strip().lower() in {"local", "localhost", "dev", "development"}:
        return ".env.localhost"
    return ".env"


def load_environment(path: str | None = None) -> str:
    """Load the active .env file without overriding variables already set."""
    env_path = path or os.path.join(os.getcwd(), _env_name())
    dotenv.load_dotenv(env_path)
    if get_bool("APP_ENV_LOG"):
        logger.info("Active env file: %s", env_path)
    return env_path


@dataclass(frozen=True)
class CookieOptions:
    name: str = DEFAULT_COOKIE_NAME
    # None means "derive at build time" (expires_in, then production mode).
    max_age: int | None = None
    path: str = "/"
    secure: bool | None = None
    http_only: bool = True
    same_site: str | None = "lax"
    domain: str | None = None


@dataclass(frozen=True)
class SessionOptions:
    secret: str = field(repr=False)
    get_session_id: TokenExtractor
    expires_in: int = 0
    custom_header: str | None = None
    cookie: CookieOptions = field(default_factory=CookieOptions)


_COOKIE_FIELDS = {f.name for f in fields(CookieOptions)}


def _resolve_cookie(cookie: CookieOptions | Mapping[str, Any] | None, expires_in: int) -> CookieOptions:
    if isinstance(cookie, CookieOptions):
        given = {f.name: getattr(cookie, f.name) for f in fields(CookieOptions)}
    else:
        given = {key: value for key, value in dict(cookie or {}).items() if value is not None}
        unknown = set(given) - _COOKIE_FIELDS
        if unknown:
            raise ConfigurationError(f"Unknown cookie options: {', '.join(sorted(unknown))}")
        # same_site=None explicitly means "omit the attribute"
        if cookie and "same_site" in cookie and cookie["same_site"] is None:
            given["same_site"] = None

    if given.get("max_age") is None:
        given["max_age"] = math.ceil(expires_in / 1000) if expires_in else DEFAULT_COOKIE_MAX_AGE
    if given.get("secure") is None:
        given["secure"] = is_production()

    max_age = given["max_age"]
    if not isinstance(max_age, int) or isinstance(max_age, bool) or max_age <= 0:
        raise ConfigurationError("cookie max_age must be a positive number of seconds")
    if not given.get("name", DEFAULT_COOKIE_NAME):
        raise ConfigurationError("cookie name must not be empty")
    same_site = given.get("same_site", "lax")
    if same_site is not None and str(same_site).lower() not in SAME_SITE_VALUES:
        raise ConfigurationError(f"cookie same_site must be one of {sorted(SAME_SITE_VALUES)} or None")

    return CookieOptions(**given)


def build_options(
    get_session_id: TokenExtractor | None = None,
    secret: str | None = None,
    expires_in: int = 0,
    custom_header: str | None = None,
    cookie: CookieOptions | Mapping[str, Any] | None = None,
) -> SessionOptions:
    """
    Validate middleware inputs and return the immutable options record.

    ``expires_in`` is the token lifetime in milliseconds (0 = never expires).
    Cookie ``max_age`` is in seconds; it defaults to expires_in converted to
    seconds, or 7 days when expiry is disabled.
    """
    if get_session_id is None:
        raise ConfigurationError("get_session_id must be defined")
    if not callable(get_session_id):
        raise ConfigurationError("get_session_id must be callable")
    if not secret:
        raise ConfigurationError("session secret must be defined")
    if len(secret) < MIN_SECRET_LENGTH:
        raise ConfigurationError(f"session secret must be at least {MIN_SECRET_LENGTH} characters")
    if not isinstance(expires_in, int) or isinstance(expires_in, bool) or expires_in < 0:
        raise ConfigurationError("expires_in must be a non-negative number of milliseconds")

    return SessionOptions(
        secret=secret,
        get_session_id=get_session_id,
        expires_in=expires_in,
        custom_header=custom_header or None,
        cookie=_resolve_cookie(cookie, expires_in),
    )


def options_from_env(get_session_id: TokenExtractor | None = None, env_path: str | None = None) -> SessionOptions:
    """Build options from SESSION_* environment variables."""
    load_environment(env_path)

    cookie: dict[str, Any] = {
        "name": get_str("SESSION_COOKIE_NAME", DEFAULT_COOKIE_NAME),
        "path": get_str("SESSION_COOKIE_PATH", "/"),
        "http_only": get_bool("SESSION_COOKIE_HTTPONLY", True),
        "domain": get_str("SESSION_COOKIE_DOMAIN"),
    }
    if get_str("SESSION_COOKIE_MAX_AGE") is not None:
        cookie["max_age"] = get_int("SESSION_COOKIE_MAX_AGE", DEFAULT_COOKIE_MAX_AGE)
    if get_str("SESSION_COOKIE_SECURE") is not None:
        cookie["secure"] = get_bool("SESSION_COOKIE_SECURE")
    same_site = get_str("SESSION_COOKIE_SAMESITE", "lax")
    cookie["same_site"] = None if same_site.lower() == "off" else same_site.lower()

    options = build_options(
        get_session_id=get_session_id or get_session_id_from_cookie(cookie["name"]),
        secret=get_str("SESSION_SECRET_KEY"),
        expires_in=get_int("SESSION_EXPIRES_IN", 0),
        custom_header=get_str("SESSION_CUSTOM_HEADER"),
        cookie=cookie,
    )
    logger.debug(
        "Loaded session options cookie=%s expires_in=%s custom_header=%s",
        options.cookie.name,
        options.expires_in,
        options.custom_header,
    )
    return options
