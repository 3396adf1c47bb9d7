"""
SESSION TOKEN EXTRACTION
========================
Pluggable strategies that pull the sealed token out of a request.
"""

# FLOW:
# - Each factory returns a callable(request) -> token string or None.
# HOW:
# - Cookie strategy uses Starlette's parsed request.cookies.
# - Header strategy reads a header and strips an optional auth scheme.

from __future__ import annotations

from typing import Callable, Optional

from starlette.requests import HTTPConnection


DEFAULT_COOKIE_NAME = "sk-stateless-session"

TokenExtractor = Callable[[HTTPConnection], Optional[str]]


def get_session_id_from_cookie(cookie_name: str = DEFAULT_COOKIE_NAME) -> TokenExtractor:
    """
    Read the sealed token from a cookie.

    Example:
        StatelessSessionMiddleware(
            app,
            secret=secret,
            get_session_id=get_session_id_from_cookie("session-id"),
            cookie={"name": "session-id"},
        )
    """

    def extract(request: HTTPConnection) -> str | None:
        return request.cookies.get(cookie_name) or None

    return extract


def get_session_id_from_header(header_name: str = "authorization", scheme: str | None = "Bearer") -> TokenExtractor:
    """Read the sealed token from a header, e.g. ``Authorization: Bearer <token>``."""

    def extract(request: HTTPConnection) -> str | None:
        value = (request.headers.get(header_name) or "").strip()
        if scheme:
            parts = value.split(None, 1)
            if parts and parts[0].lower() == scheme.lower():
                value = parts[1].strip() if len(parts) > 1 else ""
        return value or None

    return extract
