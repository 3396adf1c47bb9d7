"""
STATELESS SESSIONS
==================
Sealed, client-carried session storage for Starlette/FastAPI apps.
"""

# FLOW:
# - Re-export middleware, options, extraction strategies and errors.
# HOW:
# - Single import point for applications wiring the middleware.

from StatelessSession.errors import (
    SessionError,
    ConfigurationError,
    TokenError,
    InvalidTokenError,
    AuthenticationError,
    ExpiredTokenError,
    SealError,
)
from StatelessSession.extraction import get_session_id_from_cookie, get_session_id_from_header
from StatelessSession.session_config import CookieOptions, SessionOptions, build_options, options_from_env
from StatelessSession.session_middleware import StatelessSessionMiddleware, get_session
from StatelessSession.token_codec import TokenCodec, seal, unseal
from StatelessSession.tracking import DirtyFlag, Session, TrackedDict, TrackedList, track

__all__ = [
    "SessionError",
    "ConfigurationError",
    "TokenError",
    "InvalidTokenError",
    "AuthenticationError",
    "ExpiredTokenError",
    "SealError",
    "get_session_id_from_cookie",
    "get_session_id_from_header",
    "CookieOptions",
    "SessionOptions",
    "build_options",
    "options_from_env",
    "StatelessSessionMiddleware",
    "get_session",
    "TokenCodec",
    "seal",
    "unseal",
    "DirtyFlag",
    "Session",
    "TrackedDict",
    "TrackedList",
    "track",
]
