"""
SESSION ERRORS
==============
Error taxonomy for sealed sessions.
"""

# FLOW:
# - ConfigurationError is raised while building middleware options.
# - TokenError subclasses are raised by unseal() and recovered by the middleware.
# - SealError is raised by seal() when the payload cannot be serialized.
# HOW:
# - Plain exception hierarchy rooted at SessionError.

from __future__ import annotations


class SessionError(Exception):
    """Base class for stateless session failures."""


class ConfigurationError(SessionError):
    """Middleware options are missing or invalid."""


class TokenError(SessionError):
    """A session token could not be turned back into session data."""


class InvalidTokenError(TokenError):
    """Token is malformed or does not carry a session envelope."""


class AuthenticationError(TokenError):
    """Token signature check failed (wrong secret or tampering)."""


class ExpiredTokenError(TokenError):
    """Token is older than the allowed time-to-live."""


class SealError(SessionError):
    """Session data could not be serialized into a token."""
