"""
STATELESS SESSION MIDDLEWARE
============================
Sealed-token sessions with reseal-on-write.

FLOW:
- Extract the token with the configured strategy (cookie, header, custom).
- Unseal it into request.state.session; bad or expired tokens start empty.
- Run the handler, then reseal only if the session was written.
- Emit the new token as a Set-Cookie (appended) or as the custom header.

WHY:
- No server-side store; unchanged sessions cost no crypto on the way out.

HOW:
- Session data is wrapped in write-tracking containers sharing a DirtyFlag.
- Fernet tokens via TokenCodec; cookie serialization via Response.set_cookie.
"""

from __future__ import annotations

from dataclasses import fields
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import HTTPConnection
from starlette.responses import Response

from StatelessSession.errors import ConfigurationError, TokenError
from StatelessSession.session_config import SessionOptions, build_options
from StatelessSession.session_logging import get_logger, redact_token
from StatelessSession.session_metrics import increment_session_event
from StatelessSession.token_codec import TokenCodec
from StatelessSession.tracking import DirtyFlag, Session


class StatelessSessionMiddleware(BaseHTTPMiddleware):
    """
    Sealed session middleware.

    Pass a prebuilt ``options`` record (see ``build_options``) or the same
    keyword arguments build_options accepts. Options are validated here, so a
    missing secret or extraction strategy raises ConfigurationError.
    """

    def __init__(self, app, options: SessionOptions | None = None, **option_kwargs: Any):
        if options is not None and option_kwargs:
            raise ConfigurationError("Pass either options or keyword options, not both")
        if options is not None:
            # Hand-built records still get cookie defaults and validation.
            option_kwargs = {f.name: getattr(options, f.name) for f in fields(options)}
        options = build_options(**option_kwargs)
        super().__init__(app)
        self.options = options
        self.codec = TokenCodec(options.secret, options.expires_in)
        self.logger = get_logger("middleware")

    def _extract_token(self, request: HTTPConnection) -> str | None:
        try:
            token = self.options.get_session_id(request)
        except Exception:
            # Extraction must never fail the request.
            self.logger.exception("Session token extraction failed; starting without a session")
            increment_session_event("extract_failed")
            return None
        if token and not isinstance(token, str):
            self.logger.warning("Session token extractor returned %s; starting without a session", type(token).__name__)
            increment_session_event("extract_failed")
            return None
        return token or None

    def _load_data(self, token: str | None) -> dict:
        if token is None:
            increment_session_event("started_empty")
            return {}
        try:
            data = self.codec.unseal(token)
        except TokenError as exc:
            self.logger.warning(
                "Discarding session token %s: %s: %s",
                redact_token(token),
                type(exc).__name__,
                exc,
            )
            increment_session_event("unseal_failed")
            return {}
        if not isinstance(data, dict):
            self.logger.warning("Discarding session token %s: payload is not a mapping", redact_token(token))
            increment_session_event("unseal_failed")
            return {}
        increment_session_event("unsealed")
        return data

    def _emit_token(self, response: Response, token: str) -> None:
        if self.options.custom_header:
            response.headers[self.options.custom_header] = token
            return
        cookie = self.options.cookie
        response.set_cookie(
            cookie.name,
            token,
            max_age=cookie.max_age,
            path=cookie.path,
            domain=cookie.domain,
            secure=cookie.secure,
            httponly=cookie.http_only,
            samesite=cookie.same_site,
        )

    async def dispatch(self, request, call_next):
        flag = DirtyFlag()
        session = Session(self._load_data(self._extract_token(request)), flag)
        request.state.session = session

        # Handler exceptions propagate; there is no response to attach a token to.
        response = await call_next(request)

        if not flag:
            increment_session_event("skipped")
            return response

        token = self.codec.seal(session.data)
        self._emit_token(response, token)
        increment_session_event("resealed")
        self.logger.debug("Resealed session for %s %s", request.method, request.url.path)
        return response


def get_session(request: HTTPConnection) -> Session:
    """FastAPI dependency returning the request's session handle."""
    session = getattr(request.state, "session", None)
    if not isinstance(session, Session):
        raise RuntimeError("StatelessSessionMiddleware must be installed to use the session")
    return session
