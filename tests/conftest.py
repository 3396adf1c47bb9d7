import logging

import pytest
from starlette.applications import Starlette
from starlette.responses import PlainTextResponse, Response
from starlette.routing import Route

from StatelessSession.extraction import get_session_id_from_cookie
from StatelessSession.session_config import build_options
from StatelessSession.session_middleware import StatelessSessionMiddleware

SECRET = "password" * 4
OTHER_SECRET = "another-secret-value-for-testing!"
COOKIE_NAME = "sk-stateless-session"


@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    """Configure logging for tests."""
    logging.basicConfig(level=logging.INFO)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("APP_ENV", "SESSION_LOG_FILE", "SESSION_CUSTOM_HEADER", "SESSION_EXPIRES_IN"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_app():
    """
    Build a one-route Starlette app behind the session middleware.

    ``handler(request, session)`` may return a Response; otherwise "ok" is sent.
    """

    def _make(handler, **option_kwargs):
        option_kwargs.setdefault("secret", SECRET)
        option_kwargs.setdefault("get_session_id", get_session_id_from_cookie())

        async def endpoint(request):
            result = handler(request, request.state.session)
            if hasattr(result, "__await__"):
                result = await result
            return result if isinstance(result, Response) else PlainTextResponse("ok")

        app = Starlette(routes=[Route("/", endpoint, methods=["GET", "POST"])])
        app.add_middleware(StatelessSessionMiddleware, options=build_options(**option_kwargs))
        return app

    return _make
