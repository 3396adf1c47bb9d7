"""
Example application wired with stateless sessions.

Run locally:
  SESSION_SECRET_KEY="<at least 32 characters>" python -m app.main
"""

from __future__ import annotations

import os

import uvicorn
from fastapi import FastAPI

from StatelessSession.session_config import SessionOptions, options_from_env
from StatelessSession.session_middleware import StatelessSessionMiddleware

from .error_handlers import register_error_handlers
from .session_routes import router as session_router


def create_app(options: SessionOptions | None = None) -> FastAPI:
    """Build the app. Options default to SESSION_* environment variables."""
    options = options or options_from_env()
    app = FastAPI(title="Stateless session example")
    app.add_middleware(StatelessSessionMiddleware, options=options)
    register_error_handlers(app)
    app.include_router(session_router)
    return app


def main() -> None:
    uvicorn.run(
        create_app(),
        host=os.getenv("APP_HOST", "127.0.0.1"),
        port=int(os.getenv("APP_PORT", "8000")),
        proxy_headers=True,
    )


if __name__ == "__main__":
    main()
