"""Main FastAPI application entry point.

This module wires the CSRF protector into a small server-rendered demo
application. The protector is constructed once, from the configuration file,
and installed inside Starlette's session middleware.
"""

from contextlib import asynccontextmanager
import os
import secrets
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from csrf_protector.config import CSRFConfig, load_config
from csrf_protector.exception_handlers import internal_server_error_handler, not_found_handler
from csrf_protector.logging_config import CSRFLogger, get_logger
from csrf_protector.middleware import CSRFProtectorMiddleware, LoggingMiddleware
from csrf_protector.protector import CSRFProtector
from csrf_protector.routes import pages

load_dotenv()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager."""
    logger = get_logger()
    logger.info("Starting CSRF protector demo application")

    yield

    logger.info("Shutting down CSRF protector demo application")


def get_session_secret() -> str:
    """Session signing key from SESSION_SECRET_KEY, or a per-process random key."""
    secret = os.getenv("SESSION_SECRET_KEY")
    if not secret:
        get_logger().warning("SESSION_SECRET_KEY not set, sessions will not survive a restart")
        secret = secrets.token_hex(32)
    return secret


def create_app(config: Optional[CSRFConfig] = None, logger: Optional[CSRFLogger] = None) -> FastAPI:
    """Build the demo application.

    Args:
        config: Protector configuration; loaded from file when omitted
        logger: Sink for validation failures

    Raises:
        CSRFProtectorError: If the configuration is missing or incomplete, or
            a protector was already built in this process
    """
    protector = CSRFProtector(config or load_config(), logger=logger)

    app = FastAPI(
        title="CSRF Protector",
        description="Session-token CSRF protection for server-rendered pages",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.csrf_protector = protector

    # Add middleware (order matters - last added runs first)
    app.add_middleware(CSRFProtectorMiddleware, protector=protector)
    app.add_middleware(SessionMiddleware, secret_key=get_session_secret(), same_site="lax")
    app.add_middleware(LoggingMiddleware)

    # Exception handlers
    app.add_exception_handler(404, not_found_handler)
    app.add_exception_handler(500, internal_server_error_handler)
    app.add_exception_handler(Exception, internal_server_error_handler)

    app.include_router(pages.router)

    return app


app = create_app()


def run() -> None:
    """Serve the demo application with uvicorn."""
    import uvicorn

    uvicorn.run(
        app,
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    run()
