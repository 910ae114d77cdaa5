"""
FastAPI application entrypoint for the Slack event listener.
"""

from __future__ import annotations

import logging
from http import HTTPStatus

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from event_listener.api.routes import router as api_router
from event_listener.core.config import get_settings
from event_listener.core.errors import EventListenerError, InvalidRequestError
from event_listener.core.logging import configure_logging

logger = logging.getLogger(__name__)


async def _invalid_request_handler(
    request: Request, exc: InvalidRequestError
) -> JSONResponse:
    return JSONResponse(
        status_code=HTTPStatus.BAD_REQUEST, content={"error": str(exc)}
    )


async def _event_listener_error_handler(
    request: Request, exc: EventListenerError
) -> JSONResponse:
    logger.error(
        "%s %s failed with %s: %s",
        request.method,
        request.url.path,
        exc.__class__.__name__,
        exc,
    )
    return JSONResponse(
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR, content={"error": str(exc)}
    )


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Slack Event Listener",
        version="0.1.0",
        description="Multi-tenant Slack OAuth relay and Events API receiver.",
    )
    app.add_exception_handler(InvalidRequestError, _invalid_request_handler)
    app.add_exception_handler(EventListenerError, _event_listener_error_handler)
    app.include_router(api_router)
    return app


app = create_app()


def run() -> None:
    """Serve the application, over TLS when a certificate and key are configured."""
    server = get_settings().server
    options = {}
    if server.tls_enabled:
        options["ssl_certfile"] = server.certificate_path
        options["ssl_keyfile"] = server.key_path
    else:
        logger.info("No certificate configured; starting in HTTP mode")

    uvicorn.run(app, host=server.host, port=server.port, **options)


__all__ = ["app", "create_app", "run"]


if __name__ == "__main__":
    run()
