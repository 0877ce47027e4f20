"""
Build Notification Relay - FastAPI Application

Main entry point for the verified webhook relay service.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from buildrelay.config import RelayConfig, Settings
from buildrelay.handler import Extractor, WebhookHandler
from buildrelay.integrations.discord import RelaySender
from buildrelay.routing import Router
from buildrelay.webhooks.extractor import extract

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the service process."""
    logging.basicConfig(level=level, format=LOG_FORMAT)


async def health(request: Request) -> JSONResponse:
    """
    Health check endpoint.

    Returns:
        Status indicator showing the service is healthy
    """
    return JSONResponse({"status": "healthy"})


def create_app(
    settings: Optional[Settings] = None,
    sender: Optional[RelaySender] = None,
    extractor: Extractor = extract,
) -> FastAPI:
    """
    Create the relay application.

    Args:
        settings: Validated settings (loaded from the environment if omitted)
        sender: Relay sender (built from settings if omitted)
        extractor: Payload extractor used by the webhook handler

    Returns:
        Configured FastAPI application

    Raises:
        ConfigurationError: If required secrets or the relay URL are missing
    """
    settings = settings or Settings()
    config = RelayConfig.from_settings(settings)
    sender = sender or RelaySender(timeout=config.relay_timeout_seconds)
    handler = WebhookHandler(config, sender, extractor=extractor)

    router = Router()
    router.add("GET", "/health", health)
    router.add("POST", "/webhooks/build", handler.handle)

    app = FastAPI(
        title="Build Notification Relay",
        description="Verifies CI/deployment webhooks and relays them to a chat webhook",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    # Catch-all for every method so the route table alone decides what is served
    app.add_route("/{path:path}", router.dispatch, methods=None, include_in_schema=False)

    logger.info(
        f"Relay configured for providers: {', '.join(sorted(config.secrets))}"
    )
    return app


if __name__ == "__main__":
    import uvicorn

    settings = Settings()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
