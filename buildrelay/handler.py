"""
Build Webhook Handler

Per-request pipeline for POST /webhooks/build:
read body -> identify provider -> verify signature -> extract -> relay.
Every branch ends in exactly one HTTP response.
"""

import asyncio
import logging
from typing import Callable

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from buildrelay.config import RelayConfig
from buildrelay.errors import (
    InvalidSignatureError,
    PayloadTooLargeError,
    RelayRejected,
    RelayTransportFailure,
    UnknownProviderError,
    WebhookError,
)
from buildrelay.integrations.discord import RelayOutcome, RelaySender
from buildrelay.webhooks.extractor import NormalizedNotification, extract
from buildrelay.webhooks.providers import Provider, identify_provider
from buildrelay.webhooks.signatures import verify

logger = logging.getLogger(__name__)

Extractor = Callable[[Provider, bytes], NormalizedNotification]

RELAY_FAILED_DETAIL = "Relay delivery failed"


async def read_body(request: Request, max_bytes: int) -> bytes:
    """
    Read the raw request body, refusing anything larger than max_bytes.

    Raises:
        PayloadTooLargeError: If the declared or actual size exceeds the limit
    """
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > max_bytes:
        raise PayloadTooLargeError(f"Payload exceeds {max_bytes} bytes")

    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > max_bytes:
            raise PayloadTooLargeError(f"Payload exceeds {max_bytes} bytes")
        chunks.append(chunk)
    return b"".join(chunks)


class WebhookHandler:
    """
    Verifies and relays build notifications.

    Dependencies are injected so each request only touches read-only
    configuration and its own data.
    """

    def __init__(
        self,
        config: RelayConfig,
        sender: RelaySender,
        extractor: Extractor = extract,
    ):
        self.config = config
        self.sender = sender
        self.extractor = extractor

    def _authenticate(self, request: Request, body: bytes) -> Provider:
        identified = identify_provider(request.headers, self.config.providers)
        if identified is None:
            raise UnknownProviderError("Missing webhook signature header")

        provider, header_value = identified
        secret = self.config.secrets.get(provider.name)
        if not verify(secret, body, provider.signature_from(header_value)):
            raise InvalidSignatureError("Invalid webhook signature")
        return provider

    async def _relay(self, notification: NormalizedNotification) -> RelayOutcome:
        # Shielded so a caller disconnect never cancels a half-sent relay
        return await asyncio.shield(
            self.sender.send(self.config.relay_url, notification)
        )

    async def handle(self, request: Request) -> JSONResponse:
        """
        Handle one inbound build webhook.

        Returns:
            200 on successful relay, 502 on relay failure

        Raises:
            HTTPException: 400, 401 or 413 when the request is rejected
        """
        try:
            body = await read_body(request, self.config.max_body_bytes)
            provider = self._authenticate(request, body)
            notification = self.extractor(provider, body)
        except WebhookError as e:
            logger.warning(
                f"Rejected webhook from {request.client.host if request.client else 'unknown'}: "
                f"{type(e).__name__}: {e.message}"
            )
            raise HTTPException(status_code=e.status_code, detail=e.message)

        logger.info(
            f"Verified {provider.name} webhook for '{notification.project}' "
            f"({notification.status.value})"
        )

        outcome = await self._relay(notification)
        if outcome.delivered:
            return JSONResponse({"status": "relayed", "provider": provider.name})

        error = self._relay_error(outcome)
        logger.error(f"Relay of {provider.name} notification failed: {error.message}")
        return JSONResponse(
            {"detail": RELAY_FAILED_DETAIL}, status_code=status.HTTP_502_BAD_GATEWAY
        )

    @staticmethod
    def _relay_error(outcome: RelayOutcome) -> WebhookError:
        detail = outcome.error_detail or "no detail"
        if outcome.http_status is None:
            return RelayTransportFailure(detail)
        return RelayRejected(f"HTTP {outcome.http_status}: {detail}", outcome.http_status)
