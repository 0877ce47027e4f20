"""
Discord Webhook Relay

Delivers normalized build notifications to a Discord-compatible chat webhook
and classifies the outcome. A single POST is made per call; retries are left
to the caller.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from buildrelay.webhooks.extractor import NormalizedNotification
from buildrelay.webhooks.providers import DEFAULT_PROVIDERS, NotificationStatus

logger = logging.getLogger(__name__)


# ============================================================================
# Embed Styling
# ============================================================================

STATUS_COLORS = {
    NotificationStatus.SUCCESS: 0x2ECC71,
    NotificationStatus.FAILURE: 0xE74C3C,
    NotificationStatus.PENDING: 0xF1C40F,
    NotificationStatus.UNKNOWN: 0x95A5A6,
}

STATUS_LABELS = {
    NotificationStatus.SUCCESS: "succeeded",
    NotificationStatus.FAILURE: "failed",
    NotificationStatus.PENDING: "in progress",
    NotificationStatus.UNKNOWN: "reported an unknown status",
}

PROVIDER_NAMES = {provider.name: provider.display_name for provider in DEFAULT_PROVIDERS}

MAX_DETAIL_LENGTH = 500


@dataclass(frozen=True)
class RelayOutcome:
    """Result of a single relay attempt."""

    delivered: bool
    http_status: Optional[int] = None
    error_detail: Optional[str] = None


# ============================================================================
# Message Formatting
# ============================================================================


def build_message(notification: NormalizedNotification) -> Dict[str, Any]:
    """
    Build the Discord webhook JSON body for a notification.

    Args:
        notification: Normalized notification to relay

    Returns:
        Dictionary with "content" text and a single summary embed
    """
    provider_name = PROVIDER_NAMES.get(
        notification.source_provider, notification.source_provider
    )
    label = STATUS_LABELS[notification.status]

    fields: List[Dict[str, Any]] = [
        {"name": "Status", "value": notification.status.value, "inline": True},
    ]
    if notification.environment:
        fields.append(
            {"name": "Environment", "value": notification.environment, "inline": True}
        )
    if notification.branch:
        fields.append({"name": "Branch", "value": notification.branch, "inline": True})
    if notification.commit:
        fields.append(
            {"name": "Commit", "value": f"`{notification.commit[:12]}`", "inline": True}
        )
    if notification.target_url:
        fields.append({"name": "URL", "value": notification.target_url, "inline": False})

    description = notification.message or f"{provider_name} build {label}."

    return {
        "content": f"**{notification.project}** build {label}",
        "embeds": [
            {
                "title": f"{notification.project}: {notification.status.value}",
                "description": description,
                "color": STATUS_COLORS[notification.status],
                "footer": {"text": f"Relayed from {provider_name}"},
                "author": {"name": provider_name},
                "fields": fields,
            }
        ],
    }


def _error_detail(response: httpx.Response) -> str:
    """Describe a rejected relay from its JSON error body or its status line."""
    try:
        error_data = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return f"HTTP {response.status_code} {response.reason_phrase}".strip()

    if isinstance(error_data, dict) and error_data.get("message"):
        detail = str(error_data["message"])
    else:
        detail = json.dumps(error_data)
    return detail[:MAX_DETAIL_LENGTH]


# ============================================================================
# Relay Sender
# ============================================================================


class RelaySender:
    """
    Sends notifications to the downstream chat webhook.

    Uses a non-blocking httpx client so relays share the event loop with
    inbound request handling.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the relay sender.

        Args:
            timeout: Overall deadline in seconds for connecting, sending and
                reading the whole response
            transport: Optional httpx transport (used to stub the sink in tests)
        """
        self.timeout = timeout
        self.transport = transport

    async def _post(self, endpoint: str, payload: Dict[str, Any]) -> httpx.Response:
        # httpx timeouts apply per operation; wait_for in send bounds the total
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self.transport
        ) as client:
            return await client.post(endpoint, json=payload)

    async def send(
        self, endpoint: str, notification: NormalizedNotification
    ) -> RelayOutcome:
        """
        POST a notification to the downstream webhook.

        Args:
            endpoint: Chat webhook URL
            notification: Notification to deliver

        Returns:
            RelayOutcome describing delivery; never raises for HTTP or
            transport failures
        """
        payload = build_message(notification)

        try:
            response = await asyncio.wait_for(
                self._post(endpoint, payload), timeout=self.timeout
            )

        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            logger.error(f"Relay request timed out after {self.timeout}s")
            return RelayOutcome(
                delivered=False,
                error_detail=f"Relay timed out after {self.timeout}s: {str(e) or 'deadline exceeded'}",
            )

        except httpx.RequestError as e:
            logger.error(f"Relay transport error: {type(e).__name__}")
            return RelayOutcome(
                delivered=False,
                error_detail=f"Relay transport failure ({type(e).__name__}): {str(e)}",
            )

        if response.is_success:
            logger.info(
                f"Relayed {notification.source_provider} notification for "
                f"'{notification.project}' ({notification.status.value})"
            )
            return RelayOutcome(delivered=True, http_status=response.status_code)

        return RelayOutcome(
            delivered=False,
            http_status=response.status_code,
            error_detail=_error_detail(response),
        )
