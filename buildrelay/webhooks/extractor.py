"""
Webhook Payload Extraction

Parses a verified webhook body and derives a NormalizedNotification using the
provider's field mapping.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from buildrelay.errors import MalformedPayloadError
from buildrelay.webhooks.providers import NotificationStatus, Provider

logger = logging.getLogger(__name__)

UNKNOWN_PROJECT = "unknown"


@dataclass(frozen=True)
class NormalizedNotification:
    """Provider-agnostic build notification."""

    status: NotificationStatus
    project: str
    source_provider: str
    target_url: Optional[str] = None
    commit: Optional[str] = None
    branch: Optional[str] = None
    environment: Optional[str] = None
    message: Optional[str] = None


def _lookup(payload: Dict[str, Any], path: str) -> Any:
    node: Any = payload
    for key in path.split("."):
        if not isinstance(node, dict) or key not in node:
            return None
        node = node[key]
    return node


def _first_value(payload: Dict[str, Any], paths: Tuple[str, ...]) -> Optional[str]:
    """Return the first non-empty scalar found at any of the candidate paths."""
    for path in paths:
        value = _lookup(payload, path)
        if value is None or isinstance(value, (dict, list)):
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def _normalize_url(url: Optional[str]) -> Optional[str]:
    # Vercel reports deployment URLs as bare hostnames
    if url and "://" not in url:
        return f"https://{url}"
    return url


def extract(provider: Provider, raw_body: bytes) -> NormalizedNotification:
    """
    Build a normalized notification from a verified webhook body.

    Args:
        provider: The authenticated provider; its name becomes source_provider
        raw_body: Raw request body bytes

    Returns:
        NormalizedNotification (status UNKNOWN when not recognized)

    Raises:
        MalformedPayloadError: If the body is not a JSON object
    """
    try:
        payload = json.loads(raw_body)
    except (ValueError, RecursionError) as e:
        logger.warning(f"Failed to parse {provider.name} webhook JSON: {str(e)}")
        raise MalformedPayloadError("Invalid JSON payload")

    if not isinstance(payload, dict):
        logger.warning(
            f"{provider.name} webhook body is a JSON {type(payload).__name__}, not an object"
        )
        raise MalformedPayloadError("Webhook payload must be a JSON object")

    fields = provider.fields
    raw_status = _first_value(payload, fields.status)
    status = provider.normalize_status(raw_status)
    if status is NotificationStatus.UNKNOWN:
        logger.info(f"Unrecognized {provider.name} status {raw_status!r}, relaying as unknown")

    return NormalizedNotification(
        status=status,
        project=_first_value(payload, fields.project) or UNKNOWN_PROJECT,
        source_provider=provider.name,
        target_url=_normalize_url(_first_value(payload, fields.target_url)),
        commit=_first_value(payload, fields.commit),
        branch=_first_value(payload, fields.branch),
        environment=_first_value(payload, fields.environment),
        message=_first_value(payload, fields.message),
    )
