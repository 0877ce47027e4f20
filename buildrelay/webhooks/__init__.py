"""
Webhooks Package

Signature verification, provider variants and payload extraction for
inbound build/deploy webhooks.
"""

from buildrelay.webhooks.extractor import NormalizedNotification, extract
from buildrelay.webhooks.providers import (
    DEFAULT_PROVIDERS,
    NotificationStatus,
    Provider,
    build_registry,
    identify_provider,
)
from buildrelay.webhooks.signatures import compute_signature, verify

__all__ = [
    "DEFAULT_PROVIDERS",
    "NormalizedNotification",
    "NotificationStatus",
    "Provider",
    "build_registry",
    "compute_signature",
    "extract",
    "identify_provider",
    "verify",
]
