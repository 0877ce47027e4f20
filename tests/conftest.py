"""
Pytest configuration and shared fixtures.
"""

import pytest
from fastapi.testclient import TestClient

from buildrelay.config import Settings
from buildrelay.integrations.discord import RelayOutcome
from buildrelay.main import create_app
from buildrelay.webhooks.signatures import compute_signature

GENERIC_SECRET = "s3cr3t"
VERCEL_SECRET = "vercel-test-secret"
HOP_SECRET = "hop-test-secret"
RELAY_URL = "https://discord.example/api/webhooks/123/abc"


def sign(body: bytes, secret: str) -> str:
    """Hex HMAC-SHA256 of body, as a provider would send it."""
    return compute_signature(secret.encode(), body)


class RecordingSender:
    """Relay sender stand-in that records every send call."""

    def __init__(self, outcome: RelayOutcome = RelayOutcome(delivered=True, http_status=204)):
        self.outcome = outcome
        self.calls = []

    async def send(self, endpoint, notification):
        self.calls.append((endpoint, notification))
        return self.outcome


@pytest.fixture
def settings():
    """Settings with every provider secret and the relay URL configured."""
    return Settings(
        _env_file=None,
        generic_webhook_secret=GENERIC_SECRET,
        vercel_webhook_secret=VERCEL_SECRET,
        hop_webhook_secret=HOP_SECRET,
        production_builds_webhook_url=RELAY_URL,
    )


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def client(settings, sender):
    """
    Provide a test client for the relay app with a recording sender.

    Returns:
        TestClient: Test client for making requests to the app
    """
    return TestClient(create_app(settings, sender=sender))
