"""
Integrations Package

Downstream chat webhook delivery.
"""

from buildrelay.integrations.discord import RelayOutcome, RelaySender, build_message

__all__ = [
    "RelayOutcome",
    "RelaySender",
    "build_message",
]
