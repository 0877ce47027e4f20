"""
Webhook Providers

The closed set of CI/deployment providers whose webhooks are relayed. Each
provider bundles its signature header, signature scheme prefix and the
payload field mapping used to build a normalized notification. Providers are
selected by header lookup, so adding one means adding a registry entry.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


class NotificationStatus(str, Enum):
    """Normalized build/deploy status."""

    SUCCESS = "success"
    FAILURE = "failure"
    PENDING = "pending"
    UNKNOWN = "unknown"


# ============================================================================
# Field Mapping
# ============================================================================


@dataclass(frozen=True)
class FieldMapping:
    """
    Dotted JSON paths for each normalized field.

    Each field holds candidate paths tried in order; the first non-empty
    value wins.
    """

    status: Tuple[str, ...] = ("status",)
    project: Tuple[str, ...] = ("project",)
    target_url: Tuple[str, ...] = ("url",)
    commit: Tuple[str, ...] = ("commit",)
    branch: Tuple[str, ...] = ("branch",)
    environment: Tuple[str, ...] = ("environment",)
    message: Tuple[str, ...] = ("message",)

    def with_overrides(self, overrides: Mapping[str, str]) -> "FieldMapping":
        """
        Return a copy with the given fields pointed at new paths.

        Raises:
            ValueError: If an override names an unknown field
        """
        unknown = set(overrides) - set(self.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown payload fields in override: {sorted(unknown)}")
        return replace(self, **{name: (path,) for name, path in overrides.items()})


@dataclass(frozen=True)
class Provider:
    """A webhook provider variant."""

    name: str
    display_name: str
    signature_header: str
    fields: FieldMapping
    status_values: Mapping[str, NotificationStatus] = field(default_factory=dict)
    signature_prefix: str = ""

    def signature_from(self, header_value: str) -> str:
        """Strip the provider's scheme prefix from a signature header value."""
        value = header_value.strip()
        if self.signature_prefix and value.startswith(self.signature_prefix):
            return value[len(self.signature_prefix):]
        return value

    def normalize_status(self, raw_status: Optional[str]) -> NotificationStatus:
        """Map a provider status value to NotificationStatus, UNKNOWN if unrecognized."""
        if not raw_status:
            return NotificationStatus.UNKNOWN
        return self.status_values.get(raw_status.strip().lower(), NotificationStatus.UNKNOWN)


# ============================================================================
# Provider Definitions
# ============================================================================

VERCEL = Provider(
    name="vercel",
    display_name="Vercel",
    signature_header="x-vercel-signature",
    fields=FieldMapping(
        status=("type",),
        project=("payload.deployment.name", "payload.name", "payload.project.id"),
        target_url=("payload.deployment.url", "payload.url", "payload.links.deployment"),
        commit=("payload.deployment.meta.githubCommitSha", "payload.deployment.meta.gitlabCommitSha"),
        branch=("payload.deployment.meta.githubCommitRef", "payload.deployment.meta.gitlabCommitRef"),
        environment=("payload.target",),
        message=("payload.deployment.meta.githubCommitMessage", "payload.deployment.meta.gitlabCommitMessage"),
    ),
    status_values={
        "deployment.succeeded": NotificationStatus.SUCCESS,
        "deployment.ready": NotificationStatus.SUCCESS,
        "deployment-ready": NotificationStatus.SUCCESS,
        "deployment.promoted": NotificationStatus.SUCCESS,
        "deployment.error": NotificationStatus.FAILURE,
        "deployment-error": NotificationStatus.FAILURE,
        "deployment.canceled": NotificationStatus.FAILURE,
        "deployment-canceled": NotificationStatus.FAILURE,
        "deployment.created": NotificationStatus.PENDING,
        "deployment": NotificationStatus.PENDING,
    },
)

HOP = Provider(
    name="hop",
    display_name="Hop.io",
    signature_header="x-hop-hooks-signature",
    fields=FieldMapping(
        status=("event",),
        project=("data.project.name", "project_id"),
        target_url=("data.url", "data.deployment.url"),
        commit=("data.build.metadata.commit_sha", "data.metadata.commit_sha"),
        branch=("data.build.metadata.branch", "data.metadata.branch"),
        environment=("data.deployment.name",),
        message=("data.build.metadata.commit_msg", "data.metadata.commit_msg"),
    ),
    status_values={
        "ignite.deployment.build.completed": NotificationStatus.SUCCESS,
        "ignite.deployment.rollout.completed": NotificationStatus.SUCCESS,
        "ignite.deployment.build.failed": NotificationStatus.FAILURE,
        "ignite.deployment.build.cancelled": NotificationStatus.FAILURE,
        "ignite.deployment.rollout.failed": NotificationStatus.FAILURE,
        "ignite.deployment.build.created": NotificationStatus.PENDING,
        "ignite.deployment.build.started": NotificationStatus.PENDING,
        "ignite.deployment.rollout.created": NotificationStatus.PENDING,
    },
)

GENERIC = Provider(
    name="generic",
    display_name="CI",
    signature_header="x-build-signature",
    signature_prefix="sha256=",
    fields=FieldMapping(),
    status_values={
        "success": NotificationStatus.SUCCESS,
        "succeeded": NotificationStatus.SUCCESS,
        "passed": NotificationStatus.SUCCESS,
        "failure": NotificationStatus.FAILURE,
        "failed": NotificationStatus.FAILURE,
        "error": NotificationStatus.FAILURE,
        "errored": NotificationStatus.FAILURE,
        "canceled": NotificationStatus.FAILURE,
        "cancelled": NotificationStatus.FAILURE,
        "pending": NotificationStatus.PENDING,
        "queued": NotificationStatus.PENDING,
        "building": NotificationStatus.PENDING,
        "running": NotificationStatus.PENDING,
        "started": NotificationStatus.PENDING,
    },
)

DEFAULT_PROVIDERS: Tuple[Provider, ...] = (VERCEL, HOP, GENERIC)


def build_registry(
    overrides: Optional[Mapping[str, Mapping[str, str]]] = None,
    providers: Tuple[Provider, ...] = DEFAULT_PROVIDERS,
) -> Mapping[str, Provider]:
    """
    Build the read-only provider registry, applying field path overrides.

    Args:
        overrides: Provider name -> {field name -> dotted path}
        providers: Provider variants in identification order

    Returns:
        Immutable mapping of provider name to Provider

    Raises:
        ValueError: If an override names an unknown provider or field
    """
    overrides = overrides or {}
    names = {provider.name for provider in providers}
    unknown = set(overrides) - names
    if unknown:
        raise ValueError(f"Field overrides for unknown providers: {sorted(unknown)}")

    registry: Dict[str, Provider] = {}
    for provider in providers:
        if provider.name in overrides:
            provider = replace(
                provider, fields=provider.fields.with_overrides(overrides[provider.name])
            )
            logger.info(f"Using custom field mapping for provider '{provider.name}'")
        registry[provider.name] = provider
    return MappingProxyType(registry)


def identify_provider(
    headers: Mapping[str, str], registry: Mapping[str, Provider]
) -> Optional[Tuple[Provider, str]]:
    """
    Find the provider whose signature header is present.

    Args:
        headers: Case-insensitive request headers
        registry: Provider registry in identification order

    Returns:
        (provider, signature header value), or None if no provider matches
    """
    for provider in registry.values():
        value = headers.get(provider.signature_header)
        if value is not None:
            return provider, value
    return None
