"""
Request-scoped error taxonomy for webhook ingestion.

Each error carries the HTTP status returned to the original caller. None of
them is fatal to the process; startup problems raise ConfigurationError.
"""

from typing import Optional


class ConfigurationError(Exception):
    """Raised at startup when required configuration is missing."""

    pass


class WebhookError(Exception):
    """Base class for errors that reject a single webhook request."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class UnknownProviderError(WebhookError):
    """No recognized provider signature header was present."""

    status_code = 401


class InvalidSignatureError(WebhookError):
    """The supplied signature did not match the body."""

    status_code = 401


class PayloadTooLargeError(WebhookError):
    """The request body exceeded the configured size limit."""

    status_code = 413


class MalformedPayloadError(WebhookError):
    """The verified body could not be parsed as a JSON object."""

    status_code = 400


class RelayTransportFailure(WebhookError):
    """The downstream sink could not be reached."""

    status_code = 502


class RelayRejected(WebhookError):
    """The downstream sink answered with a non-2xx status."""

    status_code = 502

    def __init__(self, message: str, relay_status: int):
        self.relay_status = relay_status
        super().__init__(message)
