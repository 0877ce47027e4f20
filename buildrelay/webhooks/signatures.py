"""
Webhook Signature Verification

HMAC-SHA256 verification of inbound webhook bodies. The digest is always
computed over the raw request bytes exactly as received.
"""

import hashlib
import hmac
import logging
import string
from typing import Optional

logger = logging.getLogger(__name__)

_HEX_DIGITS = frozenset(string.hexdigits)
_DIGEST_HEX_LENGTH = hashlib.sha256().digest_size * 2


def compute_signature(secret: bytes, raw_body: bytes) -> str:
    """Return the hex-encoded HMAC-SHA256 of raw_body keyed by secret."""
    return hmac.new(secret, raw_body, hashlib.sha256).hexdigest()


def verify(
    secret: Optional[bytes], raw_body: bytes, supplied_signature_hex: Optional[str]
) -> bool:
    """
    Verify a provider webhook signature.

    Args:
        secret: Provider shared secret (None or empty when not configured)
        raw_body: Raw request body bytes, never re-serialized
        supplied_signature_hex: Hex digest taken from the signature header

    Returns:
        True if the signature matches, False for every malformed or
        mismatching input
    """
    if not secret:
        logger.warning("No secret configured for signature verification")
        return False

    if not supplied_signature_hex:
        return False

    candidate = supplied_signature_hex.strip()
    if len(candidate) != _DIGEST_HEX_LENGTH:
        logger.debug(f"Signature has unexpected length {len(candidate)}")
        return False

    # compare_digest rejects non-ASCII str, so validate before comparing
    if not all(ch in _HEX_DIGITS for ch in candidate):
        logger.debug("Signature is not a hex string")
        return False

    expected_signature = compute_signature(secret, raw_body)

    # Use constant-time comparison to prevent timing attacks
    return hmac.compare_digest(candidate.lower(), expected_signature)
