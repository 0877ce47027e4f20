"""
Tests for webhook signature verification.

Verification must accept exactly the HMAC-SHA256 of the raw bytes and fold
every malformed input into a False result.
"""

import hashlib
import hmac
import json

import pytest

from buildrelay.webhooks.signatures import compute_signature, verify

SECRET = b"s3cr3t"
BODY = b'{"status":"success","project":"demo"}'


def create_signature(payload: bytes, secret: bytes) -> str:
    """Create a valid hex HMAC-SHA256 signature independently of the verifier."""
    return hmac.new(secret, payload, hashlib.sha256).hexdigest()


class TestComputeSignature:
    """Tests for the signing helper."""

    def test_matches_hmac_sha256(self):
        assert compute_signature(SECRET, BODY) == create_signature(BODY, SECRET)

    def test_hex_encoded(self):
        signature = compute_signature(SECRET, BODY)
        assert len(signature) == 64
        int(signature, 16)


class TestSignatureVerification:
    """Tests for HMAC-SHA256 signature verification."""

    @pytest.mark.parametrize(
        "body",
        [b"", BODY, b"\x00\xff\xfe binary", "unicode ✓".encode()],
    )
    def test_verify_valid_signature(self, body):
        """Test verification of valid signature for arbitrary bytes."""
        assert verify(SECRET, body, create_signature(body, SECRET)) is True

    def test_verify_uppercase_hex(self):
        """Test that hex case does not matter."""
        assert verify(SECRET, BODY, create_signature(BODY, SECRET).upper()) is True

    def test_verify_invalid_signature(self):
        """Test rejection of a well-formed but wrong signature."""
        assert verify(SECRET, BODY, "0" * 64) is False

    def test_verify_short_signature(self):
        """Test rejection of the classic short probe value."""
        assert verify(SECRET, BODY, "deadbeef") is False

    def test_verify_wrong_secret(self):
        """Test rejection when signed with another secret."""
        assert verify(SECRET, BODY, create_signature(BODY, b"wrong-secret")) is False

    def test_verify_tampered_payload(self):
        """Test rejection if payload was tampered with."""
        signature = create_signature(BODY, SECRET)
        assert verify(SECRET, BODY + b"extra", signature) is False

    def test_verify_reserialized_payload(self):
        """Test that a re-printed copy of the JSON does not verify."""
        signature = create_signature(BODY, SECRET)
        pretty = json.dumps(json.loads(BODY), indent=2).encode()

        assert pretty != BODY
        assert verify(SECRET, pretty, signature) is False

    @pytest.mark.parametrize("secret", [None, b""])
    def test_verify_missing_secret(self, secret):
        """Test that an unconfigured secret never verifies."""
        assert verify(secret, BODY, create_signature(BODY, b"")) is False

    @pytest.mark.parametrize(
        "supplied",
        [
            None,
            "",
            "not-hex-" + "z" * 56,
            "sha256=" + "0" * 57,
            "é" * 64,
            create_signature(BODY, SECRET) + "00",
        ],
    )
    def test_verify_malformed_signature(self, supplied):
        """Test that malformed signatures return False instead of raising."""
        assert verify(SECRET, BODY, supplied) is False

    def test_verify_ignores_surrounding_whitespace(self):
        """Test that header whitespace does not break verification."""
        assert verify(SECRET, BODY, f"  {create_signature(BODY, SECRET)}\n") is True
