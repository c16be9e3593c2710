"""Unit tests for Blockradar webhook signature validation.

Tests the HMAC-SHA256 signature validation logic to ensure only authentic
requests from Blockradar are processed.
"""

import hmac

import pytest
from structlog.testing import capture_logs

from nedapay.services.blockradar import signature as signature_module
from nedapay.services.blockradar.signature import BlockradarSignatureVerifier, compute_signature


class TestBlockradarSignatureValidation:
    """Test suite for HMAC signature validation."""

    @pytest.fixture
    def signing_key(self) -> str:
        """Webhook signing key for tests."""
        return "test_signing_key_secret"

    @pytest.fixture
    def verifier(self, signing_key: str) -> BlockradarSignatureVerifier:
        return BlockradarSignatureVerifier(signing_key)

    @pytest.fixture
    def sample_payload(self) -> bytes:
        """Sample webhook payload as raw bytes."""
        return b'{"event":"deposit.confirmed","data":{"id":"tx_1","amount":"10"}}'

    @pytest.fixture
    def valid_signature(self, sample_payload: bytes, signing_key: str, sign) -> str:
        """Generate valid HMAC signature for sample payload."""
        return sign(sample_payload, signing_key)

    def test_valid_signature_acceptance(
        self, verifier: BlockradarSignatureVerifier, sample_payload: bytes, valid_signature: str
    ):
        """Test that valid signatures are accepted."""
        # Act
        result = verifier.verify(sample_payload, valid_signature)

        # Assert
        assert result is True, "Valid signature should be accepted"

    def test_invalid_signature_rejection(
        self, verifier: BlockradarSignatureVerifier, sample_payload: bytes
    ):
        """Test that invalid signatures are rejected."""
        # Arrange
        invalid_signature = "0" * 64

        # Act
        result = verifier.verify(sample_payload, invalid_signature)

        # Assert
        assert result is False, "Invalid signature should be rejected"

    def test_tampered_payload_rejection(
        self, verifier: BlockradarSignatureVerifier, sample_payload: bytes, valid_signature: str
    ):
        """Test that tampered payloads are rejected even with original signature."""
        # Arrange
        tampered_payload = sample_payload.replace(b'"10"', b'"1000"')

        # Act
        result = verifier.verify(tampered_payload, valid_signature)

        # Assert
        assert result is False, "Tampered payload should be rejected"

    def test_single_bit_flip_rejected_at_every_position(
        self, verifier: BlockradarSignatureVerifier, sample_payload: bytes, valid_signature: str
    ):
        """Flipping any single bit of the body changes the signature."""
        for index in range(len(sample_payload)):
            for bit in range(8):
                flipped = bytearray(sample_payload)
                flipped[index] ^= 1 << bit

                assert verifier.verify(bytes(flipped), valid_signature) is False, (
                    f"Bit {bit} of byte {index} flipped but signature still accepted"
                )

    def test_wrong_signing_key_rejection(self, sample_payload: bytes, valid_signature: str):
        """Test that requests signed with wrong key are rejected."""
        # Arrange
        verifier = BlockradarSignatureVerifier("different_signing_key")

        # Act
        result = verifier.verify(sample_payload, valid_signature)

        # Assert
        assert result is False, "Signature from wrong key should be rejected"

    def test_empty_signature_rejection(
        self, verifier: BlockradarSignatureVerifier, sample_payload: bytes
    ):
        """Test that empty signatures are rejected."""
        assert verifier.verify(sample_payload, "") is False

    def test_malformed_signature_rejection(
        self, verifier: BlockradarSignatureVerifier, sample_payload: bytes
    ):
        """Test that malformed signatures (non-hex) are rejected."""
        assert verifier.verify(sample_payload, "not_a_hex_string_xyz") is False

    @pytest.mark.parametrize(
        "signature",
        ["ab", "0" * 63, "0" * 65, "0" * 128, "ünïcödé-sïgnätürë", "\x00" * 64],
    )
    def test_length_and_encoding_mismatch_returns_false(
        self, verifier: BlockradarSignatureVerifier, sample_payload: bytes, signature: str
    ):
        """Odd lengths and non-ASCII input are rejected without raising."""
        assert verifier.verify(sample_payload, signature) is False

    def test_case_insensitivity(
        self, verifier: BlockradarSignatureVerifier, sample_payload: bytes, valid_signature: str
    ):
        """Test that uppercase hex signatures are accepted."""
        assert verifier.verify(sample_payload, valid_signature.upper()) is True

    def test_constant_time_comparison(
        self,
        verifier: BlockradarSignatureVerifier,
        sample_payload: bytes,
        valid_signature: str,
        monkeypatch,
    ):
        """Every comparison goes through hmac.compare_digest, early or late mismatch."""
        # Arrange
        calls = []
        original_compare = hmac.compare_digest

        def spy(a, b):
            calls.append((a, b))
            return original_compare(a, b)

        monkeypatch.setattr(signature_module.hmac, "compare_digest", spy)

        early_mismatch = ("1" if valid_signature[0] == "0" else "0") + valid_signature[1:]
        late_mismatch = valid_signature[:-1] + ("1" if valid_signature[-1] == "0" else "0")

        # Act
        result_early = verifier.verify(sample_payload, early_mismatch)
        result_late = verifier.verify(sample_payload, late_mismatch)

        # Assert
        assert result_early is False, "Early mismatch should be rejected"
        assert result_late is False, "Late mismatch should be rejected"
        assert len(calls) == 2
        assert all(isinstance(a, bytes) and isinstance(b, bytes) for a, b in calls)

    def test_unicode_payload_handling(
        self, verifier: BlockradarSignatureVerifier, signing_key: str, sign
    ):
        """Test that unicode payloads are correctly handled as UTF-8 bytes."""
        unicode_payload = '{"event":"address.created","data":{"name":"Zürich 🔒"}}'
        unicode_payload = unicode_payload.encode("utf-8")

        assert verifier.verify(unicode_payload, sign(unicode_payload, signing_key)) is True

    def test_empty_payload_handling(
        self, verifier: BlockradarSignatureVerifier, signing_key: str, sign
    ):
        """Test signature validation with empty payload."""
        assert verifier.verify(b"", sign(b"", signing_key)) is True

    def test_large_payload_handling(
        self, verifier: BlockradarSignatureVerifier, signing_key: str, sign
    ):
        """Test signature validation with large payloads (stress test)."""
        large_payload = b'{"data":"' + (b"x" * 10000) + b'"}'

        assert verifier.verify(large_payload, sign(large_payload, signing_key)) is True


class TestComputeSignature:
    """Tests for the standalone digest helper."""

    def test_deterministic(self):
        body = b'{"event":"withdrawal.pending","data":{"id":"wd_9"}}'

        assert compute_signature(body, "k") == compute_signature(body, "k")

    def test_matches_reference_hmac(self, sign):
        body = b'{"event":"deposit.confirmed","data":{"id":"tx_1","amount":"10"}}'

        assert compute_signature(body, "s3cret") == sign(body, "s3cret")

    def test_lowercase_hex(self):
        digest = compute_signature(b"payload", "k")

        assert len(digest) == 64
        assert digest == digest.lower()
        int(digest, 16)


class TestFailClosed:
    """A verifier without a secret rejects everything."""

    @pytest.mark.parametrize("secret", ["", None])
    def test_empty_secret_rejects_correct_empty_key_hmac(self, secret, sign):
        # Arrange - signature is a genuine HMAC keyed with the empty string
        verifier = BlockradarSignatureVerifier(secret)  # type: ignore[arg-type]
        body = b'{"event":"deposit.confirmed","data":{"id":"tx_1"}}'

        # Act
        result = verifier.verify(body, sign(body, ""))

        # Assert
        assert result is False
        assert verifier.is_configured is False

    def test_empty_secret_logged_as_configuration_error(self, sign):
        verifier = BlockradarSignatureVerifier("")

        with capture_logs() as logs:
            verifier.verify(b"{}", sign(b"{}", ""))

        assert [log["event"] for log in logs] == ["webhook.signature_secret_missing"]
        assert logs[0]["log_level"] == "error"

    def test_digest_errors_fail_closed_without_leaking(self, monkeypatch):
        # Arrange
        def broken(*args, **kwargs):
            raise RuntimeError("digest backend unavailable")

        monkeypatch.setattr(signature_module, "compute_signature", broken)
        verifier = BlockradarSignatureVerifier("super-secret-value")
        signature = "a" * 64

        # Act
        with capture_logs() as logs:
            result = verifier.verify(b"{}", signature)

        # Assert
        assert result is False
        assert logs[0]["event"] == "webhook.signature_check_error"
        rendered = repr(logs)
        assert "super-secret-value" not in rendered
        assert signature not in rendered
