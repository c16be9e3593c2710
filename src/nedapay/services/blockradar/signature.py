"""HMAC signature validation for Blockradar webhooks.

This module provides cryptographic signature validation for incoming webhook
requests from Blockradar. It uses HMAC-SHA256 with constant-time comparison to
prevent timing attacks.

Security Note:
    BlockradarSignatureVerifier.verify MUST be called before processing any
    webhook payload. Return 401 Unauthorized immediately if validation fails.
"""

import hashlib
import hmac

import structlog

logger = structlog.get_logger()


def compute_signature(raw_body: bytes, webhook_secret: str) -> str:
    """Compute the hex-encoded HMAC-SHA256 of a raw webhook body.

    Args:
        raw_body: Exact request body bytes.
        webhook_secret: Shared secret from the Blockradar dashboard.

    Returns:
        Lowercase hex digest, the format Blockradar sends in
        the x-blockradar-signature header.
    """
    return hmac.new(
        key=webhook_secret.encode("utf-8"), msg=raw_body, digestmod=hashlib.sha256
    ).hexdigest()


def signature_fingerprint(signature: str) -> str:
    """Short, non-sensitive prefix of a signature for log correlation."""
    return signature[:8]


class BlockradarSignatureVerifier:
    """Validates Blockradar webhook signatures against a shared secret.

    The secret is injected once at startup and never mutated, so a single
    instance is safe to share across concurrent requests.

    Example:
        >>> verifier = BlockradarSignatureVerifier(settings.blockradar_webhook_secret)
        >>> if not verifier.verify(raw_body, request.headers["x-blockradar-signature"]):
        ...     raise WebhookAuthenticationError("Invalid signature")
    """

    def __init__(self, webhook_secret: str):
        self._webhook_secret = webhook_secret or ""

    @property
    def is_configured(self) -> bool:
        """Whether a non-empty secret was supplied."""
        return bool(self._webhook_secret)

    def verify(self, raw_body: bytes, signature: str) -> bool:
        """Validate a Blockradar webhook signature using HMAC-SHA256.

        Args:
            raw_body: Raw request body bytes (NOT parsed JSON). Must be the exact
                bytes received from the request, before any parsing.
            signature: Hex-encoded HMAC-SHA256 from the x-blockradar-signature header.

        Returns:
            True if the signature is valid, False otherwise. Always False when no
            secret is configured (fail closed).

        Security:
            - Compares bytes with hmac.compare_digest(), which neither exits early
              nor raises when lengths differ.
            - Never logs the secret or the full signature.
        """
        if not self._webhook_secret:
            logger.error(
                "webhook.signature_secret_missing",
                message="BLOCKRADAR_WEBHOOK_SECRET is not configured; rejecting webhook",
            )
            return False

        try:
            expected = compute_signature(raw_body, self._webhook_secret)

            # hexdigest() is lowercase; accept uppercase hex from the provider
            provided = signature.strip().lower().encode("utf-8")

            return hmac.compare_digest(expected.encode("ascii"), provided)
        except Exception as e:
            logger.error(
                "webhook.signature_check_error",
                error_type=type(e).__name__,
                signature_prefix=signature_fingerprint(str(signature)),
            )
            return False
