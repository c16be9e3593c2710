"""FastAPI dependencies for request validation and common operations.

This module provides reusable FastAPI dependencies for:
- Webhook signature validation
- Access to the services built at app startup
"""

from typing import Annotated

import structlog
from fastapi import Depends, Header, Request

from nedapay.services.blockradar.dispatcher import EventDispatcher
from nedapay.services.blockradar.signature import (
    BlockradarSignatureVerifier,
    signature_fingerprint,
)
from nedapay.services.exceptions import WebhookAuthenticationError

logger = structlog.get_logger()

MISSING_SIGNATURE_MESSAGE = "Missing signature"
INVALID_SIGNATURE_MESSAGE = "Invalid signature"


def get_signature_verifier(request: Request) -> BlockradarSignatureVerifier:
    """Get the signature verifier built from settings at startup."""
    return request.app.state.signature_verifier


def get_dispatcher(request: Request) -> EventDispatcher:
    """Get the Blockradar event dispatcher from app state."""
    return request.app.state.dispatcher


async def validate_webhook_signature(
    request: Request,
    x_blockradar_signature: Annotated[str | None, Header()] = None,
    verifier: BlockradarSignatureVerifier = Depends(get_signature_verifier),
) -> bytes:
    """Validate Blockradar webhook signature before processing request.

    Reads the raw request body and validates the HMAC-SHA256 signature from the
    X-Blockradar-Signature header. Raises before the endpoint runs, so no parsing
    or side effect happens for an unauthenticated request.

    Args:
        request: FastAPI Request object (contains raw body)
        x_blockradar_signature: Signature from X-Blockradar-Signature header
        verifier: Signature verifier (injected via dependency)

    Returns:
        Raw request body bytes (for further processing by the endpoint)

    Raises:
        WebhookAuthenticationError: 401 if signature is missing or invalid
    """
    if not x_blockradar_signature:
        logger.warning("webhook.signature_missing", client=_client_host(request))
        raise WebhookAuthenticationError(MISSING_SIGNATURE_MESSAGE)

    # Exact bytes received; re-serialized JSON would not match the HMAC
    raw_body = await request.body()

    if not verifier.verify(raw_body, x_blockradar_signature):
        logger.warning(
            "webhook.signature_invalid",
            client=_client_host(request),
            signature_prefix=signature_fingerprint(x_blockradar_signature),
            secret_configured=verifier.is_configured,
            body_length=len(raw_body),
        )
        raise WebhookAuthenticationError(INVALID_SIGNATURE_MESSAGE)

    return raw_body


def _client_host(request: Request) -> str | None:
    return request.client.host if request.client else None
