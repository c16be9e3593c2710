"""Blockradar webhook endpoint.

Blockradar notifies this service of deposits, withdrawals, and newly issued
addresses. Once a request is authenticated it is always acknowledged with 200,
even when the body is malformed or a handler fails: a non-2xx response makes
the provider retry, and a retried delivery could apply a balance change twice.
Failures are reported through logs instead.
"""

import structlog
from fastapi import APIRouter, Depends

from nedapay.api.dependencies import get_dispatcher, validate_webhook_signature
from nedapay.services.blockradar.dispatcher import EventDispatcher
from nedapay.services.blockradar.events import parse_envelope
from nedapay.services.exceptions import WebhookPayloadError

logger = structlog.get_logger()
router = APIRouter()

INVALID_PAYLOAD_MESSAGE = "Invalid payload"


@router.post("/blockradar")
async def receive_blockradar_webhook(
    raw_body: bytes = Depends(validate_webhook_signature),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
):
    """Receive and process a Blockradar webhook.

    This endpoint:
    1. Validates HMAC signature (via dependency, 401 on failure)
    2. Parses the ``{event, data}`` envelope
    3. Dispatches to exactly one event branch
    4. Acknowledges with 200

    HTTP Status Codes:
        200: ``{"received": true, "event": ...}`` when dispatched,
             ``{"received": true, "error": ...}`` on payload or handler failure
        401: ``{"error": "Missing signature"}`` / ``{"error": "Invalid signature"}``
    """
    try:
        envelope = parse_envelope(raw_body)
    except WebhookPayloadError as e:
        # Validly signed but unparseable: the provider changed its contract
        logger.error(
            "webhook.invalid_payload",
            error=str(e),
            body_length=len(raw_body),
        )
        return {"received": True, "error": INVALID_PAYLOAD_MESSAGE}

    logger.info(
        "webhook.received",
        webhook_event=envelope.event,
        reference=envelope.reference,
    )

    result = await dispatcher.dispatch(envelope)

    if not result.ok:
        return {"received": True, "error": result.error}

    return {"received": True, "event": result.event}
