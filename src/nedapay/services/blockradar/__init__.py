"""Blockradar webhook intake: signature checks, envelopes, and dispatch."""

from nedapay.services.blockradar.dispatcher import DispatchResult, EventDispatcher
from nedapay.services.blockradar.events import (
    BlockradarEventType,
    WebhookEnvelope,
    parse_envelope,
)
from nedapay.services.blockradar.handlers import LedgerEventHandlers
from nedapay.services.blockradar.signature import BlockradarSignatureVerifier, compute_signature

__all__ = [
    "BlockradarEventType",
    "BlockradarSignatureVerifier",
    "DispatchResult",
    "EventDispatcher",
    "LedgerEventHandlers",
    "WebhookEnvelope",
    "compute_signature",
    "parse_envelope",
]
