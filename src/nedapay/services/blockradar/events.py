"""Blockradar webhook envelope and event types."""

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from nedapay.services.exceptions import WebhookPayloadError


class BlockradarEventType(str, Enum):
    """Event tags Blockradar sends, plus a catch-all for anything else."""

    DEPOSIT_PENDING = "deposit.pending"
    DEPOSIT_CONFIRMED = "deposit.confirmed"
    WITHDRAWAL_PENDING = "withdrawal.pending"
    WITHDRAWAL_CONFIRMED = "withdrawal.confirmed"
    WITHDRAWAL_FAILED = "withdrawal.failed"
    ADDRESS_CREATED = "address.created"
    UNKNOWN = "unknown"

    @classmethod
    def from_tag(cls, tag: str) -> "BlockradarEventType":
        """Map a raw event tag to a known type, or UNKNOWN."""
        try:
            return cls(tag)
        except ValueError:
            return cls.UNKNOWN


class WebhookEnvelope(BaseModel):
    """Top-level webhook body: an event tag and an opaque data object."""

    event: str
    data: dict[str, Any] = Field(default_factory=dict)

    @property
    def event_type(self) -> BlockradarEventType:
        return BlockradarEventType.from_tag(self.event)

    @property
    def reference(self) -> str | None:
        """Stable provider identifier for deduplication (data.id)."""
        value = self.data.get("id")
        if value is None or value == "":
            return None
        return str(value)


def parse_envelope(raw_body: bytes) -> WebhookEnvelope:
    """Parse a verified raw body into a WebhookEnvelope.

    Args:
        raw_body: Request body bytes whose signature has already been checked

    Returns:
        Parsed envelope

    Raises:
        WebhookPayloadError: If the body is not JSON, not an object, or lacks
            a string ``event`` / object ``data``
    """
    try:
        payload = json.loads(raw_body)
    except (ValueError, RecursionError) as e:
        # RecursionError: nesting deeper than the decoder can follow
        raise WebhookPayloadError(f"Body is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise WebhookPayloadError(f"Expected JSON object, got {type(payload).__name__}")

    if payload.get("data") is None:
        payload = {**payload, "data": {}}

    try:
        return WebhookEnvelope.model_validate(payload, strict=True)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise WebhookPayloadError(f"Invalid envelope fields: {fields}") from e
