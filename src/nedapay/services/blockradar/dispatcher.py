"""Blockradar event dispatcher.

Routes a verified webhook envelope to exactly one handler branch. The set of
branches is closed: every BlockradarEventType member (including UNKNOWN) must
have a handler, checked when the dispatcher is built.

Failure contract:
- Handler exceptions are caught here, logged with the event type and the
  provider reference, and reported in the DispatchResult
- dispatch() never raises, so the HTTP layer can always acknowledge with 200
  and the provider never retries a delivery whose side effects may have run
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Protocol

import structlog

from nedapay.services.blockradar.events import BlockradarEventType, WebhookEnvelope
from nedapay.services.exceptions import ConfigurationError

logger = structlog.get_logger()

HANDLER_FAILURE_MESSAGE = "Internal processing error"

BranchHandler = Callable[[WebhookEnvelope], Awaitable[Any]]


class BlockradarEventHandlers(Protocol):
    """One coroutine per dispatch branch."""

    async def on_deposit_pending(self, envelope: WebhookEnvelope) -> Any: ...

    async def on_deposit_confirmed(self, envelope: WebhookEnvelope) -> Any: ...

    async def on_withdrawal_pending(self, envelope: WebhookEnvelope) -> Any: ...

    async def on_withdrawal_confirmed(self, envelope: WebhookEnvelope) -> Any: ...

    async def on_withdrawal_failed(self, envelope: WebhookEnvelope) -> Any: ...

    async def on_address_created(self, envelope: WebhookEnvelope) -> Any: ...

    async def on_unknown(self, envelope: WebhookEnvelope) -> Any: ...


@dataclass
class DispatchResult:
    """Outcome of routing one webhook delivery."""

    event: str
    branch: BlockradarEventType
    reference: str | None = None
    output: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class EventDispatcher:
    """Stateless router from event type to handler branch.

    Example:
        >>> dispatcher = EventDispatcher(LedgerEventHandlers(ledger))
        >>> result = await dispatcher.dispatch(parse_envelope(raw_body))
        >>> result.branch
        <BlockradarEventType.DEPOSIT_CONFIRMED: 'deposit.confirmed'>
    """

    def __init__(self, handlers: BlockradarEventHandlers):
        branches: dict[BlockradarEventType, BranchHandler] = {
            BlockradarEventType.DEPOSIT_PENDING: handlers.on_deposit_pending,
            BlockradarEventType.DEPOSIT_CONFIRMED: handlers.on_deposit_confirmed,
            BlockradarEventType.WITHDRAWAL_PENDING: handlers.on_withdrawal_pending,
            BlockradarEventType.WITHDRAWAL_CONFIRMED: handlers.on_withdrawal_confirmed,
            BlockradarEventType.WITHDRAWAL_FAILED: handlers.on_withdrawal_failed,
            BlockradarEventType.ADDRESS_CREATED: handlers.on_address_created,
            BlockradarEventType.UNKNOWN: handlers.on_unknown,
        }

        missing = [
            event_type.value for event_type in BlockradarEventType if event_type not in branches
        ]
        if missing:
            raise ConfigurationError(f"No dispatch branch for event types: {', '.join(missing)}")

        self._branches = branches

    async def dispatch(self, envelope: WebhookEnvelope) -> DispatchResult:
        """Run the single branch matching the envelope's event type.

        Args:
            envelope: Parsed, signature-verified webhook envelope

        Returns:
            DispatchResult naming the branch that fired. ``error`` is set when
            the branch raised; the exception itself is logged, not propagated.
        """
        branch = envelope.event_type
        reference = envelope.reference
        result = DispatchResult(event=envelope.event, branch=branch, reference=reference)

        logger.info(
            "webhook.dispatching",
            webhook_event=envelope.event,
            branch=branch.value,
            reference=reference,
        )

        try:
            result.output = await self._branches[branch](envelope)
        except Exception as e:
            logger.error(
                "webhook.handler_failed",
                webhook_event=envelope.event,
                branch=branch.value,
                reference=reference,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            result.error = HANDLER_FAILURE_MESSAGE

        return result
