"""Ledger-backed handlers for each Blockradar dispatch branch."""

from typing import Any

import structlog

from nedapay.models.wallet_transaction import TransactionKind
from nedapay.services.blockradar.events import WebhookEnvelope
from nedapay.services.ledger import LedgerService, LedgerWrite

logger = structlog.get_logger()


class LedgerEventHandlers:
    """Default BlockradarEventHandlers implementation.

    Each branch logs the event and records it through LedgerService. Errors
    propagate to EventDispatcher, which logs and contains them.
    """

    def __init__(self, ledger: LedgerService):
        self.ledger = ledger

    async def on_deposit_pending(self, envelope: WebhookEnvelope) -> LedgerWrite:
        logger.info("webhook.deposit_pending", reference=envelope.reference)
        return await self.ledger.record_pending(TransactionKind.DEPOSIT, envelope.data)

    async def on_deposit_confirmed(self, envelope: WebhookEnvelope) -> LedgerWrite:
        logger.info("webhook.deposit_confirmed", reference=envelope.reference)
        return await self.ledger.confirm_deposit(envelope.data)

    async def on_withdrawal_pending(self, envelope: WebhookEnvelope) -> LedgerWrite:
        logger.info("webhook.withdrawal_pending", reference=envelope.reference)
        return await self.ledger.record_pending(TransactionKind.WITHDRAWAL, envelope.data)

    async def on_withdrawal_confirmed(self, envelope: WebhookEnvelope) -> LedgerWrite:
        logger.info("webhook.withdrawal_confirmed", reference=envelope.reference)
        return await self.ledger.confirm_withdrawal(envelope.data)

    async def on_withdrawal_failed(self, envelope: WebhookEnvelope) -> LedgerWrite:
        # Error level: operators alert on failed withdrawals, nothing retries them here
        logger.error(
            "webhook.withdrawal_failed",
            reference=envelope.reference,
            amount=envelope.data.get("amount"),
        )
        return await self.ledger.fail_withdrawal(envelope.data)

    async def on_address_created(self, envelope: WebhookEnvelope) -> LedgerWrite:
        logger.info("webhook.address_created", reference=envelope.reference)
        return await self.ledger.register_address(envelope.data)

    async def on_unknown(self, envelope: WebhookEnvelope) -> Any:
        logger.warning(
            "webhook.unhandled_event",
            webhook_event=envelope.event,
            reference=envelope.reference,
        )
        return None
