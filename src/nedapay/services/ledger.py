"""Wallet ledger service for webhook-driven balance updates.

Every write is keyed by the Blockradar transaction id (``data.id``) so that a
redelivered webhook never applies its side effect twice:
- pending events create a row once and never downgrade a settled row
- confirmations move a row into ``confirmed`` and adjust the balance only on
  that transition
- the unique constraint on ``blockradar_id`` rejects a concurrent duplicate
  insert, rolling back the losing unit of work
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable

import structlog

from nedapay.models.wallet_address import WalletAddress
from nedapay.models.wallet_transaction import (
    TransactionKind,
    TransactionStatus,
    WalletTransaction,
)
from nedapay.services.exceptions import WebhookPayloadError
from nedapay.uow import UnitOfWork

logger = structlog.get_logger()

UoWFactory = Callable[[], Awaitable[UnitOfWork]]


@dataclass
class LedgerWrite:
    """Result of one ledger operation."""

    reference: str
    status: str
    applied: bool


def _nested(value: Any, key: str) -> str | None:
    """Read a field Blockradar sends either as a scalar or as an object."""
    if isinstance(value, dict):
        value = value.get(key)
    if value is None or value == "":
        return None
    return str(value)


def _kind_mismatch(
    reference: str, stored: TransactionKind, reported: TransactionKind
) -> WebhookPayloadError:
    return WebhookPayloadError(
        f"Transaction {reference} is a {stored.value}, event reports a {reported.value}"
    )


def extract_reference(data: dict[str, Any]) -> str:
    """Return the stable Blockradar id from an event's data object.

    Raises:
        WebhookPayloadError: If ``data.id`` is missing or empty
    """
    reference = _nested(data.get("id"), "id")
    if reference is None:
        raise WebhookPayloadError("Missing data.id; cannot deduplicate ledger write")
    return reference


def extract_amount(data: dict[str, Any]) -> Decimal:
    """Parse ``data.amount`` (string or number) as a Decimal, defaulting to 0."""
    raw = data.get("amount")
    if raw is None or raw == "":
        return Decimal("0")
    try:
        amount = Decimal(str(raw))
    except InvalidOperation as e:
        raise WebhookPayloadError(f"Invalid amount: {raw!r}") from e
    if not amount.is_finite():
        raise WebhookPayloadError(f"Invalid amount: {raw!r}")
    return amount


def extract_address(data: dict[str, Any]) -> str | None:
    return _nested(data.get("address"), "address")


def extract_asset(data: dict[str, Any]) -> str | None:
    return _nested(data.get("asset"), "symbol") or _nested(data.get("currency"), "symbol")


def extract_blockchain(data: dict[str, Any]) -> str | None:
    return _nested(data.get("blockchain"), "name")


def extract_tx_hash(data: dict[str, Any]) -> str | None:
    return _nested(data.get("hash"), "hash") or _nested(data.get("txHash"), "hash")


class LedgerService:
    """Records Blockradar wallet activity through a unit of work.

    Args:
        uow_factory: Coroutine factory returning a fresh UnitOfWork
    """

    def __init__(self, uow_factory: UoWFactory):
        self._uow_factory = uow_factory

    def _new_transaction(
        self, kind: TransactionKind, reference: str, data: dict[str, Any]
    ) -> WalletTransaction:
        return WalletTransaction(
            blockradar_id=reference,
            kind=kind,
            status=TransactionStatus.PENDING,
            amount=extract_amount(data),
            asset=extract_asset(data),
            address=extract_address(data),
            tx_hash=extract_tx_hash(data),
            blockchain=extract_blockchain(data),
            payload=data,
        )

    async def record_pending(self, kind: TransactionKind, data: dict[str, Any]) -> LedgerWrite:
        """Create a pending transaction unless one already exists for ``data.id``.

        A pending event that arrives after its confirmation is ignored.
        """
        reference = extract_reference(data)

        async with await self._uow_factory() as uow:
            existing = await uow.transactions.get_by_blockradar_id(reference)
            if existing is not None:
                logger.info(
                    "ledger.pending_ignored",
                    reference=reference,
                    kind=kind.value,
                    current_status=existing.status.value,
                )
                return LedgerWrite(reference, existing.status.value, applied=False)

            transaction = await uow.transactions.add(self._new_transaction(kind, reference, data))

        logger.info(
            "ledger.pending_recorded",
            reference=reference,
            kind=kind.value,
            amount=str(transaction.amount),
            asset=transaction.asset,
        )
        return LedgerWrite(reference, TransactionStatus.PENDING.value, applied=True)

    async def _confirm(self, kind: TransactionKind, data: dict[str, Any]) -> LedgerWrite:
        reference = extract_reference(data)

        async with await self._uow_factory() as uow:
            transaction = await uow.transactions.get_by_blockradar_id(reference, for_update=True)
            if transaction is None:
                transaction = await uow.transactions.add(
                    self._new_transaction(kind, reference, data)
                )
            elif transaction.kind != kind:
                raise _kind_mismatch(reference, transaction.kind, kind)
            elif transaction.status == TransactionStatus.CONFIRMED:
                logger.info("ledger.duplicate_confirmation", reference=reference, kind=kind.value)
                return LedgerWrite(reference, transaction.status.value, applied=False)

            if data.get("amount") not in (None, ""):
                transaction.amount = extract_amount(data)
            transaction.address = transaction.address or extract_address(data)

            # Raises InvalidStateTransition for failed -> confirmed
            transaction.mark_confirmed(tx_hash=extract_tx_hash(data))

            if transaction.address is None:
                logger.warning(
                    "ledger.balance_skipped",
                    reference=reference,
                    reason="no_address_in_payload",
                )
            elif kind == TransactionKind.DEPOSIT:
                await uow.addresses.credit(transaction.address, transaction.amount)
            else:
                await uow.addresses.debit(transaction.address, transaction.amount)

        logger.info(
            "ledger.confirmed",
            reference=reference,
            kind=kind.value,
            amount=str(transaction.amount),
            address=transaction.address,
        )
        return LedgerWrite(reference, TransactionStatus.CONFIRMED.value, applied=True)

    async def confirm_deposit(self, data: dict[str, Any]) -> LedgerWrite:
        """Confirm a deposit and credit its address once."""
        return await self._confirm(TransactionKind.DEPOSIT, data)

    async def confirm_withdrawal(self, data: dict[str, Any]) -> LedgerWrite:
        """Confirm a withdrawal and debit its address once."""
        return await self._confirm(TransactionKind.WITHDRAWAL, data)

    async def fail_withdrawal(self, data: dict[str, Any]) -> LedgerWrite:
        """Mark a withdrawal as failed. No balance change is made."""
        reference = extract_reference(data)
        reason = _nested(data.get("reason"), "message") or _nested(data.get("error"), "message")

        async with await self._uow_factory() as uow:
            transaction = await uow.transactions.get_by_blockradar_id(reference, for_update=True)
            if transaction is None:
                transaction = await uow.transactions.add(
                    self._new_transaction(TransactionKind.WITHDRAWAL, reference, data)
                )
            elif transaction.kind != TransactionKind.WITHDRAWAL:
                raise _kind_mismatch(reference, transaction.kind, TransactionKind.WITHDRAWAL)
            elif transaction.status == TransactionStatus.FAILED:
                return LedgerWrite(reference, transaction.status.value, applied=False)

            transaction.mark_failed(reason)

        return LedgerWrite(reference, TransactionStatus.FAILED.value, applied=True)

    async def register_address(self, data: dict[str, Any]) -> LedgerWrite:
        """Store a newly issued deposit address unless it is already known.

        Raises:
            WebhookPayloadError: If ``data.address`` is missing
        """
        address = extract_address(data)
        if address is None:
            raise WebhookPayloadError("Missing data.address for address.created")

        async with await self._uow_factory() as uow:
            existing = await uow.addresses.get_by_address(address)
            if existing is not None:
                if existing.blockradar_id is None:
                    existing.blockradar_id = _nested(data.get("id"), "id")
                return LedgerWrite(address, "registered", applied=False)

            await uow.addresses.add(
                WalletAddress(
                    address=address,
                    blockradar_id=_nested(data.get("id"), "id"),
                    blockchain=extract_blockchain(data),
                    name=_nested(data.get("name"), "name"),
                )
            )

        logger.info("ledger.address_registered", address=address)
        return LedgerWrite(address, "registered", applied=True)
