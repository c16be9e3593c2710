"""State transition tests for WalletTransaction model.

Tests focus on validating the transaction lifecycle state machine:
- pending → confirmed and pending → failed are the only transitions
- Terminal states (confirmed, failed) reject further transitions
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from nedapay.models.wallet_transaction import (
    InvalidStateTransition,
    TransactionKind,
    TransactionStatus,
    WalletTransaction,
)


def make_transaction(status: TransactionStatus = TransactionStatus.PENDING) -> WalletTransaction:
    return WalletTransaction(
        blockradar_id="tx_1",
        kind=TransactionKind.DEPOSIT,
        status=status,
        amount=Decimal("10"),
    )


def test_pending_to_confirmed():
    """Confirmation records the on-chain hash."""
    transaction = make_transaction()

    transaction.mark_confirmed(tx_hash="0xabcdef1234567890")

    assert transaction.status == TransactionStatus.CONFIRMED
    assert transaction.tx_hash == "0xabcdef1234567890"
    assert transaction.is_terminal


def test_confirmation_without_hash_keeps_existing_hash():
    transaction = make_transaction()
    transaction.tx_hash = "0xfeed"

    transaction.mark_confirmed()

    assert transaction.tx_hash == "0xfeed"


def test_pending_to_failed():
    transaction = make_transaction()

    transaction.mark_failed("insufficient gas")

    assert transaction.status == TransactionStatus.FAILED
    assert transaction.failure_reason == "insufficient gas"
    assert transaction.is_terminal


def test_failure_reason_truncated():
    transaction = make_transaction()

    transaction.mark_failed("x" * 5000)

    assert len(transaction.failure_reason) == 1000


@pytest.mark.parametrize("status", [TransactionStatus.CONFIRMED, TransactionStatus.FAILED])
def test_terminal_states_cannot_be_confirmed(status):
    """A settled transaction never moves back through confirmation."""
    transaction = make_transaction(status)

    with pytest.raises(InvalidStateTransition) as exc_info:
        transaction.mark_confirmed()

    assert "must be in pending state" in str(exc_info.value)
    assert transaction.status == status


@pytest.mark.parametrize("status", [TransactionStatus.CONFIRMED, TransactionStatus.FAILED])
def test_terminal_states_cannot_fail(status):
    transaction = make_transaction(status)

    with pytest.raises(InvalidStateTransition):
        transaction.mark_failed("late failure")

    assert transaction.status == status
    assert transaction.failure_reason is None


def test_pending_is_not_terminal():
    assert make_transaction().is_terminal is False


def test_transitions_stamp_aware_utc_time():
    transaction = make_transaction()

    transaction.mark_confirmed()

    assert transaction.updated_at.tzinfo is not None
    assert transaction.updated_at.utcoffset() == timedelta(0)
    assert transaction.created_at.tzinfo is not None
