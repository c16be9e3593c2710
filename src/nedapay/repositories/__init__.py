"""Repository layer for NEDApay backend.

Provides data access abstractions for all ledger entities.
"""

from nedapay.repositories.wallet_address import WalletAddressRepository
from nedapay.repositories.wallet_transaction import WalletTransactionRepository

__all__ = [
    "WalletAddressRepository",
    "WalletTransactionRepository",
]
