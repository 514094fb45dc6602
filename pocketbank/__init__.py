"""
Pocket-money ledger with fixed-term savings deposits

This package provides:
- An append-only transaction ledger with a folded balance
- Fixed-term deposits: active → matured / withdrawn
- Simple interest with rates snapshotted at deposit creation
- An idempotent maturity reconciliation pass run before every read
- Snapshot persistence committed after every mutation
"""

from .errors import (
    AlreadyMaturedError,
    DepositNotFoundError,
    InsufficientFundsError,
    InvalidAmountError,
    InvalidInputError,
    InvalidRateError,
    InvalidTermError,
    NotActiveError,
    PersistenceError,
    PocketBankError,
    UnauthorizedError,
)
from .interest import InterestQuote, compute_return
from .models import (
    Category,
    Deposit,
    DepositStatus,
    ProfileConfig,
    Snapshot,
    Transaction,
    TransactionKind,
)
from .service import PocketBankService

__all__ = [
    "AlreadyMaturedError",
    "DepositNotFoundError",
    "InsufficientFundsError",
    "InvalidAmountError",
    "InvalidInputError",
    "InvalidRateError",
    "InvalidTermError",
    "NotActiveError",
    "PersistenceError",
    "PocketBankError",
    "UnauthorizedError",
    "InterestQuote",
    "compute_return",
    "Category",
    "Deposit",
    "DepositStatus",
    "ProfileConfig",
    "Snapshot",
    "Transaction",
    "TransactionKind",
    "PocketBankService",
]
