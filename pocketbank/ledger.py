"""
Append-only transaction ledger.

The balance is never stored: it is folded from the full sequence on every call so
it can always be reconstructed from the records alone.
"""

from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from .errors import InvalidAmountError
from .interest import Number, as_amount, as_decimal
from .models import Category, Transaction, TransactionKind


class TransactionLedger:
    def __init__(self, transactions: Optional[list[Transaction]] = None):
        self._transactions: list[Transaction] = transactions if transactions is not None else []

    def __len__(self) -> int:
        return len(self._transactions)

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return tuple(self._transactions)

    @staticmethod
    def new_transaction(
        title: str,
        amount: Number,
        kind: TransactionKind,
        category: Category,
        occurred_at: Optional[datetime] = None,
        deposit_id=None,
        idempotency_key: Optional[str] = None,
    ) -> Transaction:
        occurred_at = occurred_at or datetime.now(timezone.utc)
        if occurred_at.tzinfo is None:
            occurred_at = occurred_at.replace(tzinfo=timezone.utc)
        return Transaction(
            id=uuid4(),
            title=title,
            amount=as_decimal(amount, "amount"),
            kind=kind,
            category=category,
            occurred_at=occurred_at,
            deposit_id=deposit_id,
            idempotency_key=idempotency_key,
        )

    def append(self, transaction: Transaction) -> Transaction:
        if transaction.idempotency_key:
            existing = self.find_by_key(transaction.idempotency_key)
            if existing:
                return existing

        amount = as_amount(transaction.amount)
        if amount <= 0:
            raise InvalidAmountError(f"Amount must be greater than zero, got {transaction.amount}")
        if amount.as_tuple() != transaction.amount.as_tuple():
            transaction = transaction.model_copy(update={"amount": amount})

        self._transactions.append(transaction)
        return transaction

    def clear(self) -> int:
        removed = len(self._transactions)
        self._transactions.clear()
        return removed

    def available_balance(self) -> Decimal:
        return sum((t.signed_amount for t in self._transactions), Decimal("0.00"))

    def find_by_key(self, idempotency_key: str) -> Optional[Transaction]:
        for transaction in self._transactions:
            if transaction.idempotency_key == idempotency_key:
                return transaction
        return None

    def for_deposit(self, deposit_id) -> list[Transaction]:
        return [t for t in self._transactions if t.deposit_id == deposit_id]

    def history(self, limit: int = 50, offset: int = 0) -> list[Transaction]:
        ordered = sorted(self._transactions, key=lambda t: t.occurred_at, reverse=True)
        return ordered[offset:offset + limit]

    def totals_by_category(self, kind: TransactionKind = TransactionKind.EXPENSE) -> dict[Category, Decimal]:
        totals: dict[Category, Decimal] = defaultdict(lambda: Decimal("0.00"))
        for transaction in self._transactions:
            if transaction.kind == kind:
                totals[transaction.category] += transaction.amount
        return dict(totals)
