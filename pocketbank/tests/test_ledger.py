"""
Unit Tests for the Transaction Ledger

Tests cover:
1. Appending income and expense records
2. Amount validation
3. Balance folding
4. Idempotency keys
5. History and category totals
"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from pocketbank.errors import InvalidAmountError
from pocketbank.ledger import TransactionLedger
from pocketbank.models import Category, TransactionKind


START = datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)


def income(amount, title="Allowance", category=Category.POCKET_MONEY, **kwargs):
    return TransactionLedger.new_transaction(
        title=title, amount=amount, kind=TransactionKind.INCOME, category=category, **kwargs
    )


def expense(amount, title="Snack", category=Category.FOOD, **kwargs):
    return TransactionLedger.new_transaction(
        title=title, amount=amount, kind=TransactionKind.EXPENSE, category=category, **kwargs
    )


class TestAppend:
    """Tests for appending records."""

    def test_append_income(self):
        ledger = TransactionLedger()

        recorded = ledger.append(income(Decimal("50")))

        assert recorded.amount == Decimal("50.00")
        assert recorded.kind == TransactionKind.INCOME
        assert len(ledger) == 1
        assert ledger.available_balance() == Decimal("50.00")

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1"), Decimal("0.004")])
    def test_rejects_non_positive_amount(self, amount):
        ledger = TransactionLedger()

        with pytest.raises(InvalidAmountError):
            ledger.append(income(amount))

        assert len(ledger) == 0

    @pytest.mark.parametrize("amount", [Decimal("1e30"), Decimal("1000000000000")])
    def test_rejects_oversized_amount(self, amount):
        """Amounts too large to round to cents are refused, not crashed on."""
        ledger = TransactionLedger()

        with pytest.raises(InvalidAmountError):
            ledger.append(income(amount))

        assert len(ledger) == 0

    def test_amount_normalized_to_cents(self):
        ledger = TransactionLedger()
        recorded = ledger.append(income(Decimal("10.005")))
        assert recorded.amount == Decimal("10.01")

    def test_existing_records_never_change(self):
        ledger = TransactionLedger()
        first = ledger.append(income(Decimal("20")))

        ledger.append(expense(Decimal("5")))

        assert ledger.transactions[0] == first
        assert ledger.transactions[0].amount == Decimal("20.00")

    def test_idempotency_key_returns_existing(self):
        ledger = TransactionLedger()
        first = ledger.append(income(Decimal("60.60"), idempotency_key="deposit:abc:payout"))

        second = ledger.append(income(Decimal("60.60"), idempotency_key="deposit:abc:payout"))

        assert second.id == first.id
        assert len(ledger) == 1
        assert ledger.available_balance() == Decimal("60.60")

    def test_naive_timestamp_treated_as_utc(self):
        recorded = income(Decimal("1"), occurred_at=datetime(2025, 1, 1, 12, 0))
        assert recorded.occurred_at.tzinfo is not None


class TestBalance:
    """Tests for the folded balance."""

    def test_income_minus_expense(self):
        ledger = TransactionLedger()
        ledger.append(income(Decimal("50")))
        ledger.append(expense(Decimal("12.50")))
        ledger.append(income(Decimal("7.25")))
        ledger.append(expense(Decimal("4.75"), category=Category.ENTERTAINMENT))

        assert ledger.available_balance() == Decimal("40.00")

    def test_independent_of_order_and_timestamps(self):
        records = [
            income(Decimal("30"), occurred_at=START + timedelta(days=3)),
            expense(Decimal("10"), occurred_at=START),
            income(Decimal("5"), occurred_at=START - timedelta(days=10)),
        ]
        forward, backward = TransactionLedger(), TransactionLedger()
        for r in records:
            forward.append(r)
            forward.available_balance()
        for r in reversed(records):
            backward.append(r)

        assert forward.available_balance() == backward.available_balance() == Decimal("25.00")

    def test_empty_ledger(self):
        assert TransactionLedger().available_balance() == Decimal("0.00")

    def test_clear_empties_ledger(self):
        ledger = TransactionLedger()
        ledger.append(income(Decimal("10")))
        ledger.append(expense(Decimal("3")))

        removed = ledger.clear()

        assert removed == 2
        assert len(ledger) == 0
        assert ledger.available_balance() == Decimal("0.00")


class TestQueries:
    def test_history_newest_first(self):
        ledger = TransactionLedger()
        old = ledger.append(income(Decimal("1"), occurred_at=START))
        new = ledger.append(income(Decimal("2"), occurred_at=START + timedelta(hours=1)))

        history = ledger.history()

        assert [t.id for t in history] == [new.id, old.id]
        assert ledger.history(limit=1, offset=1)[0].id == old.id

    def test_totals_by_category(self):
        ledger = TransactionLedger()
        ledger.append(expense(Decimal("3"), category=Category.FOOD))
        ledger.append(expense(Decimal("4"), category=Category.FOOD))
        ledger.append(expense(Decimal("10"), category=Category.EDUCATION))
        ledger.append(income(Decimal("50")))

        totals = ledger.totals_by_category()

        assert totals == {Category.FOOD: Decimal("7.00"), Category.EDUCATION: Decimal("10.00")}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
