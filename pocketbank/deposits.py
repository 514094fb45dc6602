"""
Fixed-term deposits and their lifecycle: active -> matured | withdrawn.

Creating a deposit does not write to the ledger. The principal stays committed to
the deposit until it is paid out (principal plus interest, on maturity) or
refunded (principal only, on early withdrawal); each of those writes exactly one
income transaction keyed by the deposit id.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from dateutil.relativedelta import relativedelta

from .errors import (
    AlreadyMaturedError,
    DepositNotFoundError,
    InsufficientFundsError,
    InvalidAmountError,
    NotActiveError,
)
from .interest import InterestQuote, Number, as_amount, compute_return
from .ledger import TransactionLedger
from .models import (
    Category,
    Deposit,
    DepositStatus,
    InterestQuoteResponse,
    Transaction,
    TransactionKind,
    to_cents,
)
from .profile import ProfileStore


def add_months(moment: datetime, months: int) -> datetime:
    return moment + relativedelta(months=months)


def payout_key(deposit_id: UUID) -> str:
    return f"deposit:{deposit_id}:payout"


def refund_key(deposit_id: UUID) -> str:
    return f"deposit:{deposit_id}:refund"


class DepositEngine:
    def __init__(
        self,
        deposits: Optional[list[Deposit]],
        ledger: TransactionLedger,
        profile: ProfileStore,
    ):
        self._deposits: list[Deposit] = deposits if deposits is not None else []
        self.ledger = ledger
        self.profile = profile

    @property
    def deposits(self) -> tuple[Deposit, ...]:
        return tuple(self._deposits)

    def get(self, deposit_id: UUID) -> Deposit:
        for deposit in self._deposits:
            if deposit.id == deposit_id:
                return deposit
        raise DepositNotFoundError(f"Deposit {deposit_id} not found")

    def select(self, status: Optional[DepositStatus] = None) -> list[Deposit]:
        deposits = [d for d in self._deposits if status is None or d.status == status]
        deposits.sort(key=lambda d: d.maturity_at)
        return deposits

    def active(self) -> list[Deposit]:
        return self.select(DepositStatus.ACTIVE)

    def committed_principal(self) -> Decimal:
        return sum((d.principal for d in self._deposits), Decimal("0.00"))

    def locked_principal(self) -> Decimal:
        return sum((d.principal for d in self._deposits if d.is_active()), Decimal("0.00"))

    def projected_return(self) -> Decimal:
        return sum((d.total_return for d in self._deposits if d.is_active()), Decimal("0.00"))

    def quote(self, amount: Number, term_months: int, now: datetime) -> InterestQuoteResponse:
        principal = as_amount(amount)
        rate = self.profile.rate_for_term(term_months)
        quote = compute_return(principal, rate, term_months).rounded()
        return InterestQuoteResponse(
            principal=principal,
            term_months=term_months,
            annual_rate_percent=rate,
            interest=quote.interest,
            total_return=quote.total,
            maturity_at=add_months(now, term_months),
        )

    def create(self, amount: Number, term_months: int, available: Decimal, now: datetime) -> Deposit:
        principal = as_amount(amount)
        if principal <= 0:
            raise InvalidAmountError(f"Deposit amount must be greater than zero, got {amount}")

        # rate is copied onto the deposit; later rate table edits do not reach it
        rate = self.profile.rate_for_term(term_months)
        if principal > available:
            raise InsufficientFundsError(
                f"Cannot deposit {principal}: only {to_cents(available)} available"
            )

        quote: InterestQuote = compute_return(principal, rate, term_months).rounded()
        deposit = Deposit(
            id=uuid4(),
            principal=principal,
            term_months=term_months,
            annual_rate_percent=rate,
            interest=quote.interest,
            total_return=quote.total,
            created_at=now,
            maturity_at=add_months(now, term_months),
            status=DepositStatus.ACTIVE,
        )
        self._deposits.append(deposit)
        return deposit

    @staticmethod
    def maturity_check(deposit: Deposit, now: datetime) -> bool:
        return deposit.is_due(now)

    def credit_maturity(self, deposit: Deposit, now: datetime) -> Optional[Transaction]:
        if deposit.status == DepositStatus.MATURED:
            return None
        if deposit.status == DepositStatus.WITHDRAWN:
            raise NotActiveError(f"Deposit {deposit.id} was withdrawn early")
        if not self.maturity_check(deposit, now):
            raise NotActiveError(f"Deposit {deposit.id} matures at {deposit.maturity_at.isoformat()}")

        entry = self.ledger.append(TransactionLedger.new_transaction(
            title=f"Deposit matured ({deposit.term_months} mo @ {deposit.annual_rate_percent}%)",
            amount=deposit.total_return,
            kind=TransactionKind.INCOME,
            category=Category.DEPOSIT_PAYOUT,
            occurred_at=now,
            deposit_id=deposit.id,
            idempotency_key=payout_key(deposit.id),
        ))
        deposit.status = DepositStatus.MATURED
        deposit.settled_at = now
        return entry

    def withdraw_early(self, deposit: Deposit, now: datetime) -> Transaction:
        if deposit.status == DepositStatus.MATURED:
            raise AlreadyMaturedError(f"Deposit {deposit.id} has already matured and been paid out")
        if deposit.status != DepositStatus.ACTIVE:
            raise NotActiveError(f"Deposit {deposit.id} is {deposit.status.value}")
        if self.maturity_check(deposit, now):
            # reconciliation settles due deposits; reaching here means it was skipped
            raise AlreadyMaturedError(f"Deposit {deposit.id} is due and will be paid out in full")

        entry = self.ledger.append(TransactionLedger.new_transaction(
            title=f"Deposit withdrawn early ({deposit.term_months} mo)",
            amount=deposit.principal,
            kind=TransactionKind.INCOME,
            category=Category.DEPOSIT_REFUND,
            occurred_at=now,
            deposit_id=deposit.id,
            idempotency_key=refund_key(deposit.id),
        ))
        deposit.status = DepositStatus.WITHDRAWN
        deposit.settled_at = now
        return entry

    def clear(self) -> int:
        removed = len(self._deposits)
        self._deposits.clear()
        return removed
