import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Iterator, Optional
from uuid import UUID

import structlog

from .config import Settings
from .deposits import DepositEngine
from .errors import InvalidInputError, PersistenceError, UnauthorizedError
from .formatting import format_currency
from .ledger import TransactionLedger
from .models import (
    AddTransactionRequest,
    AllowanceRequest,
    BalanceSummary,
    Category,
    ChangeSecretRequest,
    ClearDataRequest,
    CreateDepositRequest,
    Deposit,
    DepositListResponse,
    DepositResponse,
    DepositStatus,
    InterestQuoteResponse,
    LedgerHistoryResponse,
    OperationResponse,
    ProfileConfig,
    ProfileResponse,
    RatesResponse,
    Snapshot,
    TransactionKind,
    TransactionResponse,
    UpdateProfileRequest,
    UpdateRatesRequest,
    WithdrawDepositRequest,
    to_cents,
)
from .profile import MAX_TERM_RATE, ProfileStore
from .projector import BalanceProjector
from .scheduler import MaturityScheduler
from .storage import InMemorySnapshotStorage, JsonFileSnapshotStorage, SnapshotStorage, StorageError


logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Workspace:
    """The components wired over one working copy of the snapshot."""

    snapshot: Snapshot
    ledger: TransactionLedger
    profile: ProfileStore
    deposits: DepositEngine
    scheduler: MaturityScheduler
    balances: BalanceProjector

    @classmethod
    def over(cls, snapshot: Snapshot, max_rate: Decimal) -> "Workspace":
        ledger = TransactionLedger(snapshot.transactions)
        profile = ProfileStore(snapshot.profile, max_rate=max_rate)
        deposits = DepositEngine(snapshot.deposits, ledger, profile)
        scheduler = MaturityScheduler(deposits)
        balances = BalanceProjector(ledger, deposits, scheduler)
        return cls(snapshot, ledger, profile, deposits, scheduler, balances)


class PocketBankService:
    def __init__(
        self,
        storage: Optional[SnapshotStorage] = None,
        clock: Clock = utc_now,
        default_profile: Optional[ProfileConfig] = None,
        max_rate: Decimal = MAX_TERM_RATE,
    ):
        self.storage = storage or InMemorySnapshotStorage()
        self.clock = clock
        self.max_rate = max_rate
        self._lock = threading.RLock()

        try:
            snapshot = self.storage.load()
        except StorageError as e:
            raise PersistenceError(str(e)) from e
        self._state = snapshot or Snapshot(profile=default_profile or ProfileConfig())

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock = utc_now) -> "PocketBankService":
        return cls(
            storage=JsonFileSnapshotStorage(settings.snapshot_path),
            clock=clock,
            default_profile=ProfileConfig(
                parental_password=settings.default_parental_password,
                term_interest_rates=dict(settings.default_term_rates),
            ),
            max_rate=settings.max_term_rate,
        )

    # Plumbing

    def _now(self) -> datetime:
        now = self.clock()
        return now if now.tzinfo else now.replace(tzinfo=timezone.utc)

    def _commit(self, snapshot: Snapshot, now: datetime) -> None:
        snapshot.saved_at = now
        try:
            self.storage.save(snapshot)
        except StorageError as e:
            logger.error("snapshot_save_failed", error=str(e))
            raise PersistenceError(f"Changes were not saved: {e}") from e
        self._state = snapshot

    @contextmanager
    def _unit_of_work(self) -> Iterator[tuple[Workspace, datetime]]:
        """
        Run a mutation against a private copy of the state.

        The copy replaces the live state only after it has been saved, so a failed
        save or a rejected operation leaves nothing half-applied.
        """
        with self._lock:
            now = self._now()
            working = self._state.model_copy(deep=True)
            workspace = Workspace.over(working, self.max_rate)
            workspace.scheduler.reconcile(now)
            yield workspace, now
            self._commit(working, now)

    @contextmanager
    def _read(self) -> Iterator[tuple[Workspace, datetime]]:
        """Reconcile maturities, persisting only if something was credited."""
        with self._lock:
            now = self._now()
            working = self._state.model_copy(deep=True)
            workspace = Workspace.over(working, self.max_rate)
            if workspace.scheduler.reconcile(now):
                self._commit(working, now)
            yield workspace, now

    def _require(self, profile: ProfileStore, secret: str, action: str) -> None:
        if not profile.authorize(secret):
            logger.warning("authorization_failed", action=action)
            raise UnauthorizedError(f"Incorrect password for {action}")

    # Authorization

    def authorize(self, secret: str) -> bool:
        with self._lock:
            return ProfileStore(self._state.profile).authorize(secret)

    # Ledger

    def add_transaction(self, request: AddTransactionRequest) -> TransactionResponse:
        if request.category.is_reserved:
            raise InvalidInputError(f"Category {request.category.value} is reserved for deposits")

        with self._unit_of_work() as (ws, now):
            transaction = ws.ledger.append(TransactionLedger.new_transaction(
                title=request.title,
                amount=request.amount,
                kind=request.kind,
                category=request.category,
                occurred_at=request.occurred_at or now,
            ))
            balance = ws.balances.available_balance(now)

        logger.info(
            "transaction_added",
            transaction_id=str(transaction.id),
            kind=transaction.kind.value,
            category=transaction.category.value,
            amount=str(transaction.amount),
        )
        return TransactionResponse(
            transaction=transaction,
            available_balance=balance,
            message="Transaction recorded",
        )

    def add_allowance(self, request: AllowanceRequest) -> TransactionResponse:
        with self._unit_of_work() as (ws, now):
            self._require(ws.profile, request.secret, "adding money")
            transaction = ws.ledger.append(TransactionLedger.new_transaction(
                title=request.note or "Pocket Money",
                amount=request.amount,
                kind=TransactionKind.INCOME,
                category=Category.POCKET_MONEY,
                occurred_at=now,
            ))
            balance = ws.balances.available_balance(now)

        logger.info("allowance_added", transaction_id=str(transaction.id), amount=str(transaction.amount))
        return TransactionResponse(
            transaction=transaction,
            available_balance=balance,
            message=f"Added {format_currency(transaction.amount)}",
        )

    def clear_transactions(self, request: ClearDataRequest) -> OperationResponse:
        with self._unit_of_work() as (ws, now):
            self._require(ws.profile, request.secret, "clearing data")
            removed_transactions = ws.ledger.clear()
            removed_deposits = ws.deposits.clear()

        logger.warning(
            "ledger_cleared",
            transactions=removed_transactions,
            deposits=removed_deposits,
        )
        return OperationResponse(message="All data has been cleared")

    def get_available_balance(self) -> Decimal:
        with self._read() as (ws, now):
            return ws.balances.available_balance(now)

    def get_total_savings(self) -> Decimal:
        with self._read() as (ws, now):
            return ws.balances.total_savings(now)

    def get_balance_summary(self) -> BalanceSummary:
        with self._read() as (ws, now):
            return ws.balances.summary(now)

    def get_ledger_history(self, limit: int = 50, offset: int = 0) -> LedgerHistoryResponse:
        with self._read() as (ws, now):
            return LedgerHistoryResponse(
                transactions=ws.ledger.history(limit, offset),
                total_count=len(ws.ledger),
                available_balance=ws.balances.available_balance(now),
            )

    def get_spending_by_category(self) -> dict[Category, Decimal]:
        with self._read() as (ws, now):
            return {c: to_cents(v) for c, v in ws.ledger.totals_by_category(TransactionKind.EXPENSE).items()}

    # Deposits

    def quote_deposit(self, amount: Decimal, term_months: int) -> InterestQuoteResponse:
        with self._read() as (ws, now):
            return ws.deposits.quote(amount, term_months, now)

    def create_deposit(self, request: CreateDepositRequest) -> DepositResponse:
        with self._unit_of_work() as (ws, now):
            available = ws.balances.available_balance(now)
            deposit = ws.deposits.create(request.amount, request.term_months, available, now)
            balance = ws.balances.available_balance(now)

        logger.info(
            "deposit_created",
            deposit_id=str(deposit.id),
            principal=str(deposit.principal),
            term_months=deposit.term_months,
            annual_rate_percent=str(deposit.annual_rate_percent),
            total_return=str(deposit.total_return),
            maturity_at=deposit.maturity_at.isoformat(),
        )
        return DepositResponse(
            deposit=deposit.model_copy(),
            available_balance=balance,
            message=f"Your {format_currency(deposit.principal)} is now growing for {deposit.term_months} months",
        )

    def withdraw_deposit(self, deposit_id: UUID, request: WithdrawDepositRequest) -> DepositResponse:
        with self._unit_of_work() as (ws, now):
            self._require(ws.profile, request.secret, "early withdrawal")
            deposit = ws.deposits.get(deposit_id)
            entry = ws.deposits.withdraw_early(deposit, now)
            balance = ws.balances.available_balance(now)

        logger.info(
            "deposit_withdrawn",
            deposit_id=str(deposit.id),
            refunded=str(entry.amount),
            forfeited_interest=str(deposit.interest),
        )
        return DepositResponse(
            deposit=deposit.model_copy(),
            ledger_entry=entry,
            available_balance=balance,
            message="Money has been returned to your balance",
        )

    def get_deposit(self, deposit_id: UUID) -> Deposit:
        with self._read() as (ws, now):
            return ws.deposits.get(deposit_id).model_copy()

    def list_deposits(self, status: Optional[DepositStatus] = None) -> DepositListResponse:
        with self._read() as (ws, now):
            return DepositListResponse(
                deposits=[d.model_copy() for d in ws.deposits.select(status)],
                total_savings=ws.balances.total_savings(now),
            )

    def reconcile(self) -> list[Deposit]:
        with self._lock:
            now = self._now()
            working = self._state.model_copy(deep=True)
            credited = Workspace.over(working, self.max_rate).scheduler.reconcile(now)
            if credited:
                self._commit(working, now)
            return [d.model_copy() for d in credited]

    # Profile and rates

    def get_interest_rate_for_term(self, term_months: int) -> Decimal:
        with self._lock:
            return ProfileStore(self._state.profile).rate_for_term(term_months)

    def get_rates(self) -> RatesResponse:
        with self._lock:
            return RatesResponse(rates=ProfileStore(self._state.profile).rate_table())

    def update_term_interest_rates(self, request: UpdateRatesRequest) -> RatesResponse:
        with self._unit_of_work() as (ws, now):
            self._require(ws.profile, request.secret, "updating rates")
            rates = ws.profile.update_rates(request.rates)

        logger.info("rates_updated", rates={str(k): str(v) for k, v in rates.items()})
        return RatesResponse(rates=rates, message="Deposit interest rates have been updated")

    def get_profile(self) -> ProfileResponse:
        with self._lock:
            profile = self._state.profile
            return ProfileResponse(
                parent_name=profile.parent_name,
                child_name=profile.child_name,
                term_interest_rates=ProfileStore(profile).rate_table(),
            )

    def update_profile(self, request: UpdateProfileRequest) -> ProfileResponse:
        with self._unit_of_work() as (ws, now):
            ws.profile.update_names(request.parent_name, request.child_name)

        logger.info("profile_updated")
        return self.get_profile()

    def change_secret(self, request: ChangeSecretRequest) -> OperationResponse:
        with self._unit_of_work() as (ws, now):
            self._require(ws.profile, request.current_secret, "changing password")
            ws.profile.change_secret(request.current_secret, request.new_secret, request.confirm_secret)

        logger.info("secret_changed")
        return OperationResponse(message="Password updated successfully")
