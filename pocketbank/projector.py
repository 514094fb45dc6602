from datetime import datetime
from decimal import Decimal

from .deposits import DepositEngine
from .ledger import TransactionLedger
from .models import BalanceSummary, DepositStatus, to_cents
from .scheduler import MaturityScheduler


class BalanceProjector:
    """Read-only view over the ledger and the deposits. Holds no state."""

    def __init__(self, ledger: TransactionLedger, engine: DepositEngine, scheduler: MaturityScheduler):
        self.ledger = ledger
        self.engine = engine
        self.scheduler = scheduler

    def _spendable(self) -> Decimal:
        # each deposit's principal is held back once; its payout or refund puts it back
        return self.ledger.available_balance() - self.engine.committed_principal()

    def available_balance(self, now: datetime) -> Decimal:
        self.scheduler.reconcile(now)
        return to_cents(self._spendable())

    def total_savings(self, now: datetime) -> Decimal:
        self.scheduler.reconcile(now)
        return to_cents(self.engine.locked_principal())

    def summary(self, now: datetime) -> BalanceSummary:
        self.scheduler.reconcile(now)
        return BalanceSummary(
            available_balance=to_cents(self._spendable()),
            total_savings=to_cents(self.engine.locked_principal()),
            projected_savings=to_cents(self.engine.projected_return()),
            active_deposits=len(self.engine.select(DepositStatus.ACTIVE)),
            matured_deposits=len(self.engine.select(DepositStatus.MATURED)),
        )
