from datetime import datetime

import structlog

from .deposits import DepositEngine
from .models import Deposit


logger = structlog.get_logger(__name__)


class MaturityScheduler:
    """
    Settles every due deposit before a read.

    Safe to run any number of times: a matured deposit is skipped by status, and
    its payout carries an idempotency key the ledger refuses to record twice.
    """

    def __init__(self, engine: DepositEngine):
        self.engine = engine

    def due(self, now: datetime) -> list[Deposit]:
        return [d for d in self.engine.active() if self.engine.maturity_check(d, now)]

    def reconcile(self, now: datetime) -> list[Deposit]:
        credited = []
        for deposit in self.due(now):
            entry = self.engine.credit_maturity(deposit, now)
            if entry is None:
                continue
            credited.append(deposit)
            logger.info(
                "deposit_matured",
                deposit_id=str(deposit.id),
                principal=str(deposit.principal),
                total_return=str(entry.amount),
                maturity_at=deposit.maturity_at.isoformat(),
            )
        return credited
