"""Detects and repairs skew between stored balances and the transaction log."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from creditledger.infrastructure.database.repositories.balance_repository import SqlBalanceRepository
from creditledger.infrastructure.database.repositories.transaction_repository import SqlTransactionLog
from creditledger.infrastructure.database.session import Database

from .locks import AccountLockRegistry
from .models import AccountBalance, LedgerTotals, ReconciliationReport
from .validation import validate_account_id

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ReconciliationService:
    session_factory: async_sessionmaker[AsyncSession]
    locks: AccountLockRegistry = field(default_factory=AccountLockRegistry)

    @classmethod
    def with_database(cls, database: Database, *, locks: AccountLockRegistry | None = None) -> "ReconciliationService":
        if locks is None:
            locks = AccountLockRegistry()
        return cls(session_factory=database.session_factory, locks=locks)

    async def check(self, account_id: str) -> ReconciliationReport:
        account_id = validate_account_id(account_id)
        async with self.session_factory() as session:
            stored = await SqlBalanceRepository(session).get_balance(account_id)
            totals = await SqlTransactionLog(session).totals(account_id)
        return self._report(stored, totals)

    async def check_all(self) -> list[ReconciliationReport]:
        """Check every account that has a balance row or a transaction record."""
        async with self.session_factory() as session:
            ids = set(await SqlBalanceRepository(session).list_account_ids())
            ids.update(await SqlTransactionLog(session).list_account_ids())

        reports = []
        for account_id in sorted(ids):
            report = await self.check(account_id)
            if not report.consistent:
                logger.warning(
                    "Ledger skew on account %s: stored %d, log %d",
                    account_id,
                    report.stored_balance,
                    report.ledger_balance,
                )
            reports.append(report)
        return reports

    async def repair(self, account_id: str) -> ReconciliationReport:
        """Rewrite the stored figures from the log when they disagree."""
        account_id = validate_account_id(account_id)
        async with self.locks.hold(account_id):
            async with self.session_factory() as session:
                balances = SqlBalanceRepository(session)
                stored = await balances.get_balance(account_id)
                totals = await SqlTransactionLog(session).totals(account_id)
                report = self._report(stored, totals)
                if report.consistent:
                    return report

                await balances.overwrite(
                    stored,
                    balance=totals.net,
                    lifetime_earned=totals.earned,
                    lifetime_spent=totals.spent,
                )
                await session.commit()

        logger.warning(
            "Repaired account %s: balance %d -> %d (earned %d -> %d, spent %d -> %d)",
            account_id,
            report.stored_balance,
            report.ledger_balance,
            report.stored_earned,
            report.ledger_earned,
            report.stored_spent,
            report.ledger_spent,
        )
        report.repaired = True
        return report

    @staticmethod
    def _report(stored: AccountBalance, totals: LedgerTotals) -> ReconciliationReport:
        return ReconciliationReport(
            account_id=stored.account_id,
            stored_balance=stored.balance,
            ledger_balance=totals.net,
            stored_earned=stored.lifetime_earned,
            ledger_earned=totals.earned,
            stored_spent=stored.lifetime_spent,
            ledger_spent=totals.spent,
            transaction_count=totals.count,
        )
