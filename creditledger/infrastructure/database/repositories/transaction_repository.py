"""SQLAlchemy implementation of the append-only transaction log"""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import and_, case, desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from creditledger.db.models import CreditTransaction, utc_now
from creditledger.modules.ledger.models import (
    LedgerTotals,
    NewTransaction,
    TransactionRecord,
    TransactionType,
)


class SqlTransactionLog:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def append(self, record: NewTransaction) -> TransactionRecord:
        tx = CreditTransaction(
            account_id=record.account_id,
            delta=record.delta,
            requested_delta=record.requested_delta,
            resulting_balance=record.resulting_balance,
            type=record.type.value,
            description=record.description,
            idempotency_key=record.idempotency_key,
            override=record.override,
            created_at=utc_now(),
        )
        self.session.add(tx)
        await self.session.flush()
        return self._to_domain(tx)

    async def get(self, transaction_id: int) -> TransactionRecord | None:
        row = await self.session.get(CreditTransaction, transaction_id)
        return self._to_domain(row) if row else None

    async def find_by_idempotency_key(self, account_id: str, idempotency_key: str) -> TransactionRecord | None:
        stmt = select(CreditTransaction).where(
            CreditTransaction.account_id == account_id,
            CreditTransaction.idempotency_key == idempotency_key,
        )
        result = await self.session.execute(stmt)
        row = result.scalars().first()
        return self._to_domain(row) if row else None

    async def get_history(
        self,
        account_id: str,
        limit: int,
        before: int | None = None,
    ) -> Sequence[TransactionRecord]:
        stmt = select(CreditTransaction).where(CreditTransaction.account_id == account_id)
        if before is not None:
            anchor = await self.session.get(CreditTransaction, before)
            if anchor is None or anchor.account_id != account_id:
                return []
            stmt = stmt.where(
                or_(
                    CreditTransaction.created_at < anchor.created_at,
                    and_(
                        CreditTransaction.created_at == anchor.created_at,
                        CreditTransaction.id < anchor.id,
                    ),
                )
            )
        stmt = stmt.order_by(desc(CreditTransaction.created_at), desc(CreditTransaction.id)).limit(limit)
        result = await self.session.execute(stmt)
        return [self._to_domain(row) for row in result.scalars().all()]

    async def list_page(
        self,
        account_id: str | None,
        limit: int,
        offset: int,
        type: TransactionType | None = None,
    ) -> Sequence[TransactionRecord]:
        stmt = self._filtered(select(CreditTransaction), account_id, type)
        stmt = (
            stmt.order_by(desc(CreditTransaction.created_at), desc(CreditTransaction.id))
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [self._to_domain(row) for row in result.scalars().all()]

    async def count(self, account_id: str | None, type: TransactionType | None = None) -> int:
        stmt = self._filtered(select(func.count()).select_from(CreditTransaction), account_id, type)
        return (await self.session.execute(stmt)).scalar_one()

    async def totals(self, account_id: str) -> LedgerTotals:
        stmt = select(
            func.coalesce(func.sum(CreditTransaction.delta), 0),
            func.coalesce(
                func.sum(case((CreditTransaction.delta > 0, CreditTransaction.delta), else_=0)), 0
            ),
            func.coalesce(
                func.sum(case((CreditTransaction.delta < 0, -CreditTransaction.delta), else_=0)), 0
            ),
            func.count(CreditTransaction.id),
        ).where(CreditTransaction.account_id == account_id)
        net, earned, spent, count = (await self.session.execute(stmt)).one()
        return LedgerTotals(net=int(net), earned=int(earned), spent=int(spent), count=int(count))

    async def list_account_ids(self) -> Sequence[str]:
        stmt = select(CreditTransaction.account_id).distinct().order_by(CreditTransaction.account_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    def _filtered(stmt, account_id: str | None, type: TransactionType | None):
        if account_id is not None:
            stmt = stmt.where(CreditTransaction.account_id == account_id)
        if type is not None:
            stmt = stmt.where(CreditTransaction.type == type.value)
        return stmt

    @staticmethod
    def _to_domain(model: CreditTransaction) -> TransactionRecord:
        return TransactionRecord(
            id=model.id,
            account_id=model.account_id,
            delta=model.delta,
            requested_delta=model.requested_delta,
            resulting_balance=model.resulting_balance,
            type=TransactionType(model.type),
            description=model.description,
            idempotency_key=model.idempotency_key,
            override=model.override,
            created_at=model.created_at,
        )
