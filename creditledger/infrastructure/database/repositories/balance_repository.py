"""SQLAlchemy implementation of the ledger store"""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from creditledger.db.models import CreditBalance, utc_now
from creditledger.modules.ledger.exceptions import ConcurrentModification, InsufficientBalance
from creditledger.modules.ledger.models import AccountBalance
from creditledger.modules.ledger.validation import check_stored_range


class SqlBalanceRepository:
    """Balance rows guarded by an optimistic ``version`` column.

    Every write is conditioned on the version the caller read, so two
    writers that read the same snapshot cannot both succeed.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_balance(self, account_id: str) -> AccountBalance:
        stmt = select(CreditBalance).where(CreditBalance.account_id == account_id)
        result = await self.session.execute(stmt)
        row = result.scalars().first()
        return self._to_domain(row) if row else AccountBalance.empty(account_id)

    async def apply_delta(
        self,
        account_id: str,
        delta: int,
        *,
        allow_negative: bool = False,
        expected: AccountBalance | None = None,
    ) -> AccountBalance:
        current = expected if expected is not None else await self.get_balance(account_id)
        candidate = current.balance + delta
        if candidate < 0 and not allow_negative:
            raise InsufficientBalance(account_id, current.balance, delta)

        earned = current.lifetime_earned + max(delta, 0)
        spent = current.lifetime_spent + max(-delta, 0)
        check_stored_range(account_id, balance=candidate, lifetime_earned=earned, lifetime_spent=spent)
        now = utc_now()

        if not current.exists:
            return await self._insert(account_id, candidate, earned, spent, now)

        stmt = (
            update(CreditBalance)
            .where(CreditBalance.account_id == account_id)
            .where(CreditBalance.version == current.version)
            .values(
                balance=candidate,
                lifetime_earned=earned,
                lifetime_spent=spent,
                version=current.version + 1,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            raise ConcurrentModification(account_id, expected_version=current.version)

        return AccountBalance(
            account_id=account_id,
            balance=candidate,
            lifetime_earned=earned,
            lifetime_spent=spent,
            version=current.version + 1,
            updated_at=now,
            created_at=current.created_at,
        )

    async def overwrite(
        self,
        expected: AccountBalance,
        *,
        balance: int,
        lifetime_earned: int,
        lifetime_spent: int,
    ) -> AccountBalance:
        check_stored_range(
            expected.account_id,
            balance=balance,
            lifetime_earned=lifetime_earned,
            lifetime_spent=lifetime_spent,
        )
        now = utc_now()
        if not expected.exists:
            return await self._insert(expected.account_id, balance, lifetime_earned, lifetime_spent, now)

        stmt = (
            update(CreditBalance)
            .where(CreditBalance.account_id == expected.account_id)
            .where(CreditBalance.version == expected.version)
            .values(
                balance=balance,
                lifetime_earned=lifetime_earned,
                lifetime_spent=lifetime_spent,
                version=expected.version + 1,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            raise ConcurrentModification(expected.account_id, expected_version=expected.version)
        return AccountBalance(
            account_id=expected.account_id,
            balance=balance,
            lifetime_earned=lifetime_earned,
            lifetime_spent=lifetime_spent,
            version=expected.version + 1,
            updated_at=now,
            created_at=expected.created_at,
        )

    async def list_below(self, threshold: int, limit: int, offset: int) -> Sequence[AccountBalance]:
        stmt = (
            select(CreditBalance)
            .where(CreditBalance.balance < threshold)
            .order_by(CreditBalance.balance.asc(), CreditBalance.account_id.asc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [self._to_domain(row) for row in result.scalars().all()]

    async def count_below(self, threshold: int) -> int:
        stmt = select(func.count()).select_from(CreditBalance).where(CreditBalance.balance < threshold)
        return (await self.session.execute(stmt)).scalar_one()

    async def list_account_ids(self) -> Sequence[str]:
        stmt = select(CreditBalance.account_id).order_by(CreditBalance.account_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def _insert(self, account_id: str, balance: int, earned: int, spent: int, now) -> AccountBalance:
        row = CreditBalance(
            account_id=account_id,
            balance=balance,
            lifetime_earned=earned,
            lifetime_spent=spent,
            version=1,
            created_at=now,
            updated_at=now,
        )
        self.session.add(row)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            # another writer created the row after our read
            raise ConcurrentModification(account_id, expected_version=0) from exc
        return self._to_domain(row)

    @staticmethod
    def _to_domain(model: CreditBalance) -> AccountBalance:
        return AccountBalance(
            account_id=model.account_id,
            balance=model.balance,
            lifetime_earned=model.lifetime_earned,
            lifetime_spent=model.lifetime_spent,
            version=model.version,
            updated_at=model.updated_at,
            created_at=model.created_at,
        )
