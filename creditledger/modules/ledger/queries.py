"""Read-side queries over balances and the transaction log."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from creditledger.core.config import LedgerSettings
from creditledger.infrastructure.database.repositories.balance_repository import SqlBalanceRepository
from creditledger.infrastructure.database.repositories.transaction_repository import SqlTransactionLog
from creditledger.infrastructure.database.session import Database
from creditledger.modules.directory import AccountDirectory, AccountDirectoryError, AccountProfile

from .exceptions import ValidationError
from .models import AccountBalance, AccountView, LowBalanceEntry, Page, TransactionRecord, TransactionType
from .validation import coerce_type, validate_account_id, validate_page

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LedgerQueryService:
    session_factory: async_sessionmaker[AsyncSession]
    settings: LedgerSettings
    directory: Optional[AccountDirectory] = None

    @classmethod
    def with_database(
        cls,
        database: Database,
        settings: LedgerSettings,
        *,
        directory: AccountDirectory | None = None,
    ) -> "LedgerQueryService":
        return cls(session_factory=database.session_factory, settings=settings, directory=directory)

    async def get_balance(self, account_id: str) -> AccountBalance:
        account_id = validate_account_id(account_id)
        async with self.session_factory() as session:
            return await SqlBalanceRepository(session).get_balance(account_id)

    async def get_account_view(self, account_id: str, recent: Optional[int] = None) -> AccountView:
        account_id = validate_account_id(account_id)
        recent = self.settings.recent_transactions if recent is None else recent
        if recent < 0:
            raise ValidationError("recent must be >= 0")
        async with self.session_factory() as session:
            balance = await SqlBalanceRepository(session).get_balance(account_id)
            transactions = await SqlTransactionLog(session).get_history(account_id, recent) if recent else []
        return AccountView(balance=balance, recent_transactions=list(transactions))

    async def get_history(
        self,
        account_id: str,
        limit: Optional[int] = None,
        before: Optional[int] = None,
    ) -> list[TransactionRecord]:
        account_id = validate_account_id(account_id)
        limit = self.settings.default_page_size if limit is None else limit
        validate_page(1, limit, self.settings.max_page_size)
        async with self.session_factory() as session:
            return list(await SqlTransactionLog(session).get_history(account_id, limit, before))

    async def list_transactions(
        self,
        account_id: Optional[str],
        page: int = 1,
        page_size: Optional[int] = None,
        type: TransactionType | str | None = None,
    ) -> Page[TransactionRecord]:
        """Newest-first page of one account's records, or of every account when ``account_id`` is None."""
        if account_id is not None:
            account_id = validate_account_id(account_id)
        txn_type = coerce_type(type) if type is not None else None
        page_size = self.settings.default_page_size if page_size is None else page_size
        limit, offset = validate_page(page, page_size, self.settings.max_page_size)
        async with self.session_factory() as session:
            log = SqlTransactionLog(session)
            total = await log.count(account_id, txn_type)
            items = await log.list_page(account_id, limit, offset, txn_type)
        return Page(items=list(items), page=page, page_size=page_size, total=total)

    async def list_low_balance(
        self,
        threshold: Optional[int] = None,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> Page[LowBalanceEntry]:
        """Accounts with ``balance < threshold``, lowest balance first.

        Accounts that never transacted have no stored balance and are not listed.
        """
        threshold = self.settings.low_balance_threshold if threshold is None else threshold
        page_size = self.settings.default_page_size if page_size is None else page_size
        limit, offset = validate_page(page, page_size, self.settings.max_page_size)
        async with self.session_factory() as session:
            balances = SqlBalanceRepository(session)
            total = await balances.count_below(threshold)
            rows = await balances.list_below(threshold, limit, offset)

        profiles = await self._describe([row.account_id for row in rows])
        items = [LowBalanceEntry(balance=row, profile=profiles.get(row.account_id)) for row in rows]
        return Page(items=items, page=page, page_size=page_size, total=total)

    async def _describe(self, account_ids: Sequence[str]) -> dict[str, AccountProfile]:
        if self.directory is None or not account_ids:
            return {}
        try:
            return await self.directory.describe(account_ids)
        except AccountDirectoryError as exc:
            logger.warning("Account directory lookup failed, listing without profiles: %s", exc)
            return {}
