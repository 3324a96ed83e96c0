"""Repository protocols for the ledger store and the transaction log."""

from __future__ import annotations

from typing import Protocol, Sequence

from .models import AccountBalance, LedgerTotals, NewTransaction, TransactionRecord, TransactionType


class BalanceRepository(Protocol):
    """Durable per-account balances. One row per account, never deleted."""

    async def get_balance(self, account_id: str) -> AccountBalance:
        ...

    async def apply_delta(
        self,
        account_id: str,
        delta: int,
        *,
        allow_negative: bool = False,
        expected: AccountBalance | None = None,
    ) -> AccountBalance:
        ...

    async def overwrite(
        self,
        expected: AccountBalance,
        *,
        balance: int,
        lifetime_earned: int,
        lifetime_spent: int,
    ) -> AccountBalance:
        ...

    async def list_below(self, threshold: int, limit: int, offset: int) -> Sequence[AccountBalance]:
        ...

    async def count_below(self, threshold: int) -> int:
        ...

    async def list_account_ids(self) -> Sequence[str]:
        ...


class TransactionLog(Protocol):
    """Append-only transaction records. There is no update or delete."""

    async def append(self, record: NewTransaction) -> TransactionRecord:
        ...

    async def get(self, transaction_id: int) -> TransactionRecord | None:
        ...

    async def find_by_idempotency_key(self, account_id: str, idempotency_key: str) -> TransactionRecord | None:
        ...

    async def get_history(
        self,
        account_id: str,
        limit: int,
        before: int | None = None,
    ) -> Sequence[TransactionRecord]:
        ...

    async def list_page(
        self,
        account_id: str | None,
        limit: int,
        offset: int,
        type: TransactionType | None = None,
    ) -> Sequence[TransactionRecord]:
        ...

    async def count(self, account_id: str | None, type: TransactionType | None = None) -> int:
        ...

    async def totals(self, account_id: str) -> LedgerTotals:
        ...

    async def list_account_ids(self) -> Sequence[str]:
        ...
