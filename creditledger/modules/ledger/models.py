"""Domain models for ledger operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Generic, Optional, TypeVar

from creditledger.modules.directory.models import AccountProfile

T = TypeVar("T")


class TransactionType(str, Enum):
    PURCHASE = "purchase"
    CONSUMPTION = "consumption"
    ADMIN_ADJUSTMENT = "admin_adjustment"
    BULK_ADMIN_ADJUSTMENT = "bulk_admin_adjustment"


class NegativeBalancePolicy(str, Enum):
    """How an adjustment treats a result below zero.

    ``strict`` rejects it, ``clamp`` shrinks the applied delta so the balance
    lands on zero, ``override`` lets the balance go negative.
    """

    STRICT = "strict"
    CLAMP = "clamp"
    OVERRIDE = "override"


@dataclass(slots=True)
class AccountBalance:
    account_id: str
    balance: int
    lifetime_earned: int
    lifetime_spent: int
    version: int
    updated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def empty(cls, account_id: str) -> "AccountBalance":
        return cls(account_id=account_id, balance=0, lifetime_earned=0, lifetime_spent=0, version=0)

    @property
    def exists(self) -> bool:
        return self.version > 0


@dataclass(slots=True)
class NewTransaction:
    account_id: str
    delta: int
    requested_delta: int
    resulting_balance: int
    type: TransactionType
    description: str
    idempotency_key: Optional[str] = None
    override: bool = False


@dataclass(slots=True)
class TransactionRecord:
    id: int
    account_id: str
    delta: int
    requested_delta: int
    resulting_balance: int
    type: TransactionType
    description: str
    idempotency_key: Optional[str]
    override: bool
    created_at: datetime

    @property
    def previous_balance(self) -> int:
        return self.resulting_balance - self.delta


@dataclass(slots=True)
class AdjustmentResult:
    account_id: str
    previous_balance: int
    new_balance: int
    transaction_id: int
    applied_delta: int
    requested_delta: int
    replayed: bool = False

    @classmethod
    def from_record(cls, record: TransactionRecord, *, replayed: bool = False) -> "AdjustmentResult":
        return cls(
            account_id=record.account_id,
            previous_balance=record.previous_balance,
            new_balance=record.resulting_balance,
            transaction_id=record.id,
            applied_delta=record.delta,
            requested_delta=record.requested_delta,
            replayed=replayed,
        )

    @property
    def clamped(self) -> bool:
        return self.applied_delta != self.requested_delta


@dataclass(slots=True)
class BulkItemResult:
    account_id: str
    new_balance: Optional[int] = None
    applied_delta: Optional[int] = None
    transaction_id: Optional[int] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class BulkAdjustResult:
    items: list[BulkItemResult] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for item in self.items if item.ok)

    @property
    def failed(self) -> int:
        return len(self.items) - self.succeeded


@dataclass(slots=True)
class Page(Generic[T]):
    items: list[T]
    page: int
    page_size: int
    total: int

    @property
    def has_more(self) -> bool:
        return self.page * self.page_size < self.total


@dataclass(slots=True)
class LowBalanceEntry:
    balance: AccountBalance
    profile: Optional[AccountProfile] = None


@dataclass(slots=True)
class AccountView:
    balance: AccountBalance
    recent_transactions: list[TransactionRecord]


@dataclass(slots=True)
class LedgerTotals:
    net: int
    earned: int
    spent: int
    count: int


@dataclass(slots=True)
class ReconciliationReport:
    account_id: str
    stored_balance: int
    ledger_balance: int
    stored_earned: int
    ledger_earned: int
    stored_spent: int
    ledger_spent: int
    transaction_count: int
    repaired: bool = False

    @property
    def consistent(self) -> bool:
        return (
            self.stored_balance == self.ledger_balance
            and self.stored_earned == self.ledger_earned
            and self.stored_spent == self.ledger_spent
        )

    @property
    def skew(self) -> int:
        return self.stored_balance - self.ledger_balance
