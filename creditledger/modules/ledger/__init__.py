"""Ledger domain exports

Services live in their own modules (``service``, ``bulk``, ``queries``,
``reconcile``) because they import the SQL repositories, which import this
package's models.
"""

from .exceptions import (
    ConcurrentModification,
    InsufficientBalance,
    LedgerError,
    RetryExhausted,
    StorageUnavailable,
    ValidationError,
)
from .models import (
    AccountBalance,
    AccountView,
    AdjustmentResult,
    BulkAdjustResult,
    BulkItemResult,
    LedgerTotals,
    LowBalanceEntry,
    NegativeBalancePolicy,
    NewTransaction,
    Page,
    ReconciliationReport,
    TransactionRecord,
    TransactionType,
)

__all__ = [
    "ConcurrentModification",
    "InsufficientBalance",
    "LedgerError",
    "RetryExhausted",
    "StorageUnavailable",
    "ValidationError",
    "AccountBalance",
    "AccountView",
    "AdjustmentResult",
    "BulkAdjustResult",
    "BulkItemResult",
    "LedgerTotals",
    "LowBalanceEntry",
    "NegativeBalancePolicy",
    "NewTransaction",
    "Page",
    "ReconciliationReport",
    "TransactionRecord",
    "TransactionType",
]
