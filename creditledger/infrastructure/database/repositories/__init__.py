"""SQLAlchemy-backed repository implementations."""

from .balance_repository import SqlBalanceRepository
from .transaction_repository import SqlTransactionLog

__all__ = [
    "SqlBalanceRepository",
    "SqlTransactionLog",
]
