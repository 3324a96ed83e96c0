"""Reusable FastAPI dependencies."""

from .ledger import (
    get_adjustment_service,
    get_bulk_service,
    get_container,
    get_query_service,
    get_reconciliation_service,
)

__all__ = [
    "get_container",
    "get_adjustment_service",
    "get_bulk_service",
    "get_query_service",
    "get_reconciliation_service",
]
