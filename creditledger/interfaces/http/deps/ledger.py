"""Ledger related dependency providers."""

from fastapi import Depends, Request

from creditledger.core.container import ApplicationContainer
from creditledger.modules.ledger.bulk import BulkAdjustmentService
from creditledger.modules.ledger.queries import LedgerQueryService
from creditledger.modules.ledger.reconcile import ReconciliationService
from creditledger.modules.ledger.service import AdjustmentService


def get_container(request: Request) -> ApplicationContainer:
    container = request.app.state.container
    if container is None:
        raise RuntimeError("Application container is not initialised")
    return container


def get_adjustment_service(container: ApplicationContainer = Depends(get_container)) -> AdjustmentService:
    return container.adjustment_service()


def get_bulk_service(container: ApplicationContainer = Depends(get_container)) -> BulkAdjustmentService:
    return container.bulk_service()


def get_query_service(container: ApplicationContainer = Depends(get_container)) -> LedgerQueryService:
    return container.query_service()


def get_reconciliation_service(container: ApplicationContainer = Depends(get_container)) -> ReconciliationService:
    return container.reconciliation_service()


__all__ = [
    "get_container",
    "get_adjustment_service",
    "get_bulk_service",
    "get_query_service",
    "get_reconciliation_service",
]
