"""Simple dependency container for wiring core services."""

from __future__ import annotations

from dataclasses import dataclass, field

from creditledger.core.config import Settings, get_settings
from creditledger.infrastructure.database.session import Database
from creditledger.modules.directory import AccountDirectory, StaticAccountDirectory
from creditledger.modules.ledger.bulk import BulkAdjustmentService
from creditledger.modules.ledger.locks import AccountLockRegistry
from creditledger.modules.ledger.queries import LedgerQueryService
from creditledger.modules.ledger.reconcile import ReconciliationService
from creditledger.modules.ledger.service import AdjustmentService


@dataclass(slots=True)
class ApplicationContainer:
    """Owns the storage handle and the per-account lock registry.

    Created by the process entry point; services are built on demand and all
    share the same database and locks.
    """

    settings: Settings
    database: Database
    directory: AccountDirectory
    locks: AccountLockRegistry = field(default_factory=AccountLockRegistry)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        directory: AccountDirectory | None = None,
    ) -> "ApplicationContainer":
        settings = settings or get_settings()
        if directory is None:
            directory = StaticAccountDirectory(settings.ledger.account_id_pattern)
        return cls(
            settings=settings,
            database=Database.from_settings(settings.database, debug=settings.debug),
            directory=directory,
        )

    async def startup(self) -> None:
        if self.settings.database.create_tables:
            await self.database.create_all()

    async def shutdown(self) -> None:
        await self.database.dispose()

    def adjustment_service(self) -> AdjustmentService:
        return AdjustmentService.with_database(
            self.database,
            self.settings.ledger,
            directory=self.directory,
            locks=self.locks,
        )

    def bulk_service(self) -> BulkAdjustmentService:
        return BulkAdjustmentService(coordinator=self.adjustment_service(), settings=self.settings.ledger)

    def query_service(self) -> LedgerQueryService:
        return LedgerQueryService.with_database(self.database, self.settings.ledger, directory=self.directory)

    def reconciliation_service(self) -> ReconciliationService:
        return ReconciliationService.with_database(self.database, locks=self.locks)


__all__ = ["ApplicationContainer"]
