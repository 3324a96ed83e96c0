"""Bulk adjustment orchestrator."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from creditledger.core.config import LedgerSettings

from .exceptions import LedgerError, ValidationError
from .models import BulkAdjustResult, BulkItemResult, NegativeBalancePolicy, TransactionType
from .service import AdjustmentService
from .validation import (
    MAX_ACCOUNT_ID_LENGTH,
    default_description,
    validate_delta,
    validate_idempotency_key,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BulkAdjustmentService:
    """Applies one delta to many accounts using the ``clamp`` policy.

    Each account is an independent adjustment with its own timeout; a failing
    or slow account is reported in its own item and never fails the batch.
    """

    coordinator: AdjustmentService
    settings: LedgerSettings

    async def bulk_adjust(
        self,
        account_ids: Iterable[str],
        delta: int,
        description: Optional[str] = None,
        *,
        idempotency_key: Optional[str] = None,
        timeout_per_account: Optional[float] = None,
    ) -> BulkAdjustResult:
        ids = list(account_ids)
        if not ids:
            raise ValidationError("account_ids must not be empty")
        if len(ids) > self.settings.bulk_max_accounts:
            raise ValidationError(f"at most {self.settings.bulk_max_accounts} accounts per bulk adjustment")
        delta = validate_delta(delta, self.settings.max_delta)
        # per-account keys are "<batch key>:<account id>" and must fit the stored key length
        idempotency_key = validate_idempotency_key(
            idempotency_key,
            self.settings.max_idempotency_key_length - MAX_ACCOUNT_ID_LENGTH - 1,
        )
        description = description or default_description(delta, bulk=True)

        semaphore = asyncio.Semaphore(self.settings.bulk_concurrency)

        async def run(account_id: str) -> BulkItemResult:
            async with semaphore:
                return await self._adjust_one(account_id, delta, description, idempotency_key, timeout_per_account)

        items = await asyncio.gather(*(run(account_id) for account_id in ids))
        result = BulkAdjustResult(items=list(items))
        logger.info(
            "Bulk adjustment of %d over %d accounts: %d succeeded, %d failed",
            delta,
            len(ids),
            result.succeeded,
            result.failed,
        )
        return result

    async def _adjust_one(
        self,
        account_id: str,
        delta: int,
        description: str,
        idempotency_key: Optional[str],
        timeout: Optional[float],
    ) -> BulkItemResult:
        item_key = f"{idempotency_key}:{account_id}" if idempotency_key else None
        try:
            outcome = await self.coordinator.adjust(
                account_id,
                delta,
                TransactionType.BULK_ADMIN_ADJUSTMENT,
                description,
                item_key,
                policy=NegativeBalancePolicy.CLAMP,
                timeout=timeout,
            )
        except LedgerError as exc:
            logger.warning("Bulk adjustment failed for account %s: %s", account_id, exc)
            return BulkItemResult(account_id=account_id, error=str(exc), error_code=exc.code)
        except Exception as exc:
            logger.exception("Unexpected failure in bulk adjustment for account %s", account_id)
            return BulkItemResult(account_id=account_id, error=str(exc) or type(exc).__name__, error_code="internal_error")

        return BulkItemResult(
            account_id=account_id,
            new_balance=outcome.new_balance,
            applied_delta=outcome.applied_delta,
            transaction_id=outcome.transaction_id,
        )
