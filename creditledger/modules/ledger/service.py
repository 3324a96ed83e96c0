"""Adjustment coordinator: the only writer of balances and transaction records.

Every adjustment runs as one database transaction per attempt:

1. replay the stored result if the idempotency key was already used;
2. read the balance snapshot (its ``version`` is the optimistic token);
3. resolve the applied delta according to the negative balance policy;
4. write the balance conditioned on the version, then append the record;
5. commit both together.

Writes for the same account are also serialized in-process through an
:class:`AccountLockRegistry`, so the version check only fires when another
process touched the row. A lost version race is retried with backoff.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, wait_exponential

from creditledger.core.config import LedgerSettings
from creditledger.infrastructure.database.repositories.balance_repository import SqlBalanceRepository
from creditledger.infrastructure.database.repositories.transaction_repository import SqlTransactionLog
from creditledger.infrastructure.database.session import Database
from creditledger.modules.directory import AccountDirectory, InvalidAccountError, StaticAccountDirectory

from .exceptions import (
    ConcurrentModification,
    InsufficientBalance,
    RetryExhausted,
    StorageUnavailable,
    ValidationError,
)
from .locks import AccountLockRegistry
from .models import AdjustmentResult, NegativeBalancePolicy, NewTransaction, TransactionType
from .repository import BalanceRepository, TransactionLog
from .validation import (
    coerce_policy,
    coerce_type,
    default_description,
    validate_account_id,
    validate_delta,
    validate_description,
    validate_idempotency_key,
)

logger = logging.getLogger(__name__)

# storage failures get one local retry, version conflicts get settings.max_attempts
STORAGE_RETRY_ATTEMPTS = 2


@dataclass(slots=True)
class AdjustmentRequest:
    account_id: str
    delta: int
    type: TransactionType
    description: str
    idempotency_key: Optional[str]
    policy: NegativeBalancePolicy


def resolve_delta(
    account_id: str,
    current: int,
    requested: int,
    policy: NegativeBalancePolicy,
) -> tuple[int, bool]:
    """Return ``(applied_delta, override)`` for a requested change.

    A result below zero is accepted only under ``override``, or when the
    balance is already negative and the change does not lower it further.
    Either way the record is flagged as an override. ``clamp`` never applies
    more than was requested and never turns a debit into a credit.
    """
    candidate = current + requested
    if candidate >= 0:
        return requested, False
    if policy is NegativeBalancePolicy.OVERRIDE:
        return requested, True
    if current < 0 and requested > 0:
        return requested, True
    if policy is NegativeBalancePolicy.CLAMP:
        if current < 0:
            return 0, True
        return -current, False
    raise InsufficientBalance(account_id, current, requested)


@dataclass(slots=True)
class AdjustmentService:
    session_factory: async_sessionmaker[AsyncSession]
    settings: LedgerSettings
    directory: AccountDirectory
    locks: AccountLockRegistry = field(default_factory=AccountLockRegistry)
    balance_repository: Callable[[AsyncSession], BalanceRepository] = SqlBalanceRepository
    transaction_log: Callable[[AsyncSession], TransactionLog] = SqlTransactionLog

    @classmethod
    def with_database(
        cls,
        database: Database,
        settings: LedgerSettings,
        *,
        directory: AccountDirectory | None = None,
        locks: AccountLockRegistry | None = None,
    ) -> "AdjustmentService":
        if directory is None:
            directory = StaticAccountDirectory(settings.account_id_pattern)
        if locks is None:
            locks = AccountLockRegistry()
        return cls(
            session_factory=database.session_factory,
            settings=settings,
            directory=directory,
            locks=locks,
        )

    async def adjust(
        self,
        account_id: str,
        delta: int,
        type: TransactionType | str = TransactionType.ADMIN_ADJUSTMENT,
        description: Optional[str] = None,
        idempotency_key: Optional[str] = None,
        *,
        policy: NegativeBalancePolicy | str = NegativeBalancePolicy.STRICT,
        timeout: Optional[float] = None,
    ) -> AdjustmentResult:
        """Apply ``delta`` to one account atomically.

        Raises ValidationError, InsufficientBalance, RetryExhausted or
        StorageUnavailable. On any failure neither the balance nor the log
        changed (except for an ambiguous commit failure, which is safe to
        retry with the same idempotency key).
        """
        request = await self._build_request(account_id, delta, type, description, idempotency_key, policy)
        limit = self.settings.operation_timeout if timeout is None else timeout
        try:
            result = await asyncio.wait_for(self._run_with_retry(request), timeout=limit)
        except asyncio.TimeoutError as exc:
            logger.warning("Adjustment of account %s timed out after %ss", request.account_id, limit)
            raise StorageUnavailable(
                f"Adjustment of account {request.account_id} timed out after {limit}s",
                ambiguous=True,
            ) from exc

        if not result.replayed:
            logger.info(
                "Adjusted account %s by %d (requested %d): %d -> %d [txn %d, %s]",
                result.account_id,
                result.applied_delta,
                result.requested_delta,
                result.previous_balance,
                result.new_balance,
                result.transaction_id,
                request.type.value,
            )
        return result

    async def _build_request(
        self,
        account_id,
        delta,
        type,
        description,
        idempotency_key,
        policy,
    ) -> AdjustmentRequest:
        account_id = validate_account_id(account_id)
        delta = validate_delta(delta, self.settings.max_delta)
        txn_type = coerce_type(type)
        description = validate_description(description, self.settings.max_description_length)
        idempotency_key = validate_idempotency_key(idempotency_key, self.settings.max_idempotency_key_length)
        try:
            await self.directory.validate(account_id)
        except InvalidAccountError as exc:
            raise ValidationError(str(exc)) from exc

        if description is None:
            description = default_description(delta, bulk=txn_type is TransactionType.BULK_ADMIN_ADJUSTMENT)
        return AdjustmentRequest(
            account_id=account_id,
            delta=delta,
            type=txn_type,
            description=description,
            idempotency_key=idempotency_key,
            policy=coerce_policy(policy),
        )

    async def _run_with_retry(self, request: AdjustmentRequest) -> AdjustmentResult:
        max_attempts = self.settings.max_attempts

        def should_stop(retry_state: RetryCallState) -> bool:
            exc = retry_state.outcome.exception() if retry_state.outcome else None
            if isinstance(exc, StorageUnavailable):
                if exc.ambiguous and request.idempotency_key is None:
                    return True
                return retry_state.attempt_number >= STORAGE_RETRY_ATTEMPTS
            return retry_state.attempt_number >= max_attempts

        def log_retry(retry_state: RetryCallState) -> None:
            exc = retry_state.outcome.exception() if retry_state.outcome else None
            logger.warning(
                "Retrying adjustment of account %s after attempt %d: %s",
                request.account_id,
                retry_state.attempt_number,
                exc,
            )

        retrying = AsyncRetrying(
            stop=should_stop,
            wait=wait_exponential(multiplier=self.settings.backoff_initial, max=self.settings.backoff_max),
            retry=retry_if_exception_type((ConcurrentModification, StorageUnavailable)),
            before_sleep=log_retry,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    result = await self._attempt(request)
        except ConcurrentModification as exc:
            attempts = retrying.statistics.get("attempt_number", max_attempts)
            logger.error("Giving up on account %s after %d attempts", request.account_id, attempts)
            raise RetryExhausted(request.account_id, attempts) from exc
        return result

    async def _attempt(self, request: AdjustmentRequest) -> AdjustmentResult:
        async with self.locks.hold(request.account_id):
            async with self.session_factory() as session:
                committing = False
                try:
                    result = await self._apply(session, request)
                    if not result.replayed:
                        committing = True
                        await session.commit()
                except IntegrityError as exc:
                    await session.rollback()
                    # another writer stored the same idempotency key first; the retry replays it
                    raise ConcurrentModification(request.account_id) from exc
                except (DBAPIError, PoolTimeoutError) as exc:
                    await session.rollback()
                    logger.error("Storage failure adjusting account %s: %s", request.account_id, exc)
                    raise StorageUnavailable(
                        f"Storage failure adjusting account {request.account_id}: {exc}",
                        ambiguous=committing,
                    ) from exc
        return result

    async def _apply(self, session: AsyncSession, request: AdjustmentRequest) -> AdjustmentResult:
        balances = self.balance_repository(session)
        log = self.transaction_log(session)

        if request.idempotency_key is not None:
            existing = await log.find_by_idempotency_key(request.account_id, request.idempotency_key)
            if existing is not None:
                if existing.requested_delta != request.delta:
                    logger.warning(
                        "Idempotency key %s for account %s reused with delta %d (stored %d)",
                        request.idempotency_key,
                        request.account_id,
                        request.delta,
                        existing.requested_delta,
                    )
                return AdjustmentResult.from_record(existing, replayed=True)

        current = await balances.get_balance(request.account_id)
        try:
            applied, override = resolve_delta(request.account_id, current.balance, request.delta, request.policy)
        except InsufficientBalance:
            logger.warning(
                "Rejected adjustment of account %s by %d: balance %d",
                request.account_id,
                request.delta,
                current.balance,
            )
            raise

        updated = await balances.apply_delta(
            request.account_id,
            applied,
            allow_negative=override,
            expected=current,
        )
        record = await log.append(
            NewTransaction(
                account_id=request.account_id,
                delta=applied,
                requested_delta=request.delta,
                resulting_balance=updated.balance,
                type=request.type,
                description=request.description,
                idempotency_key=request.idempotency_key,
                override=override,
            )
        )
        return AdjustmentResult.from_record(record)
