"""Administrative endpoints for credit balances and the transaction log."""
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Response

from creditledger.interfaces.http.deps import (
    get_adjustment_service,
    get_bulk_service,
    get_query_service,
    get_reconciliation_service,
)
from creditledger.modules.ledger import (
    AccountBalance,
    NegativeBalancePolicy,
    ReconciliationReport,
    TransactionRecord,
)
from creditledger.modules.ledger.bulk import BulkAdjustmentService
from creditledger.modules.ledger.queries import LedgerQueryService
from creditledger.modules.ledger.reconcile import ReconciliationService
from creditledger.modules.ledger.service import AdjustmentService
from creditledger.schemas import (
    AccountViewResponse,
    AdjustBalanceRequest,
    AdjustBalanceResponse,
    BalanceResponse,
    BulkAdjustItemResponse,
    BulkAdjustRequest,
    BulkAdjustResponse,
    LowBalanceAccountResponse,
    LowBalancePageResponse,
    ReconciliationResponse,
    TransactionPageResponse,
    TransactionResponse,
    TransactionTypeLiteral,
)

REPLAYED_HEADER = "Idempotent-Replayed"

router = APIRouter()


@router.post("/adjust", response_model=AdjustBalanceResponse)
async def adjust_balance(
    payload: AdjustBalanceRequest,
    response: Response,
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    service: AdjustmentService = Depends(get_adjustment_service),
) -> AdjustBalanceResponse:
    policy = NegativeBalancePolicy.OVERRIDE if payload.override else NegativeBalancePolicy.STRICT
    result = await service.adjust(
        payload.account_id,
        payload.delta,
        payload.type,
        payload.description,
        payload.idempotency_key or idempotency_key,
        policy=policy,
    )
    # replays return the original body unchanged
    if result.replayed:
        response.headers[REPLAYED_HEADER] = "true"
    return AdjustBalanceResponse(
        account_id=result.account_id,
        previous_balance=result.previous_balance,
        new_balance=result.new_balance,
        adjustment=result.applied_delta,
        requested_adjustment=result.requested_delta,
        transaction_id=result.transaction_id,
    )


@router.patch("/bulk", response_model=BulkAdjustResponse)
async def bulk_adjust(
    payload: BulkAdjustRequest,
    service: BulkAdjustmentService = Depends(get_bulk_service),
) -> BulkAdjustResponse:
    result = await service.bulk_adjust(
        payload.account_ids,
        payload.delta,
        payload.description,
        idempotency_key=payload.idempotency_key,
    )
    return BulkAdjustResponse(
        success=result.failed == 0,
        succeeded=result.succeeded,
        failed=result.failed,
        results=[BulkAdjustItemResponse.model_validate(item) for item in result.items],
    )


@router.get("/accounts/{account_id}", response_model=AccountViewResponse)
async def get_account_view(
    account_id: str,
    recent: Optional[int] = Query(default=None, ge=0),
    service: LedgerQueryService = Depends(get_query_service),
) -> AccountViewResponse:
    view = await service.get_account_view(account_id, recent)
    return AccountViewResponse(
        credits=_balance_to_response(view.balance),
        transactions=[_transaction_to_response(record) for record in view.recent_transactions],
    )


@router.get("/accounts/{account_id}/balance", response_model=BalanceResponse)
async def get_balance(
    account_id: str,
    service: LedgerQueryService = Depends(get_query_service),
) -> BalanceResponse:
    return _balance_to_response(await service.get_balance(account_id))


@router.get("/accounts/{account_id}/transactions", response_model=TransactionPageResponse)
async def list_account_transactions(
    account_id: str,
    page: int = 1,
    page_size: Optional[int] = None,
    type: Optional[TransactionTypeLiteral] = None,
    service: LedgerQueryService = Depends(get_query_service),
) -> TransactionPageResponse:
    result = await service.list_transactions(account_id, page, page_size, type)
    return TransactionPageResponse(
        transactions=[_transaction_to_response(record) for record in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
    )


@router.get("/accounts/{account_id}/history", response_model=list[TransactionResponse])
async def get_account_history(
    account_id: str,
    limit: Optional[int] = None,
    before: Optional[int] = None,
    service: LedgerQueryService = Depends(get_query_service),
) -> list[TransactionResponse]:
    records = await service.get_history(account_id, limit, before)
    return [_transaction_to_response(record) for record in records]


@router.get("/transactions", response_model=TransactionPageResponse)
async def list_transactions(
    account_id: Optional[str] = None,
    type: Optional[TransactionTypeLiteral] = None,
    page: int = 1,
    page_size: Optional[int] = None,
    service: LedgerQueryService = Depends(get_query_service),
) -> TransactionPageResponse:
    result = await service.list_transactions(account_id, page, page_size, type)
    return TransactionPageResponse(
        transactions=[_transaction_to_response(record) for record in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
    )


@router.get("/low-balance", response_model=LowBalancePageResponse)
async def list_low_balance(
    threshold: Optional[int] = None,
    page: int = 1,
    page_size: Optional[int] = None,
    service: LedgerQueryService = Depends(get_query_service),
) -> LowBalancePageResponse:
    result = await service.list_low_balance(threshold, page, page_size)
    accounts = []
    for entry in result.items:
        profile = entry.profile
        accounts.append(
            LowBalanceAccountResponse(
                **_balance_to_response(entry.balance).model_dump(),
                display_name=profile.display_name if profile else None,
                email=profile.email if profile else None,
            )
        )
    return LowBalancePageResponse(
        accounts=accounts,
        threshold=service.settings.low_balance_threshold if threshold is None else threshold,
        total=result.total,
        page=result.page,
        page_size=result.page_size,
    )


@router.get("/accounts/{account_id}/reconcile", response_model=ReconciliationResponse)
async def check_account(
    account_id: str,
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> ReconciliationResponse:
    return _report_to_response(await service.check(account_id))


@router.post("/accounts/{account_id}/reconcile", response_model=ReconciliationResponse)
async def repair_account(
    account_id: str,
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> ReconciliationResponse:
    return _report_to_response(await service.repair(account_id))


def _balance_to_response(balance: AccountBalance) -> BalanceResponse:
    return BalanceResponse(
        account_id=balance.account_id,
        balance=balance.balance,
        lifetime_earned=balance.lifetime_earned,
        lifetime_spent=balance.lifetime_spent,
        version=balance.version,
        updated_at=balance.updated_at,
    )


def _transaction_to_response(record: TransactionRecord) -> TransactionResponse:
    return TransactionResponse(
        id=record.id,
        account_id=record.account_id,
        delta=record.delta,
        requested_delta=record.requested_delta,
        resulting_balance=record.resulting_balance,
        type=record.type.value,
        description=record.description,
        idempotency_key=record.idempotency_key,
        override=record.override,
        created_at=record.created_at,
    )


def _report_to_response(report: ReconciliationReport) -> ReconciliationResponse:
    return ReconciliationResponse(
        account_id=report.account_id,
        consistent=report.consistent,
        repaired=report.repaired,
        stored_balance=report.stored_balance,
        ledger_balance=report.ledger_balance,
        stored_earned=report.stored_earned,
        ledger_earned=report.ledger_earned,
        stored_spent=report.stored_spent,
        ledger_spent=report.ledger_spent,
        transaction_count=report.transaction_count,
    )
