"""Pydantic schemas used by the HTTP interface."""
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator

TransactionTypeLiteral = Literal["purchase", "consumption", "admin_adjustment", "bulk_admin_adjustment"]


class AdjustBalanceRequest(BaseModel):
    account_id: str = Field(..., min_length=1, max_length=64)
    delta: StrictInt
    type: TransactionTypeLiteral = "admin_adjustment"
    description: Optional[str] = Field(default=None, max_length=255)
    idempotency_key: Optional[str] = Field(default=None, min_length=1, max_length=128)
    override: bool = False

    @field_validator("delta")
    @classmethod
    def _non_zero(cls, value: int) -> int:
        if value == 0:
            raise ValueError("delta must be non-zero")
        return value


class AdjustBalanceResponse(BaseModel):
    success: bool = True
    account_id: str
    previous_balance: int
    new_balance: int
    adjustment: int
    requested_adjustment: int
    transaction_id: int

    model_config = ConfigDict(from_attributes=True)


class BulkAdjustRequest(BaseModel):
    account_ids: list[str] = Field(..., min_length=1)
    delta: StrictInt
    description: Optional[str] = Field(default=None, max_length=255)
    idempotency_key: Optional[str] = Field(default=None, min_length=1, max_length=63)

    @field_validator("delta")
    @classmethod
    def _non_zero(cls, value: int) -> int:
        if value == 0:
            raise ValueError("delta must be non-zero")
        return value


class BulkAdjustItemResponse(BaseModel):
    account_id: str
    new_balance: Optional[int] = None
    applied_delta: Optional[int] = None
    transaction_id: Optional[int] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class BulkAdjustResponse(BaseModel):
    success: bool
    succeeded: int
    failed: int
    results: list[BulkAdjustItemResponse] = Field(default_factory=list)


class BalanceResponse(BaseModel):
    account_id: str
    balance: int
    lifetime_earned: int
    lifetime_spent: int
    version: int
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TransactionResponse(BaseModel):
    id: int
    account_id: str
    delta: int
    requested_delta: int
    resulting_balance: int
    type: TransactionTypeLiteral
    description: str
    idempotency_key: Optional[str] = None
    override: bool = False
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TransactionPageResponse(BaseModel):
    transactions: list[TransactionResponse] = Field(default_factory=list)
    total: int
    page: int
    page_size: int


class AccountViewResponse(BaseModel):
    credits: BalanceResponse
    transactions: list[TransactionResponse] = Field(default_factory=list)


class LowBalanceAccountResponse(BalanceResponse):
    display_name: Optional[str] = None
    email: Optional[str] = None


class LowBalancePageResponse(BaseModel):
    accounts: list[LowBalanceAccountResponse] = Field(default_factory=list)
    threshold: int
    total: int
    page: int
    page_size: int


class ReconciliationResponse(BaseModel):
    account_id: str
    consistent: bool
    repaired: bool
    stored_balance: int
    ledger_balance: int
    stored_earned: int
    ledger_earned: int
    stored_spent: int
    ledger_spent: int
    transaction_count: int

    model_config = ConfigDict(from_attributes=True)


class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    detail: ErrorDetail


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
