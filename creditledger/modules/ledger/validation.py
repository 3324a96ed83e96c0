"""Boundary checks applied before any request reaches storage."""

from __future__ import annotations

from typing import Any, Optional

from .exceptions import ValidationError
from .models import NegativeBalancePolicy, TransactionType

MAX_ACCOUNT_ID_LENGTH = 64
MAX_STORED_INT = 2**63 - 1
MIN_STORED_INT = -(2**63)


def validate_account_id(account_id: Any) -> str:
    if not isinstance(account_id, str) or not account_id.strip():
        raise ValidationError("account_id must be a non-empty string")
    if len(account_id) > MAX_ACCOUNT_ID_LENGTH:
        raise ValidationError(f"account_id longer than {MAX_ACCOUNT_ID_LENGTH} characters")
    return account_id


def validate_delta(delta: Any, max_delta: Optional[int] = None) -> int:
    # bool is an int subclass; True is not a credit amount
    if isinstance(delta, bool) or not isinstance(delta, int):
        raise ValidationError(f"delta must be an integer, got {delta!r}")
    if delta == 0:
        raise ValidationError("delta must be non-zero")
    if max_delta is not None and abs(delta) > max_delta:
        raise ValidationError(f"delta magnitude must not exceed {max_delta}")
    return delta


def check_stored_range(account_id: str, **values: int) -> None:
    for name, value in values.items():
        if not MIN_STORED_INT <= value <= MAX_STORED_INT:
            raise ValidationError(f"{name} of account {account_id} would overflow: {value}")


def coerce_type(value: Any) -> TransactionType:
    try:
        return TransactionType(value)
    except ValueError as exc:
        allowed = ", ".join(t.value for t in TransactionType)
        raise ValidationError(f"Unknown transaction type {value!r}; expected one of {allowed}") from exc


def coerce_policy(value: Any) -> NegativeBalancePolicy:
    try:
        return NegativeBalancePolicy(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown negative balance policy {value!r}") from exc


def validate_description(description: Optional[str], max_length: int) -> Optional[str]:
    if description is None:
        return None
    if not isinstance(description, str):
        raise ValidationError("description must be a string")
    description = description.strip()
    if len(description) > max_length:
        raise ValidationError(f"description longer than {max_length} characters")
    return description or None


def validate_idempotency_key(key: Optional[str], max_length: int) -> Optional[str]:
    if key is None:
        return None
    if not isinstance(key, str) or not key.strip():
        raise ValidationError("idempotency_key must be a non-empty string")
    if len(key) > max_length:
        raise ValidationError(f"idempotency_key longer than {max_length} characters")
    return key


def validate_page(page: int, page_size: int, max_page_size: int) -> tuple[int, int]:
    """Return (limit, offset) for a 1-based page."""
    if page < 1:
        raise ValidationError("page must be >= 1")
    if page_size < 1 or page_size > max_page_size:
        raise ValidationError(f"page_size must be between 1 and {max_page_size}")
    return page_size, (page - 1) * page_size


def default_description(delta: int, *, bulk: bool = False) -> str:
    if bulk:
        return "Bulk admin adjustment"
    sign = "+" if delta > 0 else ""
    return f"Admin adjustment: {sign}{delta} credits"
