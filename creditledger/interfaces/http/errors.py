"""Translate ledger exceptions into JSON error responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from creditledger.modules.ledger.exceptions import (
    InsufficientBalance,
    LedgerError,
    RetryExhausted,
    StorageUnavailable,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[LedgerError], int] = {
    ValidationError: 422,
    InsufficientBalance: 409,
    RetryExhausted: 409,
    StorageUnavailable: 503,
}


def status_for(exc: LedgerError) -> int:
    for error_type, status_code in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return status_code
    return 500


async def ledger_exception_handler(request: Request, exc: LedgerError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    body = {"detail": {"code": exc.code, "message": str(exc)}}
    headers = {"Retry-After": "1"} if isinstance(exc, StorageUnavailable) else None
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LedgerError, ledger_exception_handler)


__all__ = ["register_exception_handlers", "status_for"]
