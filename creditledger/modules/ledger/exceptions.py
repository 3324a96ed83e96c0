"""Ledger domain specific exceptions."""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for ledger domain errors."""

    code = "ledger_error"


class ValidationError(LedgerError):
    """Raised when an account id, delta or request field is malformed. Never retried."""

    code = "validation_error"


class InsufficientBalance(LedgerError):
    """Raised when an adjustment would drive a balance below zero without an override."""

    code = "insufficient_balance"

    def __init__(self, account_id: str, balance: int, delta: int) -> None:
        super().__init__(
            f"Account {account_id} has balance {balance}; adjustment of {delta} would go below 0"
        )
        self.account_id = account_id
        self.balance = balance
        self.delta = delta


class ConcurrentModification(LedgerError):
    """Raised when the balance row changed between read and write."""

    code = "concurrent_modification"

    def __init__(self, account_id: str, expected_version: int | None = None) -> None:
        message = f"Balance of account {account_id} was modified concurrently"
        if expected_version is not None:
            message += f" (expected version {expected_version})"
        super().__init__(message)
        self.account_id = account_id
        self.expected_version = expected_version


class RetryExhausted(LedgerError):
    """Raised once concurrent modification retries are used up."""

    code = "retry_exhausted"

    def __init__(self, account_id: str, attempts: int) -> None:
        super().__init__(f"Gave up adjusting account {account_id} after {attempts} attempts")
        self.account_id = account_id
        self.attempts = attempts


class StorageUnavailable(LedgerError):
    """Raised when the persistence engine fails or an operation times out.

    ``ambiguous`` is set when the failure happened while committing, in which
    case the adjustment may or may not have been applied. Retrying with the
    same idempotency key is always safe.
    """

    code = "storage_unavailable"

    def __init__(self, message: str, *, ambiguous: bool = False) -> None:
        super().__init__(message)
        self.ambiguous = ambiguous


__all__ = [
    "LedgerError",
    "ValidationError",
    "InsufficientBalance",
    "ConcurrentModification",
    "RetryExhausted",
    "StorageUnavailable",
]
