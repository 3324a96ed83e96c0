"""Feature modules."""

from . import directory, ledger

__all__ = [
    "directory",
    "ledger",
]
