"""Credit ledger server: per-account balances backed by an immutable transaction log."""

__version__ = "0.1.0"
