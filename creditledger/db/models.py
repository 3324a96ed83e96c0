"""SQLAlchemy ORM models."""
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, UniqueConstraint

from creditledger.infrastructure.database.base import Base


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CreditBalance(Base):
    __tablename__ = "credit_balances"

    account_id = Column(String(64), primary_key=True)
    balance = Column(Integer, nullable=False, default=0)
    lifetime_earned = Column(Integer, nullable=False, default=0)
    lifetime_spent = Column(Integer, nullable=False, default=0)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (Index("ix_credit_balances_balance", "balance", "account_id"),)


class CreditTransaction(Base):
    __tablename__ = "credit_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(String(64), nullable=False)
    delta = Column(Integer, nullable=False)
    requested_delta = Column(Integer, nullable=False)
    resulting_balance = Column(Integer, nullable=False)
    type = Column(String(32), nullable=False)  # purchase, consumption, admin_adjustment, bulk_admin_adjustment
    description = Column(String(255), nullable=False)
    idempotency_key = Column(String(128))
    override = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (
        UniqueConstraint("account_id", "idempotency_key", name="uq_credit_transactions_idempotency"),
        Index("ix_credit_transactions_account_created", "account_id", "created_at", "id"),
        Index("ix_credit_transactions_type", "type"),
    )
