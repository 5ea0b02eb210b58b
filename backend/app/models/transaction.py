"""
Transaction Record Model — Append-only audit trail of balance mutations.
The account row holds the current balance; this table explains how it got there.
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, CheckConstraint

from app.database import Base

TRANSACTION_KINDS = ("deposit", "withdraw")
TRANSACTION_STATUSES = ("completed", "pending", "failed")


class TransactionRecord(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("amount_cents > 0", name="ck_transactions_amount_positive"),
    )

    id = Column(String(36), primary_key=True, index=True)
    owner_id = Column(String(36), ForeignKey("identities.id"), nullable=False, index=True)
    # NULL once the account has been deleted
    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=True, index=True)

    kind = Column(String(16), nullable=False)       # deposit | withdraw
    amount_cents = Column(Integer, nullable=False)  # Amount in cents (multiply by 100)
    status = Column(String(16), nullable=False, default="completed")  # completed | pending | failed

    occurred_at = Column(DateTime, default=datetime.utcnow, index=True)

    @property
    def amount(self) -> Decimal:
        return Decimal(self.amount_cents) / 100
