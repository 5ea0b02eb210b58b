"""
Account Model — A named balance bucket owned by an identity.
The balance is only ever changed by the transaction processor.
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, CheckConstraint

from app.database import Base

ACCOUNT_KINDS = ("balanced fund", "fixed income fund", "money market fund", "stock market")


class Account(Base):
    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint("balance_cents >= 0", name="ck_accounts_balance_non_negative"),
    )

    id = Column(String(36), primary_key=True, index=True)
    owner_id = Column(String(36), ForeignKey("identities.id"), nullable=False, index=True)

    kind = Column(String(32), nullable=False)   # see ACCOUNT_KINDS
    balance_cents = Column(Integer, nullable=False, default=0)   # Amount in cents (multiply by 100)

    created_at = Column(DateTime, default=datetime.utcnow)

    @property
    def balance(self) -> Decimal:
        return Decimal(self.balance_cents or 0) / 100
