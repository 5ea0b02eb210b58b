"""
Account Service — Create, list, fetch and delete an identity's accounts.
Balances are never written here; see TransactionService.
"""
import logging
import uuid

from sqlalchemy import delete
from sqlalchemy.orm import Session

from app.errors import ValidationError, NotFoundError
from app.models.account import Account, ACCOUNT_KINDS
from app.models.identity import Identity
from app.models.transaction import TransactionRecord

logger = logging.getLogger(__name__)

NON_EMPTY_MESSAGE = "Withdraw the remaining balance before deleting this account"


class AccountService:

    @staticmethod
    def create(db: Session, owner: Identity, kind: str) -> Account:
        kind = (kind or "").strip().lower()
        if kind not in ACCOUNT_KINDS:
            raise ValidationError(f"Invalid account type. Choose one of: {', '.join(ACCOUNT_KINDS)}")

        account = Account(id=str(uuid.uuid4()), owner_id=owner.id, kind=kind, balance_cents=0)
        db.add(account)
        db.commit()
        db.refresh(account)

        logger.info("Account %s (%s) created for identity %s", account.id, kind, owner.id)
        return account

    @staticmethod
    def list_for(db: Session, owner: Identity) -> list[Account]:
        return (
            db.query(Account)
            .filter(Account.owner_id == owner.id)
            .order_by(Account.created_at.desc())
            .all()
        )

    @staticmethod
    def get(db: Session, owner: Identity, account_id: str) -> Account:
        """Fetch one of the owner's accounts. Other owners' accounts look absent."""
        account = db.query(Account).filter(
            Account.id == account_id, Account.owner_id == owner.id,
        ).first()
        if not account:
            raise NotFoundError("Account not found")
        return account

    @classmethod
    def delete(cls, db: Session, owner: Identity, account_id: str) -> None:
        """Delete an empty account. The zero-balance guard is part of the DELETE itself."""
        account = cls.get(db, owner, account_id)
        if account.balance_cents != 0:
            raise ValidationError(NON_EMPTY_MESSAGE)

        # History outlives the account
        db.query(TransactionRecord).filter(TransactionRecord.account_id == account.id).update(
            {TransactionRecord.account_id: None}, synchronize_session=False,
        )
        result = db.execute(
            delete(Account)
            .where(
                Account.id == account.id,
                Account.owner_id == owner.id,
                Account.balance_cents == 0,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            # A deposit landed after the balance was read
            db.rollback()
            raise ValidationError(NON_EMPTY_MESSAGE)

        db.commit()
        logger.info("Account %s deleted by identity %s", account_id, owner.id)
