"""
Transaction Service — Applies deposits and withdrawals to an account.

The balance change is a single conditional UPDATE evaluated by the database
(``balance = balance +/- amount``, guarded by ``balance >= amount`` on withdrawals
and by MAX_BALANCE_CENTS on deposits), so concurrent
requests against one account never lose updates. The log row is inserted in
the same database transaction and both commit or roll back together.
"""
import logging
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.config import get_settings
from app.errors import ValidationError, NotFoundError, InsufficientFundsError
from app.models.account import Account
from app.models.transaction import TransactionRecord, TRANSACTION_KINDS
from app.utils.validators import parse_amount_cents

settings = get_settings()
logger = logging.getLogger(__name__)


class TransactionService:

    @staticmethod
    def apply(db: Session, owner_id: str, account_id: str, kind, amount) -> tuple[TransactionRecord, Decimal]:
        """Apply one deposit or withdrawal. Returns the log entry and the new balance."""
        if kind not in TRANSACTION_KINDS:
            raise ValidationError('Transaction type must be "deposit" or "withdraw"')
        cents = parse_amount_cents(amount)
        if cents is None:
            raise ValidationError(
                f"Amount must be a positive number no greater than {settings.MAX_TRANSACTION_AMOUNT:,}"
            )
        if not account_id:
            raise ValidationError("Please specify the account")

        if not TransactionService._owned_account_exists(db, owner_id, account_id):
            raise NotFoundError("Account not found")

        try:
            stmt = update(Account).where(Account.id == account_id)
            if kind == "deposit":
                stmt = stmt.where(Account.balance_cents <= settings.MAX_BALANCE_CENTS - cents).values(
                    balance_cents=Account.balance_cents + cents
                )
            else:
                stmt = stmt.where(Account.balance_cents >= cents).values(
                    balance_cents=Account.balance_cents - cents
                )
            result = db.execute(stmt.execution_options(synchronize_session=False))

            if result.rowcount != 1:
                db.rollback()
                if not db.query(Account.id).filter(Account.id == account_id).first():
                    raise NotFoundError("Account not found")
                if kind == "deposit":
                    raise ValidationError("Deposit would exceed the maximum account balance")
                raise InsufficientFundsError("Insufficient funds")

            record = TransactionRecord(
                id=str(uuid.uuid4()),
                owner_id=owner_id,
                account_id=account_id,
                kind=kind,
                amount_cents=cents,
                status="completed",
            )
            db.add(record)
            db.flush()

            new_balance_cents = db.query(Account.balance_cents).filter(Account.id == account_id).scalar()
            db.commit()
        except (InsufficientFundsError, NotFoundError, ValidationError):
            raise
        except Exception:
            db.rollback()
            logger.exception("Transaction on account %s rolled back", account_id)
            raise

        logger.info("%s of %d cents applied to account %s", kind, cents, account_id)
        return record, Decimal(new_balance_cents) / 100

    @staticmethod
    def _owned_account_exists(db: Session, owner_id: str, account_id: str) -> bool:
        return db.query(Account.id).filter(
            Account.id == account_id, Account.owner_id == owner_id,
        ).first() is not None

    @staticmethod
    def list_for(db: Session, owner_id: str, account_id: Optional[str] = None) -> list[TransactionRecord]:
        query = db.query(TransactionRecord).filter(TransactionRecord.owner_id == owner_id)
        if account_id:
            query = query.filter(TransactionRecord.account_id == account_id)
        return query.order_by(TransactionRecord.occurred_at.desc()).all()
