"""
Transaction Routes — Deposits, withdrawals and transaction history.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_identity
from app.models.identity import Identity
from app.schemas.schemas import TransactionCreateRequest, TransactionCreateResponse, TransactionOut
from app.services.transaction_service import TransactionService

router = APIRouter(prefix="/api/transactions", tags=["Transactions"])


@router.post("", response_model=TransactionCreateResponse, status_code=201)
def create_transaction(
    payload: TransactionCreateRequest,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """Apply a deposit or withdrawal; the response carries the resulting balance."""
    record, balance = TransactionService.apply(
        db, identity.id, payload.account_id, payload.kind, payload.amount,
    )
    return TransactionCreateResponse(
        transaction=TransactionOut.model_validate(record),
        balance=float(balance),
    )


@router.get("", response_model=List[TransactionOut])
def list_transactions(
    account_id: Optional[str] = None,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    return TransactionService.list_for(db, identity.id, account_id)
