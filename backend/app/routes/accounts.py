"""
Account Routes — The caller's fund accounts.
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_identity
from app.models.identity import Identity
from app.schemas.schemas import AccountCreateRequest, AccountCreateResponse, AccountOut, MessageResponse
from app.services.account_service import AccountService

router = APIRouter(prefix="/api/accounts", tags=["Accounts"])


@router.post("", response_model=AccountCreateResponse, status_code=201)
def create_account(
    payload: AccountCreateRequest,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    account = AccountService.create(db, identity, payload.kind)
    return AccountCreateResponse(account=AccountOut.model_validate(account))


@router.get("", response_model=List[AccountOut])
def list_accounts(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """All of the caller's accounts, newest first."""
    return AccountService.list_for(db, identity)


@router.get("/{account_id}", response_model=AccountOut)
def get_account(
    account_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    return AccountService.get(db, identity, account_id)


@router.delete("/{account_id}", response_model=MessageResponse)
def delete_account(
    account_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    AccountService.delete(db, identity, account_id)
    return MessageResponse(message="Account deleted successfully")
