"""
Chatbot Routes — AI financial advisor.
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_optional_identity
from app.models.identity import Identity
from app.schemas.schemas import (
    ChatRequest, ChatResponse, FinancialAdviceRequest, FinancialAdviceResponse,
    ChatSessionRequest, ChatSessionResponse,
)
from app.services.chat_service import ChatService, DEFAULT_SESSION
from app.utils.rate_limiter import rate_limit

router = APIRouter(prefix="/api/chatbot", tags=["Chatbot"])


def _owner_id(identity: Optional[Identity]) -> Optional[str]:
    return identity.id if identity else None


def _session_key(payload: Optional[ChatSessionRequest], header: Optional[str]) -> Optional[str]:
    return (payload.session_id if payload else None) or header


@router.post("/chat", response_model=ChatResponse)
def chat(
    payload: ChatRequest,
    x_session_id: Optional[str] = Header(None),
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: Session = Depends(get_db),
    _throttle: bool = Depends(rate_limit(requests=30, window=60)),
):
    session_key = payload.session_id or x_session_id or DEFAULT_SESSION
    reply = ChatService.send_message(db, payload.message, session_key, _owner_id(identity))
    return ChatResponse(response=reply, sessionId=session_key, timestamp=datetime.utcnow())


@router.post("/financial-advice", response_model=FinancialAdviceResponse)
def financial_advice(
    payload: FinancialAdviceRequest,
    _throttle: bool = Depends(rate_limit(requests=30, window=60)),
):
    """One-shot advice; ``query``, ``message`` or ``question`` carry the question."""
    query = payload.query or payload.message or payload.question
    advice = ChatService.financial_advice(query, payload.user_profile)
    return FinancialAdviceResponse(
        advice=advice,
        query=query.strip(),
        userProfile=payload.user_profile,
        timestamp=datetime.utcnow(),
    )


@router.post("/reset", response_model=ChatSessionResponse)
def reset_chat(
    payload: Optional[ChatSessionRequest] = None,
    x_session_id: Optional[str] = Header(None),
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: Session = Depends(get_db),
):
    session_key = ChatService.reset(db, _session_key(payload, x_session_id), _owner_id(identity))
    return ChatSessionResponse(
        message="Conversation reset successfully",
        sessionId=session_key,
        timestamp=datetime.utcnow(),
    )


@router.delete("/session", response_model=ChatSessionResponse)
def delete_chat_session(
    payload: Optional[ChatSessionRequest] = None,
    x_session_id: Optional[str] = Header(None),
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: Session = Depends(get_db),
):
    session_key = _session_key(payload, x_session_id)
    ChatService.delete_session(db, session_key, _owner_id(identity))
    return ChatSessionResponse(
        message="Session deleted successfully",
        sessionId=session_key,
        timestamp=datetime.utcnow(),
    )


@router.get("/health")
def chatbot_health():
    return ChatService.health()
