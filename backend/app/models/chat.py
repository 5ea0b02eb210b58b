"""
Chat Session Model — Persisted advisor conversation history with a TTL.
"""
from datetime import datetime
from sqlalchemy import Column, String, DateTime, JSON

from app.database import Base


class ChatSession(Base):
    __tablename__ = "chat_sessions"

    session_key = Column(String(64), primary_key=True, index=True)
    owner_id = Column(String(36), nullable=True, index=True)

    messages = Column(JSON, default=list)   # [{"role": "user" | "model", "content": str}]

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    expires_at = Column(DateTime, nullable=False)
