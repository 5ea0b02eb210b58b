"""
Chat Service — AI financial advisor for the Kenyan market using Gemini.
Conversation history is kept in the ``chat_sessions`` table with a TTL.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

import google.generativeai as genai
from sqlalchemy.orm import Session

from app.config import get_settings
from app.errors import ValidationError, NotFoundError, UpstreamServiceError
from app.models.chat import ChatSession
from app.services import knowledge_base

settings = get_settings()
logger = logging.getLogger(__name__)

DEFAULT_SESSION = "default"

SYSTEM_INSTRUCTION = """You are GKash Financial Advisor, an expert on the Kenyan financial market.

You cover money market funds, the Nairobi Securities Exchange, banking and mobile money,
government securities, insurance, economic indicators and investment strategy in Kenya.

Keep answers concise and practical (2-4 sentences), use specific Kenyan products, rates
and figures where available, and include risk warnings appropriate to the Kenyan market.
If asked about non-financial topics, reply: "I specialize in Kenyan finance and
investments. What financial topic can I help you with?\""""

_model = None


def get_chat_model():
    """Lazily initialize the Gemini chat model."""
    global _model
    if _model is None and settings.GEMINI_API_KEY:
        genai.configure(api_key=settings.GEMINI_API_KEY)
        _model = genai.GenerativeModel(
            model_name=settings.GEMINI_MODEL,
            system_instruction=SYSTEM_INSTRUCTION,
            generation_config={"temperature": 0.7, "max_output_tokens": 1024},
        )
    return _model


def _require_text(value, what: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{what} is required and must be a non-empty string")
    return value.strip()


def _with_context(query: str, context: str) -> str:
    if not context:
        return query
    return (
        f"Kenyan Financial Market Context:\n{context}\n\n"
        f"User question: {query}\n\n"
        "Answer with specific, actionable advice using the products and rates above where relevant."
    )


class ChatService:

    @staticmethod
    def _complete(prompt: str, history: Optional[list] = None) -> str:
        model = get_chat_model()
        if not model:
            raise UpstreamServiceError("AI advisor is not available. GEMINI_API_KEY is not configured.")
        try:
            chat = model.start_chat(history=[
                {"role": m["role"], "parts": [m["content"]]} for m in (history or [])
            ])
            response = chat.send_message(prompt)
            text = response.text.strip()
        except Exception as e:
            logger.error("Gemini chat call failed: %s", e)
            raise UpstreamServiceError("Failed to get a response from the AI advisor")
        if not text:
            raise UpstreamServiceError("AI advisor returned an empty response")
        return text

    @staticmethod
    def _live_session(db: Session, session_key: str) -> Optional[ChatSession]:
        """The session for ``session_key``, or None if absent; expired sessions are dropped."""
        session = db.get(ChatSession, session_key)
        if session and session.expires_at < datetime.utcnow():
            db.delete(session)
            db.flush()
            return None
        return session

    @classmethod
    def send_message(cls, db: Session, message, session_key: Optional[str] = None, owner_id: Optional[str] = None) -> str:
        message = _require_text(message, "Message")
        session_key = (session_key or DEFAULT_SESSION).strip()[:64] or DEFAULT_SESSION
        if session_key == DEFAULT_SESSION:
            # The shared session is never bound to a caller
            owner_id = None

        session = cls._live_session(db, session_key)
        if session and session.owner_id and session.owner_id != owner_id:
            raise NotFoundError("Session not found")
        history = list(session.messages or []) if session else []

        reply = cls._complete(_with_context(message, knowledge_base.search(message)), history)

        history += [
            {"role": "user", "content": message},
            {"role": "model", "content": reply},
        ]
        history = history[-settings.CHAT_HISTORY_LIMIT:]
        expires_at = datetime.utcnow() + timedelta(minutes=settings.CHAT_SESSION_TTL_MINUTES)

        if session is None:
            session = ChatSession(session_key=session_key, owner_id=owner_id, messages=history, expires_at=expires_at)
            db.add(session)
        else:
            session.messages = history
            session.expires_at = expires_at
        db.commit()

        logger.info("Chat reply generated for session %s (%d messages)", session_key, len(history))
        return reply

    @classmethod
    def financial_advice(cls, query, profile: Optional[dict] = None) -> str:
        """One-shot advice, tailored by the optional risk tolerance, amount and horizon."""
        query = _require_text(query, "Financial query")
        profile = profile or {}

        enhanced = f"Financial Query: {query}"
        if profile.get("riskTolerance"):
            enhanced += f"\nRisk Tolerance: {profile['riskTolerance']}"
        if profile.get("investmentAmount"):
            enhanced += f"\nInvestment Amount: KES {profile['investmentAmount']}"
        if profile.get("timeHorizon"):
            enhanced += f"\nTime Horizon: {profile['timeHorizon']}"

        advice = cls._complete(_with_context(enhanced, knowledge_base.search(query)))
        logger.info("Financial advice generated")
        return advice

    @classmethod
    def reset(cls, db: Session, session_key: Optional[str] = None, owner_id: Optional[str] = None) -> str:
        session_key = session_key or DEFAULT_SESSION
        session = cls._live_session(db, session_key)
        if session:
            if session.owner_id and session.owner_id != owner_id:
                raise NotFoundError("Session not found")
            session.messages = []
        db.commit()
        logger.info("Chat session reset: %s", session_key)
        return session_key

    @classmethod
    def delete_session(cls, db: Session, session_key: Optional[str], owner_id: Optional[str] = None) -> None:
        if not session_key or session_key == DEFAULT_SESSION:
            raise ValidationError('Session ID is required and cannot be "default"')

        session = cls._live_session(db, session_key)
        if not session or (session.owner_id and session.owner_id != owner_id):
            db.commit()
            raise NotFoundError("Session not found")
        db.delete(session)
        db.commit()
        logger.info("Chat session deleted: %s", session_key)

    @staticmethod
    def purge_expired(db: Session) -> int:
        count = db.query(ChatSession).filter(ChatSession.expires_at < datetime.utcnow()).delete(
            synchronize_session=False
        )
        db.commit()
        return count

    @staticmethod
    def health() -> dict:
        return {
            "status": "ok",
            "service": "GKash Financial Advisor",
            "ai_available": bool(settings.GEMINI_API_KEY),
            "timestamp": datetime.utcnow().isoformat(),
        }
