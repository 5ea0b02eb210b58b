"""
Database Engine & Session Management
SQLAlchemy setup with dependency injection for FastAPI.
"""
import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from app.config import get_settings

settings = get_settings()

_is_sqlite = settings.DATABASE_URL.startswith("sqlite")

# Ensure data directory exists
if _is_sqlite and ":memory:" not in settings.DATABASE_URL:
    os.makedirs(os.path.dirname(settings.DATABASE_URL.replace("sqlite:///", "")) or ".", exist_ok=True)

engine = create_engine(
    settings.DATABASE_URL,
    # check_same_thread: request handlers run in a threadpool
    # timeout: writers wait for the database lock instead of failing fast
    connect_args={"check_same_thread": False, "timeout": 30} if _is_sqlite else {},
    echo=settings.DEBUG,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency: yields a database session, auto-closes on finish."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create all tables. Called once at application startup."""
    from app.models import identity as _identity_model       # noqa: F401
    from app.models import account as _account_model         # noqa: F401
    from app.models import transaction as _transaction_model # noqa: F401
    from app.models import otp as _otp_model                 # noqa: F401
    from app.models import chat as _chat_model               # noqa: F401

    Base.metadata.create_all(bind=engine)
