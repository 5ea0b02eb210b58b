"""
GKash API — FastAPI Application Entry Point

Aggregates all routers, configures logging, middleware and error handlers,
and initializes the database on startup.
"""
import logging
import time
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import get_settings
from app.database import init_db, SessionLocal
from app.errors import ServiceError
from app.logging_config import configure_logging
from app.routes import (
    auth_router, accounts_router, transactions_router, verification_router,
    users_router, chat_router, admin_router,
)

settings = get_settings()
configure_logging(settings.LOG_LEVEL, settings.LOG_DIR)
logger = logging.getLogger("app.main")

# ─── Application Instance ───────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=(
        "Fintech backend for GKash: multi-step registration with ID verification, "
        "PIN authentication, fund accounts, deposits and withdrawals, "
        "and an AI financial advisor for the Kenyan market."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
)

# ─── Startup ─────────────────────────────────────────────────────────
BOOT_TIME = time.time()


@app.on_event("startup")
def on_startup():
    """Initialize database tables and log boot info."""
    init_db()

    logger.info(
        "\n%s\n  %s v%s\n  TIME: %s\n  GEMINI KEY: %s\n  DATABASE: %s\n"
        "  PHONE OTP: %s\n  DEBUG: %s\n%s",
        "=" * 60,
        settings.APP_NAME, settings.APP_VERSION,
        datetime.now().isoformat(),
        "[OK] Loaded" if settings.GEMINI_API_KEY else "[!] Missing",
        settings.DATABASE_URL,
        "required" if settings.REQUIRE_PHONE_OTP else "off",
        settings.DEBUG,
        "=" * 60,
    )


# ─── Middleware ──────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every API request with timing."""
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 1)

    if request.url.path.startswith("/api"):
        logger.info("%s %s -> %s (%sms)", request.method, request.url.path, response.status_code, duration)

    return response


# ─── Error Handlers ──────────────────────────────────────────────────
@app.exception_handler(ServiceError)
def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.warning("%s on %s: %s", exc.error_code, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error_code": exc.error_code},
    )


@app.exception_handler(RequestValidationError)
def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = f"{field}: {first.get('msg')}" if field else str(first.get("msg", "Invalid request"))
    return JSONResponse(
        status_code=400,
        content={"detail": message, "error_code": "validation_error"},
    )


@app.exception_handler(StarletteHTTPException)
def http_error_handler(request: Request, exc: StarletteHTTPException):
    code = "rate_limited" if exc.status_code == 429 else "http_error"
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error_code": code},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    content = {"detail": "Internal server error", "error_code": "internal_error"}
    if settings.DEBUG:
        content["debug"] = f"{type(exc).__name__}: {exc}"
    return JSONResponse(status_code=500, content=content)


# ─── API Routers ─────────────────────────────────────────────────────
app.include_router(auth_router)
app.include_router(accounts_router)
app.include_router(transactions_router)
app.include_router(verification_router)
app.include_router(users_router)
app.include_router(chat_router)
app.include_router(admin_router)


@app.get("/health", tags=["Health"])
def deep_health():
    """Detailed health check including dependency statuses."""
    db_ok = False
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except Exception as e:
        logger.error("Health check database probe failed: %s", e)
    finally:
        db.close()

    return {
        "status": "healthy" if db_ok else "degraded",
        "database": "connected" if db_ok else "disconnected",
        "ai_ocr": "available" if settings.GEMINI_API_KEY else "unavailable",
        "uptime_seconds": round(time.time() - BOOT_TIME, 1),
        "version": settings.APP_VERSION,
    }
