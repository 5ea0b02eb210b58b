from app.routes.auth import router as auth_router
from app.routes.accounts import router as accounts_router
from app.routes.transactions import router as transactions_router
from app.routes.verification import router as verification_router
from app.routes.users import router as users_router
from app.routes.chat import router as chat_router
from app.routes.admin import router as admin_router

__all__ = [
    "auth_router", "accounts_router", "transactions_router", "verification_router",
    "users_router", "chat_router", "admin_router",
]
