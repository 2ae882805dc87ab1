"""
UG Gym Backend API
Memberships for public and university users, paid through Paystack or at the gym.
"""
from dotenv import load_dotenv
load_dotenv()

import logging
import sys
import traceback
from pathlib import Path

from alembic import command
from alembic.config import Config

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stdout,
    force=True  # Override any existing configuration
)

logger = logging.getLogger(__name__)

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.routes import admin, admin_auth, auth, subscriptions, webhooks
from app.core.config import settings
from app.core.exceptions import GymError
from app.db.base import Base, utcnow
from app.db.session import engine
# Import all models to ensure they're registered with Base
from app.models import (  # noqa: F401
    AdminUser,
    PaymentTransaction,
    PublicUser,
    SubscriptionPlan,
    UniversityMember,
    UniversityUser,
    UserSubscription,
)
from app.utils.responses import envelope


def run_migrations() -> bool:
    """Run Alembic migrations up to head. Returns False when alembic.ini is missing.
    Fails startup if migrations fail, so the DB is never left out of sync."""
    project_root = Path(__file__).resolve().parent.parent
    alembic_ini = project_root / "alembic.ini"
    if not alembic_ini.exists():
        logger.warning("alembic.ini not found, skipping Alembic migrations")
        return False
    try:
        alembic_cfg = Config(str(alembic_ini))
        alembic_cfg.attributes["configure_logger"] = False
        alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
        alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url)
        command.upgrade(alembic_cfg, "head")
        logger.info("Alembic migrations completed successfully")
        return True
    except Exception as e:
        logger.exception("Alembic migration failed: %s", e)
        raise  # Fail startup; fix the migration or DATABASE_URL and redeploy


app = FastAPI(title=f"{settings.app_name} API")


@app.on_event("startup")
def startup_event():
    """Bring the schema to head. Without alembic.ini (e.g. a bare checkout) fall back to create_all."""
    logger.info("Starting %s API (environment=%s)", settings.app_name, settings.environment)
    if not run_migrations():
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created")


@app.exception_handler(GymError)
async def gym_error_handler(request: Request, exc: GymError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.error)
    extra = {} if exc.data is None else {"data": exc.data}
    return envelope(exc.message, success=False, error=exc.error, status_code=exc.status_code, **extra)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            # Drop the leading "body"/"query"/"path" segment
            "field": ".".join(str(part) for part in error.get("loc", ())[1:]),
            "message": error.get("msg"),
        }
        for error in exc.errors()
    ]
    return envelope(
        "Validation error",
        success=False,
        status_code=status.HTTP_400_BAD_REQUEST,
        errors=errors,
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        message = f"Route {request.method} {request.url.path} not found"
    else:
        message = str(exc.detail)
    return envelope(message, success=False, status_code=exc.status_code)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    extra = {}
    if not settings.is_production:
        extra["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return envelope(
        str(exc) or "Internal server error",
        success=False,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        **extra,
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health():
    return {
        "success": True,
        "message": f"{settings.app_name} API is running",
        "environment": settings.environment,
        "timestamp": utcnow().isoformat() + "Z",
    }


# Register routers
app.include_router(auth.router, prefix="/auth", tags=["Auth"])
app.include_router(subscriptions.router, prefix="/subscriptions", tags=["Subscriptions"])
app.include_router(webhooks.router, prefix="/subscriptions/webhook", tags=["Webhooks"])
app.include_router(admin_auth.router, prefix="/auth/admin", tags=["Admin Auth"])
app.include_router(admin.router, prefix="/admin", tags=["Admin"])
