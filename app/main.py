import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.errors import register_exception_handlers
from app.api.v1.router import api_router
from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.logging import configure_logging
from app.core.middleware import setup_middleware
from app.models import registry  # noqa: F401  (registers every model on Base.metadata)
from app.services.seed_service import seed_default_permissions

settings = get_settings()
logger = logging.getLogger(__name__)


def seed_on_startup() -> None:
    """Seed the permission catalog; failures never block startup."""
    db = SessionLocal()
    try:
        seed_default_permissions(db)
    except Exception as exc:
        logger.warning("Permission seeding skipped: %s", exc)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    if settings.seed_permissions_on_startup:
        seed_on_startup()
    logger.info("%s started (%s)", settings.app_name, settings.app_env)
    yield


app = FastAPI(
    title=settings.app_name,
    lifespan=lifespan,
)

setup_middleware(app)
register_exception_handlers(app)


@app.get("/health", tags=["health"])
async def root_health() -> dict:
    """
    Global health check endpoint.
    """
    return {"status": "ok"}


# Mount versioned API router
app.include_router(api_router, prefix=settings.api_v1_prefix)
