"""FastAPI application entrypoint. No business logic; only wiring, startup and middleware."""

from dotenv import load_dotenv

load_dotenv()

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import router as api_router
from app.api.problems import register_exception_handlers
from app.core.config import settings
from app.core.database import SessionLocal, engine, is_sqlite
from app.models import Base
from app.services.user_directory import ensure_default_users

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def init_database() -> None:
    """Create tables on SQLite (PostgreSQL is migrated with Alembic) and seed default accounts."""
    if is_sqlite():
        Base.metadata.create_all(bind=engine)
    if not settings.SEED_DEFAULT_USERS:
        return
    db = SessionLocal()
    try:
        created = ensure_default_users(db, settings)
        if created:
            logger.info("Seeded default users: %s", ", ".join(u.username for u in created))
    finally:
        db.close()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    init_database()
    yield


app = FastAPI(
    title="Board-Hole API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(api_router, prefix=settings.API_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Board-Hole API"}
