"""FastAPI application entry point."""

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from dotenv import load_dotenv
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.dependencies import require_admin
from app.errors import register_exception_handlers
from app.routes import entities, exports, imports, reviews
from app.routes.health import get_db_info
from app.schemas.common import HealthResponse
from config import Settings, get_settings
from db.connection import init_database
from kureno.services._types import DbInfoDict

logger: logging.Logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = get_settings()
    logger.info("DB: %s", settings.database.db_info_for_logging())

    init_database()
    yield


def create_app() -> FastAPI:
    app: FastAPI = FastAPI(
        title="Kureno Admin API",
        version="0.1.0",
        lifespan=_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    register_exception_handlers(app)

    @app.get("/health", response_model=HealthResponse)
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/health/db", dependencies=[Depends(require_admin)])
    def health_db() -> DbInfoDict:
        return get_db_info()

    app.include_router(exports.router)
    app.include_router(imports.router)
    app.include_router(reviews.router)
    app.include_router(entities.router)

    return app


app: FastAPI = create_app()


def start() -> None:
    """Entry point for kureno-api."""
    root: Path = Path(__file__).resolve().parent.parent
    os.chdir(root)

    candidate: Path = root / ".env"
    if candidate.exists():
        load_dotenv(candidate, override=False)

    reload: bool = os.environ.get("KURENO_RELOAD", "false").lower() in ("1", "true", "yes")
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=int(os.environ.get("KURENO_PORT", "8000")),
        reload=reload,
    )
