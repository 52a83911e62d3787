"""FastAPI application factory.

Main entry point for the Exam Portal Web API.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from examportal import __version__
from examportal.config.app_config import load_app_config
from examportal.db.database import init_db
from examportal.web.routes import (
    attempts_router,
    health_router,
    students_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    # Startup
    config = load_app_config()
    db_path = init_db()
    logger.info(
        "api_startup",
        db_path=str(db_path.absolute()),
        retake_policy=config.attempts.retake_policy,
        enforce_deadline=config.attempts.enforce_deadline,
    )
    yield
    # Shutdown (nothing to do for now)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="Exam Portal API",
        description="Timed multiple-choice exam attempts",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS middleware for web clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health_router)
    app.include_router(attempts_router)
    app.include_router(students_router)

    return app


# Default app instance for uvicorn
app = create_app()
