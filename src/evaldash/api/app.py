"""FastAPI application factory.

The API only reads what the orchestrator stored; it never parses
documents or aggregates anything itself.
"""

from __future__ import annotations

from typing import Generator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from evaldash.config import ExperimentConfig
from evaldash.db.repo import DbSession
from evaldash.db.session import get_session


def get_config() -> ExperimentConfig:
    """Dependency returning the experiment configuration from the environment."""
    return ExperimentConfig.from_env()


def get_db_session() -> Generator[DbSession, None, None]:
    """Dependency to get database session.

    Yields:
        Database session that is automatically closed after request.
    """
    session = get_session(get_config().db_path)
    try:
        yield session
    finally:
        session.close()


def create_app() -> FastAPI:
    """Create FastAPI application.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="evaldash API",
        description="Evaluation results of generated object diagrams",
        version="0.1.0",
    )

    # Add CORS middleware for UI access
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    from evaldash.api.routes import dashboard, models

    app.include_router(dashboard.router, prefix="/api")
    app.include_router(models.router, prefix="/api")

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    return app


# Default app instance
app = create_app()
