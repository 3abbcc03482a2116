"""
API Gateway -- FastAPI application factory.

Loads the project workspace (config, rules, enforcement, agents) once and
serves validation over HTTP:

    uvicorn rulebound.api.gateway:create_app --factory --host 0.0.0.0 --port 8000

Security:
  - CORS restricted to configured origins (default: localhost only)
  - Production auth check on startup
  - Rate limiting on validation routes
  - All external input validated at the boundary
"""

import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..workspace import Workspace, load_workspace
from .middleware.auth import check_production_auth
from .routes import health, validation

logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:8000",
    "http://localhost:8080",
]


@dataclass
class ApiSettings:
    """Where the API reads its project from.

    Attributes:
        cwd: Project root holding .rulebound/ (default: RULEBOUND_PROJECT_DIR or cwd).
        rules_dir: Serve only this rules directory, skipping inheritance.
    """

    cwd: Path | None = None
    rules_dir: Path | None = None

    @classmethod
    def from_env(cls) -> "ApiSettings":
        project_dir = os.environ.get("RULEBOUND_PROJECT_DIR", "").strip()
        rules_dir = os.environ.get("RULEBOUND_RULES_DIR", "").strip()
        return cls(
            cwd=Path(project_dir) if project_dir else None,
            rules_dir=Path(rules_dir) if rules_dir else None,
        )


def _get_cors_origins() -> list[str]:
    """Load CORS origins from environment or use safe defaults."""
    origins_env = os.environ.get("CORS_ORIGINS", "")
    if origins_env.strip():
        return [o.strip() for o in origins_env.split(",") if o.strip()]
    return DEFAULT_CORS_ORIGINS


def create_app(
    settings: ApiSettings | None = None,
    workspace: Workspace | None = None,
) -> FastAPI:
    """
    Application factory -- creates and configures the FastAPI app.

    Args:
        settings: Project location (from environment if None).
        workspace: Pre-loaded workspace; skips loading from disk.
    """
    check_production_auth()

    if workspace is None:
        settings = settings or ApiSettings.from_env()
        workspace = load_workspace(settings.cwd or Path.cwd(), settings.rules_dir)

    application = FastAPI(
        title="Rulebound API",
        description="Validate change plans against engineering rules",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=_get_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type"],
    )

    application.state.workspace = workspace
    application.state.start_time = time.time()

    application.include_router(health.router, tags=["Health"])
    application.include_router(validation.router, prefix="/api/v1", tags=["Validation"])

    logger.info(f"[Gateway] API gateway initialized ({len(workspace.rules)} rules)")
    return application
