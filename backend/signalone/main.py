"""
SignalOne - FastAPI Application

Main entry point for the SignalOne backend.

Architecture:
- Bearer token → TokenService → user id
- Login: provider (GitHub / Google) → UserDirectory find-or-create → token pair
- Rating: IssueRepository (compare-and-set score) → UserDirectory (counter delta)
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .auth import TokenService
from .config import Settings
from .database import configure_database, init_db
from .errors import SignalOneError, ValidationError, InternalError
from .routers import auth_router, issues_router, containers_router
from .services.analysis import PredictionAgentClient
from .services.identity import GitHubIdentityClient, GoogleTokenVerifier

logger = logging.getLogger(__name__)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

async def signalone_error_handler(request: Request, exc: SignalOneError):
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = [".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()]
    error = ValidationError(f"Invalid request: {', '.join(fields)}" if fields else None)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    # Driver detail stays in the logs
    logger.error(f"Storage failure on {request.url.path}: {exc}", exc_info=True)
    error = InternalError("Storage failure")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(settings: Optional[Settings] = None, create_tables: bool = True) -> FastAPI:
    """
    Build the application around one Settings instance.

    Services that only need configuration are created once here and
    shared through app.state; database-bound services are built per request.
    """
    settings = settings or Settings.from_env()
    configure_database(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize database on startup."""
        if create_tables:
            init_db()
        yield

    app = FastAPI(
        lifespan=lifespan,
        title="SignalOne API",
        description="API for the SignalOne log-analysis tracking service",
        version="1.0.0",
        docs_url="/swagger" if settings.is_local else None,
        redoc_url=None,
    )

    app.state.settings = settings
    app.state.token_service = TokenService(settings)
    app.state.github_client = GitHubIdentityClient(settings)
    app.state.google_verifier = GoogleTokenVerifier(settings)
    app.state.prediction_agent = PredictionAgentClient(settings)

    app.add_exception_handler(SignalOneError, signalone_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, storage_error_handler)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(auth_router, prefix="/api")
    app.include_router(issues_router, prefix="/api")
    app.include_router(containers_router, prefix="/api")

    @app.get("/api/healthz")
    async def healthz():
        """Liveness probe."""
        return {
            "status": "success",
            "message": "signal api is up and running, operational subsystems: {}",
        }

    return app


if __name__ == "__main__":
    import os

    import uvicorn

    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(create_app(), host="0.0.0.0", port=int(os.getenv("SERVER_PORT", "8080")))
