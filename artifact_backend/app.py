"""
FastAPI application entry point for the artifacts backend.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from artifact_backend.config import get_settings
from artifact_backend.dependencies import close_db_client, get_db_client
from artifact_backend.errors import ArtifactServiceError
from artifact_backend.logging_config import setup_logging
from artifact_backend.routes import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Connect once at boot; an unreachable store stops the process here.
    get_db_client()
    yield
    close_db_client()


async def handle_service_error(request: Request, exc: ArtifactServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s", request.method, request.url.path, exc.message,
            exc_info=exc,
        )
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(title="Historical Artifacts API", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ArtifactServiceError, handle_service_error)
    app.include_router(router, prefix=settings.api_prefix)

    @app.get("/", response_class=PlainTextResponse)
    def root() -> str:
        return "Server is running..."

    return app


app = create_app()
