"""FastAPI entrypoint for the patent family builder."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from patent_family.api.progress import ImportProgress
from patent_family.api.router import api_router
from patent_family.core.config import get_settings
from patent_family.core.errors import (
    AnalysisUnavailable,
    InvalidIdentifier,
    NotFound,
    ParseFailure,
    PatentFamilyError,
    UpstreamError,
)
from patent_family.core.log import configure_logging
from patent_family.db.session import SessionLocal
from patent_family.db.store import SqlKeyValueStore
from patent_family.services.pipeline import FamilyPipeline, build_pipeline

ERROR_STATUS = {
    InvalidIdentifier: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFound: status.HTTP_404_NOT_FOUND,
    UpstreamError: status.HTTP_502_BAD_GATEWAY,
    ParseFailure: status.HTTP_502_BAD_GATEWAY,
    AnalysisUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}


async def handle_pipeline_error(request: Request, exc: Exception) -> JSONResponse:
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def create_app(pipeline: Optional[FamilyPipeline] = None) -> FastAPI:
    """Instantiate and configure the FastAPI application."""

    settings = get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = pipeline is None
        if owned:
            app.state.pipeline = build_pipeline(SqlKeyValueStore(SessionLocal), settings)
        else:
            app.state.pipeline = pipeline
        app.state.import_progress = ImportProgress()
        try:
            yield
        finally:
            if owned:
                await app.state.pipeline.aclose()

    app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)

    if settings.allowed_hosts:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.allowed_hosts,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(PatentFamilyError, handle_pipeline_error)
    app.include_router(api_router, prefix=settings.api_v1_prefix)

    @app.get("/health", tags=["health"])
    async def healthcheck() -> dict[str, str]:
        """Simple health-check endpoint."""

        return {"status": "ok"}

    return app


app = create_app()
