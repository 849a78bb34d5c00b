"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from agency_erp import __version__
from agency_erp.api.routes import (
    ads_reports_router,
    clients_router,
    developers_router,
    finances_router,
    health_router,
    invoices_router,
    leads_router,
    outbox_router,
    projects_router,
)
from agency_erp.config import Settings, get_settings
from agency_erp.database import create_schema, dispose_db, init_db
from agency_erp.errors import (
    AgencyError,
    AuthorizationError,
    DataStoreError,
    NotFoundError,
    PartialFailureError,
    ValidationError,
)
from agency_erp.notifier.base import Notifier
from agency_erp.notifier.fonnte import FonnteNotifier
from agency_erp.services.container import build_services
from agency_erp.services.state_machine import InvalidTransitionError
from agency_erp.store.base import DataStore
from agency_erp.store.sql import SqlDataStore

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: list[tuple[type[AgencyError], int]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (DataStoreError, status.HTTP_409_CONFLICT),
    (PartialFailureError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_for(exc: AgencyError) -> int:
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _fonnte(cfg: Settings) -> FonnteNotifier:
    return FonnteNotifier(
        cfg.fonnte_api_key,
        base_url=cfg.fonnte_base_url,
        timeout_seconds=cfg.fonnte_timeout_seconds,
    )


def create_app(
    store: DataStore | None = None,
    notifier: Notifier | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    When no store is given, one is built on the configured database at
    startup. Tests pass an in-memory store and a recording notifier.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Build services on the configured database unless injected."""
        if hasattr(app.state, "services"):
            yield
            return
        cfg = settings or get_settings()
        engine, session_factory = init_db()
        if cfg.create_schema:
            await create_schema(engine)
        app.state.services = build_services(SqlDataStore(session_factory), notifier or _fonnte(cfg), cfg)
        logger.info("Agency ERP API started")
        yield
        await dispose_db()

    app = FastAPI(
        title="Agency ERP API",
        description="Projects, invoices, developer fees, finance ledger and ad reports",
        version=__version__,
        lifespan=lifespan,
    )

    if store is not None:
        app.state.services = build_services(
            store, notifier or _fonnte(settings or get_settings()), settings
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AgencyError)
    async def agency_error_handler(request: Request, exc: AgencyError) -> JSONResponse:
        """Map domain errors to HTTP responses."""
        content = {"detail": str(exc), "code": exc.code}
        if isinstance(exc, PartialFailureError):
            logger.error("Partial failure on %s %s: %s", request.method, request.url.path, exc)
            content["saved"] = jsonable_encoder(exc.saved)
        return JSONResponse(status_code=status_for(exc), content=content)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    app.include_router(health_router)
    app.include_router(clients_router, prefix="/api/v1")
    app.include_router(leads_router, prefix="/api/v1")
    app.include_router(projects_router, prefix="/api/v1")
    app.include_router(invoices_router, prefix="/api/v1")
    app.include_router(developers_router, prefix="/api/v1")
    app.include_router(finances_router, prefix="/api/v1")
    app.include_router(ads_reports_router, prefix="/api/v1")
    app.include_router(outbox_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
