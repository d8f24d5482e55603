"""
FastAPI application entry point.
Challenge: Mount routes, middleware (CORS, Prometheus), startup seeding of the first admin.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from prometheus_client import make_asgi_app
from sqlalchemy.exc import SQLAlchemyError

from exam_manager.api.v1.responses import envelope
from exam_manager.api.v1.router import api_router
from exam_manager.config import get_settings
from exam_manager.core.logging_config import configure_logging
from exam_manager.db.repositories.unit_of_work import UnitOfWork
from exam_manager.db.session import async_session_maker
from exam_manager.services.operator_service import OperatorService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: make sure an admin exists so the API can be used at all."""
    settings = get_settings()
    if settings.seed_default_admin:
        try:
            async with UnitOfWork(async_session_maker()) as uow:
                await OperatorService(uow, settings).ensure_default_admin()
        except (SQLAlchemyError, OSError):
            # Database may not be migrated yet; the API still starts
            logger.exception("Could not seed the default admin")
    yield


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """422 in the common envelope, one "field: message" entry per problem."""
    errors = []
    for err in exc.errors():
        location = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        field = ".".join(location)
        errors.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return envelope(
        False,
        message="One or more validation errors occurred.",
        errors=errors,
        error_code="VALIDATION_ERROR",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
    )


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(
        title=settings.app_name,
        description="Exam board administration: exams, examiners, lookup data, operators, imports/exports and backups.",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Prometheus metrics at /metrics
    app.mount("/metrics", make_asgi_app())

    app.include_router(api_router, prefix="/api")

    # Built frontend (SPA) served from the root when configured
    if settings.frontend_dir and Path(settings.frontend_dir).is_dir():
        app.mount("/", StaticFiles(directory=settings.frontend_dir, html=True), name="frontend")

    return app


app = create_app()
