"""
FastAPI Application Entry Point
=============================================================================
CONCEPT: Build everything once, in the app factory

`create_app()` picks the data adapter and the notification sink from the
settings and stores them on `app.state`; every request handler gets them
from there through FastAPI dependencies (ops_portal/auth/dependencies.py).
Tests pass their own:

    app = create_app(adapter=InMemoryAdapter(), notifier=RecordingNotifier())

The lifespan only does what needs the event loop: creating SQLite/demo
tables on startup, and closing HTTP clients and connection pools on
shutdown.

CONCEPT: Errors become messages at ONE boundary

Services raise PortalError subclasses (ops_portal/errors.py). One exception
handler turns them into

    {"detail": "<user-facing message>", "error": "<ErrorClassName>"}

with the status from ERROR_STATUS. Anything else is a bug: it is logged with
its traceback and the client gets a generic 500.

Run with: uvicorn ops_portal.main:app --reload --host 0.0.0.0 --port 8000
=============================================================================
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ops_portal.adapters.base import DataAdapter
from ops_portal.adapters.demo_data import build_demo_dataset
from ops_portal.adapters.factory import create_adapter
from ops_portal.adapters.sql import SqlAdapter
from ops_portal.api.router import api_router
from ops_portal.auth.delegated import DelegatedTokenVerifier
from ops_portal.config import Settings, settings as default_settings
from ops_portal.db.engine import init_models
from ops_portal.errors import (
    AuthenticationFailure,
    AuthorizationDenied,
    EntityNotFound,
    InvalidTransition,
    PortalError,
    StoreNotImplemented,
    StoreRejected,
    StoreUnavailable,
    ValidationFailure,
)
from ops_portal.notifications.sink import NotificationSink, build_notifier
from ops_portal.observability.logging import get_logger, setup_logging

logger = get_logger(__name__)


# =============================================================================
# Error -> HTTP status
# =============================================================================
ERROR_STATUS: dict[type[PortalError], int] = {
    AuthenticationFailure: status.HTTP_401_UNAUTHORIZED,
    AuthorizationDenied: status.HTTP_403_FORBIDDEN,
    InvalidTransition: status.HTTP_409_CONFLICT,
    ValidationFailure: 422,
    EntityNotFound: status.HTTP_404_NOT_FOUND,
    StoreNotImplemented: status.HTTP_501_NOT_IMPLEMENTED,
    StoreUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
    StoreRejected: status.HTTP_502_BAD_GATEWAY,
}


def status_for(exc: PortalError) -> int:
    # Most specific class wins: InvalidTransition is also a ValidationFailure
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
    code = status_for(exc)
    log = logger.warning if code >= 500 else logger.info
    log("request_failed", path=request.url.path, error=type(exc).__name__, status=code, detail=exc.message)

    headers = {"WWW-Authenticate": "Bearer"} if code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(
        status_code=code,
        content={"detail": exc.message, "error": type(exc).__name__},
        headers=headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = ValidationFailure.default_message
    return JSONResponse(
        status_code=422,
        content={"detail": message, "error": ValidationFailure.__name__},
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An unexpected error occurred.", "error": "InternalError"},
    )


# =============================================================================
# Lifespan
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    # === STARTUP ===
    app_settings: Settings = app.state.settings
    adapter: DataAdapter = app.state.adapter
    logger.info("app_starting", app=app_settings.app_name, env=app_settings.app_env, adapter=adapter.kind)

    if isinstance(adapter, SqlAdapter) and (
        app_settings.database_url.startswith("sqlite") or adapter.demo_mode
    ):
        await init_models(adapter.engine)
        if adapter.demo_mode and not await adapter.list_users():
            await adapter.seed(build_demo_dataset())
            logger.info("demo_data_seeded", adapter=adapter.kind)

    yield

    # === SHUTDOWN ===
    await app.state.notifier.aclose()
    await app.state.verifier.aclose()
    await adapter.aclose()
    logger.info("app_stopped")


# =============================================================================
# App factory
# =============================================================================
def create_app(
    settings: Settings | None = None,
    adapter: DataAdapter | None = None,
    notifier: NotificationSink | None = None,
    verifier: DelegatedTokenVerifier | None = None,
) -> FastAPI:
    settings = settings or default_settings
    setup_logging(settings.log_level, json_logs=not settings.debug)

    app = FastAPI(
        title=settings.app_name,
        description=(
            "Internal operations portal: tool registry, tool and leave request "
            "approvals, people directory, attendance and finance ledger."
        ),
        version="1.0.0",
        lifespan=lifespan,
        debug=settings.debug,
    )

    app.state.settings = settings
    app.state.adapter = adapter or create_adapter(settings)
    app.state.notifier = notifier or build_notifier(settings)
    app.state.verifier = verifier or DelegatedTokenVerifier.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.portal_base_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PortalError, portal_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)

    app.include_router(api_router)
    return app


app = create_app()
