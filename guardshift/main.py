import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError, OperationalError
from starlette.middleware.sessions import SessionMiddleware

from .config import get_settings
from .errors import ShiftEngineError
from .migration_runner import run_migrations_once
from .routers import alerts, attendance, dashboard, shifts

settings = get_settings()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)
app.add_middleware(SessionMiddleware, secret_key=settings.secret_key, session_cookie=settings.session_cookie)


@app.exception_handler(ShiftEngineError)
async def shift_engine_error(request: Request, exc: ShiftEngineError) -> JSONResponse:
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


@app.exception_handler(OperationalError)
async def storage_unavailable(request: Request, exc: OperationalError) -> JSONResponse:
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(
        {"error": "storage_unavailable", "detail": "The data store did not respond", "retryable": True},
        status_code=503,
    )


@app.exception_handler(DBAPIError)
async def storage_error(request: Request, exc: DBAPIError) -> JSONResponse:
    logger.error("Storage error on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(
        {"error": "storage_error", "detail": "The data store rejected the request", "retryable": exc.connection_invalidated},
        status_code=503 if exc.connection_invalidated else 500,
    )


@app.on_event("startup")
async def ensure_schema() -> None:
    if not settings.run_migrations_on_startup:
        return
    try:
        run_migrations_once()
    except Exception:  # pragma: no cover - startup failures should surface
        logger.exception("Database migration failed")
        raise


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}


app.include_router(shifts.router)
app.include_router(attendance.router)
app.include_router(dashboard.router)
app.include_router(alerts.router)
