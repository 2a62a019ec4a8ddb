import logging
from contextlib import asynccontextmanager

import pydantic
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from powerswitch.config import settings
from powerswitch.database import init_db
from powerswitch.errors import StoreUnavailableError, ValidationError

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    from powerswitch.services import live_refresh
    from powerswitch.store import get_optional_store
    store = get_optional_store()
    if store is None:
        logger.warning("Database not configured - dashboard will run in degraded mode")
    else:
        live_refresh.attach(store)
        live_refresh.refresh_snapshot(store)

    if settings.scheduler_enabled:
        from powerswitch.tasks.scheduler import start_scheduler
        start_scheduler()
    yield
    if settings.scheduler_enabled:
        from powerswitch.tasks.scheduler import stop_scheduler
        stop_scheduler()
    live_refresh.detach()


app = FastAPI(
    title="PowerSwitch",
    description="Power outage and consumption tracking dashboard",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=422,
        content={"error": "validation_error", "field": exc.field, "detail": str(exc)},
    )


@app.exception_handler(pydantic.ValidationError)
async def payload_error_handler(request: Request, exc: pydantic.ValidationError):
    return JSONResponse(
        status_code=422,
        content={"error": "validation_error", "detail": exc.errors(include_url=False, include_context=False)},
    )


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    return JSONResponse(
        status_code=503,
        content={"error": "store_unavailable", "detail": exc.detail},
    )


from powerswitch.routers import (  # noqa: E402
    consumption,
    dashboard,
    logs,
    notifications,
    power,
    readings,
    settings as settings_router,
    telegram,
)

app.include_router(dashboard.router, prefix="/api/v1")
app.include_router(power.router, prefix="/api/v1")
app.include_router(consumption.router, prefix="/api/v1")
app.include_router(readings.router, prefix="/api/v1")
app.include_router(notifications.router, prefix="/api/v1")
app.include_router(logs.router, prefix="/api/v1")
app.include_router(settings_router.router, prefix="/api/v1")
app.include_router(telegram.router, prefix="/api/v1")


@app.get("/health")
async def health():
    return {"status": "ok"}
