# autoscaler/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from autoscaler.api import dependencies
from autoscaler.api.middleware import CorrelationIdMiddleware
from autoscaler.api.routers import events, health, pool
from autoscaler.bootstrap import build_runtime
from autoscaler.config.logging import configure_logging
from autoscaler.config.settings import get_settings
from autoscaler.domain.exceptions import AutoscalerError, PoolOperationError

logger = logging.getLogger(__name__)

settings = get_settings()
configure_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ConfigurationError propagates: an invalid policy must keep the service from starting
    runtime = build_runtime(settings, metrics=dependencies.get_metrics())
    loop = runtime.loop
    try:
        await loop.pool.adopt_existing()
    except PoolOperationError as e:
        logger.warning("replica_adoption_failed", extra={"error": e.message})
    if runtime.event_buffer is not None:
        await loop.event_log.restore(runtime.event_buffer)
    dependencies.set_control_loop(loop)
    if settings.autostart_loop:
        await loop.start()
    try:
        yield
    finally:
        await loop.stop(settings.shutdown_grace_seconds)
        dependencies.set_control_loop(None)
        await runtime.close()


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(CorrelationIdMiddleware)


@app.exception_handler(PoolOperationError)
async def pool_operation_error_handler(request, exc: PoolOperationError):
    return JSONResponse(status_code=503, content={"detail": exc.message})


@app.exception_handler(AutoscalerError)
async def autoscaler_error_handler(request, exc: AutoscalerError):
    return JSONResponse(status_code=500, content={"detail": exc.message})


# Routers: /health, /pool, /events, /metrics
app.include_router(health.router)
app.include_router(pool.router, prefix="/pool")
app.include_router(events.router)
