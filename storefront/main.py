from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from storefront.core.config import settings
from storefront.core.database import engine, init_db, session_scope
from storefront.core.errors import StorefrontError
from storefront.core.log import setup_logging, access_log_middleware
from storefront.core.metrics import REQUEST_COUNT, REQUEST_LATENCY
from storefront.infra.events.handlers import HANDLERS
from storefront.infra.events.rabbitmq import rabbitmq, start_consumer
from storefront.api import cart_routes, inventory_routes, order_routes

# --- Logging ---
setup_logging()
logger = logging.getLogger(__name__)


async def consumer_handler(payload: dict, rk: str) -> None:
    """Routes one broker message to its handler with a fresh DB session."""
    handler = HANDLERS.get(rk)
    if handler is None:
        logger.warning("[storefront] event ignored: %s", rk)
        return
    logger.info("[storefront] handling %s", rk)
    with session_scope() as db:
        await handler(payload, db, rabbitmq)


def _consumer_done(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("[storefront] consumer stopped: %s", exc, exc_info=exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- Startup ---
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("database connection OK")
        init_db()
    except Exception:
        logger.exception("database connectivity check failed")

    consumer_task = None
    try:
        await rabbitmq.connect()
        consumer_task = asyncio.create_task(
            start_consumer(
                rabbitmq.connection,
                rabbitmq.exchange,
                rabbitmq.exchange_type,
                queue_name="storefront-events",
                patterns=list(HANDLERS),
                handler=consumer_handler,
            )
        )
        consumer_task.add_done_callback(_consumer_done)
        logger.info("[storefront] consumer started (patterns=%s)", ",".join(HANDLERS))
    except Exception as e:
        logger.exception("[storefront] RabbitMQ initialisation failed: %s", e)

    yield  # Application runs here

    # --- Shutdown ---
    if consumer_task is not None and not consumer_task.done():
        consumer_task.cancel()
        with suppress(asyncio.CancelledError):
            await consumer_task
    await rabbitmq.disconnect()


_public_docs = settings.ENV != "prod"

app = FastAPI(
    title=settings.APP_TITLE,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    lifespan=lifespan,
    root_path=settings.ROOT_PATH,
    docs_url="/docs" if _public_docs else None,
    redoc_url="/redoc" if _public_docs else None,
    openapi_url="/openapi.json" if _public_docs else None,
)


# --- Error mapping ---
@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("storage failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})


# --- Middlewares ---
app.middleware("http")(access_log_middleware)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    started = time.perf_counter()
    response: Response = await call_next(request)
    elapsed = time.perf_counter() - started

    # Route template keeps label cardinality bounded
    route = request.scope.get("route")
    path = getattr(route, "path", request.url.path)

    REQUEST_COUNT.labels(request.method, path, str(response.status_code)).inc()
    REQUEST_LATENCY.labels(request.method, path).observe(elapsed)
    return response


# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)


# --- Tech endpoints ---
@app.get("/metrics")
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/health", tags=["health"])
def health():
    return {"status": "ok"}


# --- Routes ---
app.include_router(inventory_routes.router)
app.include_router(cart_routes.router)
app.include_router(order_routes.router)
