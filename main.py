# main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fishstock.routers import (
    report_router,
    transfer_router,
    stock_router,
    storage_location_router,
    outlet_order_router,
)

from fishstock.core.config import APP_ENV, APP_VERSION, CORS_ORIGINS, ENABLE_SCHEDULER
from fishstock.core.db import init_models
from fishstock.core.scheduler import scheduler
from fishstock.core.logging import setup_logging
from fishstock.middleware.request_logging import request_logging_middleware
from fishstock.core.error_handlers import register_exception_handlers

APP_NAME = "Fishstock - Perishable Stock Ledger API"

# ------------------------------------------------------------------------------
# LOGGING
# ------------------------------------------------------------------------------
setup_logging()
logger = logging.getLogger(__name__)

# ------------------------------------------------------------------------------
# LIFESPAN
# ------------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application", extra={"environment": APP_ENV})

    # DB init only outside deployed environments
    if APP_ENV in {"development", "test"}:
        await init_models()
        logger.info("Database models initialized (%s)", APP_ENV)
    else:
        logger.info("init_models() skipped in %s", APP_ENV)

    if APP_ENV == "development" or ENABLE_SCHEDULER:
        scheduler.start()
        logger.info("Scheduler started")
    else:
        logger.info("Scheduler disabled")

    yield

    logger.info("Shutting down application")
    if scheduler.running:
        scheduler.shutdown()

# ------------------------------------------------------------------------------
# APP INIT
# ------------------------------------------------------------------------------
app = FastAPI(
    title=APP_NAME,
    description="Stock ledger, FIFO provenance and inter-location transfers for perishable fish",
    version=APP_VERSION,
    docs_url="/docs" if APP_ENV != "production" else None,
    redoc_url=None,
    lifespan=lifespan,
)

# ------------------------------------------------------------------------------
# EXCEPTION HANDLERS
# ------------------------------------------------------------------------------
register_exception_handlers(app)

# ------------------------------------------------------------------------------
# MIDDLEWARE
# ------------------------------------------------------------------------------
app.middleware("http")(request_logging_middleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------------------------------------------------------------
# HEALTH CHECK
# ------------------------------------------------------------------------------
@app.get("/", tags=["Health"])
async def health_check():
    return {
        "status": "ok",
        "service": "fishstock-api",
        "environment": APP_ENV,
        "version": APP_VERSION,
    }

# ------------------------------------------------------------------------------
# ROUTERS
# ------------------------------------------------------------------------------
app.include_router(storage_location_router)
app.include_router(report_router)
app.include_router(stock_router)
app.include_router(transfer_router)
app.include_router(outlet_order_router)
