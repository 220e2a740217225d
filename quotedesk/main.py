"""FastAPI application entry point: wires everything together.

Usage:
    python -m quotedesk.main
"""

from __future__ import annotations

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from quotedesk.api import quotes as quotes_api
from quotedesk.api import sla as sla_api
from quotedesk.config import settings
from quotedesk.db.engine import db_lifespan
from quotedesk.errors import QuoteDeskError

# ── Logging setup ────────────────────────────────────────────────────

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    stream=sys.stdout,
)
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = logging.getLogger(__name__)

# ── FastAPI lifespan ─────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application startup and shutdown lifecycle."""
    logger.info("Starting QuoteDesk (env=%s)", settings.environment)
    if not settings.security.api_password:
        logger.warning("API_PASSWORD not set, API routes will answer 503")

    async with db_lifespan():
        logger.info("Database initialized")
        yield
        logger.info("Shutting down QuoteDesk...")

    logger.info("QuoteDesk shutdown complete")


# ── FastAPI app ──────────────────────────────────────────────────────

app = FastAPI(
    title="QuoteDesk API",
    description="Quotes, invoices and service level agreements",
    version="0.1.0",
    lifespan=lifespan,
)
app.include_router(quotes_api.router)
app.include_router(sla_api.router)


@app.exception_handler(QuoteDeskError)
async def quotedesk_error_handler(request: Request, exc: QuoteDeskError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.code)
    else:
        logger.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc.message, exc.code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {
        "status": "ok",
        "environment": settings.environment,
        "company": settings.provider.company_name,
    }


# ── Entry point ──────────────────────────────────────────────────────

if __name__ == "__main__":
    uvicorn.run(
        "quotedesk.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower(),
    )
