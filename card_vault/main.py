"""
FastAPI application factory and entry point.

This module creates and configures the FastAPI application:
  1. Logging - standard library logging, level from settings.LOG_LEVEL
  2. Lifespan manager - creates tables on startup, disposes the engine on shutdown
  3. CORS middleware
  4. Exception handlers - maps domain errors to HTTP responses
  5. Router registration

Running locally:
    uvicorn card_vault.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from card_vault import models  # noqa: F401  (registers tables on Base.metadata)
from card_vault.config import settings
from card_vault.database import engine, Base
from card_vault.exceptions import register_exception_handlers
from card_vault.routers import auth, cards


def configure_logging(level: str) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: create all tables if they don't exist.
    Shutdown: dispose of the database engine, closing all connections.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("%s %s started", settings.APP_NAME, settings.APP_VERSION)
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=(
        "Secure card number storage and retrieval: AES-256-GCM encryption at "
        "rest, lookup by number through a search hash, and batch file upload."
    ),
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(auth.router, prefix="/v1/auth", tags=["Authentication"])
app.include_router(cards.router, prefix="/v1/cards", tags=["Card Management"])


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for deployment probes."""
    return {"status": "ok", "version": settings.APP_VERSION}
