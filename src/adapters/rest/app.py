"""
FastAPI application: REST adapter for the workshop assistant.

Usage:
    python run_api.py

Or directly:
    uvicorn adapters.rest.app:app --host 0.0.0.0 --port 8000 --reload
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Ensure src/ is on sys.path when invoked via uvicorn directly
_src_dir = Path(__file__).resolve().parent.parent.parent
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

from infrastructure.config import Settings
from factory import ServiceFactory
from domain.exceptions import DomainError, RepositoryError, TurnInProgressError
from adapters.rest.dependencies import set_factory
from adapters.rest.routers import catalog, chat_ws, dashboard, ledger, orders, snapshot

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize ServiceFactory on startup."""
    project_root = _src_dir.parent
    config = Settings.from_env(project_root=project_root)
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    factory = ServiceFactory(config)
    await factory.initialize()
    set_factory(factory)
    yield
    await factory.snapshots.flush()
    set_factory(None)


app = FastAPI(
    title="Workshop Assistant",
    version="1.0.0",
    description="Orders, expenses, notepad and costing for an upholstery/carpentry "
                "workshop, with a streaming chat assistant that can act on them.",
    lifespan=lifespan,
)

# CORS: permissive for development; tighten allowed_origins in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TurnInProgressError)
async def turn_in_progress_handler(request: Request, exc: TurnInProgressError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(RepositoryError)
async def repository_error_handler(request: Request, exc: RepositoryError):
    logger.error("Persistence failed on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Could not save the workspace."})


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=422, content={"detail": str(exc)})


# Register routers
app.include_router(orders.router)
app.include_router(catalog.router)
app.include_router(ledger.router)
app.include_router(dashboard.router)
app.include_router(snapshot.router)
app.include_router(chat_ws.router)


@app.get("/health", tags=["health"])
async def health():
    return {"status": "ok", "version": "1.0.0"}
