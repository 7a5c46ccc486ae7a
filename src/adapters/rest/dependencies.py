"""
Shared FastAPI dependencies.

- get_factory(): returns the initialized ServiceFactory (set at startup).
- get_store(): the workspace Domain Store.
- persist(): flushes the snapshot after a direct record operation.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, status

from factory import ServiceFactory
from application.services.store import WorkshopStore

# Module-level reference set by app lifespan
_factory: ServiceFactory | None = None


def set_factory(factory: ServiceFactory | None) -> None:
    global _factory
    _factory = factory


def get_factory() -> ServiceFactory:
    if _factory is None:
        raise RuntimeError("ServiceFactory not initialized.")
    return _factory


def get_store(factory: ServiceFactory = Depends(get_factory)) -> WorkshopStore:
    return factory.store


async def persist(factory: ServiceFactory) -> None:
    """Flush the snapshot; direct actions persist after every mutation."""
    await factory.snapshots.flush()


def found(record, what: str):
    """Return *record* or raise 404."""
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found.")
    return record
