"""Backup endpoints: export and import the whole workspace snapshot."""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends

from factory import ServiceFactory
from adapters.rest.dependencies import get_factory, persist
from adapters.rest.schemas import NotificationPermissionBody

router = APIRouter(prefix="/snapshot", tags=["snapshot"])
logger = logging.getLogger(__name__)


@router.get("/export")
async def export_snapshot(factory: ServiceFactory = Depends(get_factory)):
    """Return the full snapshot and stamp lastBackupDate."""
    snapshot = factory.snapshots.export()
    await persist(factory)
    return snapshot


@router.post("/import")
async def import_snapshot(
    raw: Any = Body(...),
    factory: ServiceFactory = Depends(get_factory),
):
    """Replace all data and chat history with a (repaired) backup.

    Malformed content is repaired, not rejected. Returns 409 while a chat
    turn is in progress.
    """
    await factory.get_orchestrator().import_snapshot(raw)
    store = factory.store
    logger.info("Snapshot imported via REST")
    return {
        "orders": len(store.orders),
        "inventory": len(store.inventory),
        "expenses": len(store.expenses),
        "pricedMaterials": len(store.priced_materials),
        "savedCalculations": len(store.saved_calculations),
        "notepad": len(store.notepad),
        "chatHistory": len(factory.transcript.messages),
    }


@router.put("/notification-permission")
async def set_notification_permission(
    body: NotificationPermissionBody, factory: ServiceFactory = Depends(get_factory),
):
    factory.snapshots.set_notification_permission(body.permission)
    await persist(factory)
    return {"notificationPermission": factory.snapshots.meta.notification_permission}
