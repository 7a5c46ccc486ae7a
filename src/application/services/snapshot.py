"""
application.services.snapshot - Snapshot serialisation, repair-on-load and
flushing to persistence.

A raw snapshot (from the repository or a user-supplied backup file) is
never trusted: migrate_snapshot() rebuilds it field by field, dropping
records that lack an id or their name field and defaulting everything
else to a safe value. Nothing here raises for malformed data.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from datetime import datetime
from typing import Any, Optional

from domain.entities import (
    CalculationLine,
    CalculationList,
    Expense,
    InventoryItem,
    Message,
    MessageRole,
    NotepadEntry,
    Order,
    OrderStatus,
    OrderType,
    PricedMaterial,
    SnapshotMeta,
    WorkshopData,
)
from domain.exceptions import RepositoryError
from domain.ports import Clock, MessageLog, SnapshotRepository
from application.dto import Snapshot
from application.services.store import WorkshopStore, new_id, now_ms

logger = logging.getLogger(__name__)

DEFAULT_UNIT = "قطعة"
DEFAULT_CLIENT = "غير مسجل"
NOTIFICATION_PERMISSIONS = ("default", "granted", "denied")


# ---------------------------------------------------------------------------
# Repair-on-load
# ---------------------------------------------------------------------------

def _number(value: Any) -> float:
    """Lenient numeric coercion: anything unusable becomes 0."""
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _timestamp(value: Any, default: Optional[int]) -> Optional[int]:
    """Epoch ms, or *default* when missing or not a representable date."""
    number = _number(value)
    if not number:
        return default
    try:
        datetime.fromtimestamp(number / 1000)
    except (ValueError, OverflowError, OSError):
        logger.warning("Timestamp %r is out of range; using default", value)
        return default
    return int(number)


def _records(raw: dict[str, Any], key: str, *required: str) -> list[dict[str, Any]]:
    """Dict records under *key* whose required fields are all truthy."""
    items = raw.get(key)
    if not isinstance(items, list):
        if items is not None:
            logger.warning("Snapshot field %r is not a list; using empty", key)
        return []
    kept = [
        item for item in items
        if isinstance(item, dict) and all(item.get(f) for f in required)
    ]
    if len(kept) != len(items):
        logger.warning("Dropped %d malformed %s record(s)", len(items) - len(kept), key)
    return kept


def _order(raw: dict[str, Any], now: int) -> Order:
    labor = _number(raw.get("laborCost"))
    return Order(
        id=str(raw["id"]),
        name=str(raw["name"]),
        client_name=str(raw.get("clientName") or DEFAULT_CLIENT),
        type=OrderType(raw["type"]) if raw.get("type") in ("new", "old") else OrderType.NEW,
        status=(
            OrderStatus(raw["status"])
            if raw.get("status") in ("progress", "finished", "delivery")
            else OrderStatus.PROGRESS
        ),
        total_cost=_number(raw.get("totalCost")),
        paid_amount=_number(raw.get("paidAmount")),
        created_at=_timestamp(raw.get("createdAt"), now),
        delivery_date=_timestamp(raw.get("deliveryDate"), None),
        labor_cost=labor or None,
    )


def _calculation_line(raw: Any) -> Optional[CalculationLine]:
    if not isinstance(raw, dict):
        return None
    return CalculationLine(
        material_id=str(raw.get("materialId") or ""),
        material_name=str(raw.get("materialName") or raw.get("name") or ""),
        quantity=_number(raw.get("quantity")),
        unit=str(raw.get("unit") or DEFAULT_UNIT),
        price=_number(raw.get("price")),
    )


def _message(raw: Any, now: int) -> Optional[Message]:
    if not isinstance(raw, dict):
        return None
    try:
        role = MessageRole(raw.get("role"))
    except ValueError:
        return None
    if role.transient:
        return None
    return Message(
        id=str(raw.get("id") or new_id(role.value, now)),
        role=role,
        text=str(raw.get("text") or ""),
    )


def migrate_snapshot(raw: Any, now: Optional[int] = None) -> Snapshot:
    """Repair an untyped snapshot into a valid one.

    Missing collections become empty, invalid enum values fall back to
    their defaults, non-numeric amounts become 0 and missing timestamps
    become *now*.
    """
    now = now if now is not None else now_ms()
    if not isinstance(raw, dict):
        logger.warning("Snapshot is not an object (%s); starting fresh", type(raw).__name__)
        raw = {}

    data = WorkshopData(
        orders=tuple(_order(o, now) for o in _records(raw, "orders", "id", "name")),
        inventory=tuple(
            InventoryItem(
                id=str(i["id"]),
                name=str(i["name"]),
                quantity=_number(i.get("quantity")),
                unit=str(i.get("unit") or DEFAULT_UNIT),
                price=_number(i.get("price")),
            )
            for i in _records(raw, "inventory", "id", "name")
        ),
        expenses=tuple(
            Expense(
                id=str(e["id"]),
                description=str(e["description"]),
                amount=_number(e.get("amount")),
                date=_timestamp(e.get("date"), now),
            )
            for e in _records(raw, "expenses", "id", "description")
        ),
        priced_materials=tuple(
            PricedMaterial(
                id=str(m["id"]),
                name=str(m["name"]),
                unit=str(m.get("unit") or DEFAULT_UNIT),
                price=_number(m.get("price")),
            )
            for m in _records(raw, "pricedMaterials", "id", "name")
        ),
        saved_calculations=tuple(
            CalculationList(
                id=str(c["id"]),
                name=str(c["name"]),
                items=tuple(
                    line for line in map(_calculation_line, c["items"]) if line is not None
                ),
                total_cost=_number(c.get("totalCost")),
                created_at=_timestamp(c.get("createdAt"), now),
            )
            for c in _records(raw, "savedCalculations", "id", "name")
            if isinstance(c.get("items"), list)
        ),
        notepad=tuple(
            NotepadEntry(
                id=str(n["id"]),
                client_name=str(n["clientName"]),
                amount=_number(n.get("amount")),
            )
            for n in _records(raw, "notepad", "id", "clientName")
        ),
    )

    history = raw.get("chatHistory")
    chat_history = tuple(
        m for m in (_message(item, now) for item in (history if isinstance(history, list) else []))
        if m is not None
    )

    permission = raw.get("notificationPermission")
    meta = SnapshotMeta(
        last_backup_date=_timestamp(raw.get("lastBackupDate"), None),
        notification_permission=(
            permission if permission in NOTIFICATION_PERMISSIONS else "default"
        ),
    )
    return Snapshot(data=data, chat_history=chat_history, meta=meta)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class SnapshotService:
    """Builds, exports, imports and persists workspace snapshots.

    flush() only writes when the store or transcript changed since the
    last successful write.
    """

    def __init__(
        self,
        store: WorkshopStore,
        transcript: MessageLog,
        repository: Optional[SnapshotRepository] = None,
        workspace_id: str = "default",
        meta: Optional[SnapshotMeta] = None,
        clock: Optional[Clock] = None,
    ):
        self._store = store
        self._transcript = transcript
        self._repository = repository
        self._workspace_id = workspace_id
        self._meta = meta or SnapshotMeta()
        self._clock = clock or now_ms
        self._meta_version = 0
        self._flushed: Optional[tuple[int, int, int]] = None

    @property
    def meta(self) -> SnapshotMeta:
        return self._meta

    def snapshot(self) -> Snapshot:
        return Snapshot(
            data=self._store.data,
            chat_history=self._transcript.messages,
            meta=self._meta,
        )

    def to_dict(self) -> dict[str, Any]:
        return self.snapshot().to_dict()

    def set_notification_permission(self, permission: str) -> None:
        if permission not in NOTIFICATION_PERMISSIONS:
            raise ValueError(
                f"notification permission must be one of {NOTIFICATION_PERMISSIONS}"
            )
        self._set_meta(notification_permission=permission)

    def export(self) -> dict[str, Any]:
        """Return the snapshot for backup, stamping lastBackupDate."""
        self._set_meta(last_backup_date=self._clock())
        logger.info("Snapshot exported for workspace %s", self._workspace_id)
        return self.to_dict()

    def import_snapshot(self, raw: Any) -> Snapshot:
        """Repair *raw* and replace all collections and the transcript with it."""
        snapshot = migrate_snapshot(raw, self._clock())
        self.apply(snapshot)
        logger.info(
            "Imported snapshot: %d orders, %d messages",
            len(snapshot.data.orders), len(snapshot.chat_history),
        )
        return snapshot

    def apply(self, snapshot: Snapshot) -> None:
        self._store.replace_all(snapshot.data)
        self._transcript.replace(snapshot.chat_history)
        self._meta = snapshot.meta
        self._meta_version += 1

    async def load(self) -> bool:
        """Load and repair the persisted snapshot, if there is one."""
        if self._repository is None:
            return False
        raw = await self._repository.load(self._workspace_id)
        if raw is None:
            logger.info("No saved snapshot for workspace %s", self._workspace_id)
            return False
        self.apply(migrate_snapshot(raw, self._clock()))
        self._flushed = self._versions()
        logger.info(
            "Loaded snapshot for workspace %s (%d orders)",
            self._workspace_id, len(self._store.orders),
        )
        return True

    async def flush(self) -> bool:
        """Persist the snapshot if anything changed. Returns True if written.

        Raises:
            RepositoryError: the repository failed to save.
        """
        if self._repository is None:
            return False
        versions = self._versions()
        if versions == self._flushed:
            return False
        try:
            await self._repository.save(self._workspace_id, self.to_dict())
        except RepositoryError:
            raise
        except Exception as exc:
            raise RepositoryError(f"Failed to save snapshot: {exc}") from exc
        self._flushed = versions
        logger.info("Snapshot persisted for workspace %s", self._workspace_id)
        return True

    def _set_meta(self, **changes: Any) -> None:
        self._meta = replace(self._meta, **changes)
        self._meta_version += 1

    def _versions(self) -> tuple[int, int, int]:
        return (self._store.version, self._transcript.version, self._meta_version)
