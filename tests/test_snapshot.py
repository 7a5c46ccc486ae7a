"""Snapshot repair-on-load, export/import and change-driven flushing."""

import pytest

from application.services.snapshot import SnapshotService, migrate_snapshot
from application.services.store import WorkshopStore
from agent.transcript import Transcript
from domain.entities import MessageRole, OrderStatus, OrderType
from domain.exceptions import RepositoryError

NOW = 1_741_600_000_000


class MemoryRepository:
    def __init__(self, stored=None):
        self.stored = stored
        self.saves = 0

    async def save(self, workspace_id, snapshot):
        self.saves += 1
        self.stored = snapshot

    async def load(self, workspace_id):
        return self.stored


class BrokenRepository(MemoryRepository):
    async def save(self, workspace_id, snapshot):
        raise OSError("read-only file system")


def test_missing_expenses_key_migrates_cleanly():
    snapshot = migrate_snapshot({
        "orders": [{"id": "o1", "name": "كنبة", "clientName": "محمد", "totalCost": "5000",
                    "paidAmount": 1000, "status": "finished", "type": "old", "createdAt": 5}],
        "inventory": [{"id": "i1", "name": "إسفنج", "quantity": 3, "unit": "لوح", "price": 90}],
        "notepad": [{"id": "n1", "clientName": "سعيد", "amount": 200}],
    }, now=NOW)

    data = snapshot.data
    assert data.expenses == ()
    order = data.orders[0]
    assert (order.total_cost, order.paid_amount, order.created_at) == (5000, 1000, 5)
    assert order.status is OrderStatus.FINISHED and order.type is OrderType.OLD
    assert data.inventory[0].unit == "لوح"
    assert data.notepad[0].amount == 200
    assert data.priced_materials == () and data.saved_calculations == ()


def test_bad_values_fall_back_to_defaults():
    snapshot = migrate_snapshot({
        "orders": [
            {"id": "o1", "name": "سرير", "status": "lost", "type": "weird",
             "totalCost": "كتير", "laborCost": 0},
            {"name": "no id"},
            "garbage",
        ],
        "expenses": [{"id": "e1", "description": "كهرباء", "amount": None}],
        "pricedMaterials": [{"id": "m1", "name": "قماش"}],
        "notificationPermission": "maybe",
    }, now=NOW)

    (order,) = snapshot.data.orders
    assert order.status is OrderStatus.PROGRESS
    assert order.type is OrderType.NEW
    assert order.total_cost == 0
    assert order.client_name == "غير مسجل"
    assert order.created_at == NOW
    assert order.labor_cost is None
    assert snapshot.data.expenses[0].amount == 0
    assert snapshot.data.expenses[0].date == NOW
    assert snapshot.data.priced_materials[0].unit == "قطعة"
    assert snapshot.meta.notification_permission == "default"


def test_unrepresentable_numbers_and_dates_fall_back_to_defaults():
    snapshot = migrate_snapshot({
        "orders": [{"id": "o1", "name": "كنبة", "createdAt": "Infinity",
                    "deliveryDate": 1e18, "totalCost": float("inf"), "paidAmount": "-inf"}],
        "expenses": [{"id": "e1", "description": "كهرباء", "amount": 50, "date": 1e18}],
        "savedCalculations": [{"id": "c1", "name": "كنبة", "createdAt": float("nan")}],
        "lastBackupDate": 1e400,
    }, now=NOW)

    (order,) = snapshot.data.orders
    assert order.created_at == NOW
    assert order.delivery_date is None
    assert (order.total_cost, order.paid_amount) == (0, 0)
    assert snapshot.data.expenses[0].date == NOW
    assert snapshot.data.saved_calculations[0].created_at == NOW
    assert snapshot.meta.last_backup_date is None


def test_repaired_snapshot_supports_dashboard_and_schedule(clock):
    snapshot = migrate_snapshot({
        "orders": [{"id": "o1", "name": "كنبة", "totalCost": 100, "deliveryDate": -1e17}],
        "expenses": [{"id": "e1", "description": "إيجار", "amount": 50, "date": 1e18}],
    }, now=NOW)
    store = WorkshopStore(clock=clock)
    store.replace_all(snapshot.data)

    assert store.dashboard_summary().progress_count == 1
    assert len(store.monthly_chart()) == 3
    assert store.schedule() == []


def test_non_object_snapshot_starts_fresh():
    snapshot = migrate_snapshot(["not", "a", "snapshot"], now=NOW)
    assert snapshot.data.orders == ()
    assert snapshot.chat_history == ()


def test_transient_chat_messages_are_dropped():
    snapshot = migrate_snapshot({"chatHistory": [
        {"id": "1", "role": "user", "text": "أهلا"},
        {"id": "2", "role": "loading", "text": ""},
        {"id": "3", "role": "tool-call", "text": "⚙️"},
        {"id": "4", "role": "robot", "text": "?"},
        {"role": "assistant", "text": "تحت أمرك"},
    ]}, now=NOW)

    assert [m.role for m in snapshot.chat_history] == [MessageRole.USER, MessageRole.ASSISTANT]
    assert snapshot.chat_history[1].id


def test_calculations_keep_lines():
    snapshot = migrate_snapshot({"savedCalculations": [
        {"id": "c1", "name": "كنبة", "totalCost": 250, "createdAt": 7,
         "items": [{"materialId": "m1", "materialName": "قماش", "quantity": 5, "unit": "متر", "price": 50}]},
        {"id": "c2", "name": "بدون سطور"},
    ]}, now=NOW)

    (calc,) = snapshot.data.saved_calculations
    assert calc.items[0].total == 250
    assert calc.total_cost == 250


def test_export_import_round_trip(store, transcript, clock):
    service = SnapshotService(store, transcript, clock=clock)
    store.add_order("كنبة", "محمد", total_cost=500, labor_cost=100)
    store.add_expense("إيجار", 3000)
    transcript.append(MessageRole.USER, "أهلا")

    exported = service.export()
    assert exported["lastBackupDate"] is not None
    assert set(exported) >= {"orders", "expenses", "chatHistory", "notificationPermission"}

    restored = SnapshotService(WorkshopStore(clock=clock), Transcript(clock=clock), clock=clock)
    imported = restored.import_snapshot(exported)

    assert imported.data == store.data
    assert imported.chat_history == transcript.messages


def test_notification_permission_is_validated(store, transcript):
    service = SnapshotService(store, transcript)
    service.set_notification_permission("granted")
    assert service.to_dict()["notificationPermission"] == "granted"

    with pytest.raises(ValueError):
        service.set_notification_permission("always")


async def test_flush_only_writes_changes(store, transcript):
    repo = MemoryRepository()
    service = SnapshotService(store, transcript, repository=repo)

    assert await service.flush() is True
    assert await service.flush() is False

    store.add_expense("كهرباء", 350)
    assert await service.flush() is True
    transcript.append(MessageRole.USER, "أهلا")
    assert await service.flush() is True
    service.set_notification_permission("denied")
    assert await service.flush() is True
    assert repo.saves == 4


async def test_load_repairs_and_does_not_rewrite(store, transcript):
    repo = MemoryRepository({"orders": [{"id": "o1", "name": "كنبة", "totalCost": 100}]})
    service = SnapshotService(store, transcript, repository=repo)

    assert await service.load() is True
    assert store.orders[0].client_name == "غير مسجل"
    assert await service.flush() is False


async def test_load_without_saved_snapshot(store, transcript):
    service = SnapshotService(store, transcript, repository=MemoryRepository())
    assert await service.load() is False
    assert store.version == 0


async def test_flush_failure_is_a_repository_error(store, transcript):
    service = SnapshotService(store, transcript, repository=BrokenRepository())
    store.add_expense("كهرباء", 350)

    with pytest.raises(RepositoryError):
        await service.flush()
    assert len(store.expenses) == 1
