"""SQLite snapshot repository against a temporary database file."""

import pytest

from infrastructure.persistence.connection import AsyncSQLiteConnection
from infrastructure.persistence.migrations import run_migrations
from infrastructure.persistence.snapshot_repo import SQLiteSnapshotRepository


@pytest.fixture
async def repo(tmp_path):
    connection = AsyncSQLiteConnection(str(tmp_path / "data" / "workshop.db"))
    await run_migrations(connection)
    await run_migrations(connection)  # idempotent
    return SQLiteSnapshotRepository(connection)


async def test_save_and_load(repo):
    snapshot = {"orders": [{"id": "o1", "name": "كنبة"}], "expenses": []}

    await repo.save("default", snapshot)

    assert await repo.load("default") == snapshot


async def test_save_overwrites(repo):
    await repo.save("default", {"orders": []})
    await repo.save("default", {"orders": [{"id": "o2", "name": "سرير"}]})

    assert (await repo.load("default"))["orders"][0]["id"] == "o2"
    assert await repo.list_workspaces() == ["default"]


async def test_missing_workspace_loads_none(repo):
    assert await repo.load("nobody") is None


async def test_corrupt_payload_loads_none(repo):
    async with repo._conn.acquire() as conn:
        await conn.execute(
            "INSERT INTO snapshots (workspace_id, payload) VALUES (?, ?)", ("broken", "{not json"),
        )

    assert await repo.load("broken") is None


async def test_delete(repo):
    await repo.save("shop-2", {})

    assert await repo.delete("shop-2") is True
    assert await repo.delete("shop-2") is False
    assert await repo.load("shop-2") is None
