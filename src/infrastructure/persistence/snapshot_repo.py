"""
infrastructure.persistence.snapshot_repo - SQLite snapshot repository.

Stores the whole workspace snapshot as one JSON document per workspace.
load() hands back the raw decoded dict; repairing it is the caller's job.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Optional

from infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)


class SQLiteSnapshotRepository:
    """Async SQLite implementation of SnapshotRepository."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    async def save(self, workspace_id: str, snapshot: dict[str, Any]) -> None:
        now = datetime.now().isoformat()
        payload = json.dumps(snapshot, ensure_ascii=False)
        async with self._conn.acquire() as conn:
            await conn.execute(
                """INSERT INTO snapshots (workspace_id, payload, created_at, updated_at)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(workspace_id)
                   DO UPDATE SET payload = excluded.payload,
                                 updated_at = excluded.updated_at""",
                (workspace_id, payload, now, now),
            )
        logger.debug("Saved snapshot for %s (%d bytes)", workspace_id, len(payload))

    async def load(self, workspace_id: str) -> Optional[dict[str, Any]]:
        async with self._conn.acquire() as conn:
            cursor = await conn.execute(
                "SELECT payload FROM snapshots WHERE workspace_id = ?",
                (workspace_id,),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        try:
            return json.loads(row["payload"])
        except json.JSONDecodeError:
            logger.error("Stored snapshot for %s is not valid JSON; starting fresh", workspace_id)
            return None

    async def delete(self, workspace_id: str) -> bool:
        async with self._conn.acquire() as conn:
            cursor = await conn.execute(
                "DELETE FROM snapshots WHERE workspace_id = ?", (workspace_id,),
            )
            return cursor.rowcount > 0

    async def list_workspaces(self) -> list[str]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT workspace_id FROM snapshots ORDER BY updated_at DESC",
            )
        return [r["workspace_id"] for r in rows]
