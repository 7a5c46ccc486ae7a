"""
application.dto - Data Transfer Objects for service input/output.

Snapshot is the complete, repaired persistence unit: the six collections,
the settled chat history and the metadata.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from domain.entities import Message, SnapshotMeta, WorkshopData


@dataclass(frozen=True)
class Snapshot:
    """Everything handed to and from persistence."""
    data: WorkshopData = field(default_factory=WorkshopData)
    chat_history: tuple[Message, ...] = ()
    meta: SnapshotMeta = field(default_factory=SnapshotMeta)

    def to_dict(self) -> dict[str, Any]:
        snapshot: dict[str, Any] = self.data.to_dict()
        snapshot["chatHistory"] = [m.to_dict() for m in self.chat_history]
        snapshot["lastBackupDate"] = self.meta.last_backup_date
        snapshot["notificationPermission"] = self.meta.notification_permission
        return snapshot
