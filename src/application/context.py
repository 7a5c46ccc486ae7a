"""
application.context - Session-scoped context.

Every layer receives its context explicitly. Two workspaces get two
different SessionContext instances; nothing is module-global.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import uuid4


@dataclass
class SessionContext:
    """Per-session context passed through the orchestrator and services.

    Attributes:
        workspace_id:  Key the snapshot is persisted under.
        request_id:    Unique per turn, for tracing/logging.
    """
    workspace_id: str = "default"
    request_id: str = field(default_factory=lambda: uuid4().hex)

    def new_request(self) -> str:
        """Start a new turn within the same session and return its id."""
        self.request_id = uuid4().hex
        return self.request_id
