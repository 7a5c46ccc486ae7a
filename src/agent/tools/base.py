"""
agent.tools.base - Base tool interface and result container.

All workshop tools inherit from BaseTool and return ToolResult. Tools run
synchronously against the Domain Store, so one tool's mutations complete
before anything else can observe the store.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel


@dataclass
class ToolResult:
    """Result returned by a tool execution.

    payload:  JSON-serializable object handed back to the model, which
              narrates it. Its shape is per tool; failures usually carry
              {"success": False, "message": ...}.
    success:  Whether the tool did what was asked. For logs and callers;
              the model only sees the payload.
    """
    payload: dict[str, Any] = field(default_factory=dict)
    success: bool = True

    def to_json(self) -> str:
        return json.dumps(self.payload, ensure_ascii=False)


def failure(message: str) -> ToolResult:
    return ToolResult(payload={"success": False, "message": message}, success=False)


class BaseTool(ABC):
    """Abstract base for all workshop tools."""

    name: str
    description: str

    @abstractmethod
    def get_schema(self) -> type[BaseModel]:
        """Return the pydantic schema for this tool's input arguments."""
        ...

    @abstractmethod
    def execute(self, intent: BaseModel) -> ToolResult:
        """Execute the tool with its validated intent."""
        ...
