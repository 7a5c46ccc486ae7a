"""Shared fixtures: a scripted chat model, a fixed clock and a wired workspace."""

from __future__ import annotations

import asyncio
import itertools
import json
from datetime import datetime
from typing import Any, Iterable, Union

import pytest
from langchain_core.messages import AIMessageChunk, BaseMessage

from application.services.store import WorkshopStore
from agent.orchestrator import TurnOrchestrator
from agent.prompt import build_system_prompt
from agent.session import ConversationSession
from agent.tools.costing import CalculateDetailedCostTool
from agent.tools.dashboard import DashboardSummaryTool
from agent.tools.expenses import AddExpenseTool
from agent.tools.notepad import AddNotepadEntryTool, UpdateNotepadEntryTool
from agent.tools.orders import (
    DeleteOrderTool,
    GetOrderDetailsTool,
    RecordPaymentTool,
    RegisterOrderTool,
    SetDeliveryDateTool,
    UpdateOrderStatusTool,
)
from agent.tools.registry import ToolRegistry
from agent.transcript import Transcript
from application.context import SessionContext


START = datetime(2025, 3, 10, 12, 0)


class FixedClock:
    """Epoch-ms clock starting at a fixed local time, one ms per call."""

    def __init__(self, start: datetime = START):
        self._ticks = itertools.count(int(start.timestamp() * 1000))

    def __call__(self) -> int:
        return next(self._ticks)


# ---------------------------------------------------------------------------
# Scripted model
# ---------------------------------------------------------------------------

class Call:
    """A tool call the scripted model emits, split across two chunks."""

    def __init__(self, name: str, args: dict[str, Any], id: str = "call-1"):
        self.name = name
        self.args = args
        self.id = id

    def chunks(self) -> list[AIMessageChunk]:
        encoded = json.dumps(self.args, ensure_ascii=False)
        half = len(encoded) // 2
        return [
            AIMessageChunk(content="", tool_call_chunks=[{
                "name": self.name, "args": encoded[:half], "id": self.id,
                "index": 0, "type": "tool_call_chunk",
            }]),
            AIMessageChunk(content="", tool_call_chunks=[{
                "name": None, "args": encoded[half:], "id": None,
                "index": 0, "type": "tool_call_chunk",
            }]),
        ]


class Hang:
    """Stall the stream for *seconds* before the next piece."""

    def __init__(self, seconds: float):
        self.seconds = seconds


Piece = Union[str, Call, Hang, Exception]


class ScriptedChatModel:
    """Stands in for a tool-calling chat model.

    Each astream() call plays the next script: text pieces become text
    chunks, Call pieces become tool_call_chunks, Hang sleeps and an
    Exception is raised mid-stream.
    """

    def __init__(self, *scripts: Iterable[Piece]):
        self._scripts = [list(s) for s in scripts]
        self.requests: list[list[BaseMessage]] = []
        self.bound_tools: list[Any] = []

    def bind_tools(self, tools, **kwargs):
        self.bound_tools = list(tools)
        return self

    async def astream(self, messages, **kwargs):
        self.requests.append(list(messages))
        script = self._scripts.pop(0) if self._scripts else []
        for piece in script:
            if isinstance(piece, Hang):
                await asyncio.sleep(piece.seconds)
            elif isinstance(piece, Exception):
                raise piece
            elif isinstance(piece, Call):
                for chunk in piece.chunks():
                    yield chunk
            else:
                yield AIMessageChunk(content=piece)


class CountingRegistry(ToolRegistry):
    def __init__(self):
        super().__init__()
        self.invocations: list[tuple[str, dict]] = []

    def invoke(self, name, args=None):
        self.invocations.append((name, dict(args or {})))
        return super().invoke(name, args)


def register_all(registry: ToolRegistry, store: WorkshopStore) -> ToolRegistry:
    for tool in (
        RegisterOrderTool, RecordPaymentTool, UpdateOrderStatusTool, DeleteOrderTool,
        SetDeliveryDateTool, GetOrderDetailsTool, DashboardSummaryTool, AddExpenseTool,
        CalculateDetailedCostTool, AddNotepadEntryTool, UpdateNotepadEntryTool,
    ):
        registry.register(tool(store))
    return registry


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def store(clock):
    return WorkshopStore(clock=clock)


@pytest.fixture
def registry(store):
    return register_all(CountingRegistry(), store)


@pytest.fixture
def transcript(clock):
    return Transcript(clock=clock)


@pytest.fixture
def make_orchestrator(registry, transcript):
    """Build an orchestrator whose sessions all share one scripted model."""

    def build(model: ScriptedChatModel, snapshots=None, timeout: float = 0) -> TurnOrchestrator:
        def session_builder(history):
            return ConversationSession(
                llm=model,
                registry=registry,
                system_prompt=build_system_prompt(registry),
                history=history,
            )

        return TurnOrchestrator(
            ctx=SessionContext(workspace_id="test"),
            transcript=transcript,
            registry=registry,
            session_builder=session_builder,
            snapshots=snapshots,
            stream_idle_timeout=timeout,
        )

    return build
