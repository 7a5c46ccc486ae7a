"""
factory - Composition root for the workshop assistant.

ALL dependency wiring happens here. No other module constructs its own
dependencies. Adapters (CLI, REST) call this factory to get the workspace
services and the turn orchestrator.

Usage:
    from factory import ServiceFactory
    from infrastructure.config import Settings

    config = Settings.from_env()
    factory = ServiceFactory(config)
    await factory.initialize()  # migrations + load the saved snapshot

    # Direct record operations (REST, CLI commands):
    store = factory.store
    store.add_expense("إيجار الورشة", 3000)
    await factory.snapshots.flush()

    # Chat:
    orchestrator = factory.get_orchestrator()
    reply = await orchestrator.run("سجل طلب كنبة لأستاذ محمد ب 5000")
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from langchain_core.language_models import BaseChatModel

from infrastructure.config import Settings
from infrastructure.llm.llm_builder import build_llm
from infrastructure.persistence.connection import AsyncSQLiteConnection
from infrastructure.persistence.migrations import run_migrations
from infrastructure.persistence.snapshot_repo import SQLiteSnapshotRepository
from domain.entities import Message
from domain.ports import Clock
from application.context import SessionContext
from application.services.snapshot import SnapshotService
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

logger = logging.getLogger(__name__)


class ServiceFactory:
    """Composition root: wires all dependencies together.

    One factory serves one workspace. Call initialize() once at startup,
    then use the workspace services and the orchestrator.

    Args:
        config: Application settings.
        llm:    Chat model to use instead of the configured provider
                (tests pass a scripted model here).
        clock:  Epoch-ms clock shared by the store, transcript and snapshots.
    """

    def __init__(
        self,
        config: Settings,
        llm: Optional[BaseChatModel] = None,
        clock: Optional[Clock] = None,
    ):
        self._config = config
        self._connection = AsyncSQLiteConnection(config.db_path)
        self._llm = llm
        self._clock = clock

        self._store = WorkshopStore(clock=clock)
        self._transcript = Transcript(clock=clock)
        self._snapshots = SnapshotService(
            store=self._store,
            transcript=self._transcript,
            repository=SQLiteSnapshotRepository(self._connection),
            workspace_id=config.workspace_id,
            clock=clock,
        )
        self._registry: Optional[ToolRegistry] = None
        self._orchestrator: Optional[TurnOrchestrator] = None
        self._initialized = False

    async def initialize(self) -> None:
        """One-time startup: run migrations and load the saved snapshot."""
        logger.info("Initializing ServiceFactory (db=%s)...", self._config.db_path)

        await run_migrations(self._connection)
        logger.info("Database migrations complete")

        await self._snapshots.load()

        self._initialized = True
        logger.info("ServiceFactory ready (workspace=%s)", self._config.workspace_id)

    # ------------------------------------------------------------------
    # Workspace services
    # ------------------------------------------------------------------

    @property
    def config(self) -> Settings:
        return self._config

    @property
    def store(self) -> WorkshopStore:
        self._ensure_initialized()
        return self._store

    @property
    def transcript(self) -> Transcript:
        self._ensure_initialized()
        return self._transcript

    @property
    def snapshots(self) -> SnapshotService:
        self._ensure_initialized()
        return self._snapshots

    # ------------------------------------------------------------------
    # Agent creation
    # ------------------------------------------------------------------

    def create_tool_registry(self) -> ToolRegistry:
        """Register every workshop tool against the workspace store."""
        registry = ToolRegistry()
        registry.register(RegisterOrderTool(self._store))
        registry.register(RecordPaymentTool(self._store))
        registry.register(UpdateOrderStatusTool(self._store))
        registry.register(DeleteOrderTool(self._store))
        registry.register(SetDeliveryDateTool(self._store))
        registry.register(GetOrderDetailsTool(self._store))
        registry.register(DashboardSummaryTool(self._store))
        registry.register(AddExpenseTool(self._store))
        registry.register(CalculateDetailedCostTool(self._store))
        registry.register(AddNotepadEntryTool(self._store))
        registry.register(UpdateNotepadEntryTool(self._store))
        return registry

    def create_session(self, history: Sequence[Message] = ()) -> ConversationSession:
        """Create a Conversation Session seeded with *history*."""
        registry = self._get_registry()
        return ConversationSession(
            llm=self._get_llm(),
            registry=registry,
            system_prompt=build_system_prompt(registry),
            history=history,
            max_history_messages=self._config.max_history_messages,
        )

    def get_orchestrator(self) -> TurnOrchestrator:
        """Return the workspace's Turn Orchestrator (created on first use)."""
        self._ensure_initialized()
        if self._orchestrator is None:
            self._orchestrator = TurnOrchestrator(
                ctx=SessionContext(workspace_id=self._config.workspace_id),
                transcript=self._transcript,
                registry=self._get_registry(),
                session_builder=self.create_session,
                snapshots=self._snapshots,
                stream_idle_timeout=self._config.stream_idle_timeout,
            )
        return self._orchestrator

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _get_registry(self) -> ToolRegistry:
        if self._registry is None:
            self._registry = self.create_tool_registry()
        return self._registry

    def _get_llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = build_llm(
                provider=self._config.llm_provider,
                model=self._config.active_llm_model,
                temperature=self._config.llm_temperature,
                ollama_base_url=self._config.ollama_base_url,
                openai_api_key=self._config.openai_api_key,
                groq_api_key=self._config.groq_api_key,
            )
        return self._llm

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError(
                "ServiceFactory not initialized. Call await factory.initialize() first."
            )
