"""
agent.orchestrator - The Turn Orchestrator.

Runs one user turn at a time as a small state machine:

    IDLE -> STREAMING_ANSWER -> IDLE
    IDLE -> STREAMING_ANSWER -> EXECUTING_TOOL -> STREAMING_TOOL_ANSWER -> IDLE
    any  -> IDLE (on error, with the apology message)

The transcript is driven through its open slot: a loading placeholder
while waiting for the first fragment, the assistant text (cumulative)
while streaming, a tool-call status line while the tool runs. A new
submission while a turn is in flight is rejected, not queued.

Callers consume a turn as an async iterator of TurnUpdate:

    async for update in orchestrator.submit("سجل طلب ..."):
        render(update)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncGenerator, AsyncIterator, Callable, Optional, Sequence

from domain.entities import Message, MessageRole
from domain.exceptions import ModelStreamError, RepositoryError, TurnInProgressError
from domain.models import ToolCall
from application.context import SessionContext
from application.services.snapshot import SnapshotService
from agent.session import ConversationSession, StreamFragment
from agent.tools.registry import ToolRegistry
from agent.transcript import Transcript

logger = logging.getLogger(__name__)

APOLOGY_TEXT = "معلش، حصلت مشكلة. حاول تاني."

SessionBuilder = Callable[[Sequence[Message]], ConversationSession]


class TurnState(str, Enum):
    IDLE = "idle"
    STREAMING_ANSWER = "streaming_answer"
    EXECUTING_TOOL = "executing_tool"
    STREAMING_TOOL_ANSWER = "streaming_tool_answer"


@dataclass(frozen=True)
class TurnUpdate:
    """A visible change during a turn.

    message is the message that changed: the open slot while streaming,
    or the message just settled into the log. It is None only when a turn
    settles without adding anything.
    """
    state: TurnState
    message: Optional[Message] = None
    settled: bool = False


def tool_status_text(tool_name: str) -> str:
    return f"⚙️ جاري {tool_name}..."


class TurnStream:
    """Async iterator over one turn's updates.

    The turn holds the orchestrator until it is drained or closed. A stream
    that is closed or dropped before its first update gives the slot back.
    """

    def __init__(self, updates: AsyncGenerator[TurnUpdate, None], release: Callable[[], None]):
        self._updates = updates
        self._release = release
        self._started = False

    def __aiter__(self) -> TurnStream:
        return self

    async def __anext__(self) -> TurnUpdate:
        self._started = True
        return await self._updates.__anext__()

    async def aclose(self) -> None:
        if self._started:
            await self._updates.aclose()
        else:
            self._discard()

    def _discard(self) -> None:
        if not self._started:
            self._started = True
            self._release()

    def __del__(self) -> None:
        self._discard()


class TurnOrchestrator:
    """Single-flight driver of user turns."""

    def __init__(
        self,
        ctx: SessionContext,
        transcript: Transcript,
        registry: ToolRegistry,
        session_builder: SessionBuilder,
        snapshots: Optional[SnapshotService] = None,
        stream_idle_timeout: float = 0,
    ):
        self._ctx = ctx
        self._transcript = transcript
        self._registry = registry
        self._session_builder = session_builder
        self._snapshots = snapshots
        self._idle_timeout = stream_idle_timeout
        self._state = TurnState.IDLE
        self._session = session_builder(transcript.messages)

    @property
    def state(self) -> TurnState:
        return self._state

    @property
    def transcript(self) -> Transcript:
        return self._transcript

    @property
    def session(self) -> ConversationSession:
        return self._session

    def ensure_idle(self) -> None:
        if self._state is not TurnState.IDLE:
            raise TurnInProgressError(f"A turn is in progress ({self._state.value})")

    def rebuild_session(self) -> None:
        """Recreate the model session from the current transcript."""
        self.ensure_idle()
        self._session = self._session_builder(self._transcript.messages)
        logger.info("Conversation session rebuilt from %d message(s)", len(self._transcript.messages))

    async def import_snapshot(self, raw: Any) -> None:
        """Replace all data and history, then rebuild the session around it."""
        self.ensure_idle()
        if self._snapshots is None:
            raise RuntimeError("No snapshot service configured")
        self._snapshots.import_snapshot(raw)
        self.rebuild_session()
        await self._persist()

    def submit(self, text: str) -> TurnStream:
        """Start a turn. Raises TurnInProgressError if one is in flight."""
        self.ensure_idle()
        self._state = TurnState.STREAMING_ANSWER
        return TurnStream(self._run_turn(text), self._release)

    async def run(self, text: str) -> Optional[Message]:
        """Run a whole turn and return the message it settled with."""
        last: Optional[TurnUpdate] = None
        async for update in self.submit(text):
            last = update
        return last.message if last is not None else None

    # ------------------------------------------------------------------
    # Turn
    # ------------------------------------------------------------------

    async def _run_turn(self, text: str) -> AsyncIterator[TurnUpdate]:
        request_id = self._ctx.new_request()
        logger.info("Turn %s started: %s", request_id, text[:80])
        tool_runs = 0
        try:
            try:
                yield TurnUpdate(self._state, self._transcript.append(MessageRole.USER, text), True)
                yield TurnUpdate(self._state, self._transcript.open(MessageRole.LOADING))

                call: Optional[ToolCall] = None
                async for update in self._consume(self._session.send_user_message(text)):
                    if isinstance(update, ToolCall):
                        call = call or update
                    else:
                        yield update

                if call is not None:
                    narration = self._settle_open()
                    if narration.message is not None:
                        yield narration

                    self._state = TurnState.EXECUTING_TOOL
                    yield TurnUpdate(
                        self._state,
                        self._transcript.open(MessageRole.TOOL_CALL, tool_status_text(call.name)),
                    )
                    result = self._registry.invoke(call.name, call.args)
                    tool_runs += 1
                    await self._persist()

                    self._state = TurnState.STREAMING_TOOL_ANSWER
                    yield TurnUpdate(self._state, self._transcript.open(MessageRole.ASSISTANT))
                    async for update in self._consume(
                        self._session.send_tool_result(call, result.payload),
                    ):
                        if not isinstance(update, ToolCall):
                            yield update

                final = self._settle_open()
            except Exception:
                logger.exception("Turn %s failed", request_id)
                self._abandon()
                final = TurnUpdate(
                    TurnState.IDLE,
                    self._transcript.append(MessageRole.ASSISTANT, APOLOGY_TEXT),
                    True,
                )

            self._state = TurnState.IDLE
            await self._persist()
            logger.info("Turn %s settled (%d tool call(s))", request_id, tool_runs)
            yield TurnUpdate(TurnState.IDLE, final.message, True)
        finally:
            if self._state is not TurnState.IDLE:
                # Consumer stopped iterating mid-turn.
                logger.warning("Turn %s abandoned in state %s", request_id, self._state.value)
                self._abandon()
                self._state = TurnState.IDLE

    async def _consume(self, stream: AsyncIterator[StreamFragment]):
        """Apply a stream's text to the open slot; pass the tool call through."""
        text = ""
        async for fragment in self._with_idle_timeout(stream):
            if fragment.tool_call is not None:
                yield fragment.tool_call
            if fragment.text:
                text += fragment.text
                opened = self._transcript.open_message
                if opened is None or opened.role is not MessageRole.ASSISTANT:
                    message = self._transcript.open(MessageRole.ASSISTANT, text)
                else:
                    message = self._transcript.update_open(text)
                yield TurnUpdate(self._state, message)

    async def _with_idle_timeout(
        self, stream: AsyncIterator[StreamFragment],
    ) -> AsyncIterator[StreamFragment]:
        iterator = stream.__aiter__()
        try:
            while True:
                try:
                    if self._idle_timeout and self._idle_timeout > 0:
                        fragment = await asyncio.wait_for(
                            iterator.__anext__(), self._idle_timeout,
                        )
                    else:
                        fragment = await iterator.__anext__()
                except StopAsyncIteration:
                    return
                except asyncio.TimeoutError as exc:
                    raise ModelStreamError(
                        f"Model stream idle for more than {self._idle_timeout}s"
                    ) from exc
                yield fragment
        finally:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()

    def _settle_open(self) -> TurnUpdate:
        """Commit the open assistant text; drop placeholders and empty text."""
        opened = self._transcript.open_message
        if opened is not None and opened.role is MessageRole.ASSISTANT and opened.text:
            return TurnUpdate(self._state, self._transcript.commit_open(), True)
        self._transcript.discard_open()
        return TurnUpdate(self._state, None, True)

    async def _persist(self) -> None:
        if self._snapshots is None:
            return
        try:
            await self._snapshots.flush()
        except RepositoryError:
            # In-memory state stays authoritative; the next flush retries.
            logger.exception("Snapshot flush failed")

    def _release(self) -> None:
        logger.warning("Turn dropped before it started")
        self._state = TurnState.IDLE

    def _abandon(self) -> None:
        self._transcript.discard_open()
        self._session.abandon_turn()
