"""
agent.session - Conversation Session over a LangChain chat model.

Holds the model-side message history (system instruction, replayed
transcript, this session's tool exchanges) and exposes the two streaming
operations a turn is made of:

    send_user_message(text)        -> fragments of the answer stream
    send_tool_result(call, payload) -> fragments of the narration stream

A fragment carries a piece of text or, once per stream at most, the tool
call the model asked for. Partial tool-call arguments arrive spread over
many chunks, so the call is only surfaced after the stream has ended and
the chunks have been merged.

The session is built from a transcript and rebuilt wholesale when the
transcript is replaced; it is never patched.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Iterable, Optional
from uuid import uuid4

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import (
    AIMessage,
    AIMessageChunk,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)

from domain.entities import Message, MessageRole
from domain.models import ToolCall
from agent.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreamFragment:
    """One step of a model stream: some text, or the detected tool call."""
    text: str = ""
    tool_call: Optional[ToolCall] = None


def history_to_messages(
    messages: Iterable[Message], limit: Optional[int] = None,
) -> list[BaseMessage]:
    """Replay user/assistant transcript messages as LangChain messages.

    Keeps the last *limit* messages (all when None, none when <= 0) and
    drops leading assistant messages so the replay starts with the user.
    """
    replayable = [
        m for m in messages
        if m.role in (MessageRole.USER, MessageRole.ASSISTANT) and m.text
    ]
    if limit is not None:
        replayable = replayable[-limit:] if limit > 0 else []
    while replayable and replayable[0].role is not MessageRole.USER:
        replayable.pop(0)
    return [
        HumanMessage(content=m.text) if m.role is MessageRole.USER else AIMessage(content=m.text)
        for m in replayable
    ]


def chunk_text(chunk: AIMessageChunk) -> str:
    """Text carried by a chunk; content may be a str or a list of blocks."""
    content = chunk.content
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class ConversationSession:
    """Live conversation with the model, with the workshop tools bound."""

    def __init__(
        self,
        llm: BaseChatModel,
        registry: ToolRegistry,
        system_prompt: str,
        history: Iterable[Message] = (),
        max_history_messages: Optional[int] = None,
    ):
        self._model = llm.bind_tools(registry.to_langchain_tools())
        self._messages: list[BaseMessage] = [SystemMessage(content=system_prompt)]
        self._messages.extend(history_to_messages(history, max_history_messages))
        self._turn_start: Optional[int] = None
        logger.debug(
            "Session built with %d replayed message(s)", len(self._messages) - 1,
        )

    @property
    def messages(self) -> list[BaseMessage]:
        return list(self._messages)

    async def send_user_message(self, text: str) -> AsyncIterator[StreamFragment]:
        """Start a turn and stream the model's answer."""
        self._messages.append(HumanMessage(content=text))
        self._turn_start = len(self._messages)
        async for fragment in self._stream():
            yield fragment

    async def send_tool_result(
        self, call: ToolCall, payload: dict[str, Any],
    ) -> AsyncIterator[StreamFragment]:
        """Hand the tool's result back and stream the model's narration."""
        self._messages.append(ToolMessage(
            content=json.dumps(payload, ensure_ascii=False),
            tool_call_id=call.id,
            name=call.name,
        ))
        async for fragment in self._stream(allow_tools=False):
            yield fragment

    def abandon_turn(self) -> None:
        """Drop whatever the failed turn added after the user's message.

        A half-finished tool exchange (a call with no result) would make
        the history invalid for the next request.
        """
        if self._turn_start is None:
            return
        dropped = len(self._messages) - self._turn_start
        del self._messages[self._turn_start:]
        self._turn_start = None
        if dropped:
            logger.debug("Abandoned turn: dropped %d message(s)", dropped)

    async def _stream(self, allow_tools: bool = True) -> AsyncIterator[StreamFragment]:
        gathered: Optional[AIMessageChunk] = None
        async for chunk in self._model.astream(self._messages):
            gathered = chunk if gathered is None else gathered + chunk
            text = chunk_text(chunk)
            if text:
                yield StreamFragment(text=text)

        if gathered is None:
            self._messages.append(AIMessage(content=""))
            return

        call = self._first_tool_call(gathered)
        if call is not None and not allow_tools:
            # calls made while narrating never get a result
            logger.warning("Ignoring tool call '%s' requested while narrating a tool result", call.name)
            call = None
        self._messages.append(AIMessage(
            content=gathered.content,
            tool_calls=[{"name": call.name, "args": call.args, "id": call.id}] if call else [],
        ))
        if call is not None:
            logger.info("Model requested tool %s", call.name)
            yield StreamFragment(tool_call=call)

    @staticmethod
    def _first_tool_call(gathered: AIMessageChunk) -> Optional[ToolCall]:
        calls = [
            (c["name"], c.get("args") or {}, c.get("id"))
            for c in gathered.tool_calls
        ]
        # Arguments that were not valid JSON: pass the call on with no
        # arguments so validation reports it back to the model.
        for invalid in gathered.invalid_tool_calls:
            if invalid.get("name"):
                logger.warning(
                    "Unparseable arguments for tool %s: %r",
                    invalid["name"], invalid.get("args"),
                )
                calls.append((invalid["name"], {}, invalid.get("id")))
        if not calls:
            return None
        if len(calls) > 1:
            logger.warning(
                "Model requested %d tool calls in one turn; only '%s' is executed",
                len(calls), calls[0][0],
            )
        name, args, call_id = calls[0]
        return ToolCall(name=name, args=dict(args), id=call_id or f"call-{uuid4().hex[:12]}")
