"""
agent.transcript - The conversation transcript shown to the user.

An append-only log of settled messages plus a single "open" slot that is
either empty or holds the in-progress message (loading placeholder,
tool-call status, or the assistant text still streaming in). Streaming
updates rewrite only the open slot; nothing in the log is ever edited or
removed, except by a wholesale replace() on snapshot import.

Only the log is persisted. Transient roles never reach it.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Optional

from domain.entities import Message, MessageRole
from domain.ports import Clock
from application.services.store import new_id, now_ms

logger = logging.getLogger(__name__)

_ID_PREFIXES = {
    MessageRole.USER: "user",
    MessageRole.ASSISTANT: "asst",
    MessageRole.LOADING: "loading",
    MessageRole.TOOL_CALL: "tool",
}


class Transcript:
    """Append-only message log with one open slot."""

    def __init__(self, messages: Iterable[Message] = (), clock: Optional[Clock] = None):
        self._clock = clock or now_ms
        self._log: list[Message] = [m for m in messages if not m.role.transient]
        self._open: Optional[Message] = None
        self._version = 0

    @property
    def messages(self) -> tuple[Message, ...]:
        """Settled messages: the persistable history."""
        return tuple(self._log)

    @property
    def open_message(self) -> Optional[Message]:
        return self._open

    @property
    def version(self) -> int:
        """Increments whenever the settled log changes."""
        return self._version

    def view(self) -> list[Message]:
        """Everything a renderer should show, open slot last."""
        return self._log + ([self._open] if self._open is not None else [])

    def append(self, role: MessageRole, text: str) -> Message:
        if role.transient:
            raise ValueError(f"Transient role '{role.value}' cannot be appended to the log")
        message = self._new_message(role, text)
        self._log.append(message)
        self._version += 1
        return message

    def open(self, role: MessageRole, text: str = "") -> Message:
        """Put a new message in the open slot, dropping whatever was there."""
        self._open = self._new_message(role, text)
        return self._open

    def update_open(self, text: str) -> Message:
        """Replace the open message's text with *text* (the cumulative prefix)."""
        if self._open is None:
            raise RuntimeError("No open message to update")
        self._open = replace(self._open, text=text)
        return self._open

    def commit_open(self) -> Optional[Message]:
        """Move the open message into the log. Transient markers are dropped."""
        message, self._open = self._open, None
        if message is None or message.role.transient:
            return None
        self._log.append(message)
        self._version += 1
        return message

    def discard_open(self) -> Optional[Message]:
        message, self._open = self._open, None
        return message

    def replace(self, messages: Iterable[Message]) -> None:
        """Swap in a whole new history (snapshot import)."""
        self._log = [m for m in messages if not m.role.transient]
        self._open = None
        self._version += 1
        logger.info("Transcript replaced with %d message(s)", len(self._log))

    def _new_message(self, role: MessageRole, text: str) -> Message:
        return Message(id=new_id(_ID_PREFIXES[role], self._clock()), role=role, text=text)
