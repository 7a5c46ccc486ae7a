"""
domain.ports - Abstract interfaces (Protocols) for system boundaries.

These define WHAT the system needs without specifying HOW. Infrastructure
modules provide concrete implementations; application services depend only
on these protocols.

Using typing.Protocol (structural typing) instead of ABC: any class that
implements the methods satisfies the port without explicit inheritance.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Protocol, runtime_checkable

from domain.entities import Message


# Epoch-milliseconds clock. Injected so tests can pin "now".
Clock = Callable[[], int]


@runtime_checkable
class SnapshotRepository(Protocol):
    """Persistence callback for the full workshop snapshot.

    save() receives the JSON-ready snapshot dict after every mutation;
    load() returns the raw, untyped dict last saved (or None) so it can be
    repaired before the core starts.
    """

    async def save(self, workspace_id: str, snapshot: dict[str, Any]) -> None: ...
    async def load(self, workspace_id: str) -> dict[str, Any] | None: ...


@runtime_checkable
class MessageLog(Protocol):
    """The persistable side of the conversation transcript."""

    @property
    def messages(self) -> tuple[Message, ...]: ...

    @property
    def version(self) -> int: ...

    def replace(self, messages: Iterable[Message]) -> None: ...
