"""
agent.tools.notepad - Notepad ledger tools (informal client balances).

updateNotepadEntry resolves the client by substring and applies the change
to the first matching entry only. The balance never drops below zero.
"""

from __future__ import annotations

import logging

from application.services.store import WorkshopStore
from agent.tools.base import BaseTool, ToolResult, failure
from agent.tools.intents import AddNotepadEntryIntent, UpdateNotepadEntryIntent

logger = logging.getLogger(__name__)


class AddNotepadEntryTool(BaseTool):
    name = "addNotepadEntry"
    description = "يسجل حساب جديد لعميل في النوتة بالمبلغ اللي عليه."

    def __init__(self, store: WorkshopStore):
        self._store = store

    def get_schema(self):
        return AddNotepadEntryIntent

    def execute(self, intent: AddNotepadEntryIntent) -> ToolResult:
        entry = self._store.add_notepad_entry(intent.clientName, intent.amount)
        return ToolResult(payload={"success": True, "entryId": entry.id})


class UpdateNotepadEntryTool(BaseTool):
    name = "updateNotepadEntry"
    description = "يعدل حساب عميل موجود في النوتة، سواء بالزيادة أو النقصان (لو دفع جزء)."

    def __init__(self, store: WorkshopStore):
        self._store = store

    def get_schema(self):
        return UpdateNotepadEntryIntent

    def execute(self, intent: UpdateNotepadEntryIntent) -> ToolResult:
        entry = self._store.resolve_notepad_entry(intent.clientName)
        if entry is None:
            return failure("Client not found.")
        updated = self._store.adjust_notepad_entry(entry.id, intent.amountChange)
        logger.info(
            "Notepad %s: %.2f -> %.2f", entry.client_name, entry.amount, updated.amount,
        )
        return ToolResult(payload={
            "success": True,
            "message": "Notepad updated.",
            "updatedEntry": updated.to_dict(),
        })
