"""
agent.tools.expenses - General expense tool (rent, electricity, ...).
"""

from __future__ import annotations

import logging

from application.services.store import WorkshopStore
from agent.tools.base import BaseTool, ToolResult
from agent.tools.intents import AddExpenseIntent

logger = logging.getLogger(__name__)


class AddExpenseTool(BaseTool):
    name = "addExpense"
    description = "يسجل مصروفات عامة للورشة زي الإيجار أو الكهرباء."

    def __init__(self, store: WorkshopStore):
        self._store = store

    def get_schema(self):
        return AddExpenseIntent

    def execute(self, intent: AddExpenseIntent) -> ToolResult:
        expense = self._store.add_expense(intent.description, intent.amount)
        logger.info("Recorded expense %s (%.2f)", expense.id, expense.amount)
        return ToolResult(payload={"success": True, "expenseId": expense.id})
