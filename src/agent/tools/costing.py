"""
agent.tools.costing - Material cost estimation tool.

Each requested item name is matched against the priced-material catalog
(first material whose name contains the item wins). Items with no match
are reported with found=False and contribute nothing to the total, so the
model can tell the user which materials still need a price.
"""

from __future__ import annotations

import logging

from application.services.store import WorkshopStore
from agent.tools.base import BaseTool, ToolResult
from agent.tools.intents import CalculateDetailedCostIntent

logger = logging.getLogger(__name__)


class CalculateDetailedCostTool(BaseTool):
    name = "calculateDetailedCost"
    description = "يحسب التكلفة الإجمالية بناءً على الخامات المستخدمة وأسعارها المسجلة في الحاسبة."

    def __init__(self, store: WorkshopStore):
        self._store = store

    def get_schema(self):
        return CalculateDetailedCostIntent

    def execute(self, intent: CalculateDetailedCostIntent) -> ToolResult:
        breakdown = self._store.estimate_cost(intent.items)
        if not breakdown.all_items_found:
            missing = [line.name for line in breakdown.lines if not line.found]
            logger.info("Cost estimate missing prices for: %s", ", ".join(missing))
        return ToolResult(payload=breakdown.to_dict())
