"""
agent.tools.dashboard - Workshop summary tool.

Read-only: current-month figures are computed against the local calendar
month at call time.
"""

from __future__ import annotations

from application.services.store import WorkshopStore
from agent.tools.base import BaseTool, ToolResult
from agent.tools.intents import DashboardSummaryIntent


class DashboardSummaryTool(BaseTool):
    name = "getDashboardSummary"
    description = (
        "يعرض ملخصًا للشغل الحالي: عدد الطلبات الشغالة، إجمالي المديونيات، "
        "والدخل وصافي الربح الشهري من المصنعية."
    )

    def __init__(self, store: WorkshopStore):
        self._store = store

    def get_schema(self):
        return DashboardSummaryIntent

    def execute(self, intent: DashboardSummaryIntent) -> ToolResult:
        return ToolResult(payload=self._store.dashboard_summary().to_dict())
