"""
domain.models - Value objects for derived results and model intents.

Immutable containers with no business logic and no dependencies on
infrastructure (no LangChain, no SQLite).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DashboardSummary:
    """Aggregates narrated by getDashboardSummary.

    Monthly figures cover the calendar month the summary was computed for.
    """
    progress_count: int = 0
    total_debt: float = 0.0
    notepad_debt: float = 0.0
    month_income: float = 0.0
    month_expenses: float = 0.0
    month_labor_profit: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "progressCount": self.progress_count,
            "totalDebt": self.total_debt,
            "notepadDebt": self.notepad_debt,
            "thisMonthIncome": self.month_income,
            "thisMonthExpenses": self.month_expenses,
            "monthlyCraftsmanshipProfit": self.month_labor_profit,
        }


@dataclass(frozen=True)
class MonthlyTotals:
    """One bar of the income/expenses chart."""
    year: int
    month: int
    label: str
    income: float = 0.0
    expenses: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "month": self.month,
            "label": self.label,
            "income": self.income,
            "expenses": self.expenses,
        }


# ---------------------------------------------------------------------------
# Cost estimation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CostLine:
    """Requested item priced against the material catalog.

    unit and cost are None when no material matched.
    """
    name: str
    quantity: float
    found: bool
    unit: Optional[str] = None
    cost: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "quantity": self.quantity}
        if self.found:
            data["unit"] = self.unit
            data["cost"] = self.cost
        data["found"] = self.found
        return data


@dataclass(frozen=True)
class CostBreakdown:
    """Result of pricing an item -> quantity map. Totals cover matched items only."""
    lines: list[CostLine] = field(default_factory=list)

    @property
    def total_cost(self) -> float:
        return sum(line.cost or 0.0 for line in self.lines if line.found)

    @property
    def all_items_found(self) -> bool:
        return all(line.found for line in self.lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalCost": self.total_cost,
            "items": [line.to_dict() for line in self.lines],
            "allItemsFound": self.all_items_found,
        }


# ---------------------------------------------------------------------------
# Model intents
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ToolCall:
    """A function-call intent extracted from a model stream."""
    name: str
    args: dict[str, Any] = field(default_factory=dict)
    id: str = ""
