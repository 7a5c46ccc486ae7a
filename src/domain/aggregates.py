"""
domain.aggregates - Pure read-derivations over the record collections.

No side effects. "This month" / "today" comparisons use calendar equality
in the local time zone at evaluation time; timestamps are epoch ms.

Monthly income sums paidAmount of orders *created* in the month. Payment
timing is not tracked separately, so a payment recorded later still counts
toward the order's creation month.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional

from domain.entities import Expense, NotepadEntry, Order, OrderStatus
from domain.models import MonthlyTotals

ARABIC_MONTHS = (
    "يناير", "فبراير", "مارس", "أبريل", "مايو", "يونيو",
    "يوليو", "أغسطس", "سبتمبر", "أكتوبر", "نوفمبر", "ديسمبر",
)


def local_date(timestamp_ms: int) -> date:
    """Calendar date of an epoch-ms instant in the local time zone."""
    return datetime.fromtimestamp(timestamp_ms / 1000).date()


def same_month(timestamp_ms: int, month: date) -> bool:
    d = local_date(timestamp_ms)
    return d.year == month.year and d.month == month.month


def _month_or_today(month: Optional[date]) -> date:
    return month if month is not None else date.today()


def total_debt(orders: Iterable[Order]) -> float:
    return sum(o.total_cost - o.paid_amount for o in orders)


def notepad_debt(entries: Iterable[NotepadEntry]) -> float:
    return sum(e.amount for e in entries)


def progress_count(orders: Iterable[Order]) -> int:
    return sum(1 for o in orders if o.status is OrderStatus.PROGRESS)


def monthly_income(orders: Iterable[Order], month: Optional[date] = None) -> float:
    month = _month_or_today(month)
    return sum(o.paid_amount for o in orders if same_month(o.created_at, month))


def monthly_expenses(expenses: Iterable[Expense], month: Optional[date] = None) -> float:
    month = _month_or_today(month)
    return sum(e.amount for e in expenses if same_month(e.date, month))


def monthly_labor_profit(orders: Iterable[Order], month: Optional[date] = None) -> float:
    """Sum of declared labor costs for orders created in the month."""
    month = _month_or_today(month)
    return sum(
        o.labor_cost for o in orders
        if o.labor_cost and same_month(o.created_at, month)
    )


def scheduled_orders(orders: Iterable[Order]) -> list[Order]:
    """Orders with a delivery date, soonest first."""
    return sorted(
        (o for o in orders if o.delivery_date),
        key=lambda o: o.delivery_date or 0,
    )


def deliveries_on(orders: Iterable[Order], day: Optional[date] = None) -> list[Order]:
    day = day or date.today()
    return [o for o in scheduled_orders(orders) if local_date(o.delivery_date or 0) == day]


def created_on(orders: Iterable[Order], day: Optional[date] = None) -> list[Order]:
    day = day or date.today()
    return [o for o in orders if local_date(o.created_at) == day]


def monthly_chart(
    orders: Iterable[Order],
    expenses: Iterable[Expense],
    months: int = 3,
    today: Optional[date] = None,
) -> list[MonthlyTotals]:
    """Income vs. expenses for the last *months* calendar months, oldest first."""
    today = today or date.today()
    keys: list[tuple[int, int]] = []
    for back in range(months - 1, -1, -1):
        index = today.year * 12 + (today.month - 1) - back
        keys.append((index // 12, index % 12 + 1))

    income = {k: 0.0 for k in keys}
    spent = {k: 0.0 for k in keys}
    for o in orders:
        if not o.created_at or o.paid_amount <= 0:
            continue
        d = local_date(o.created_at)
        if (d.year, d.month) in income:
            income[(d.year, d.month)] += o.paid_amount
    for e in expenses:
        if not e.date:
            continue
        d = local_date(e.date)
        if (d.year, d.month) in spent:
            spent[(d.year, d.month)] += e.amount

    return [
        MonthlyTotals(
            year=y, month=m, label=ARABIC_MONTHS[m - 1],
            income=income[(y, m)], expenses=spent[(y, m)],
        )
        for y, m in keys
    ]
