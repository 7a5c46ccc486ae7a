"""Read-side derivations: debts, monthly figures, schedule and chart."""

from datetime import date, datetime

from domain import aggregates
from domain.entities import Expense, NotepadEntry, Order, OrderStatus


def ms(*args) -> int:
    return int(datetime(*args).timestamp() * 1000)


def order(id, created, total=0.0, paid=0.0, labor=None, delivery=None, status=OrderStatus.PROGRESS):
    return Order(
        id=id, name=id, client_name="c", status=status,
        total_cost=total, paid_amount=paid, created_at=created,
        labor_cost=labor, delivery_date=delivery,
    )


MARCH = date(2025, 3, 1)


def test_income_is_keyed_by_order_creation_month():
    orders = [
        order("a", ms(2025, 3, 5), total=1000, paid=600),
        order("b", ms(2025, 2, 27), total=1000, paid=1000),
    ]
    assert aggregates.monthly_income(orders, MARCH) == 600


def test_monthly_expenses_and_labor_profit():
    expenses = [
        Expense(id="e1", description="إيجار", amount=3000, date=ms(2025, 3, 1, 9)),
        Expense(id="e2", description="كهرباء", amount=350, date=ms(2025, 4, 1, 9)),
    ]
    orders = [
        order("a", ms(2025, 3, 2), labor=500),
        order("b", ms(2025, 3, 3), labor=None),
        order("c", ms(2024, 3, 3), labor=900),
    ]
    assert aggregates.monthly_expenses(expenses, MARCH) == 3000
    assert aggregates.monthly_labor_profit(orders, MARCH) == 500


def test_debts_and_progress_count():
    orders = [
        order("a", 1, total=100, paid=30),
        order("b", 1, total=50, paid=80, status=OrderStatus.FINISHED),
    ]
    notes = [NotepadEntry(id="n1", client_name="x", amount=20), NotepadEntry(id="n2", client_name="y", amount=5)]

    assert aggregates.total_debt(orders) == 40
    assert aggregates.notepad_debt(notes) == 25
    assert aggregates.progress_count(orders) == 1


def test_schedule_is_soonest_first_and_skips_undated():
    orders = [
        order("late", 1, delivery=ms(2025, 3, 20)),
        order("none", 1),
        order("soon", 1, delivery=ms(2025, 3, 12)),
    ]
    assert [o.id for o in aggregates.scheduled_orders(orders)] == ["soon", "late"]


def test_deliveries_and_new_orders_on_a_day():
    day = date(2025, 3, 12)
    orders = [
        order("due", ms(2025, 3, 1), delivery=ms(2025, 3, 12, 15)),
        order("new", ms(2025, 3, 12, 8)),
    ]
    assert [o.id for o in aggregates.deliveries_on(orders, day)] == ["due"]
    assert [o.id for o in aggregates.created_on(orders, day)] == ["new"]


def test_monthly_chart_spans_year_boundary():
    orders = [order("a", ms(2024, 12, 15), paid=700), order("b", ms(2025, 2, 1), paid=300)]
    expenses = [Expense(id="e", description="x", amount=90, date=ms(2025, 1, 10))]

    chart = aggregates.monthly_chart(orders, expenses, months=3, today=date(2025, 2, 14))

    assert [(bar.year, bar.month) for bar in chart] == [(2024, 12), (2025, 1), (2025, 2)]
    assert [bar.income for bar in chart] == [700, 0, 300]
    assert [bar.expenses for bar in chart] == [0, 90, 0]
    assert chart[0].label == "ديسمبر"
