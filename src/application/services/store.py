"""
application.services.store - The Domain Store.

Holds the six workshop collections as one immutable WorkshopData value and
swaps in a new value on every mutation (records are replaced, never edited
in place). Both the chat tools and the direct CLI/REST actions go through
these operations, so invariants hold regardless of origin.

Conventions:
    - Operations addressing a record by id return the updated/removed record,
      or None when the id is unknown. They never raise for "not found".
    - New orders, inventory items, expenses, materials and calculations are
      inserted at the front (newest first); notepad entries are appended.
    - `version` increments once per successful mutation so the snapshot
      service can tell whether anything changed since the last flush.
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional
from uuid import uuid4

from domain import aggregates
from domain.entities import (
    CalculationLine,
    CalculationList,
    Expense,
    InventoryItem,
    NotepadEntry,
    Order,
    OrderStatus,
    OrderType,
    PricedMaterial,
    WorkshopData,
)
from domain.exceptions import EmptyCalculationError, UnknownMaterialError
from domain.models import CostBreakdown, CostLine, DashboardSummary, MonthlyTotals
from domain.ports import Clock
from domain.resolver import resolve_material, resolve_notepad_entry, resolve_order

logger = logging.getLogger(__name__)

ORDER_SORTS = ("newest", "oldest", "name")


def now_ms() -> int:
    return int(time.time() * 1000)


def new_id(prefix: str, timestamp_ms: int) -> str:
    """Timestamp-seeded id; the random suffix keeps same-ms ids distinct."""
    return f"{prefix}-{timestamp_ms}-{uuid4().hex[:6]}"


def parse_date_ms(raw: str) -> Optional[int]:
    """Parse an ISO date/datetime into epoch ms, or None if unparseable.

    Naive values are taken as local time.
    """
    try:
        return int(datetime.fromisoformat(raw.strip()).timestamp() * 1000)
    except (ValueError, AttributeError, OverflowError, OSError):
        return None


class WorkshopStore:
    """In-memory owner of all business records."""

    def __init__(
        self,
        data: Optional[WorkshopData] = None,
        clock: Optional[Clock] = None,
    ):
        self._data = data or WorkshopData()
        self._clock = clock or now_ms
        self._version = 0

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def data(self) -> WorkshopData:
        return self._data

    @property
    def version(self) -> int:
        return self._version

    @property
    def orders(self) -> tuple[Order, ...]:
        return self._data.orders

    @property
    def inventory(self) -> tuple[InventoryItem, ...]:
        return self._data.inventory

    @property
    def expenses(self) -> tuple[Expense, ...]:
        return self._data.expenses

    @property
    def priced_materials(self) -> tuple[PricedMaterial, ...]:
        return self._data.priced_materials

    @property
    def saved_calculations(self) -> tuple[CalculationList, ...]:
        return self._data.saved_calculations

    @property
    def notepad(self) -> tuple[NotepadEntry, ...]:
        return self._data.notepad

    def now(self) -> int:
        return self._clock()

    def replace_all(self, data: WorkshopData) -> None:
        """Swap in a whole new data set (snapshot import)."""
        self._data = data
        self._version += 1
        logger.info(
            "Store replaced: %d orders, %d expenses, %d notepad entries",
            len(data.orders), len(data.expenses), len(data.notepad),
        )

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def add_order(
        self,
        name: str,
        client_name: str,
        type: OrderType = OrderType.NEW,
        total_cost: float = 0.0,
        paid_amount: float = 0.0,
        labor_cost: Optional[float] = None,
    ) -> Order:
        created = self.now()
        order = Order(
            id=new_id("order", created),
            name=name,
            client_name=client_name,
            type=OrderType(type),
            status=OrderStatus.PROGRESS,
            total_cost=float(total_cost),
            paid_amount=float(paid_amount or 0),
            created_at=created,
            labor_cost=float(labor_cost) if labor_cost else None,
        )
        self._prepend("orders", order)
        return order

    def get_order(self, order_id: str) -> Optional[Order]:
        return next((o for o in self.orders if o.id == order_id), None)

    def update_order(self, order_id: str, **changes: Any) -> Optional[Order]:
        if "status" in changes:
            changes["status"] = OrderStatus(changes["status"])
        if "type" in changes:
            changes["type"] = OrderType(changes["type"])
        return self._update("orders", order_id, changes)

    def record_payment(self, order_id: str, amount: float) -> Optional[Order]:
        order = self.get_order(order_id)
        if order is None:
            return None
        return self.update_order(order_id, paid_amount=order.paid_amount + float(amount))

    def set_order_status(self, order_id: str, status: OrderStatus | str) -> Optional[Order]:
        return self.update_order(order_id, status=status)

    def set_delivery_date(self, order_id: str, delivery_ms: int) -> Optional[Order]:
        return self.update_order(order_id, delivery_date=int(delivery_ms))

    def remove_order(self, order_id: str) -> Optional[Order]:
        return self._remove("orders", order_id)

    def clear_finished_orders(self) -> int:
        kept = tuple(o for o in self.orders if o.status is not OrderStatus.FINISHED)
        removed = len(self.orders) - len(kept)
        if removed:
            self._commit(orders=kept)
        logger.info("Cleared %d finished order(s)", removed)
        return removed

    def resolve_order(self, reference: str) -> Optional[Order]:
        return resolve_order(self.orders, reference)

    def search_orders(self, term: str = "", sort_by: str = "newest") -> list[Order]:
        """Case-insensitive name search, sorted newest | oldest | name."""
        if sort_by not in ORDER_SORTS:
            raise ValueError(f"sort_by must be one of {ORDER_SORTS}, got {sort_by!r}")
        needle = term.lower()
        found = [o for o in self.orders if needle in o.name.lower()]
        if sort_by == "newest":
            found.sort(key=lambda o: o.created_at, reverse=True)
        elif sort_by == "oldest":
            found.sort(key=lambda o: o.created_at)
        else:
            found.sort(key=lambda o: o.name)
        return found

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    def add_inventory_item(
        self, name: str, quantity: float, unit: str, price: float,
    ) -> InventoryItem:
        item = InventoryItem(
            id=new_id("inv", self.now()),
            name=name,
            quantity=float(quantity),
            unit=unit,
            price=float(price),
        )
        self._prepend("inventory", item)
        return item

    def update_inventory_item(self, item_id: str, **changes: Any) -> Optional[InventoryItem]:
        return self._update("inventory", item_id, changes)

    def remove_inventory_item(self, item_id: str) -> Optional[InventoryItem]:
        return self._remove("inventory", item_id)

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    def add_expense(self, description: str, amount: float) -> Expense:
        stamp = self.now()
        expense = Expense(
            id=new_id("exp", stamp),
            description=description,
            amount=float(amount),
            date=stamp,
        )
        self._prepend("expenses", expense)
        return expense

    def remove_expense(self, expense_id: str) -> Optional[Expense]:
        return self._remove("expenses", expense_id)

    # ------------------------------------------------------------------
    # Priced materials
    # ------------------------------------------------------------------

    def add_material(self, name: str, unit: str, price: float) -> PricedMaterial:
        material = PricedMaterial(
            id=new_id("pm", self.now()),
            name=name,
            unit=unit,
            price=float(price),
        )
        self._prepend("priced_materials", material)
        return material

    def get_material(self, material_id: str) -> Optional[PricedMaterial]:
        return next((m for m in self.priced_materials if m.id == material_id), None)

    def update_material(self, material_id: str, **changes: Any) -> Optional[PricedMaterial]:
        return self._update("priced_materials", material_id, changes)

    def remove_material(self, material_id: str) -> Optional[PricedMaterial]:
        return self._remove("priced_materials", material_id)

    def estimate_cost(self, items: Mapping[str, float]) -> CostBreakdown:
        """Price each requested item against the first material whose name contains it."""
        lines: list[CostLine] = []
        for item_name, quantity in items.items():
            quantity = float(quantity)
            material = resolve_material(self.priced_materials, item_name)
            if material is None:
                lines.append(CostLine(name=item_name, quantity=quantity, found=False))
                continue
            lines.append(CostLine(
                name=item_name,
                quantity=quantity,
                found=True,
                unit=material.unit,
                cost=material.price * quantity,
            ))
        return CostBreakdown(lines=lines)

    # ------------------------------------------------------------------
    # Saved calculations
    # ------------------------------------------------------------------

    def save_calculation(
        self, name: str, lines: Iterable[tuple[str, float]],
    ) -> CalculationList:
        """Save a calculation from (material_id, quantity) pairs.

        Raises:
            EmptyCalculationError: no lines were given.
            UnknownMaterialError: a material id is not in the catalog.
        """
        items: list[CalculationLine] = []
        for material_id, quantity in lines:
            material = self.get_material(material_id)
            if material is None:
                raise UnknownMaterialError(f"Unknown priced material: {material_id}")
            items.append(CalculationLine(
                material_id=material.id,
                material_name=material.name,
                quantity=float(quantity),
                unit=material.unit,
                price=material.price,
            ))
        if not items:
            raise EmptyCalculationError("A calculation needs at least one line.")

        created = self.now()
        calculation = CalculationList(
            id=new_id("calc", created),
            name=name,
            items=tuple(items),
            total_cost=sum(line.total for line in items),
            created_at=created,
        )
        self._prepend("saved_calculations", calculation)
        return calculation

    def remove_calculation(self, calculation_id: str) -> Optional[CalculationList]:
        return self._remove("saved_calculations", calculation_id)

    # ------------------------------------------------------------------
    # Notepad
    # ------------------------------------------------------------------

    def add_notepad_entry(self, client_name: str, amount: float) -> NotepadEntry:
        entry = NotepadEntry(
            id=new_id("note", self.now()),
            client_name=client_name,
            amount=float(amount),
        )
        self._commit(notepad=self.notepad + (entry,))
        return entry

    def update_notepad_entry(self, entry_id: str, **changes: Any) -> Optional[NotepadEntry]:
        return self._update("notepad", entry_id, changes)

    def adjust_notepad_entry(self, entry_id: str, delta: float) -> Optional[NotepadEntry]:
        """Add *delta* to the balance, flooring the result at 0."""
        entry = next((e for e in self.notepad if e.id == entry_id), None)
        if entry is None:
            return None
        return self._update("notepad", entry_id, {"amount": max(0.0, entry.amount + float(delta))})

    def remove_notepad_entry(self, entry_id: str) -> Optional[NotepadEntry]:
        return self._remove("notepad", entry_id)

    def resolve_notepad_entry(self, reference: str) -> Optional[NotepadEntry]:
        return resolve_notepad_entry(self.notepad, reference)

    # ------------------------------------------------------------------
    # Derivations
    # ------------------------------------------------------------------

    def total_debt(self) -> float:
        return aggregates.total_debt(self.orders)

    def notepad_debt(self) -> float:
        return aggregates.notepad_debt(self.notepad)

    def monthly_income(self, month: Optional[date] = None) -> float:
        return aggregates.monthly_income(self.orders, month)

    def monthly_expenses(self, month: Optional[date] = None) -> float:
        return aggregates.monthly_expenses(self.expenses, month)

    def monthly_labor_profit(self, month: Optional[date] = None) -> float:
        return aggregates.monthly_labor_profit(self.orders, month)

    def dashboard_summary(self, month: Optional[date] = None) -> DashboardSummary:
        return DashboardSummary(
            progress_count=aggregates.progress_count(self.orders),
            total_debt=self.total_debt(),
            notepad_debt=self.notepad_debt(),
            month_income=self.monthly_income(month),
            month_expenses=self.monthly_expenses(month),
            month_labor_profit=self.monthly_labor_profit(month),
        )

    def schedule(self) -> list[Order]:
        return aggregates.scheduled_orders(self.orders)

    def todays_deliveries(self) -> list[Order]:
        return aggregates.deliveries_on(self.orders)

    def new_orders_today(self) -> list[Order]:
        return aggregates.created_on(self.orders)

    def monthly_chart(self, months: int = 3) -> list[MonthlyTotals]:
        return aggregates.monthly_chart(self.orders, self.expenses, months)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _commit(self, **collections: tuple) -> None:
        self._data = replace(self._data, **collections)
        self._version += 1

    def _prepend(self, collection: str, record: Any) -> None:
        self._commit(**{collection: (record,) + getattr(self._data, collection)})
        logger.debug("Added %s to %s", record.id, collection)

    def _update(self, collection: str, record_id: str, changes: dict[str, Any]) -> Any:
        if "id" in changes:
            raise ValueError("Record ids are immutable")
        records = getattr(self._data, collection)
        for index, record in enumerate(records):
            if record.id == record_id:
                updated = replace(record, **changes)
                self._commit(**{
                    collection: records[:index] + (updated,) + records[index + 1:],
                })
                logger.debug("Updated %s in %s: %s", record_id, collection, sorted(changes))
                return updated
        logger.debug("No %s record with id %s", collection, record_id)
        return None

    def _remove(self, collection: str, record_id: str) -> Any:
        records = getattr(self._data, collection)
        for index, record in enumerate(records):
            if record.id == record_id:
                self._commit(**{collection: records[:index] + records[index + 1:]})
                logger.debug("Removed %s from %s", record_id, collection)
                return record
        return None
