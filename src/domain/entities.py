"""
domain.entities - Workshop records (have IDs, timestamps).

Every record is a frozen dataclass. The Domain Store never mutates a record
in place; it builds a replacement with dataclasses.replace() and swaps it
into a new collection tuple.

Timestamps are epoch milliseconds and double as the id seed and the
ordering key. to_dict() emits the camelCase wire shape used by snapshots
and tool result payloads.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class OrderType(str, Enum):
    """New work vs. maintenance/follow-up on older work."""
    NEW = "new"
    OLD = "old"


class OrderStatus(str, Enum):
    """Order progress. Any status may move to any other."""
    PROGRESS = "progress"
    FINISHED = "finished"
    DELIVERY = "delivery"


class MessageRole(str, Enum):
    """Transcript roles. LOADING and TOOL_CALL are transient markers."""
    USER = "user"
    ASSISTANT = "assistant"
    LOADING = "loading"
    TOOL_CALL = "tool-call"

    @property
    def transient(self) -> bool:
        return self in (MessageRole.LOADING, MessageRole.TOOL_CALL)


@dataclass(frozen=True)
class Order:
    """A job in the workshop. remaining is derived, never stored."""
    id: str
    name: str
    client_name: str
    type: OrderType = OrderType.NEW
    status: OrderStatus = OrderStatus.PROGRESS
    total_cost: float = 0.0
    paid_amount: float = 0.0
    created_at: int = 0
    delivery_date: Optional[int] = None
    labor_cost: Optional[float] = None

    @property
    def remaining(self) -> float:
        # paid_amount may exceed total_cost; not clamped
        return self.total_cost - self.paid_amount

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "clientName": self.client_name,
            "type": self.type.value,
            "status": self.status.value,
            "totalCost": self.total_cost,
            "paidAmount": self.paid_amount,
            "createdAt": self.created_at,
        }
        if self.delivery_date is not None:
            data["deliveryDate"] = self.delivery_date
        if self.labor_cost is not None:
            data["laborCost"] = self.labor_cost
        return data


@dataclass(frozen=True)
class InventoryItem:
    """Stock on hand. unit is a free-text label."""
    id: str
    name: str
    quantity: float = 0.0
    unit: str = "قطعة"
    price: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "price": self.price,
        }


@dataclass(frozen=True)
class Expense:
    """General workshop expense (rent, electricity, ...)."""
    id: str
    description: str
    amount: float = 0.0
    date: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "amount": self.amount,
            "date": self.date,
        }


@dataclass(frozen=True)
class PricedMaterial:
    """Price catalog entry, independent of inventory."""
    id: str
    name: str
    unit: str = "قطعة"
    price: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "unit": self.unit,
            "price": self.price,
        }


@dataclass(frozen=True)
class CalculationLine:
    """One line of a saved calculation. Price and unit are snapshotted."""
    material_id: str
    material_name: str
    quantity: float
    unit: str
    price: float

    @property
    def total(self) -> float:
        return self.quantity * self.price

    def to_dict(self) -> dict[str, Any]:
        return {
            "materialId": self.material_id,
            "materialName": self.material_name,
            "quantity": self.quantity,
            "unit": self.unit,
            "price": self.price,
            "total": self.total,
        }


@dataclass(frozen=True)
class CalculationList:
    """A saved cost calculation. Immutable once saved."""
    id: str
    name: str
    items: tuple[CalculationLine, ...] = ()
    total_cost: float = 0.0
    created_at: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "items": [line.to_dict() for line in self.items],
            "totalCost": self.total_cost,
            "createdAt": self.created_at,
        }


@dataclass(frozen=True)
class NotepadEntry:
    """Running balance owed by a client, independent of orders."""
    id: str
    client_name: str
    amount: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "clientName": self.client_name,
            "amount": self.amount,
        }


@dataclass(frozen=True)
class Message:
    """A single transcript entry."""
    id: str
    role: MessageRole
    text: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "role": self.role.value, "text": self.text}


@dataclass(frozen=True)
class WorkshopData:
    """The six record collections, held as tuples in iteration order."""
    orders: tuple[Order, ...] = ()
    inventory: tuple[InventoryItem, ...] = ()
    expenses: tuple[Expense, ...] = ()
    priced_materials: tuple[PricedMaterial, ...] = ()
    saved_calculations: tuple[CalculationList, ...] = ()
    notepad: tuple[NotepadEntry, ...] = ()

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "orders": [o.to_dict() for o in self.orders],
            "inventory": [i.to_dict() for i in self.inventory],
            "expenses": [e.to_dict() for e in self.expenses],
            "pricedMaterials": [m.to_dict() for m in self.priced_materials],
            "savedCalculations": [c.to_dict() for c in self.saved_calculations],
            "notepad": [n.to_dict() for n in self.notepad],
        }


@dataclass(frozen=True)
class SnapshotMeta:
    """Snapshot metadata carried alongside the collections."""
    last_backup_date: Optional[int] = None
    notification_permission: str = "default"
