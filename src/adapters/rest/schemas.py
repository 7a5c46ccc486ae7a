"""Pydantic models for REST API request/response validation.

Field names follow the camelCase wire shape used by snapshots.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


# --- Orders ---

class OrderCreate(BaseModel):
    name: str = Field(..., min_length=1)
    clientName: str = Field(..., min_length=1)
    type: Literal["new", "old"] = "new"
    totalCost: float = Field(..., ge=0)
    paidAmount: float = Field(default=0.0, ge=0)
    laborCost: Optional[float] = Field(default=None, ge=0)


class PaymentBody(BaseModel):
    amount: float = Field(..., ge=0)


class StatusBody(BaseModel):
    status: Literal["progress", "finished", "delivery"]


class DeliveryDateBody(BaseModel):
    deliveryDate: str = Field(..., description="ISO date, e.g. 2025-10-20")


# --- Inventory / materials / calculations ---

class InventoryItemCreate(BaseModel):
    name: str = Field(..., min_length=1)
    quantity: float = Field(default=0.0, ge=0)
    unit: str = "قطعة"
    price: float = Field(default=0.0, ge=0)


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    quantity: Optional[float] = Field(default=None, ge=0)
    unit: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)


class MaterialCreate(BaseModel):
    name: str = Field(..., min_length=1)
    unit: str = "قطعة"
    price: float = Field(..., ge=0)


class MaterialUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    unit: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)


class CalculationLineIn(BaseModel):
    materialId: str
    quantity: float = Field(..., gt=0)


class CalculationCreate(BaseModel):
    name: str = Field(..., min_length=1)
    items: list[CalculationLineIn] = Field(default_factory=list)


class CostEstimateBody(BaseModel):
    items: dict[str, float]


# --- Expenses / notepad ---

class ExpenseCreate(BaseModel):
    description: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)


class NotepadEntryCreate(BaseModel):
    clientName: str = Field(..., min_length=1)
    amount: float = Field(default=0.0, ge=0)


class NotepadEntryUpdate(BaseModel):
    amount: float = Field(..., ge=0)


# --- Chat / snapshot ---

class ChatBody(BaseModel):
    message: str = Field(..., min_length=1)


class MessageOut(BaseModel):
    id: str
    role: str
    text: str


class NotificationPermissionBody(BaseModel):
    permission: Literal["default", "granted", "denied"]
