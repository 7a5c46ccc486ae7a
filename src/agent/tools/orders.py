"""
agent.tools.orders - Order tools: register, pay, status, delivery date,
delete and look up.

Every tool except registerOrder addresses an order by free text
(`orderName`), resolved against order name then client name. The first
match in collection order wins; an unresolved reference is reported back
to the model as "Order not found." and nothing changes.
"""

from __future__ import annotations

import logging

from application.services.store import WorkshopStore, parse_date_ms
from agent.tools.base import BaseTool, ToolResult, failure
from agent.tools.intents import (
    DeleteOrderIntent,
    GetOrderDetailsIntent,
    RecordPaymentIntent,
    RegisterOrderIntent,
    SetDeliveryDateIntent,
    UpdateOrderStatusIntent,
)

logger = logging.getLogger(__name__)

ORDER_NOT_FOUND = "Order not found."


class _OrderTool(BaseTool):
    def __init__(self, store: WorkshopStore):
        self._store = store


class RegisterOrderTool(_OrderTool):
    name = "registerOrder"
    description = "يسجل طلب شغل جديد أو قديم في الورشة."

    def get_schema(self):
        return RegisterOrderIntent

    def execute(self, intent: RegisterOrderIntent) -> ToolResult:
        order = self._store.add_order(
            name=intent.name,
            client_name=intent.clientName,
            type=intent.type,
            total_cost=intent.totalCost,
            paid_amount=intent.paidAmount,
            labor_cost=intent.laborCost,
        )
        logger.info("Registered order %s for %s", order.id, order.client_name)
        return ToolResult(payload={"success": True, "newOrder": order.to_dict()})


class RecordPaymentTool(_OrderTool):
    name = "recordPayment"
    description = "يسجل دفعة دفعها العميل لطلب معين."

    def get_schema(self):
        return RecordPaymentIntent

    def execute(self, intent: RecordPaymentIntent) -> ToolResult:
        order = self._store.resolve_order(intent.orderName)
        if order is None:
            return failure(ORDER_NOT_FOUND)
        updated = self._store.record_payment(order.id, intent.amount)
        return ToolResult(payload={"success": True, "updatedOrder": updated.to_dict()})


class UpdateOrderStatusTool(_OrderTool):
    name = "updateOrderStatus"
    description = "يحدّث حالة طلب معين (شغال، خلص، مستني تسليم)."

    def get_schema(self):
        return UpdateOrderStatusIntent

    def execute(self, intent: UpdateOrderStatusIntent) -> ToolResult:
        order = self._store.resolve_order(intent.orderName)
        if order is None:
            return failure(ORDER_NOT_FOUND)
        updated = self._store.set_order_status(order.id, intent.status)
        return ToolResult(payload={"success": True, "updatedOrder": updated.to_dict()})


class DeleteOrderTool(_OrderTool):
    name = "deleteOrder"
    description = "يمسح أو يحذف طلب معين من القائمة."

    def get_schema(self):
        return DeleteOrderIntent

    def execute(self, intent: DeleteOrderIntent) -> ToolResult:
        order = self._store.resolve_order(intent.orderName)
        if order is None:
            return failure(ORDER_NOT_FOUND)
        self._store.remove_order(order.id)
        logger.info("Deleted order %s (%s)", order.id, order.name)
        return ToolResult(payload={"success": True, "message": "Order deleted."})


class SetDeliveryDateTool(_OrderTool):
    name = "setDeliveryDate"
    description = "يسجل أو يحدد موعد تسليم لطلب معين."

    def get_schema(self):
        return SetDeliveryDateIntent

    def execute(self, intent: SetDeliveryDateIntent) -> ToolResult:
        delivery_ms = parse_date_ms(intent.deliveryDate)
        if delivery_ms is None:
            logger.warning("Unparseable delivery date from model: %r", intent.deliveryDate)
            return failure(
                "Invalid date format provided by model. "
                f"Could not parse: {intent.deliveryDate}"
            )
        order = self._store.resolve_order(intent.orderName)
        if order is None:
            return failure(ORDER_NOT_FOUND)
        updated = self._store.set_delivery_date(order.id, delivery_ms)
        return ToolResult(payload={"success": True, "updatedOrder": updated.to_dict()})


class GetOrderDetailsTool(_OrderTool):
    name = "getOrderDetails"
    description = "يعرض تفاصيل حساب أو طلب معين، زي التكلفة الإجمالية والمدفوع والباقي."

    def get_schema(self):
        return GetOrderDetailsIntent

    def execute(self, intent: GetOrderDetailsIntent) -> ToolResult:
        order = self._store.resolve_order(intent.orderName)
        if order is None:
            return failure(ORDER_NOT_FOUND)
        details = order.to_dict()
        details["remaining"] = order.remaining
        return ToolResult(payload={"success": True, "orderDetails": details})
