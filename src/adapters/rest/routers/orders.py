"""Order endpoints: the direct (non-chat) counterpart of the order tools."""

from fastapi import APIRouter, Depends, HTTPException, Query

from factory import ServiceFactory
from application.services.store import parse_date_ms
from domain.entities import Order
from adapters.rest.dependencies import found, get_factory, persist
from adapters.rest.schemas import DeliveryDateBody, OrderCreate, PaymentBody, StatusBody

router = APIRouter(prefix="/orders", tags=["orders"])


def _order_out(order: Order) -> dict:
    data = order.to_dict()
    data["remaining"] = order.remaining
    return data


@router.get("")
async def list_orders(
    search: str = Query(default=""),
    sort: str = Query(default="newest", pattern="^(newest|oldest|name)$"),
    factory: ServiceFactory = Depends(get_factory),
):
    """List orders, optionally filtered by name (case-insensitive)."""
    return [_order_out(o) for o in factory.store.search_orders(search, sort)]


@router.post("", status_code=201)
async def create_order(body: OrderCreate, factory: ServiceFactory = Depends(get_factory)):
    order = factory.store.add_order(
        name=body.name,
        client_name=body.clientName,
        type=body.type,
        total_cost=body.totalCost,
        paid_amount=body.paidAmount,
        labor_cost=body.laborCost,
    )
    await persist(factory)
    return _order_out(order)


@router.get("/schedule")
async def delivery_schedule(factory: ServiceFactory = Depends(get_factory)):
    """Orders with a delivery date, soonest first, plus today's highlights."""
    store = factory.store
    return {
        "schedule": [_order_out(o) for o in store.schedule()],
        "todaysDeliveries": [_order_out(o) for o in store.todays_deliveries()],
        "newOrdersToday": [_order_out(o) for o in store.new_orders_today()],
    }


@router.post("/clear-finished")
async def clear_finished(factory: ServiceFactory = Depends(get_factory)):
    removed = factory.store.clear_finished_orders()
    await persist(factory)
    return {"removed": removed}


@router.get("/{order_id}")
async def get_order(order_id: str, factory: ServiceFactory = Depends(get_factory)):
    return _order_out(found(factory.store.get_order(order_id), "Order"))


@router.post("/{order_id}/payments")
async def record_payment(
    order_id: str, body: PaymentBody, factory: ServiceFactory = Depends(get_factory),
):
    order = found(factory.store.record_payment(order_id, body.amount), "Order")
    await persist(factory)
    return _order_out(order)


@router.put("/{order_id}/status")
async def set_status(
    order_id: str, body: StatusBody, factory: ServiceFactory = Depends(get_factory),
):
    order = found(factory.store.set_order_status(order_id, body.status), "Order")
    await persist(factory)
    return _order_out(order)


@router.put("/{order_id}/delivery-date")
async def set_delivery_date(
    order_id: str, body: DeliveryDateBody, factory: ServiceFactory = Depends(get_factory),
):
    stamp = parse_date_ms(body.deliveryDate)
    if stamp is None:
        raise HTTPException(
            status_code=422, detail=f"Could not parse date: {body.deliveryDate}",
        )
    order = found(factory.store.set_delivery_date(order_id, stamp), "Order")
    await persist(factory)
    return _order_out(order)


@router.delete("/{order_id}", status_code=204)
async def delete_order(order_id: str, factory: ServiceFactory = Depends(get_factory)):
    found(factory.store.remove_order(order_id), "Order")
    await persist(factory)
