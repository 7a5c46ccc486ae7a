"""Catalog endpoints: inventory, priced materials, cost estimates and
saved calculations."""

from fastapi import APIRouter, Depends

from factory import ServiceFactory
from adapters.rest.dependencies import found, get_factory, persist
from adapters.rest.schemas import (
    CalculationCreate,
    CostEstimateBody,
    InventoryItemCreate,
    InventoryItemUpdate,
    MaterialCreate,
    MaterialUpdate,
)

router = APIRouter(tags=["catalog"])


# --- Inventory ---

@router.get("/inventory")
async def list_inventory(factory: ServiceFactory = Depends(get_factory)):
    return [i.to_dict() for i in factory.store.inventory]


@router.post("/inventory", status_code=201)
async def add_inventory_item(
    body: InventoryItemCreate, factory: ServiceFactory = Depends(get_factory),
):
    item = factory.store.add_inventory_item(body.name, body.quantity, body.unit, body.price)
    await persist(factory)
    return item.to_dict()


@router.patch("/inventory/{item_id}")
async def update_inventory_item(
    item_id: str, body: InventoryItemUpdate, factory: ServiceFactory = Depends(get_factory),
):
    changes = body.model_dump(exclude_none=True)
    item = found(factory.store.update_inventory_item(item_id, **changes), "Inventory item")
    await persist(factory)
    return item.to_dict()


@router.delete("/inventory/{item_id}", status_code=204)
async def delete_inventory_item(item_id: str, factory: ServiceFactory = Depends(get_factory)):
    found(factory.store.remove_inventory_item(item_id), "Inventory item")
    await persist(factory)


# --- Priced materials ---

@router.get("/materials")
async def list_materials(factory: ServiceFactory = Depends(get_factory)):
    return [m.to_dict() for m in factory.store.priced_materials]


@router.post("/materials", status_code=201)
async def add_material(body: MaterialCreate, factory: ServiceFactory = Depends(get_factory)):
    material = factory.store.add_material(body.name, body.unit, body.price)
    await persist(factory)
    return material.to_dict()


@router.patch("/materials/{material_id}")
async def update_material(
    material_id: str, body: MaterialUpdate, factory: ServiceFactory = Depends(get_factory),
):
    changes = body.model_dump(exclude_none=True)
    material = found(factory.store.update_material(material_id, **changes), "Material")
    await persist(factory)
    return material.to_dict()


@router.delete("/materials/{material_id}", status_code=204)
async def delete_material(material_id: str, factory: ServiceFactory = Depends(get_factory)):
    found(factory.store.remove_material(material_id), "Material")
    await persist(factory)


@router.post("/materials/estimate")
async def estimate_cost(body: CostEstimateBody, factory: ServiceFactory = Depends(get_factory)):
    """Price item names against the catalog, same as the chat cost tool."""
    return factory.store.estimate_cost(body.items).to_dict()


# --- Saved calculations ---

@router.get("/calculations")
async def list_calculations(factory: ServiceFactory = Depends(get_factory)):
    return [c.to_dict() for c in factory.store.saved_calculations]


@router.post("/calculations", status_code=201)
async def save_calculation(
    body: CalculationCreate, factory: ServiceFactory = Depends(get_factory),
):
    """Save a calculation. Empty lists and unknown materials are rejected (422)."""
    calculation = factory.store.save_calculation(
        body.name, [(line.materialId, line.quantity) for line in body.items],
    )
    await persist(factory)
    return calculation.to_dict()


@router.delete("/calculations/{calculation_id}", status_code=204)
async def delete_calculation(
    calculation_id: str, factory: ServiceFactory = Depends(get_factory),
):
    found(factory.store.remove_calculation(calculation_id), "Calculation")
    await persist(factory)
