"""Ledger endpoints: workshop expenses and the client notepad."""

from fastapi import APIRouter, Depends

from factory import ServiceFactory
from adapters.rest.dependencies import found, get_factory, persist
from adapters.rest.schemas import ExpenseCreate, NotepadEntryCreate, NotepadEntryUpdate

router = APIRouter(tags=["ledger"])


# --- Expenses ---

@router.get("/expenses")
async def list_expenses(factory: ServiceFactory = Depends(get_factory)):
    return [e.to_dict() for e in factory.store.expenses]


@router.post("/expenses", status_code=201)
async def add_expense(body: ExpenseCreate, factory: ServiceFactory = Depends(get_factory)):
    expense = factory.store.add_expense(body.description, body.amount)
    await persist(factory)
    return expense.to_dict()


@router.delete("/expenses/{expense_id}", status_code=204)
async def delete_expense(expense_id: str, factory: ServiceFactory = Depends(get_factory)):
    found(factory.store.remove_expense(expense_id), "Expense")
    await persist(factory)


# --- Notepad ---

@router.get("/notepad")
async def list_notepad(factory: ServiceFactory = Depends(get_factory)):
    store = factory.store
    return {
        "entries": [n.to_dict() for n in store.notepad],
        "total": store.notepad_debt(),
    }


@router.post("/notepad", status_code=201)
async def add_notepad_entry(
    body: NotepadEntryCreate, factory: ServiceFactory = Depends(get_factory),
):
    entry = factory.store.add_notepad_entry(body.clientName, body.amount)
    await persist(factory)
    return entry.to_dict()


@router.put("/notepad/{entry_id}")
async def set_notepad_amount(
    entry_id: str, body: NotepadEntryUpdate, factory: ServiceFactory = Depends(get_factory),
):
    entry = found(factory.store.update_notepad_entry(entry_id, amount=body.amount), "Notepad entry")
    await persist(factory)
    return entry.to_dict()


@router.delete("/notepad/{entry_id}", status_code=204)
async def delete_notepad_entry(entry_id: str, factory: ServiceFactory = Depends(get_factory)):
    found(factory.store.remove_notepad_entry(entry_id), "Notepad entry")
    await persist(factory)
