"""Tool Dispatcher: intent validation and every workshop tool."""

from datetime import date

import pytest

from agent.prompt import build_system_prompt
from agent.tools.expenses import AddExpenseTool
from agent.tools.intents import INTENT_MODELS, RegisterOrderIntent, parse_intent
from agent.tools.registry import ToolRegistry
from domain.entities import OrderStatus
from domain.exceptions import InvalidToolArgumentsError


# --- Intents ---

def test_numbers_are_coerced_once():
    intent = parse_intent("recordPayment", {"orderName": "كنبة", "amount": "500"})
    assert intent.amount == 500.0


def test_register_order_intent_normalises_optional_amounts():
    intent = parse_intent("registerOrder", {
        "name": "كنبة", "clientName": "محمد", "type": "new",
        "totalCost": 5000, "paidAmount": None, "laborCost": 0,
    })
    assert isinstance(intent, RegisterOrderIntent)
    assert intent.paidAmount == 0
    assert intent.laborCost is None


@pytest.mark.parametrize("args", [
    {"orderName": "كنبة"},
    {"orderName": "كنبة", "amount": "كتير"},
    {"orderName": "كنبة", "amount": -5},
])
def test_invalid_arguments_raise(args):
    with pytest.raises(InvalidToolArgumentsError) as excinfo:
        parse_intent("recordPayment", args)
    assert excinfo.value.tool_name == "recordPayment"


def test_unknown_tool_name_raises_key_error():
    with pytest.raises(KeyError):
        parse_intent("launchRocket", {})


def test_registry_only_accepts_declared_tools(store):
    class Rogue:
        name = "launchRocket"

    with pytest.raises(ValueError):
        ToolRegistry().register(Rogue())


def test_all_declared_tools_are_registered(registry):
    assert sorted(registry.names()) == sorted(INTENT_MODELS)
    assert {t.name for t in registry.to_langchain_tools()} == set(INTENT_MODELS)


def test_invoke_reports_model_mistakes_as_failures(registry, store):
    unknown = registry.invoke("launchRocket", {})
    invalid = registry.invoke("addExpense", {"description": "كهرباء"})

    assert unknown.payload == {"success": False, "message": "Unknown tool: launchRocket"}
    assert invalid.success is False
    assert invalid.payload["success"] is False
    assert store.version == 0


# --- Orders ---

def test_register_order(registry, store):
    result = registry.invoke("registerOrder", {
        "name": "كنبة", "clientName": "أستاذ محمد", "type": "new",
        "totalCost": 5000, "paidAmount": 1000, "laborCost": 1500,
    })
    assert result.payload["success"] is True
    new_order = result.payload["newOrder"]
    assert new_order["clientName"] == "أستاذ محمد"
    assert new_order["status"] == "progress"
    assert new_order["laborCost"] == 1500
    assert store.orders[0].id == new_order["id"]


def test_record_payment_by_client_name(registry, store):
    order = store.add_order("كنبة", "أستاذ محمد", total_cost=5000, paid_amount=1000)

    result = registry.invoke("recordPayment", {"orderName": "محمد", "amount": 1500})

    assert result.payload["updatedOrder"]["paidAmount"] == 2500
    assert store.get_order(order.id).remaining == 2500


@pytest.mark.parametrize("tool,args", [
    ("recordPayment", {"orderName": "سرير", "amount": 100}),
    ("updateOrderStatus", {"orderName": "سرير", "status": "finished"}),
    ("deleteOrder", {"orderName": "سرير"}),
    ("setDeliveryDate", {"orderName": "سرير", "deliveryDate": "2025-10-20"}),
    ("getOrderDetails", {"orderName": "سرير"}),
])
def test_unresolved_order_changes_nothing(registry, store, tool, args):
    store.add_order("كنبة", "محمد", total_cost=100)
    data, version = store.data, store.version

    result = registry.invoke(tool, args)

    assert result.payload == {"success": False, "message": "Order not found."}
    assert store.data is data
    assert store.version == version


def test_update_status_and_delete_use_first_match(registry, store):
    small = store.add_order("كنبة أحمد الصغير", "أحمد الصغير", total_cost=1)
    big = store.add_order("كنبة أحمد", "أحمد", total_cost=1)

    registry.invoke("updateOrderStatus", {"orderName": "أحمد", "status": "finished"})
    assert store.get_order(big.id).status is OrderStatus.FINISHED
    assert store.get_order(small.id).status is OrderStatus.PROGRESS

    result = registry.invoke("deleteOrder", {"orderName": "أحمد"})
    assert result.payload == {"success": True, "message": "Order deleted."}
    assert [o.id for o in store.orders] == [small.id]


def test_set_delivery_date(registry, store):
    store.add_order("كنبة", "محمد", total_cost=1)

    result = registry.invoke("setDeliveryDate", {"orderName": "كنبة", "deliveryDate": "2025-10-20"})

    assert result.payload["success"] is True
    assert store.orders[0].delivery_date == result.payload["updatedOrder"]["deliveryDate"]


@pytest.mark.parametrize("when", ["الخميس الجاي", "0001-01-01"])
def test_set_delivery_date_rejects_unusable_date(registry, store, when):
    store.add_order("كنبة", "محمد", total_cost=1)
    version = store.version

    result = registry.invoke("setDeliveryDate", {"orderName": "كنبة", "deliveryDate": when})

    assert result.payload["success"] is False
    assert when in result.payload["message"]
    assert store.version == version


def test_get_order_details_includes_remaining(registry, store):
    store.add_order("سفرة", "هاني", total_cost=800, paid_amount=300)

    details = registry.invoke("getOrderDetails", {"orderName": "هاني"}).payload["orderDetails"]

    assert details["remaining"] == 500


# --- Ledger, costing, dashboard ---

def test_add_expense(registry, store):
    result = registry.invoke("addExpense", {"description": "إيجار الورشة", "amount": 3000})
    assert result.payload == {"success": True, "expenseId": store.expenses[0].id}


def test_notepad_tools(registry, store):
    added = registry.invoke("addNotepadEntry", {"clientName": "أحمد", "amount": 100})
    assert added.payload["entryId"] == store.notepad[0].id

    paid = registry.invoke("updateNotepadEntry", {"clientName": "أحمد", "amountChange": -300})
    assert paid.payload["message"] == "Notepad updated."
    assert paid.payload["updatedEntry"]["amount"] == 0
    assert store.notepad[0].amount == 0


def test_update_notepad_entry_unknown_client(registry, store):
    result = registry.invoke("updateNotepadEntry", {"clientName": "مجهول", "amountChange": 5})
    assert result.payload == {"success": False, "message": "Client not found."}


def test_calculate_detailed_cost(registry, store):
    store.add_material("قماش كشمير", "متر", 50)

    result = registry.invoke("calculateDetailedCost", {"items": {"قماش": 5}})

    assert result.payload == {
        "totalCost": 250,
        "items": [{"name": "قماش", "quantity": 5, "unit": "متر", "cost": 250, "found": True}],
        "allItemsFound": True,
    }


def test_dashboard_summary_tool(registry, store):
    store.add_order("كنبة", "محمد", total_cost=500, paid_amount=200)

    payload = registry.invoke("getDashboardSummary", {}).payload

    assert payload["progressCount"] == 1
    assert payload["totalDebt"] == 300
    assert set(payload) == {
        "progressCount", "totalDebt", "notepadDebt", "thisMonthIncome",
        "thisMonthExpenses", "monthlyCraftsmanshipProfit",
    }


def test_tool_results_serialise_arabic_verbatim(registry, store):
    store.add_order("كنبة", "محمد", total_cost=1)
    assert "كنبة" in registry.invoke("getOrderDetails", {"orderName": "كنبة"}).to_json()


# --- System prompt ---

def test_system_prompt_mentions_registered_tools_and_today(registry, store):
    full = build_system_prompt(registry, today=date(2025, 10, 19))
    assert "`calculateDetailedCost`" in full
    assert full.endswith("تاريخ النهارده: 2025-10-19")

    partial = ToolRegistry()
    partial.register(AddExpenseTool(store))
    # the ledger rule needs all three ledger tools
    assert "`addExpense`" not in build_system_prompt(partial)
