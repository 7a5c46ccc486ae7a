"""
adapters.cli.main - CLI adapter for the workshop assistant.

Mirrors src/adapters/rest/ but for terminal use. Uses the same
ServiceFactory, WorkshopStore and TurnOrchestrator as the REST API, so
chat and direct record operations behave identically. Every command that
changes data flushes the snapshot before exiting.

Commands
--------
  chat        Interactive chat with the assistant (streams the replies)
  ask         One-shot chat turn
  dashboard   Monthly summary, debts and the last three months
  schedule    Orders with a delivery date, soonest first
  history     Show the saved chat transcript
  export      Write a JSON backup of the whole workspace
  import      Replace the workspace with a JSON backup
  order       add | list | pay | status | deliver | remove | clear-finished
  expense     add | list | remove
  notepad     add | list | set | remove
  material    add | list | update | remove
  inventory   add | list | remove
  calc        save | list | remove

Usage
-----
  python run_cli.py chat
  python run_cli.py order add "كنبة" "أستاذ محمد" --total 5000 --paid 1000
  python run_cli.py calc save "ركنة" -l pm-123:5 -l pm-456:2
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable, List, Optional

# ── Ensure src/ is on the path ──
_SRC = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(_SRC))

import typer
from rich import box
from rich.console import Console, RenderableType
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt
from rich.spinner import Spinner
from rich.table import Table
from rich.text import Text

from agent.orchestrator import TurnOrchestrator
from application.services.store import ORDER_SORTS, WorkshopStore, parse_date_ms
from domain.entities import Message, MessageRole, Order
from domain.exceptions import DomainError
from factory import ServiceFactory
from infrastructure.config import Settings

__version__ = "1.0.0"

console = Console()
app = typer.Typer(
    help="Workshop Assistant CLI",
    add_completion=False,
    no_args_is_help=True,
)
order_app = typer.Typer(help="Manage orders.", no_args_is_help=True)
expense_app = typer.Typer(help="Manage workshop expenses.", no_args_is_help=True)
notepad_app = typer.Typer(help="Manage the client notepad.", no_args_is_help=True)
material_app = typer.Typer(help="Manage priced materials.", no_args_is_help=True)
inventory_app = typer.Typer(help="Manage inventory.", no_args_is_help=True)
calc_app = typer.Typer(help="Manage saved cost calculations.", no_args_is_help=True)
app.add_typer(order_app, name="order")
app.add_typer(expense_app, name="expense")
app.add_typer(notepad_app, name="notepad")
app.add_typer(material_app, name="material")
app.add_typer(inventory_app, name="inventory")
app.add_typer(calc_app, name="calc")

_STATUS_LABELS = {"progress": "شغال", "finished": "خلص", "delivery": "مستني تسليم"}


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

async def _make_factory() -> ServiceFactory:
    """Create and initialize a ServiceFactory (migrations + saved snapshot)."""
    config = Settings.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    factory = ServiceFactory(config)
    await factory.initialize()
    return factory


def _run(action: Callable[[ServiceFactory], Awaitable[None]]) -> None:
    """Run *action* against an initialized factory, then flush the snapshot."""
    async def _main() -> None:
        factory = await _make_factory()
        try:
            await action(factory)
        except (DomainError, ValueError) as exc:
            _fail(str(exc))
        await factory.snapshots.flush()

    asyncio.run(_main())


def _fail(message: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {message}")
    raise typer.Exit(code=1)


def _money(amount: float) -> str:
    return f"{amount:,.2f}"


def _fmt_date(ms: Optional[int]) -> str:
    if not ms:
        return "[dim]—[/dim]"
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d")


def _find_order(store: WorkshopStore, reference: str) -> Order:
    """Look an order up by id, falling back to name/client resolution."""
    order = store.get_order(reference) or store.resolve_order(reference)
    if order is None:
        _fail(f"No order matches '{reference}'.")
    return order


def _orders_table(orders: list[Order], title: str) -> Table:
    t = Table(title=title, box=box.SIMPLE_HEAVY)
    t.add_column("ID", style="dim")
    t.add_column("Name", style="bold")
    t.add_column("Client")
    t.add_column("Status")
    t.add_column("Total", justify="right")
    t.add_column("Paid", justify="right")
    t.add_column("Remaining", justify="right")
    t.add_column("Delivery")
    for o in orders:
        t.add_row(
            o.id, o.name, o.client_name,
            _STATUS_LABELS.get(o.status.value, o.status.value),
            _money(o.total_cost), _money(o.paid_amount),
            _money(o.remaining), _fmt_date(o.delivery_date),
        )
    return t


def _render_message(message: Message) -> RenderableType:
    if message.role is MessageRole.LOADING:
        return Spinner("dots", text="بيفكر…", style="cyan")
    if message.role is MessageRole.TOOL_CALL:
        return Text(message.text, style="yellow")
    if message.role is MessageRole.USER:
        return Panel(message.text, title="You", border_style="cyan")
    return Panel(Markdown(message.text or "…"), title="المساعد", border_style="green")


async def _stream_turn(orchestrator: TurnOrchestrator, text: str) -> None:
    """Run one turn, showing the open message live and printing settled ones."""
    with Live(console=console, transient=True, refresh_per_second=12) as live:
        async for update in orchestrator.submit(text):
            message = update.message
            if message is None or message.role is MessageRole.USER:
                continue
            if update.settled:
                live.console.print(_render_message(message))
                live.update(Text(""))
            else:
                live.update(_render_message(message))


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"workshop-assistant v{__version__}")
        raise typer.Exit()


# ---------------------------------------------------------------------------
# Commands: Chat
# ---------------------------------------------------------------------------

@app.command()
def chat() -> None:
    """Start an interactive chat session with the assistant."""
    async def _action(factory: ServiceFactory) -> None:
        orchestrator = factory.get_orchestrator()
        console.print(Panel(
            "[bold]مساعد الورشة الذكي[/bold]\n"
            "Type your message, or [bold]exit[/bold] / [bold]quit[/bold] to stop.",
            border_style="cyan",
        ))
        while True:
            try:
                user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")
            except (KeyboardInterrupt, EOFError):
                console.print("\n[dim]مع السلامة![/dim]")
                break

            if user_input.strip().lower() in ("exit", "quit", "q", "bye"):
                console.print("[dim]مع السلامة![/dim]")
                break
            if not user_input.strip():
                continue

            await _stream_turn(orchestrator, user_input.strip())

    _run(_action)


@app.command()
def ask(message: str = typer.Argument(..., help="Message for the assistant.")) -> None:
    """Send a single message to the assistant and print the reply."""
    async def _action(factory: ServiceFactory) -> None:
        await _stream_turn(factory.get_orchestrator(), message)

    _run(_action)


@app.command()
def history(
    limit: int = typer.Option(20, "--limit", "-n", help="Number of messages to show."),
) -> None:
    """Show the saved chat transcript."""
    async def _action(factory: ServiceFactory) -> None:
        messages = factory.transcript.messages[-limit:] if limit > 0 else ()
        if not messages:
            console.print("[dim]No chat history yet.[/dim]")
        for message in messages:
            console.print(_render_message(message))

    _run(_action)


# ---------------------------------------------------------------------------
# Commands: Reports
# ---------------------------------------------------------------------------

@app.command()
def dashboard() -> None:
    """Show this month's summary, debts and the last three months."""
    async def _action(factory: ServiceFactory) -> None:
        store = factory.store
        summary = store.dashboard_summary()

        t = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
        t.add_column("Field", style="bold")
        t.add_column("Value", justify="right")
        t.add_row("Orders in progress", str(summary.progress_count))
        t.add_row("Outstanding on orders", _money(summary.total_debt))
        t.add_row("Outstanding in notepad", _money(summary.notepad_debt))
        t.add_row("Income this month", _money(summary.month_income))
        t.add_row("Expenses this month", _money(summary.month_expenses))
        t.add_row("Labor profit this month", _money(summary.month_labor_profit))
        console.print(Panel(t, title="Dashboard", border_style="blue"))

        chart = Table(title="Last 3 months", box=box.SIMPLE)
        chart.add_column("Month", style="bold")
        chart.add_column("Income", justify="right", style="green")
        chart.add_column("Expenses", justify="right", style="red")
        for bar in store.monthly_chart():
            chart.add_row(f"{bar.label} {bar.year}", _money(bar.income), _money(bar.expenses))
        console.print(chart)

        deliveries = store.todays_deliveries()
        if deliveries:
            console.print(_orders_table(deliveries, "Deliveries today"))
        new_today = store.new_orders_today()
        if new_today:
            console.print(_orders_table(new_today, "New orders today"))

    _run(_action)


@app.command()
def schedule() -> None:
    """List orders that have a delivery date, soonest first."""
    async def _action(factory: ServiceFactory) -> None:
        orders = factory.store.schedule()
        if not orders:
            console.print("[dim]No delivery dates set.[/dim]")
            return
        console.print(_orders_table(orders, "Delivery schedule"))

    _run(_action)


# ---------------------------------------------------------------------------
# Commands: Backup
# ---------------------------------------------------------------------------

@app.command("export")
def export_snapshot(
    path: Path = typer.Argument(..., help="Where to write the JSON backup."),
) -> None:
    """Write a JSON backup of the whole workspace."""
    async def _action(factory: ServiceFactory) -> None:
        snapshot = factory.snapshots.export()
        path.write_text(json.dumps(snapshot, ensure_ascii=False, indent=2), encoding="utf-8")
        console.print(f"[green]Backup written to[/green] {path}")

    _run(_action)


@app.command("import")
def import_snapshot(
    path: Path = typer.Argument(..., exists=True, readable=True, help="JSON backup to load."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Replace ALL workspace data and chat history with a JSON backup."""
    if not yes and not typer.confirm("This replaces all current data. Continue?"):
        raise typer.Exit()

    async def _action(factory: ServiceFactory) -> None:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            _fail(f"{path} is not valid JSON ({exc.msg}).")
        await factory.get_orchestrator().import_snapshot(raw)
        store = factory.store
        console.print(
            f"[green]Imported[/green] {len(store.orders)} orders, "
            f"{len(store.expenses)} expenses, {len(store.notepad)} notepad entries, "
            f"{len(factory.transcript.messages)} chat messages."
        )

    _run(_action)


# ---------------------------------------------------------------------------
# Commands: Orders
# ---------------------------------------------------------------------------

@order_app.command("add")
def order_add(
    name: str = typer.Argument(..., help="What the order is, e.g. \"كنبة\"."),
    client: str = typer.Argument(..., help="Client name."),
    total: float = typer.Option(..., "--total", "-t", min=0, help="Total cost."),
    paid: float = typer.Option(0.0, "--paid", "-p", min=0, help="Amount paid up front."),
    labor: Optional[float] = typer.Option(None, "--labor", min=0, help="Labor cost / profit."),
    old: bool = typer.Option(False, "--old", help="Maintenance or follow-up work."),
) -> None:
    """Register an order."""
    async def _action(factory: ServiceFactory) -> None:
        order = factory.store.add_order(
            name=name, client_name=client, type="old" if old else "new",
            total_cost=total, paid_amount=paid, labor_cost=labor,
        )
        console.print(f"[green]Order registered:[/green] {order.name} ({order.id})")

    _run(_action)


@order_app.command("list")
def order_list(
    search: str = typer.Option("", "--search", "-s", help="Filter by name."),
    sort: str = typer.Option("newest", "--sort", help=f"One of {', '.join(ORDER_SORTS)}."),
) -> None:
    """List orders."""
    async def _action(factory: ServiceFactory) -> None:
        orders = factory.store.search_orders(search, sort)
        if not orders:
            console.print("[dim]No orders.[/dim]")
            return
        console.print(_orders_table(orders, f"Orders ({len(orders)})"))

    _run(_action)


@order_app.command("pay")
def order_pay(
    reference: str = typer.Argument(..., help="Order id, name or client."),
    amount: float = typer.Argument(..., min=0),
) -> None:
    """Record a payment against an order."""
    async def _action(factory: ServiceFactory) -> None:
        order = factory.store.record_payment(_find_order(factory.store, reference).id, amount)
        console.print(
            f"[green]Payment recorded for[/green] {order.name}: "
            f"remaining {_money(order.remaining)}"
        )

    _run(_action)


@order_app.command("status")
def order_status(
    reference: str = typer.Argument(..., help="Order id, name or client."),
    status: str = typer.Argument(..., help="progress | finished | delivery"),
) -> None:
    """Change an order's status."""
    async def _action(factory: ServiceFactory) -> None:
        order = factory.store.set_order_status(_find_order(factory.store, reference).id, status)
        console.print(f"[green]{order.name}[/green] → {_STATUS_LABELS[order.status.value]}")

    _run(_action)


@order_app.command("deliver")
def order_deliver(
    reference: str = typer.Argument(..., help="Order id, name or client."),
    when: str = typer.Argument(..., help="Delivery date, YYYY-MM-DD."),
) -> None:
    """Set an order's delivery date."""
    async def _action(factory: ServiceFactory) -> None:
        stamp = parse_date_ms(when)
        if stamp is None:
            _fail(f"Could not parse date '{when}' (expected YYYY-MM-DD).")
        order = factory.store.set_delivery_date(_find_order(factory.store, reference).id, stamp)
        console.print(f"[green]{order.name}[/green] delivery on {_fmt_date(order.delivery_date)}")

    _run(_action)


@order_app.command("remove")
def order_remove(reference: str = typer.Argument(..., help="Order id, name or client.")) -> None:
    """Delete an order."""
    async def _action(factory: ServiceFactory) -> None:
        order = factory.store.remove_order(_find_order(factory.store, reference).id)
        console.print(f"[yellow]Deleted[/yellow] {order.name}")

    _run(_action)


@order_app.command("clear-finished")
def order_clear_finished() -> None:
    """Delete every finished order."""
    async def _action(factory: ServiceFactory) -> None:
        removed = factory.store.clear_finished_orders()
        console.print(f"[yellow]Removed {removed} finished order(s).[/yellow]")

    _run(_action)


# ---------------------------------------------------------------------------
# Commands: Expenses
# ---------------------------------------------------------------------------

@expense_app.command("add")
def expense_add(
    description: str = typer.Argument(...),
    amount: float = typer.Argument(..., min=0),
) -> None:
    """Record a workshop expense."""
    async def _action(factory: ServiceFactory) -> None:
        expense = factory.store.add_expense(description, amount)
        console.print(f"[green]Expense recorded:[/green] {expense.description} ({expense.id})")

    _run(_action)


@expense_app.command("list")
def expense_list() -> None:
    """List expenses, newest first."""
    async def _action(factory: ServiceFactory) -> None:
        t = Table(title="Expenses", box=box.SIMPLE_HEAVY)
        t.add_column("ID", style="dim")
        t.add_column("Description", style="bold")
        t.add_column("Amount", justify="right")
        t.add_column("Date")
        for e in factory.store.expenses:
            t.add_row(e.id, e.description, _money(e.amount), _fmt_date(e.date))
        console.print(t)

    _run(_action)


@expense_app.command("remove")
def expense_remove(expense_id: str = typer.Argument(...)) -> None:
    """Delete an expense by id."""
    async def _action(factory: ServiceFactory) -> None:
        if factory.store.remove_expense(expense_id) is None:
            _fail(f"No expense with id '{expense_id}'.")
        console.print("[yellow]Expense deleted.[/yellow]")

    _run(_action)


# ---------------------------------------------------------------------------
# Commands: Notepad
# ---------------------------------------------------------------------------

@notepad_app.command("add")
def notepad_add(
    client: str = typer.Argument(...),
    amount: float = typer.Argument(..., min=0),
) -> None:
    """Open a notepad balance for a client."""
    async def _action(factory: ServiceFactory) -> None:
        entry = factory.store.add_notepad_entry(client, amount)
        console.print(f"[green]Notepad entry added:[/green] {entry.client_name} ({entry.id})")

    _run(_action)


@notepad_app.command("list")
def notepad_list() -> None:
    """Show notepad balances."""
    async def _action(factory: ServiceFactory) -> None:
        store = factory.store
        t = Table(title="Notepad", box=box.SIMPLE_HEAVY)
        t.add_column("ID", style="dim")
        t.add_column("Client", style="bold")
        t.add_column("Amount", justify="right")
        for n in store.notepad:
            t.add_row(n.id, n.client_name, _money(n.amount))
        t.add_row("", "[bold]Total[/bold]", f"[bold]{_money(store.notepad_debt())}[/bold]")
        console.print(t)

    _run(_action)


@notepad_app.command("set")
def notepad_set(
    entry_id: str = typer.Argument(...),
    amount: float = typer.Argument(..., min=0),
) -> None:
    """Set a notepad balance."""
    async def _action(factory: ServiceFactory) -> None:
        entry = factory.store.update_notepad_entry(entry_id, amount=amount)
        if entry is None:
            _fail(f"No notepad entry with id '{entry_id}'.")
        console.print(f"[green]{entry.client_name}[/green] → {_money(entry.amount)}")

    _run(_action)


@notepad_app.command("remove")
def notepad_remove(entry_id: str = typer.Argument(...)) -> None:
    """Delete a notepad entry."""
    async def _action(factory: ServiceFactory) -> None:
        if factory.store.remove_notepad_entry(entry_id) is None:
            _fail(f"No notepad entry with id '{entry_id}'.")
        console.print("[yellow]Notepad entry deleted.[/yellow]")

    _run(_action)


# ---------------------------------------------------------------------------
# Commands: Priced materials
# ---------------------------------------------------------------------------

@material_app.command("add")
def material_add(
    name: str = typer.Argument(...),
    price: float = typer.Argument(..., min=0),
    unit: str = typer.Option("قطعة", "--unit", "-u"),
) -> None:
    """Add a priced material to the calculator catalog."""
    async def _action(factory: ServiceFactory) -> None:
        material = factory.store.add_material(name, unit, price)
        console.print(f"[green]Material added:[/green] {material.name} ({material.id})")

    _run(_action)


@material_app.command("list")
def material_list() -> None:
    """List priced materials."""
    async def _action(factory: ServiceFactory) -> None:
        t = Table(title="Priced materials", box=box.SIMPLE_HEAVY)
        t.add_column("ID", style="dim")
        t.add_column("Name", style="bold")
        t.add_column("Unit")
        t.add_column("Price", justify="right")
        for m in factory.store.priced_materials:
            t.add_row(m.id, m.name, m.unit, _money(m.price))
        console.print(t)

    _run(_action)


@material_app.command("update")
def material_update(
    material_id: str = typer.Argument(...),
    name: Optional[str] = typer.Option(None, "--name"),
    unit: Optional[str] = typer.Option(None, "--unit", "-u"),
    price: Optional[float] = typer.Option(None, "--price", min=0),
) -> None:
    """Change a priced material. Saved calculations keep their old prices."""
    changes = {k: v for k, v in {"name": name, "unit": unit, "price": price}.items() if v is not None}

    async def _action(factory: ServiceFactory) -> None:
        if not changes:
            _fail("Nothing to update.")
        material = factory.store.update_material(material_id, **changes)
        if material is None:
            _fail(f"No material with id '{material_id}'.")
        console.print(f"[green]Updated[/green] {material.name}")

    _run(_action)


@material_app.command("remove")
def material_remove(material_id: str = typer.Argument(...)) -> None:
    """Delete a priced material."""
    async def _action(factory: ServiceFactory) -> None:
        if factory.store.remove_material(material_id) is None:
            _fail(f"No material with id '{material_id}'.")
        console.print("[yellow]Material deleted.[/yellow]")

    _run(_action)


# ---------------------------------------------------------------------------
# Commands: Inventory
# ---------------------------------------------------------------------------

@inventory_app.command("add")
def inventory_add(
    name: str = typer.Argument(...),
    quantity: float = typer.Argument(..., min=0),
    price: float = typer.Option(0.0, "--price", min=0),
    unit: str = typer.Option("قطعة", "--unit", "-u"),
) -> None:
    """Add an inventory item."""
    async def _action(factory: ServiceFactory) -> None:
        item = factory.store.add_inventory_item(name, quantity, unit, price)
        console.print(f"[green]Inventory item added:[/green] {item.name} ({item.id})")

    _run(_action)


@inventory_app.command("list")
def inventory_list() -> None:
    """List inventory."""
    async def _action(factory: ServiceFactory) -> None:
        t = Table(title="Inventory", box=box.SIMPLE_HEAVY)
        t.add_column("ID", style="dim")
        t.add_column("Name", style="bold")
        t.add_column("Quantity", justify="right")
        t.add_column("Unit")
        t.add_column("Price", justify="right")
        for i in factory.store.inventory:
            t.add_row(i.id, i.name, f"{i.quantity:g}", i.unit, _money(i.price))
        console.print(t)

    _run(_action)


@inventory_app.command("remove")
def inventory_remove(item_id: str = typer.Argument(...)) -> None:
    """Delete an inventory item."""
    async def _action(factory: ServiceFactory) -> None:
        if factory.store.remove_inventory_item(item_id) is None:
            _fail(f"No inventory item with id '{item_id}'.")
        console.print("[yellow]Inventory item deleted.[/yellow]")

    _run(_action)


# ---------------------------------------------------------------------------
# Commands: Saved calculations
# ---------------------------------------------------------------------------

def _parse_line(raw: str) -> tuple[str, float]:
    material_id, sep, quantity = raw.rpartition(":")
    if not sep or not material_id:
        raise typer.BadParameter(f"Expected MATERIAL_ID:QUANTITY, got '{raw}'")
    try:
        return material_id, float(quantity)
    except ValueError:
        raise typer.BadParameter(f"Quantity must be a number in '{raw}'")


@calc_app.command("save")
def calc_save(
    name: str = typer.Argument(...),
    lines: List[str] = typer.Option([], "--line", "-l", help="MATERIAL_ID:QUANTITY (repeatable)."),
) -> None:
    """Save a cost calculation from priced materials."""
    parsed = [_parse_line(raw) for raw in lines]

    async def _action(factory: ServiceFactory) -> None:
        calc = factory.store.save_calculation(name, parsed)
        console.print(f"[green]Saved[/green] {calc.name}: total {_money(calc.total_cost)}")

    _run(_action)


@calc_app.command("list")
def calc_list() -> None:
    """List saved calculations."""
    async def _action(factory: ServiceFactory) -> None:
        for calc in factory.store.saved_calculations:
            t = Table(box=box.SIMPLE)
            t.add_column("Material", style="bold")
            t.add_column("Quantity", justify="right")
            t.add_column("Price", justify="right")
            t.add_column("Total", justify="right")
            for line in calc.items:
                t.add_row(
                    line.material_name, f"{line.quantity:g} {line.unit}",
                    _money(line.price), _money(line.total),
                )
            console.print(Panel(
                t,
                title=f"{calc.name} ({calc.id})",
                subtitle=f"Total {_money(calc.total_cost)} · {_fmt_date(calc.created_at)}",
                border_style="blue",
            ))

    _run(_action)


@calc_app.command("remove")
def calc_remove(calculation_id: str = typer.Argument(...)) -> None:
    """Delete a saved calculation."""
    async def _action(factory: ServiceFactory) -> None:
        if factory.store.remove_calculation(calculation_id) is None:
            _fail(f"No calculation with id '{calculation_id}'.")
        console.print("[yellow]Calculation deleted.[/yellow]")

    _run(_action)


# ---------------------------------------------------------------------------
# Global version option
# ---------------------------------------------------------------------------

@app.callback()
def _callback(
    version: bool = typer.Option(
        False, "--version", "-v",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Workshop Assistant CLI"""


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    app()
