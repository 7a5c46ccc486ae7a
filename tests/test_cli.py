"""CLI direct record commands against a temporary database."""

import asyncio

import pytest
from typer.testing import CliRunner

from adapters.cli.main import app
from infrastructure.persistence.connection import AsyncSQLiteConnection
from infrastructure.persistence.snapshot_repo import SQLiteSnapshotRepository

runner = CliRunner()


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "workshop.db"
    monkeypatch.setenv("DB_PATH", str(path))
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    monkeypatch.setenv("LLM_PROVIDER", "ollama")
    return path


def saved_snapshot(db_path):
    repo = SQLiteSnapshotRepository(AsyncSQLiteConnection(str(db_path)))
    return asyncio.run(repo.load("default"))


def test_order_add_and_pay(db_path):
    added = runner.invoke(app, ["order", "add", "كنبة", "أستاذ محمد", "--total", "5000", "--paid", "1000"])
    assert added.exit_code == 0, added.output

    paid = runner.invoke(app, ["order", "pay", "محمد", "1500"])
    assert paid.exit_code == 0, paid.output

    (order,) = saved_snapshot(db_path)["orders"]
    assert order["paidAmount"] == 2500


def test_unknown_order_fails(db_path):
    result = runner.invoke(app, ["order", "pay", "مجهول", "10"])
    assert result.exit_code == 1


def test_empty_calculation_fails(db_path):
    result = runner.invoke(app, ["calc", "save", "فاضية"])
    assert result.exit_code == 1


def test_expense_and_notepad(db_path):
    assert runner.invoke(app, ["expense", "add", "كهرباء", "350"]).exit_code == 0
    assert runner.invoke(app, ["notepad", "add", "سعيد", "200"]).exit_code == 0

    snapshot = saved_snapshot(db_path)
    assert snapshot["expenses"][0]["amount"] == 350
    assert snapshot["notepad"][0]["clientName"] == "سعيد"


def test_export_then_import(db_path, tmp_path, monkeypatch):
    runner.invoke(app, ["order", "add", "سرير", "علي", "--total", "900"])
    backup = tmp_path / "backup.json"
    assert runner.invoke(app, ["export", str(backup)]).exit_code == 0

    other_db = tmp_path / "other.db"
    monkeypatch.setenv("DB_PATH", str(other_db))
    imported = runner.invoke(app, ["import", str(backup), "--yes"])

    assert imported.exit_code == 0, imported.output
    assert saved_snapshot(other_db)["orders"][0]["name"] == "سرير"
