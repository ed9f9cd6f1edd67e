from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from heartland_hooks import main

runner = CliRunner()


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(main, "configure_logging", lambda **kwargs: None)


def test_info_reports_unconfigured_environment():
    result = runner.invoke(main.app, ["info"])

    assert result.exit_code == 0
    assert "heartland=unset" in result.output
    assert "secret=none" in result.output


def test_strategies_lists_base_strategies():
    result = runner.invoke(main.app, ["strategies"])

    assert result.exit_code == 0
    assert "type-and-status, balance-based, completed-timestamp" in result.output


def test_check_reads_transaction_file(tmp_path):
    path = tmp_path / "tx.json"
    path.write_text(json.dumps({"id": 1001, "type": "sale", "completed?": True}), encoding="utf-8")

    result = runner.invoke(main.app, ["check", str(path)])

    assert result.exit_code == 0
    assert '"transactionKind": "sale"' in result.output
    assert '"completionStrategy": "type-and-status"' in result.output


def test_check_reads_stdin():
    result = runner.invoke(main.app, ["check", "-"], input='{"id": 1002, "type": "other", "balance": 5}')

    assert result.exit_code == 0
    assert '"check": false' in result.output


def test_check_rejects_missing_file(tmp_path):
    result = runner.invoke(main.app, ["check", str(tmp_path / "missing.json")])

    assert result.exit_code != 0


def test_item_acknowledges(tmp_path):
    path = tmp_path / "item.json"
    path.write_text(json.dumps({"id": 4321}), encoding="utf-8")

    result = runner.invoke(main.app, ["item", str(path)])

    assert result.exit_code == 0
    assert '"status": "ok"' in result.output


def test_undersold_requires_configuration():
    result = runner.invoke(main.app, ["undersold", "--department", "Lego"])

    assert result.exit_code == 1
