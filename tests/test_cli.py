"""Tests for the command line interface.

**Feature: p2p-profit**
"""

import json
import tempfile
from pathlib import Path

import pytest
import toml
from click.testing import CliRunner

from p2pprofit.cli import cli

# Every selling day also buys, so no day runs short of inventory.
CSV_BODY = (
    "orderId,side,asset,fiatCurrency,price,amount,totalFiat,feeFiat,status,completedAt\n"
    "A1,BUY,USDT,INR,80,10,800,0,COMPLETED,2024-01-01T10:00:00\n"
    "A2,SELL,USDT,INR,95,5,475,0,COMPLETED,2024-01-01T12:00:00\n"
    "A3,BUY,USDT,INR,90,10,900,0,COMPLETED,2024-01-10T10:00:00\n"
    "A4,SELL,USDT,INR,100,5,500,0,COMPLETED,2024-01-10T12:00:00\n"
)


@pytest.fixture
def workspace(monkeypatch):
    """Point the CLI at a config and ledger inside a temp directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        config_path = root / "config.toml"
        config_path.write_text(toml.dumps({"ledger": {"db_path": str(root / "ledger.db")}}))
        monkeypatch.setenv("P2PPROFIT_CONFIG", str(config_path))

        (root / "trades.csv").write_text(CSV_BODY, encoding="utf-8")
        yield root


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def imported(runner: CliRunner, workspace: Path) -> Path:
    result = runner.invoke(cli, ["import", str(workspace / "trades.csv")])
    assert result.exit_code == 0, result.output
    return workspace


def run_json(runner: CliRunner, args: list[str]):
    result = runner.invoke(cli, args)
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


class TestCatalogCommands:
    """
    **Feature: p2p-profit, Property: Method and Currency Catalogs**
    """

    def test_methods_json(self, runner: CliRunner, workspace: Path):
        data = run_json(runner, ["methods", "--json"])

        assert [m["key"] for m in data] == ["FIFO", "AVERAGE"]
        assert data[0]["name"] == "First In, First Out"

    def test_currencies_json(self, runner: CliRunner, workspace: Path):
        codes = [c["code"] for c in run_json(runner, ["currencies", "--json"])]

        assert "INR" in codes
        assert "USD" in codes

    def test_lazy_commands_listed(self, runner: CliRunner, workspace: Path):
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        for name in ("import", "summary", "series", "monthly"):
            assert name in result.output


class TestImportAndReport:
    """
    **Feature: p2p-profit, Property: Import Then Report**

    Imported trades feed the profit reports.
    """

    def test_summary_fifo(self, runner: CliRunner, imported: Path):
        data = run_json(runner, ["summary", "--json"])

        # 5 * (95 - 80) + 5 * (100 - 80)
        assert data["realized_profit_fiat"] == "175.00"
        assert data["method"] == "FIFO"
        assert data["inventory_remaining"] == "10.00"

    def test_summary_average(self, runner: CliRunner, imported: Path):
        data = run_json(runner, ["summary", "--method", "average", "--json"])

        # 5 * (95 - 80) + 5 * (100 - 1300 / 15)
        assert data["realized_profit_fiat"] == "141.67"
        assert data["method"] == "AVERAGE"

    def test_summary_window(self, runner: CliRunner, imported: Path):
        data = run_json(runner, ["summary", "--from", "2024-01-01", "--to", "2024-01-03", "--json"])

        assert data["realized_profit_fiat"] == "75.00"
        assert data["total_sell_amount"] == "5.00"

    def test_reimport_counts_duplicates(self, runner: CliRunner, imported: Path):
        result = runner.invoke(cli, ["import", str(imported / "trades.csv")])

        assert result.exit_code == 0
        assert "duplicates 4" in result.output

    def test_weekly_series(self, runner: CliRunner, imported: Path):
        data = run_json(runner, ["series", "--period", "week", "--json"])

        assert data["period"] == "week"
        assert [p["date"] for p in data["points"]] == ["2024-01-01", "2024-01-08"]
        assert [p["period_profit"] for p in data["points"]] == ["75.00", "50.00"]
        assert data["points"][1]["cumulative_profit"] == "125.00"
        assert data["points"][1]["inventory"] == "10.00"

    def test_monthly_json(self, runner: CliRunner, imported: Path):
        data = run_json(runner, ["monthly", "--year", "2024", "--json"])

        assert len(data["monthly"]) == 12
        assert data["monthly"][0]["realized_profit_fiat"] == "175.00"
        assert data["monthly"][1]["realized_profit_fiat"] == "0.00"
        assert data["yearly"]["realized_profit_fiat"] == "175.00"

    def test_trades_listing(self, runner: CliRunner, imported: Path):
        result = runner.invoke(cli, ["trades"])

        assert result.exit_code == 0
        assert "Trades" in result.output

    def test_preview_does_not_save(self, runner: CliRunner, workspace: Path):
        result = runner.invoke(cli, ["import", str(workspace / "trades.csv"), "--preview"])
        assert result.exit_code == 0

        data = run_json(runner, ["summary", "--json"])
        assert data["total_buy_amount"] == "0.00"


class TestCliErrors:
    """
    **Feature: p2p-profit, Property: CLI Errors**

    Bad input exits with status 1 and an error panel.
    """

    def test_invalid_method(self, runner: CliRunner, workspace: Path):
        result = runner.invoke(cli, ["summary", "--method", "LIFO"])

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_undecodable_csv(self, runner: CliRunner, workspace: Path):
        bad = workspace / "bad.csv"
        bad.write_bytes(b"orderId,side\n\xff\xfe,BUY\n")

        result = runner.invoke(cli, ["import", str(bad)])

        assert result.exit_code == 1
        assert "Import failed" in result.output

    def test_invalid_period_rejected(self, runner: CliRunner, workspace: Path):
        result = runner.invoke(cli, ["series", "--period", "year"])

        assert result.exit_code != 0

    def test_init_keeps_existing_config(self, runner: CliRunner, workspace: Path):
        result = runner.invoke(cli, ["init"])

        assert result.exit_code == 0
        assert "already exists" in result.output

    def test_init_writes_config(self, runner: CliRunner, workspace: Path, monkeypatch):
        target = workspace / "fresh" / "config.toml"
        monkeypatch.setenv("P2PPROFIT_CONFIG", str(target))

        result = runner.invoke(cli, ["init"])

        assert result.exit_code == 0
        assert toml.load(target)["defaults"]["method"] == "FIFO"
