from datetime import date

import pytest

from driverpay_api.config import AppConfig, EngineConfig
from driverpay_api.extensions import normalize_db_url
from driverpay_api.models.statements import Payslip


def test_engine_defaults():
    cfg = EngineConfig()
    assert cfg.include_route_earnings is True
    assert cfg.include_legacy_weekly_earnings is True
    assert cfg.route_rate_source == "carrier"
    assert cfg.allow_dispatcher_rate_fallback is True
    assert cfg.batch_deductions_from_ledger is False


def test_engine_rejects_unknown_rate_source():
    with pytest.raises(ValueError):
        EngineConfig(route_rate_source="invoice")


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgres://u:p@db:5432/pay")
    monkeypatch.setenv("LOG_LEVEL", "warning")
    monkeypatch.setenv("PAY_INCLUDE_LEGACY_EARNINGS", "false")
    monkeypatch.setenv("PAY_ROUTE_RATE_SOURCE", "Schedule")
    monkeypatch.setenv("PAY_ALLOW_DISPATCHER_FALLBACK", "0")
    monkeypatch.setenv("PAY_BATCH_DEDUCTIONS_FROM_LEDGER", "yes")
    monkeypatch.delenv("PAY_INCLUDE_ROUTE_EARNINGS", raising=False)

    cfg = AppConfig.from_env()
    assert cfg.database_url == "postgres://u:p@db:5432/pay"
    assert cfg.log_level == "WARNING"
    assert cfg.engine == EngineConfig(
        include_route_earnings=True,
        include_legacy_weekly_earnings=False,
        route_rate_source="schedule",
        allow_dispatcher_rate_fallback=False,
        batch_deductions_from_ledger=True,
    )


def test_normalize_db_url():
    assert normalize_db_url("postgres://u@h/db") == "postgresql+psycopg://u@h/db"
    assert normalize_db_url("postgresql://u@h/db") == "postgresql+psycopg://u@h/db"
    assert normalize_db_url("sqlite:///:memory:") == "sqlite:///:memory:"


def test_cli_payslips_generate(app, seed):
    inv = seed.invoice("INV-1001")
    seed.driver("Alice", "OP-A")
    seed.driver("Bob", "OP-B")
    seed.rate("0.85", date(2024, 1, 1), operator_id="OP-A")
    seed.daily_qty(inv, "OP-A", date(2024, 7, 1), 120)
    seed.daily_qty(inv, "OP-B", date(2024, 7, 1), 50)

    res = app.test_cli_runner().invoke(args=["payslips", "generate", "--invoice", "INV-1001", "--by", "ops"])
    assert res.exit_code == 0, res.output
    assert "created: driver" in res.output
    assert "1 payslip(s) generated" in res.output
    assert Payslip.query.one().generated_by == "ops"


def test_cli_payslips_generate_unknown_invoice(app):
    res = app.test_cli_runner().invoke(args=["payslips", "generate", "--invoice", "INV-404"])
    assert res.exit_code != 0
    assert "Invoice INV-404 not found" in res.output


def test_cli_seed_demo_is_repeatable(app):
    runner = app.test_cli_runner()
    first = runner.invoke(args=["seed-demo"])
    second = runner.invoke(args=["seed-demo"])
    assert first.exit_code == 0, first.output
    assert second.exit_code == 0, second.output
    assert "Seeded:" in second.output

    res = runner.invoke(args=["payslips", "generate"])
    assert res.exit_code == 0, res.output
    assert "2 payslip(s) generated" in res.output
