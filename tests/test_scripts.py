"""Tests for the drift-check script and logging setup."""
import importlib.util
import logging
from pathlib import Path

import pytest

from pricebook.services.migration_service import configure_logging, upgrade

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "check_schema_drift.py"


def _load_script():
    spec = importlib.util.spec_from_file_location("check_schema_drift", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def pricebook_logger():
    log = logging.getLogger("pricebook")
    level = log.level
    yield log
    log.setLevel(level)


@pytest.fixture
def script(default_engine, monkeypatch, pricebook_logger):
    monkeypatch.setattr("pricebook.services.drift_service.engine", default_engine)
    return _load_script()


# ---------------------------------------------------------------------------
# check_schema_drift.py
# ---------------------------------------------------------------------------

def test_exits_1_when_store_is_behind(script, configured_url, capsys):
    upgrade("002_unique_receipt_paid_at", url=configured_url)

    with pytest.raises(SystemExit) as exc_info:
        script.main()

    assert exc_info.value.code == 1
    out = capsys.readouterr().out
    assert "[PENDING] Store at 002_unique_receipt_paid_at" in out
    assert "003_users" in out
    assert "[DRIFT] add_table users: users" in out


# ---------------------------------------------------------------------------
# configure_logging
# ---------------------------------------------------------------------------

def test_log_level_comes_from_settings(configured_url, monkeypatch, pricebook_logger):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    from pricebook.config import get_settings

    get_settings.cache_clear()
    configure_logging()

    assert pricebook_logger.level == logging.DEBUG


def test_explicit_level_wins(configured_url, monkeypatch, pricebook_logger):
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    configure_logging("warning")

    assert pricebook_logger.level == logging.WARNING
