"""
Unit Tests for logging configuration
"""

import logging

import pytest

from logging_config import (
    LogContext,
    get_logger,
    get_context_filter,
    set_simulation_context,
    setup_contract_logging,
    setup_free_agency_logging,
    setup_logging,
    setup_production_logging,
)


@pytest.fixture
def restore_logging():
    """Put root handlers and package levels back after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    package_levels = {
        name: logging.getLogger(name).level for name in ("free_agency", "salary_cap")
    }
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, package_level in package_levels.items():
        logging.getLogger(name).setLevel(package_level)
    set_simulation_context(None, None)


class TestSetup:
    """Test handler setup."""

    def test_file_handlers_created(self, tmp_path, restore_logging):
        setup_logging(level="DEBUG", log_dir=str(tmp_path), enable_console=False)
        logging.getLogger("free_agency.test").info("market opens")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert (tmp_path / "fa_sim.log").exists()
        assert (tmp_path / "fa_sim_error.log").exists()
        assert "market opens" in (tmp_path / "fa_sim.log").read_text(encoding="utf-8")

    def test_records_stamped_with_day(self, tmp_path, restore_logging):
        setup_logging(level="INFO", log_dir=str(tmp_path), enable_console=False)
        set_simulation_context(2024, 70)
        logging.getLogger("free_agency.test").info("frenzy")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "[2024 d70]" in (tmp_path / "fa_sim.log").read_text(encoding="utf-8")

    def test_unset_context(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        set_simulation_context(None, None)
        get_context_filter().filter(record)
        assert record.season_year == "-"
        assert record.sim_day == "-"


class TestPackageLevels:
    """Test package level presets."""

    def test_free_agency_level(self, restore_logging):
        setup_free_agency_logging("DEBUG")
        assert logging.getLogger("free_agency").level == logging.DEBUG

    def test_contract_level_default(self, restore_logging):
        setup_contract_logging()
        assert logging.getLogger("salary_cap").level == logging.WARNING

    def test_log_context_restores_level(self, restore_logging):
        logger = logging.getLogger("free_agency.bidding_war")
        original = logger.level
        with LogContext(logger, "DEBUG"):
            assert logger.level == logging.DEBUG
        assert logger.level == original


class TestPresets:
    """Test whole-run presets."""

    def test_production_preset(self, tmp_path, restore_logging):
        setup_production_logging(log_dir=str(tmp_path))
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert not any(type(h) is logging.StreamHandler for h in root.handlers)
        assert logging.getLogger("salary_cap").level == logging.WARNING

    def test_get_logger(self):
        assert get_logger("free_agency.trickle_phase") is logging.getLogger("free_agency.trickle_phase")
