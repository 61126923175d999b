"""Tests for config and logging."""

import json
import logging
import os
import sys
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

import pytest

from installment_ledger.config import (
    AllocationConfig,
    LedgerConfig,
    ReminderConfig,
    ScheduleConfig,
    StorageConfig,
)
from installment_ledger.exceptions import ConfigurationError
from installment_ledger.logging import (
    JsonFormatter,
    LedgerLogAdapter,
    get_logger,
    setup_logging,
)

LEDGER_ENV_VARS = [
    "LEDGER_TERM_RATES",
    "LEDGER_DEFAULT_RATE",
    "LEDGER_ROUNDING_MODE",
    "LEDGER_ROUNDING_STEP",
    "LEDGER_COVERAGE_TOLERANCE",
    "LEDGER_REMINDER_DAYS",
    "LEDGER_REMINDER_TIME",
    "LEDGER_DATA_DIR",
    "LEDGER_PRETTY_JSON",
    "LEDGER_CURRENCY",
    "SEED",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FILE",
]


def _clean_env(**values: str) -> dict[str, str]:
    env = {k: v for k, v in os.environ.items() if k not in LEDGER_ENV_VARS}
    env.update(values)
    return env


class TestScheduleConfig:
    """Tests for ScheduleConfig."""

    def test_default_values(self) -> None:
        config = ScheduleConfig()

        assert config.default_markup_rate == Decimal("30")
        assert config.term_rates == {}
        assert config.rounding_mode == "NONE"
        assert config.rounding_step == 100

    def test_unknown_rounding_mode(self) -> None:
        with pytest.raises(ConfigurationError, match="SIDEWAYS"):
            ScheduleConfig(rounding_mode="SIDEWAYS")

    def test_rounding_step_positive(self) -> None:
        with pytest.raises(ConfigurationError):
            ScheduleConfig(rounding_step=0)


class TestReminderConfig:
    """Tests for ReminderConfig."""

    def test_default_values(self) -> None:
        config = ReminderConfig()
        assert config.reminder_days == [-1, 0, 1]
        assert config.reminder_time == "09:00"


class TestLedgerConfig:
    """Tests for LedgerConfig."""

    def test_default_values(self) -> None:
        config = LedgerConfig()

        assert isinstance(config.schedule, ScheduleConfig)
        assert isinstance(config.allocation, AllocationConfig)
        assert isinstance(config.storage, StorageConfig)
        assert config.allocation.coverage_tolerance == Decimal("0.01")
        assert config.currency == "RUB"
        assert config.seed is None
        assert config.log_level == "INFO"
        assert config.log_format == "standard"
        assert config.log_file is None

    def test_from_env_default(self) -> None:
        with patch.dict(os.environ, _clean_env(), clear=True):
            config = LedgerConfig.from_env()

        assert config.schedule.rounding_mode == "NONE"
        assert config.reminders.reminder_days == [-1, 0, 1]
        assert config.storage.data_dir == Path("data")
        assert config.storage.pretty_json is False
        assert config.seed is None

    def test_from_env_custom(self) -> None:
        env = _clean_env(
            LEDGER_TERM_RATES='{"3": "20", "6": 35}',
            LEDGER_DEFAULT_RATE="25",
            LEDGER_ROUNDING_MODE="up",
            LEDGER_ROUNDING_STEP="50",
            LEDGER_COVERAGE_TOLERANCE="0.05",
            LEDGER_REMINDER_DAYS="[0, 1]",
            LEDGER_REMINDER_TIME="08:15",
            LEDGER_DATA_DIR="/tmp/ledger",
            LEDGER_PRETTY_JSON="true",
            LEDGER_CURRENCY="UZS",
            SEED="7",
            LOG_LEVEL="DEBUG",
            LOG_FORMAT="json",
            LOG_FILE="/tmp/ledger/ledger.log",
        )
        with patch.dict(os.environ, env, clear=True):
            config = LedgerConfig.from_env()

        assert config.schedule.term_rates == {3: Decimal("20"), 6: Decimal("35")}
        assert config.schedule.default_markup_rate == Decimal("25")
        assert config.schedule.rounding_mode == "UP"
        assert config.schedule.rounding_step == 50
        assert config.allocation.coverage_tolerance == Decimal("0.05")
        assert config.reminders.reminder_days == [0, 1]
        assert config.reminders.reminder_time == "08:15"
        assert config.storage.data_dir == Path("/tmp/ledger")
        assert config.storage.pretty_json is True
        assert config.currency == "UZS"
        assert config.seed == 7
        assert config.log_level == "DEBUG"
        assert config.log_format == "json"
        assert config.log_file == Path("/tmp/ledger/ledger.log")

    @pytest.mark.parametrize(
        "name,value",
        [
            ("LEDGER_ROUNDING_STEP", "many"),
            ("LEDGER_DEFAULT_RATE", "thirty"),
            ("LEDGER_TERM_RATES", "{broken"),
            ("LEDGER_REMINDER_DAYS", '["soon"]'),
            ("SEED", "x"),
        ],
    )
    def test_from_env_invalid(self, name: str, value: str) -> None:
        with patch.dict(os.environ, _clean_env(**{name: value}), clear=True):
            with pytest.raises(ConfigurationError, match="Invalid ledger configuration"):
                LedgerConfig.from_env()

    def test_from_env_unknown_rounding_mode(self) -> None:
        with patch.dict(os.environ, _clean_env(LEDGER_ROUNDING_MODE="nearest"), clear=True):
            with pytest.raises(ConfigurationError, match="NEAREST"):
                LedgerConfig.from_env()


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_setup_logging_default(self) -> None:
        setup_logging()

        assert logging.getLogger("installment_ledger").level == logging.INFO
        assert logging.getLogger().level == logging.INFO

    def test_setup_logging_debug(self) -> None:
        setup_logging(level="debug")
        assert logging.getLogger("installment_ledger").level == logging.DEBUG

    def test_setup_logging_invalid_level(self) -> None:
        """Unknown levels fall back to INFO."""
        setup_logging(level="INVALID")
        assert logging.getLogger().level == logging.INFO

    def test_setup_logging_json_format(self) -> None:
        setup_logging(format_type="json")

        handlers = logging.getLogger().handlers
        assert any(isinstance(h.formatter, JsonFormatter) for h in handlers)

    def test_setup_logging_replaces_handlers(self) -> None:
        logger = logging.getLogger()
        logger.addHandler(logging.StreamHandler())
        logger.addHandler(logging.StreamHandler())

        setup_logging()

        assert len(logger.handlers) == 1

    def test_faker_quieted(self) -> None:
        setup_logging(level="DEBUG")
        assert logging.getLogger("faker").level == logging.WARNING


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def _record(self, **kwargs) -> logging.LogRecord:
        return logging.LogRecord(
            name="installment_ledger.store.transactions",
            level=kwargs.pop("level", logging.INFO),
            pathname="transactions.py",
            lineno=1,
            msg="Recorded payment of %s on sale %s",
            args=("1000", "sale-1"),
            exc_info=kwargs.pop("exc_info", None),
        )

    def test_format_basic(self) -> None:
        data = json.loads(JsonFormatter().format(self._record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "installment_ledger.store.transactions"
        assert data["message"] == "Recorded payment of 1000 on sale sale-1"
        assert "timestamp" in data

    def test_format_with_extra(self) -> None:
        record = self._record()
        record.extra = {"sale_id": "sale-1", "status": "ACTIVE"}

        data = json.loads(JsonFormatter().format(record))
        assert data["sale_id"] == "sale-1"
        assert data["status"] == "ACTIVE"

    def test_format_with_exception(self) -> None:
        try:
            raise ValueError("disk full")
        except ValueError:
            exc_info = sys.exc_info()

        data = json.loads(
            JsonFormatter().format(self._record(level=logging.ERROR, exc_info=exc_info))
        )
        assert "ValueError: disk full" in data["exception"]


class TestGetLogger:
    """Tests for get_logger and bound ledger context."""

    def test_get_logger(self) -> None:
        logger = get_logger("installment_ledger.engine")
        assert logger is logging.getLogger("installment_ledger.engine")

    def test_bound_context(self) -> None:
        logger = get_logger("installment_ledger.store", user_id="user-1")
        assert isinstance(logger, LedgerLogAdapter)

        _, kwargs = logger.process("msg", {"extra": {"extra": {"sale_id": "sale-1"}}})
        assert kwargs["extra"]["extra"] == {"user_id": "user-1", "sale_id": "sale-1"}

    def test_call_context_wins(self) -> None:
        logger = get_logger("installment_ledger.store", user_id="user-1")
        _, kwargs = logger.process("msg", {"extra": {"extra": {"user_id": "user-2"}}})
        assert kwargs["extra"]["extra"] == {"user_id": "user-2"}

    def test_context_reaches_json_output(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "ledger.log"
        setup_logging(format_type="json", log_file=log_file)

        get_logger("installment_ledger.store", user_id="user-1").info(
            "Recorded payment", extra={"extra": {"sale_id": "sale-1"}}
        )
        for handler in logging.getLogger().handlers:
            handler.flush()

        data = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
        assert data["message"] == "Recorded payment"
        assert data["user_id"] == "user-1"
        assert data["sale_id"] == "sale-1"
        setup_logging()
