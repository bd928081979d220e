"""Tests for config and logging."""

import json
import logging
import os
import sys
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

import pytest

from nasiya.config import (
    ApiConfig,
    LedgerConfig,
    NasiyaConfig,
    OutputConfig,
    RateLimitConfig,
    SweepConfig,
)
from nasiya.exceptions import ConfigurationError
from nasiya.logging import (
    JsonFormatter,
    LedgerContextFilter,
    current_ledger_context,
    get_logger,
    ledger_context,
    setup_logging,
)


class TestLedgerConfig:
    """Tests for LedgerConfig."""

    def test_default_values(self) -> None:
        """Test default reconciliation rules."""
        config = LedgerConfig()

        assert config.epsilon == Decimal("0.01")
        assert config.max_monthly_change_percent == Decimal("50")
        assert config.optimistic_due_date is False
        assert config.base_currency == "USD"


class TestNasiyaConfig:
    """Tests for NasiyaConfig."""

    def test_default_values(self) -> None:
        """Test default configuration values."""
        config = NasiyaConfig()

        assert isinstance(config.ledger, LedgerConfig)
        assert isinstance(config.rate_limit, RateLimitConfig)
        assert isinstance(config.sweep, SweepConfig)
        assert isinstance(config.api, ApiConfig)
        assert isinstance(config.output, OutputConfig)
        assert config.rate_limit.max_edits == 10
        assert config.sweep.interval_seconds == 86400
        assert config.api.port == 3000
        assert config.seed is None
        assert config.log_level == "INFO"

    def test_invalid_epsilon(self) -> None:
        """Test that a non-positive epsilon is rejected."""
        with pytest.raises(ConfigurationError):
            NasiyaConfig(ledger=LedgerConfig(epsilon=Decimal("0")))

    def test_invalid_change_limit(self) -> None:
        """Test that a non-positive drift limit is rejected."""
        with pytest.raises(ConfigurationError):
            NasiyaConfig(ledger=LedgerConfig(max_monthly_change_percent=Decimal("-5")))

    def test_invalid_rate_limit(self) -> None:
        """Test that a rate limit below one edit is rejected."""
        with pytest.raises(ConfigurationError):
            NasiyaConfig(rate_limit=RateLimitConfig(max_edits=0))

    def test_invalid_exchange_rate(self) -> None:
        with pytest.raises(ConfigurationError):
            NasiyaConfig(exchange_rate=Decimal("0"))

    def test_from_env_defaults(self) -> None:
        """Test creating config from an empty environment."""
        with patch.dict(os.environ, {}, clear=True):
            config = NasiyaConfig.from_env()

        assert config.ledger.epsilon == Decimal("0.01")
        assert config.api.host == "0.0.0.0"
        assert config.api.allowed_origins == ["http://localhost:3000", "http://127.0.0.1:3000"]
        assert config.output.json_output_dir == Path("output")
        assert config.seed is None

    def test_from_env_custom_values(self) -> None:
        """Test creating config from environment variables."""
        env_vars = {
            "LEDGER_EPSILON": "0.5",
            "MAX_MONTHLY_CHANGE_PERCENT": "30",
            "OPTIMISTIC_DUE_DATE": "true",
            "EDIT_RATE_LIMIT": "3",
            "EDIT_RATE_WINDOW": "10",
            "SWEEP_INTERVAL": "3600",
            "SWEEP_INITIAL_DELAY": "0",
            "API_HOST": "127.0.0.1",
            "API_PORT": "8080",
            "ALLOWED_ORIGINS": "https://admin.example.uz, https://bot.example.uz",
            "OUTPUT_DIR": "/tmp/nasiya",
            "PRETTY_JSON": "true",
            "SEED": "42",
            "LOG_LEVEL": "DEBUG",
            "EXCHANGE_RATE": "12750",
        }

        with patch.dict(os.environ, env_vars, clear=True):
            config = NasiyaConfig.from_env()

        assert config.ledger.epsilon == Decimal("0.5")
        assert config.ledger.max_monthly_change_percent == Decimal("30")
        assert config.ledger.optimistic_due_date is True
        assert config.rate_limit.max_edits == 3
        assert config.rate_limit.window_seconds == 10.0
        assert config.sweep.interval_seconds == 3600.0
        assert config.sweep.initial_delay_seconds == 0.0
        assert config.api.host == "127.0.0.1"
        assert config.api.port == 8080
        assert config.api.allowed_origins == ["https://admin.example.uz", "https://bot.example.uz"]
        assert config.output.json_output_dir == Path("/tmp/nasiya")
        assert config.output.pretty_json is True
        assert config.seed == 42
        assert config.log_level == "DEBUG"
        assert config.exchange_rate == Decimal("12750")

    def test_from_env_invalid_decimal(self) -> None:
        """Test that an unparseable amount in the environment is rejected."""
        with patch.dict(os.environ, {"LEDGER_EPSILON": "tiny"}, clear=True):
            with pytest.raises(ConfigurationError):
                NasiyaConfig.from_env()


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_setup_logging_default(self) -> None:
        """Test default logging setup."""
        setup_logging()

        logger = logging.getLogger("nasiya")
        assert logger.level == logging.INFO

    def test_setup_logging_debug(self) -> None:
        """Test debug level logging setup."""
        setup_logging(level="DEBUG")

        logger = logging.getLogger()
        assert logger.level == logging.DEBUG

    def test_setup_logging_invalid_level(self) -> None:
        """Test logging with invalid level defaults to INFO."""
        setup_logging(level="INVALID")

        logger = logging.getLogger()
        assert logger.level == logging.INFO

    def test_setup_logging_json_format(self) -> None:
        """Test JSON format logging."""
        setup_logging(format_type="json")

        logger = logging.getLogger()
        has_json_formatter = any(
            isinstance(h.formatter, JsonFormatter) for h in logger.handlers
        )
        assert has_json_formatter

    def test_setup_logging_replaces_handlers(self) -> None:
        """Test that setup_logging replaces existing handlers."""
        logger = logging.getLogger()
        logger.addHandler(logging.StreamHandler())
        logger.addHandler(logging.StreamHandler())

        setup_logging()

        assert len(logger.handlers) == 1

    def test_external_loggers_quieted(self) -> None:
        """Test that external library loggers are quieted."""
        setup_logging(level="DEBUG")

        assert logging.getLogger("uvicorn.access").level == logging.WARNING
        assert logging.getLogger("faker").level == logging.WARNING


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    @staticmethod
    def _record(level: int = logging.INFO, msg: str = "Test message", exc_info=None) -> logging.LogRecord:
        return logging.LogRecord(
            name="nasiya.services.payments",
            level=level,
            pathname="/path/to/file.py",
            lineno=42,
            msg=msg,
            args=(),
            exc_info=exc_info,
        )

    def test_format_basic(self) -> None:
        """Test basic log formatting."""
        data = json.loads(JsonFormatter().format(self._record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "nasiya.services.payments"
        assert data["message"] == "Test message"
        assert "timestamp" in data

    def test_format_with_exception(self) -> None:
        """Test formatting with exception info."""
        try:
            raise ValueError("Test error")
        except ValueError:
            exc_info = sys.exc_info()

        data = json.loads(JsonFormatter().format(self._record(logging.ERROR, "Error occurred", exc_info)))

        assert data["level"] == "ERROR"
        assert "ValueError" in data["exception"]

    def test_format_with_extra(self) -> None:
        """Test formatting with per-call extra fields."""
        record = self._record()
        record.extra = {"contract_id": "c-1", "amount": Decimal("100.00")}

        data = json.loads(JsonFormatter().format(record))

        assert data["contract_id"] == "c-1"
        assert data["amount"] == "100.00"

    def test_format_includes_ledger_context(self) -> None:
        record = self._record()
        with ledger_context(employee="kassa-001", contract="c-1"):
            LedgerContextFilter().filter(record)

        data = json.loads(JsonFormatter().format(record))

        assert data["employee"] == "kassa-001"
        assert data["contract"] == "c-1"


class TestLedgerContext:
    """Tests for ledger_context and LedgerContextFilter."""

    def test_nesting_and_reset(self) -> None:
        with ledger_context(employee="mgr-001", request="PUT /api/contracts/c-1"):
            with ledger_context(contract="c-1", request=None) as inner:
                assert inner == {
                    "employee": "mgr-001",
                    "request": "PUT /api/contracts/c-1",
                    "contract": "c-1",
                }
            assert current_ledger_context() == {"employee": "mgr-001", "request": "PUT /api/contracts/c-1"}

        assert current_ledger_context() == {}

    def test_filter_tags_records(self) -> None:
        """Test that the standard format prints context tags before the message."""
        record = logging.LogRecord("nasiya.services.cash", logging.INFO, __file__, 1, "Payment confirmed", (), None)
        formatter = logging.Formatter("%(ledger_tags)s%(message)s")

        with ledger_context(employee="kassa-001", job="confirm"):
            assert LedgerContextFilter().filter(record) is True

        assert formatter.format(record) == "[employee=kassa-001] [job=confirm] Payment confirmed"

    def test_filter_without_context(self) -> None:
        record = logging.LogRecord("nasiya", logging.INFO, __file__, 1, "idle", (), None)

        LedgerContextFilter().filter(record)

        assert record.ledger == {}
        assert record.ledger_tags == ""

    def test_setup_logging_installs_filter(self) -> None:
        setup_logging()

        handler = logging.getLogger().handlers[0]
        assert any(isinstance(f, LedgerContextFilter) for f in handler.filters)


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger(self) -> None:
        """Test getting a logger."""
        logger = get_logger("test.module")

        assert isinstance(logger, logging.Logger)
        assert logger.name == "test.module"

    def test_get_logger_same_instance(self) -> None:
        """Test that get_logger returns same instance for same name."""
        assert get_logger("test.same") is get_logger("test.same")
