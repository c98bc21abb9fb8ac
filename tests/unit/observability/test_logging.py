"""Unit tests for arbiter.observability.logging module."""

from __future__ import annotations

import json
import os
from pathlib import Path
import tempfile
from typing import Any
from unittest.mock import patch

import pytest

from arbiter.observability.logging import (
    LoggingConfig,
    LogMode,
    bind_context,
    clear_context,
    configure_logging,
    get_current_config,
    get_logger,
    is_configured,
    reset_logging,
    set_console_logging,
    unbind_context,
)


@pytest.fixture(autouse=True)
def reset_logging_state() -> Any:
    """Reset logging state before and after each test."""
    reset_logging()
    set_console_logging(True)
    yield
    reset_logging()
    set_console_logging(True)


@pytest.fixture
def temp_log_dir() -> Any:
    """Create a temporary directory for log files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


class TestLoggingConfig:
    """Test LoggingConfig Pydantic model."""

    def test_default_config(self) -> None:
        """LoggingConfig is quiet and stderr-only by default."""
        with patch.dict(os.environ):
            os.environ.pop("ARBITER_LOG_LEVEL", None)
            config = LoggingConfig()
        assert config.mode == LogMode.DEV
        assert config.log_level == "WARNING"
        assert config.max_log_days == 7
        assert config.enable_file_logging is False
        assert config.log_dir == Path.home() / ".arbiter" / "logs"

    def test_log_level_from_env(self) -> None:
        """ARBITER_LOG_LEVEL sets the default level."""
        with patch.dict(os.environ, {"ARBITER_LOG_LEVEL": "debug"}):
            config = LoggingConfig()
        assert config.log_level == "DEBUG"

    def test_config_is_frozen(self) -> None:
        """LoggingConfig is immutable."""
        from pydantic import ValidationError as PydanticValidationError

        config = LoggingConfig()
        with pytest.raises(PydanticValidationError):
            config.mode = LogMode.PROD  # type: ignore[misc]

    def test_max_log_days_validation(self) -> None:
        """LoggingConfig validates max_log_days bounds."""
        from pydantic import ValidationError as PydanticValidationError

        with pytest.raises(PydanticValidationError):
            LoggingConfig(max_log_days=0)
        with pytest.raises(PydanticValidationError):
            LoggingConfig(max_log_days=400)


class TestConfigureLogging:
    """Test configure_logging function."""

    def test_configure_with_custom_config(self) -> None:
        """configure_logging stores the current config."""
        config = LoggingConfig(mode=LogMode.PROD, log_level="DEBUG")
        configure_logging(config)
        assert is_configured()
        assert get_current_config() == config

    def test_configure_uses_env_mode(self) -> None:
        """configure_logging uses ARBITER_LOG_MODE environment variable."""
        with patch.dict(os.environ, {"ARBITER_LOG_MODE": "prod"}):
            configure_logging()
            config = get_current_config()
            assert config is not None
            assert config.mode == LogMode.PROD

    def test_configure_env_mode_invalid_defaults_to_dev(self) -> None:
        """configure_logging defaults to dev mode for invalid env value."""
        with patch.dict(os.environ, {"ARBITER_LOG_MODE": "invalid"}):
            configure_logging()
            config = get_current_config()
            assert config is not None
            assert config.mode == LogMode.DEV

    def test_configure_creates_log_directory(self, temp_log_dir: Path) -> None:
        """File logging creates the log directory and writes JSON lines."""
        log_subdir = temp_log_dir / "nested" / "logs"
        config = LoggingConfig(
            mode=LogMode.PROD,
            log_level="INFO",
            log_dir=log_subdir,
            enable_file_logging=True,
        )
        configure_logging(config)
        set_console_logging(False)

        get_logger().info("selector.models.ranked", candidate_count=2)

        content = (log_subdir / "arbiter.log").read_text()
        assert json.loads(content.strip())["event"] == "selector.models.ranked"


class TestGetLogger:
    """Test get_logger function."""

    def test_get_logger_auto_configures(self) -> None:
        """get_logger auto-configures if not configured."""
        assert not is_configured()
        log = get_logger()
        assert log is not None
        assert is_configured()

    def test_default_level_hides_info(self, capsys: Any) -> None:
        """The default WARNING level keeps library logs quiet."""
        configure_logging(LoggingConfig(log_level="WARNING"))
        log = get_logger()
        log.info("resolver.tier.matched")
        log.warning("classifier.fallback.used")

        captured = capsys.readouterr()
        assert "resolver.tier.matched" not in captured.err
        assert "classifier.fallback.used" in captured.err
        assert captured.out == ""


class TestBindContext:
    """Test context binding functions."""

    def test_bind_and_unbind_context(self, capsys: Any) -> None:
        """bind_context adds keys; unbind_context removes them."""
        configure_logging(LoggingConfig(log_level="INFO"))
        log = get_logger()

        bind_context(agent="planner", routing_mode="fast")
        unbind_context("routing_mode")
        log.info("selector.models.ranked")

        captured = capsys.readouterr()
        assert "planner" in captured.err
        assert "fast" not in captured.err

    def test_clear_context_removes_all(self, capsys: Any) -> None:
        """clear_context removes all bound context."""
        configure_logging(LoggingConfig(log_level="INFO"))
        log = get_logger()

        bind_context(agent="reviewer")
        clear_context()
        log.info("test.event.after.clear")

        captured = capsys.readouterr()
        assert "reviewer" not in captured.err


class TestOutputModes:
    """Test dev and prod output formatting."""

    def test_dev_mode_human_readable(self, capsys: Any) -> None:
        """Dev mode does not produce JSON."""
        configure_logging(LoggingConfig(mode=LogMode.DEV, log_level="INFO"))
        get_logger().info("test.dev.mode")

        captured = capsys.readouterr()
        assert "test.dev.mode" in captured.err
        assert not captured.err.strip().startswith("{")

    def test_prod_mode_json_output(self, capsys: Any) -> None:
        """Prod mode produces JSON with level, timestamp and bound context."""
        configure_logging(LoggingConfig(mode=LogMode.PROD, log_level="INFO"))
        bind_context(task_type="code", complexity=4)
        get_logger().info("test.prod.mode")

        data = json.loads(capsys.readouterr().err.strip())
        assert data["event"] == "test.prod.mode"
        assert data["level"] == "info"
        assert "T" in data["timestamp"]
        assert data["task_type"] == "code"
        assert data["complexity"] == 4

    def test_console_logging_can_be_disabled(self, capsys: Any) -> None:
        """set_console_logging(False) silences stderr."""
        configure_logging(LoggingConfig(log_level="INFO"))
        set_console_logging(False)
        get_logger().info("test.silenced")

        assert "test.silenced" not in capsys.readouterr().err
