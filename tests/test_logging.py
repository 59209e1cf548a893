"""
Tests for logging utilities.
"""

import json
import logging
from pathlib import Path
from unittest.mock import Mock, patch

from keychain_monitor.utils.logging import (
    COMPONENTS,
    ROOT_LOGGER_NAME,
    ComponentLogger,
    LoggingManager,
    get_logger,
    get_logging_stats,
    setup_logging,
)


class TestComponentLogger:
    """Test cases for ComponentLogger."""

    def test_component_logger_initialization(self):
        """Test component logger initialization."""
        logger = ComponentLogger("item.processor", {"key": "value"})

        assert logger.component_name == "item.processor"
        assert logger.extra_context == {"key": "value"}
        assert logger.logger.name == "keychain_monitor.item.processor"

    def test_format_message(self):
        """Test message formatting."""
        logger = ComponentLogger("item.processor", {"context_key": "context_value"})

        formatted = json.loads(
            logger._format_message("Item matched", {"id": "1001"})
        )

        assert formatted["component"] == "item.processor"
        assert formatted["message"] == "Item matched"
        assert formatted["context_key"] == "context_value"
        assert formatted["id"] == "1001"
        assert "timestamp" in formatted

    def test_format_message_serializes_unknown_types(self):
        """Test that non-JSON values are stringified."""
        logger = ComponentLogger("item.processor")

        formatted = json.loads(logger._format_message("Stats", {"path": Path("logs")}))

        assert formatted["path"] == "logs"

    def test_log_methods(self):
        """Test different log level methods."""
        with patch("logging.getLogger") as mock_get_logger:
            mock_logger = Mock()
            mock_get_logger.return_value = mock_logger

            logger = ComponentLogger("rule.store")
            logger.debug("debug message")
            logger.info("info message")
            logger.warning("warning message")
            logger.error("error message", exc_info=True)

            mock_logger.debug.assert_called_once()
            mock_logger.info.assert_called_once()
            mock_logger.warning.assert_called_once()
            mock_logger.error.assert_called_once()
            assert mock_logger.error.call_args.kwargs["exc_info"] is True
            assert json.loads(mock_logger.error.call_args.args[0])["exception"] is True


class TestLoggingManager:
    """Test cases for LoggingManager."""

    def test_logging_manager_initialization(self, temp_dir):
        """Test logging manager initialization."""
        manager = LoggingManager(log_dir=str(temp_dir / "logs"), log_level="DEBUG")

        assert manager.log_dir == temp_dir / "logs"
        assert manager.log_level == logging.DEBUG
        assert manager.log_dir.exists()

        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        assert len(root_logger.handlers) == 3

    def test_component_specific_log_files(self, temp_dir):
        """Test that each known component gets its own log file."""
        LoggingManager(log_dir=str(temp_dir))

        for component in COMPONENTS:
            component_logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}")
            filenames = [
                getattr(handler, "baseFilename", "") for handler in component_logger.handlers
            ]
            assert any(name.endswith(f"{component.replace('.', '_')}.log") for name in filenames)

    def test_get_component_logger(self, temp_dir):
        """Test getting component loggers."""
        manager = LoggingManager(log_dir=str(temp_dir))

        logger1 = manager.get_component_logger("item.processor")
        logger2 = manager.get_component_logger("item.processor")
        logger3 = manager.get_component_logger("rule.store")
        logger4 = manager.get_component_logger("item.processor", {"batch": 1})

        assert logger1 is logger2
        assert logger1 is not logger3
        assert logger1 is not logger4

    def test_module_loggers_reach_component_files(self, temp_dir):
        """Test that component module loggers write to their own files."""
        LoggingManager(log_dir=str(temp_dir))

        logging.getLogger("keychain_monitor.components.matching_engine").warning(
            "Unknown keychain on item 1001"
        )
        logging.getLogger("keychain_monitor.components.reference_prices").warning(
            "Timeout fetching reference prices"
        )

        engine_log = (temp_dir / "components_matching_engine.log").read_text()
        prices_log = (temp_dir / "components_reference_prices.log").read_text()
        assert "Unknown keychain on item 1001" in engine_log
        assert "Timeout fetching reference prices" in prices_log
        assert "Timeout" not in engine_log

    def test_get_log_stats(self, temp_dir):
        """Test log statistics."""
        manager = LoggingManager(log_dir=str(temp_dir), log_level="WARNING")
        manager.get_component_logger("item.processor").warning("Something odd")

        stats = manager.get_log_stats()

        assert stats["log_directory"] == str(temp_dir)
        assert stats["log_level"] == "WARNING"
        assert stats["component_loggers"] == 1
        assert any(f["name"] == "keychain_monitor.log" for f in stats["log_files"])


class TestGlobalFunctions:
    """Test cases for module-level helpers."""

    def test_setup_logging(self, temp_dir):
        manager = setup_logging(log_dir=str(temp_dir), log_level="INFO")

        assert isinstance(manager, LoggingManager)
        assert get_logger("orchestrator") is manager.get_component_logger("orchestrator")

    def test_get_logger_without_setup(self):
        """Test that loggers work without creating log files."""
        logger = get_logger("orchestrator")

        assert isinstance(logger, ComponentLogger)
        assert get_logging_stats() == {"error": "Logging not initialized"}

    def test_get_logging_stats(self, temp_dir):
        setup_logging(log_dir=str(temp_dir))

        stats = get_logging_stats()

        assert stats["log_directory"] == str(temp_dir)
