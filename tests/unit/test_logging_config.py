"""Unit tests for the logger facade."""

import logging
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from claude_code_provider.logging_config import (
    LOG_FORMAT,
    PACKAGE_LOGGER_NAME,
    VerboseLoggerAdapter,
    configure_logging,
    create_verbose_logger,
    get_logger,
)


class TestGetLogger:
    def test_none_returns_package_logger(self):
        assert get_logger(None) is logging.getLogger(PACKAGE_LOGGER_NAME)

    def test_false_returns_disabled_logger(self):
        logger = get_logger(False)

        assert logger.disabled is True
        assert logger.propagate is False

    def test_custom_logger_is_used_as_is(self):
        custom = MagicMock()
        assert get_logger(custom) is custom


class TestVerboseLoggerAdapter:
    def test_debug_and_info_suppressed_when_not_verbose(self):
        inner = MagicMock()
        adapter = VerboseLoggerAdapter(inner, verbose=False)

        adapter.debug("d")
        adapter.info("i")
        adapter.warning("w")
        adapter.error("e")

        inner.debug.assert_not_called()
        inner.info.assert_not_called()
        inner.warning.assert_called_once_with("w")
        inner.error.assert_called_once_with("e")

    def test_everything_passes_when_verbose(self):
        inner = MagicMock()
        adapter = create_verbose_logger(inner, verbose=True)

        adapter.debug("d")
        adapter.info("i")

        inner.debug.assert_called_once_with("d")
        inner.info.assert_called_once_with("i")

    def test_warn_only_loggers_are_supported(self):
        calls = []
        console_style = SimpleNamespace(
            debug=lambda m: None,
            info=lambda m: None,
            warn=calls.append,
            error=lambda m: None,
        )
        adapter = VerboseLoggerAdapter(console_style)

        adapter.warn("careful")

        assert calls == ["careful"]


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def restore_package_logger(self):
        logger = logging.getLogger(PACKAGE_LOGGER_NAME)
        handlers, level = list(logger.handlers), logger.level
        yield
        logger.handlers = handlers
        logger.setLevel(level)

    def test_explicit_level(self):
        logger = configure_logging("debug")

        assert logger.level == logging.DEBUG
        assert logger.handlers[0].formatter._fmt == LOG_FORMAT

    def test_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("CLAUDE_CODE_LOG_LEVEL", "ERROR")

        assert configure_logging().level == logging.ERROR

    def test_handler_added_once(self):
        configure_logging("INFO")
        logger = configure_logging("INFO")

        assert len(logger.handlers) == 1
