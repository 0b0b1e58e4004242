"""
Production module tests: error handler and logging setup
"""

import logging
from logging.handlers import RotatingFileHandler
from unittest.mock import patch

import pytest

from midilink.midi.errors import ErrorKind, MidiError
from midilink.production.error_handler import ErrorSeverity, MidiErrorHandler
from midilink.production.logging import (
    LOGGER_NAME,
    Color,
    ProductionFormatter,
    setup_production_logging,
)


def test_production_error_handler():
    """MIDI errors get a message and kind specific solutions"""
    handler = MidiErrorHandler()
    error = MidiError(ErrorKind.BUFFER_OVERFLOW)

    ctx = handler.handle_error(error, "input_read", ErrorSeverity.HIGH, {'device_id': 0})

    assert ctx.context == "input_read"
    assert ctx.severity == ErrorSeverity.HIGH
    assert "Buffer overflow" in ctx.user_message
    assert any("buffer size" in s for s in ctx.solutions)
    assert ctx.details == {'device_id': 0}

    formatted = handler.format_error(ctx)
    assert "Error:" in formatted
    assert "Solution(s):" in formatted
    assert "device_id: 0" in formatted


def test_unexpected_error():
    handler = MidiErrorHandler()
    ctx = handler.handle_error(RuntimeError("boom"), "engine_terminate")
    assert ctx.user_message == "Unexpected error in engine_terminate: boom"
    assert ctx.solutions


def test_log_level_follows_severity(caplog):
    handler = MidiErrorHandler()
    with caplog.at_level(logging.DEBUG, logger="midilink"):
        handler.handle_error(MidiError(ErrorKind.BAD_DATA), "write", ErrorSeverity.MEDIUM)
        handler.handle_error(MidiError(ErrorKind.BAD_DATA), "write", ErrorSeverity.CRITICAL)

    levels = [r.levelno for r in caplog.records if "[write]" in r.getMessage()]
    assert levels == [logging.WARNING, logging.CRITICAL]


def test_error_statistics():
    handler = MidiErrorHandler(max_history=3)
    for _ in range(5):
        handler.handle_error(MidiError(ErrorKind.HOST_ERROR), "virtual_device_delete")
    handler.handle_error(MidiError(ErrorKind.HOST_ERROR), "engine_terminate", ErrorSeverity.HIGH)

    stats = handler.get_error_statistics()
    assert stats['total_errors'] == 6
    assert stats['error_counts'] == {'virtual_device_delete': 5, 'engine_terminate': 1}
    assert len(handler.error_history) == 3
    assert stats['by_severity']['high'] == 1
    assert stats['recent_errors'] == 3

    handler.reset_statistics()
    assert handler.get_error_statistics()['total_errors'] == 0


class TestProductionLogging:
    """Logger setup for the midilink hierarchy"""

    def teardown_method(self):
        logger = logging.getLogger(LOGGER_NAME)
        for handler in list(logger.handlers):
            if getattr(handler, '_midilink_handler', False):
                logger.removeHandler(handler)
                handler.close()
        logger.setLevel(logging.NOTSET)

    def test_setup_replaces_own_handlers(self):
        setup_production_logging()
        logger = setup_production_logging(verbose=True)

        own = [h for h in logger.handlers if getattr(h, '_midilink_handler', False)]
        assert len(own) == 1
        assert logger.level == logging.DEBUG

    def test_file_logging(self, tmp_path):
        log_file = tmp_path / "logs" / "midilink.log"
        logger = setup_production_logging(log_file=log_file)

        assert any(isinstance(h, RotatingFileHandler) for h in logger.handlers)
        logging.getLogger("midilink.midi.registry").info("session opened")
        for handler in logger.handlers:
            handler.flush()
        assert "session opened" in log_file.read_text()

    def test_formatter_colors_only_on_tty(self):
        record = logging.LogRecord("midilink", logging.ERROR, __file__, 1, "failed", None, None)

        with patch('midilink.production.logging.sys.stderr') as stderr:
            stderr.isatty.return_value = False
            assert Color.RESET not in ProductionFormatter().format(record)

            stderr.isatty.return_value = True
            colored = ProductionFormatter().format(record)
        assert colored.startswith(Color.RED)
        assert colored.endswith(Color.RESET)
