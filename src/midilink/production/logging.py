"""
Production Logging

Console and rotating file logging for the midilink logger hierarchy.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from logging.handlers import RotatingFileHandler

LOGGER_NAME = 'midilink'


class Color:
    """ANSI color codes"""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    GRAY = '\033[38;5;245m'
    WHITE = '\033[38;5;255m'
    TURQUOISE = '\033[38;5;44m'
    YELLOW = '\033[38;5;226m'
    RED = '\033[38;5;196m'


class ProductionFormatter(logging.Formatter):
    """Formatter that colors console output by level"""

    COLORS = {
        logging.DEBUG: Color.GRAY,
        logging.INFO: Color.TURQUOISE,
        logging.WARNING: Color.YELLOW,
        logging.ERROR: Color.RED,
        logging.CRITICAL: Color.RED + Color.BOLD,
    }

    def __init__(self, fmt: Optional[str] = None, include_colors: bool = True):
        super().__init__(fmt or '%(levelname)s %(name)s: %(message)s')
        self.include_colors = include_colors and sys.stderr.isatty()

    def format(self, record):
        formatted = super().format(record)
        if self.include_colors:
            color = self.COLORS.get(record.levelno, Color.WHITE)
            formatted = f"{color}{formatted}{Color.RESET}"
        return formatted


def setup_production_logging(verbose: bool = False, log_file: Optional[Path] = None,
                             max_file_size: int = 10 * 1024 * 1024,
                             backup_count: int = 5) -> logging.Logger:
    """
    Configure the midilink logger

    Calling it again replaces the handlers it installed before.

    Args:
        verbose: Enable debug logging
        log_file: Optional log file path, rotated at max_file_size
        max_file_size: Rotation size in bytes
        backup_count: Number of rotated files kept

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    for handler in list(logger.handlers):
        if getattr(handler, '_midilink_handler', False):
            logger.removeHandler(handler)
            handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(ProductionFormatter())
    console._midilink_handler = True
    logger.addHandler(console)

    if log_file:
        log_file = Path(log_file)
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            handler = RotatingFileHandler(
                log_file,
                maxBytes=max_file_size,
                backupCount=backup_count,
                encoding='utf-8'
            )
        except OSError as e:
            logger.warning(f"Failed to setup file logging: {e}")
        else:
            handler.setFormatter(logging.Formatter(
                '%(asctime)s %(levelname)s %(name)s: %(message)s'))
            handler._midilink_handler = True
            logger.addHandler(handler)

    return logger
