"""
Production Module

Logging setup and error bookkeeping for midilink.
"""

from .error_handler import MidiErrorHandler, ErrorSeverity, ErrorContext
from .logging import setup_production_logging, ProductionFormatter

__all__ = [
    'MidiErrorHandler',
    'ErrorSeverity',
    'ErrorContext',
    'setup_production_logging',
    'ProductionFormatter',
]
