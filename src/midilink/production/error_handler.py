"""
Production Error Handler

Centralized logging and bookkeeping for MIDI failures that cannot be raised
to the caller, e.g. during registry teardown. Provides user-friendly error
messages with actionable solutions.
"""

import time
import traceback
import logging
from typing import Dict, Optional, Any, List
from dataclasses import dataclass, field
from enum import Enum

from ..midi.errors import ErrorKind, MidiError

log = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Error severity levels"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class ErrorContext:
    """Context information for error handling"""
    error: Exception
    context: str
    severity: ErrorSeverity
    user_message: str
    solutions: List[str]
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


# Solutions offered per error kind
_SOLUTIONS = {
    ErrorKind.HOST_ERROR: [
        "Check that the MIDI driver is loaded: aconnect -l",
        "Read the host error text for the platform message",
        "Reconnect the device and reopen the port",
    ],
    ErrorKind.INVALID_DEVICE_ID: [
        "List devices again, ids are only valid for the current session",
        "Make sure the device is not already opened by another port",
        "Check the device direction (input vs output)",
    ],
    ErrorKind.INSUFFICIENT_MEMORY: [
        "Reduce the port buffer size",
        "Close ports that are no longer used",
    ],
    ErrorKind.BUFFER_OVERFLOW: [
        "Read input more often",
        "Open the input port with a larger buffer size",
        "Expect the partial sysex message to be lost",
    ],
    ErrorKind.BUFFER_TOO_SMALL: [
        "Open the port with a larger buffer size",
    ],
    ErrorKind.BAD_POINTER: [
        "Make sure the port is open and of the right direction",
    ],
    ErrorKind.BAD_DATA: [
        "Check sysex messages start with 0xF0 and end with 0xF7",
    ],
    ErrorKind.NO_DEFAULT_DEVICE: [
        "Connect a MIDI device or create a virtual one",
        "Select a device explicitly by id",
    ],
    ErrorKind.INVALID: [
        "Check that the MIDI engine library is installed",
        "Verify the backend in the configuration file",
    ],
}


class MidiErrorHandler:
    """Logs failures by severity and keeps statistics and a bounded history"""

    def __init__(self, max_history: int = 100):
        self.error_counts: Dict[str, int] = {}
        self.error_history: List[ErrorContext] = []
        self.max_history = max_history

    def handle_error(self, error: Exception, context: str,
                     severity: ErrorSeverity = ErrorSeverity.MEDIUM,
                     details: Optional[Dict[str, Any]] = None) -> ErrorContext:
        """
        Record and log an error

        Args:
            error: The exception that occurred
            context: Context where the error occurred
            severity: Error severity level
            details: Additional context details

        Returns:
            The recorded error context
        """
        self.error_counts[context] = self.error_counts.get(context, 0) + 1

        user_message, solutions = self._analyze_error(error, context)
        error_ctx = ErrorContext(
            error=error,
            context=context,
            severity=severity,
            user_message=user_message,
            solutions=solutions,
            details=details or {},
        )

        self._log_error(error_ctx)
        self._store_error(error_ctx)
        return error_ctx

    def format_error(self, error_ctx: ErrorContext) -> str:
        """Format error for user display with solutions"""
        lines = []

        lines.append("╔" + "═" * 74 + "╗")
        lines.append(f"║  Error: {error_ctx.user_message[:65]:<65} ║")
        lines.append("╠" + "═" * 74 + "╣")

        if error_ctx.solutions:
            lines.append(f"║  {'Solution(s):':<72}║")
            for i, solution in enumerate(error_ctx.solutions[:3], 1):
                lines.append(f"║    {i}. {solution[:66]:<66} ║")

        if error_ctx.details:
            lines.append("╠" + "═" * 74 + "╣")
            lines.append(f"║  {'Details:':<72}║")
            for key, value in list(error_ctx.details.items())[:5]:
                entry = f"{key}: {value}"
                lines.append(f"║    {entry[:69]:<69} ║")

        lines.append("╚" + "═" * 74 + "╝")

        return "\n".join(lines)

    def get_error_statistics(self) -> Dict[str, Any]:
        """Get error statistics for monitoring"""
        by_severity = {severity.value: 0 for severity in ErrorSeverity}
        for ctx in self.error_history:
            by_severity[ctx.severity.value] += 1

        return {
            'total_errors': sum(self.error_counts.values()),
            'error_counts': dict(self.error_counts),
            'by_severity': by_severity,
            'recent_errors': len([e for e in self.error_history
                                  if e.timestamp > (time.time() - 3600)]),
        }

    def reset_statistics(self):
        """Reset error statistics"""
        self.error_counts.clear()
        self.error_history.clear()

    def _analyze_error(self, error: Exception, context: str):
        if isinstance(error, MidiError):
            message = f"{context}: {error}"
            return message, list(_SOLUTIONS.get(error.kind, []))

        return (
            f"Unexpected error in {context}: {error}",
            [
                "Check the log file for more details",
                "Report the issue with the engine backend and platform",
            ],
        )

    def _log_error(self, error_ctx: ErrorContext):
        """Log error with appropriate level"""
        if error_ctx.severity == ErrorSeverity.CRITICAL:
            log.critical(f"[{error_ctx.context}] {error_ctx.user_message}")
        elif error_ctx.severity == ErrorSeverity.HIGH:
            log.error(f"[{error_ctx.context}] {error_ctx.user_message}")
        elif error_ctx.severity == ErrorSeverity.MEDIUM:
            log.warning(f"[{error_ctx.context}] {error_ctx.user_message}")
        else:
            log.info(f"[{error_ctx.context}] {error_ctx.user_message}")

        if error_ctx.details:
            log.debug(f"Error details: {error_ctx.details}")
        if error_ctx.error.__traceback__ is not None:
            log.debug(f"Stack trace:\n{''.join(traceback.format_tb(error_ctx.error.__traceback__))}")

    def _store_error(self, error_ctx: ErrorContext):
        """Store error in history"""
        self.error_history.append(error_ctx)

        if len(self.error_history) > self.max_history:
            self.error_history = self.error_history[-self.max_history:]
