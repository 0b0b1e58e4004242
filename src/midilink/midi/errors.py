"""
MIDI Error Taxonomy

Translates native engine status codes into a closed set of error kinds and
provides the exceptions raised by the registry and ports.
"""

from enum import Enum, IntEnum
from typing import Optional

# Host error strings never exceed this many characters
PM_HOST_ERROR_MSG_LEN = 256


class PmError(IntEnum):
    """Native status codes returned by the engine"""
    NO_ERROR = 0
    GOT_DATA = 1  # "no error", and data is available
    HOST_ERROR = -10000
    INVALID_DEVICE_ID = -9999  # out of range, wrong direction or already opened
    INSUFFICIENT_MEMORY = -9998
    BUFFER_TOO_SMALL = -9997
    BUFFER_OVERFLOW = -9996
    BAD_POINTER = -9995  # stream is NULL, not opened, or of the wrong direction
    BAD_DATA = -9994  # illegal midi data, e.g. missing EOX
    INTERNAL_ERROR = -9993
    BUFFER_MAX_SIZE = -9992  # buffer is already as large as it can be


class ErrorKind(Enum):
    """Every outcome an operation can report"""
    NO_ERROR = "no_error"
    GOT_DATA = "got_data"
    HOST_ERROR = "host_error"
    INVALID_DEVICE_ID = "invalid_device_id"
    INSUFFICIENT_MEMORY = "insufficient_memory"
    BUFFER_TOO_SMALL = "buffer_too_small"
    BUFFER_OVERFLOW = "buffer_overflow"
    BAD_POINTER = "bad_pointer"
    BAD_DATA = "bad_data"
    INTERNAL_ERROR = "internal_error"
    BUFFER_MAX_SIZE = "buffer_max_size"

    # Raised by this package, never by the engine
    NO_DEFAULT_DEVICE = "no_default_device"
    NOT_AN_INPUT_DEVICE = "not_an_input_device"
    NOT_AN_OUTPUT_DEVICE = "not_an_output_device"
    INVALID = "invalid"

    @classmethod
    def from_status(cls, status: int) -> "ErrorKind":
        """Translate a native status code. Unknown codes violate the engine contract."""
        try:
            return _NATIVE_KINDS[PmError(status)]
        except ValueError:
            raise ContractViolation(f"Unknown engine status code: {status}") from None

    @property
    def is_error(self) -> bool:
        return self not in (ErrorKind.NO_ERROR, ErrorKind.GOT_DATA)

    @property
    def status(self) -> Optional[PmError]:
        """Native code for this kind, None for package-level kinds"""
        return _NATIVE_CODES.get(self)


_NATIVE_KINDS = {
    PmError.NO_ERROR: ErrorKind.NO_ERROR,
    PmError.GOT_DATA: ErrorKind.GOT_DATA,
    PmError.HOST_ERROR: ErrorKind.HOST_ERROR,
    PmError.INVALID_DEVICE_ID: ErrorKind.INVALID_DEVICE_ID,
    PmError.INSUFFICIENT_MEMORY: ErrorKind.INSUFFICIENT_MEMORY,
    PmError.BUFFER_TOO_SMALL: ErrorKind.BUFFER_TOO_SMALL,
    PmError.BUFFER_OVERFLOW: ErrorKind.BUFFER_OVERFLOW,
    PmError.BAD_POINTER: ErrorKind.BAD_POINTER,
    PmError.BAD_DATA: ErrorKind.BAD_DATA,
    PmError.INTERNAL_ERROR: ErrorKind.INTERNAL_ERROR,
    PmError.BUFFER_MAX_SIZE: ErrorKind.BUFFER_MAX_SIZE,
}

_NATIVE_CODES = {kind: code for code, kind in _NATIVE_KINDS.items()}

_ERROR_TEXT = {
    ErrorKind.NO_ERROR: "Success",
    ErrorKind.GOT_DATA: "Success, data available",
    ErrorKind.HOST_ERROR: "Host error",
    ErrorKind.INVALID_DEVICE_ID: "Invalid device ID",
    ErrorKind.INSUFFICIENT_MEMORY: "Insufficient memory",
    ErrorKind.BUFFER_TOO_SMALL: "Buffer too small",
    ErrorKind.BUFFER_OVERFLOW: "Buffer overflow",
    ErrorKind.BAD_POINTER: "Bad pointer",
    ErrorKind.BAD_DATA: "Invalid MIDI message data",
    ErrorKind.INTERNAL_ERROR: "Internal engine error",
    ErrorKind.BUFFER_MAX_SIZE: "Buffer cannot be made larger",
    ErrorKind.NO_DEFAULT_DEVICE: "No default device available",
    ErrorKind.NOT_AN_INPUT_DEVICE: "Device is not an input device",
    ErrorKind.NOT_AN_OUTPUT_DEVICE: "Device is not an output device",
    ErrorKind.INVALID: "MIDI engine session could not be initialized",
}


def error_text(kind: ErrorKind) -> str:
    """Static description of an error kind"""
    return _ERROR_TEXT[kind]


class ContractViolation(RuntimeError):
    """
    Programmer error: the caller or the engine broke the documented contract.

    Raised for unknown status codes, duplicate virtual device names and any
    use of a closed port or a torn-down registry. Deliberately not a
    MidiError so that handlers for runtime failures do not catch it.
    """


class MidiError(Exception):
    """A recoverable failure reported by the engine or by this package"""

    def __init__(self, kind: ErrorKind, host_text: Optional[str] = None):
        self.kind = kind
        self.host_text = host_text
        message = error_text(kind)
        if host_text:
            message = f"{message}: {host_text}"
        super().__init__(message)

    def __repr__(self):
        return f"MidiError({self.kind.name})"


def check_status(status: int) -> ErrorKind:
    """
    Translate a native status code, raising for failures.

    Returns:
        ErrorKind.NO_ERROR or ErrorKind.GOT_DATA

    Raises:
        MidiError: for every failure code
        ContractViolation: for codes outside the known set
    """
    kind = ErrorKind.from_status(status)
    if kind.is_error:
        raise MidiError(kind)
    return kind
