"""
MIDI Ports

Input and output streams bound to one device. A port starts UNOPENED, becomes
OPEN after a successful `open()` and is CLOSED for good after `close()`.
Calling anything but `open()` on an unopened port, or anything at all on a
closed port, raises ContractViolation.

Ports are not thread-safe; serialize access to a single port externally.
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, List, Optional

from .codec import MidiEvent, MidiMessage, encode, pack_sysex
from .device import DeviceDescriptor
from .errors import ContractViolation, ErrorKind, MidiError, check_status

if TYPE_CHECKING:
    from .registry import MidiRegistry

log = logging.getLogger(__name__)


class PortState(Enum):
    """Port lifecycle states"""
    UNOPENED = "unopened"
    OPEN = "open"
    CLOSED = "closed"


class _Port:
    """State machine shared by input and output ports"""

    direction = ""

    def __init__(self, registry: "MidiRegistry", device: DeviceDescriptor, buffer_size: int = 0):
        if buffer_size < 0:
            raise ValueError(f"buffer_size must be >= 0, got {buffer_size}")
        self.registry = registry
        self.device = device
        self.buffer_size = buffer_size
        self._state = PortState.UNOPENED
        self._stream: Any = None

    def __enter__(self):
        if self._state == PortState.UNOPENED:
            self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._state == PortState.OPEN:
            self.close()
        return False

    def __repr__(self):
        return f"<{type(self).__name__} {self.device.name!r} {self._state.value}>"

    @property
    def state(self) -> PortState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state == PortState.OPEN

    @property
    def device_id(self) -> int:
        return self.device.id

    @property
    def engine(self):
        return self.registry.engine

    def open(self):
        """
        Open the native stream

        Returns:
            self

        Raises:
            MidiError: NOT_AN_INPUT_DEVICE / NOT_AN_OUTPUT_DEVICE before any
                native call, or the engine's failure
        """
        if self._state != PortState.UNOPENED:
            raise ContractViolation(f"{self!r} cannot be opened again")
        self._check_direction()

        status, stream = self._open_stream()
        self._check(status)
        if stream is None:
            raise MidiError(ErrorKind.BAD_POINTER)

        self._stream = stream
        self._state = PortState.OPEN
        log.info(f"✓ Opened {self.direction} port on {self.device}")
        return self

    def close(self):
        """
        Close the native stream, flushing pending buffers.

        The port is CLOSED afterwards even if the engine reports an error.
        """
        self._require_open()
        stream, self._stream = self._stream, None
        self._state = PortState.CLOSED
        self._check(self.engine.close(stream))
        log.info(f"Closed {self.direction} port on {self.device.name}")

    def has_host_error(self) -> bool:
        """
        Whether a host error is pending on this stream.

        A pending error is reported by the next operation on the stream, which
        clears it. Until then no new error codes are reported, even for other
        streams.
        """
        self._require_open()
        return bool(self.engine.has_host_error(self._stream))

    def _check(self, status: int) -> ErrorKind:
        try:
            return check_status(status)
        except MidiError as e:
            if e.kind == ErrorKind.HOST_ERROR:
                text = self.registry.host_error_text()
                if text:
                    raise MidiError(ErrorKind.HOST_ERROR, text) from e
            raise

    def _require_open(self):
        if self._state != PortState.OPEN:
            raise ContractViolation(f"{self!r} is not open")

    def _check_direction(self):
        raise NotImplementedError

    def _open_stream(self):
        raise NotImplementedError


class InputPort(_Port):
    """Receives MIDI events from an input device"""

    direction = "input"

    def _check_direction(self):
        if not self.device.is_input:
            raise MidiError(ErrorKind.NOT_AN_INPUT_DEVICE)

    def _open_stream(self):
        return self.engine.open_input(self.device.id, self.buffer_size)

    def poll(self) -> bool:
        """True if input is waiting. Does not consume it."""
        self._require_open()
        return self._check(self.engine.poll(self._stream)) == ErrorKind.GOT_DATA

    def read(self) -> Optional[MidiEvent]:
        """
        Read one event

        Returns:
            The next event, or None if nothing is waiting

        Raises:
            MidiError: e.g. BUFFER_OVERFLOW after the engine flushed its
                buffer; reading resumes with the next new message
        """
        events = self.read_n(1)
        return events[0] if events else None

    def read_n(self, count: int) -> List[MidiEvent]:
        """Read up to `count` events"""
        self._require_open()
        if count < 1:
            raise ValueError(f"count must be >= 1, got {count}")

        buffer = []
        result = self.engine.read(self._stream, buffer, count)
        if result < 0:
            self._check(result)
        return [MidiEvent.from_word(word, timestamp) for word, timestamp in buffer[:result]]


class OutputPort(_Port):
    """
    Sends MIDI events to an output device.

    Timestamps are only honoured when the port was opened with a non-zero
    latency, and must be non-decreasing across writes. The port passes them
    through unchanged; ordering is the caller's responsibility.
    """

    direction = "output"

    def __init__(self, registry: "MidiRegistry", device: DeviceDescriptor,
                 buffer_size: int = 0, latency: int = 0):
        super().__init__(registry, device, buffer_size)
        if latency < 0:
            raise ValueError(f"latency must be >= 0, got {latency}")
        self.latency = latency

    def _check_direction(self):
        if not self.device.is_output:
            raise MidiError(ErrorKind.NOT_AN_OUTPUT_DEVICE)

    def _open_stream(self):
        return self.engine.open_output(self.device.id, self.buffer_size, self.latency)

    def write_event(self, event: MidiEvent):
        self.write_events([event])

    def write_events(self, events: Iterable[MidiEvent]):
        """Write short messages or sysex chunks in one engine call"""
        self._require_open()
        raw = [(event.word, event.timestamp) for event in events]
        if raw:
            self._check(self.engine.write(self._stream, raw))

    def write_message(self, message: MidiMessage, timestamp: int = 0):
        """Write a short (non-sysex) message. Timestamp 0 means now."""
        self._require_open()
        self._check(self.engine.write_short(self._stream, timestamp, encode(message)))

    def write_sysex(self, timestamp: int, data: bytes):
        """Write a complete sysex message (0xF0 ... 0xF7)"""
        self._require_open()
        raw = [(word, timestamp) for word in pack_sysex(data)]
        self._check(self.engine.write(self._stream, raw))

    def abort(self):
        """
        Stop outgoing transmission immediately.

        May leave a partial message on the wire. The port stays open and
        should be closed right after.
        """
        self._require_open()
        self._check(self.engine.abort(self._stream))
        log.warning(f"Aborted output on {self.device.name}")
