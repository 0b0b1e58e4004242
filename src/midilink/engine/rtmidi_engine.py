"""
RtMidi Engine

Presents python-rtmidi ports through the MidiEngine status-code interface.

Every rtmidi input port and every rtmidi output port becomes one device, so a
physical interface with both directions shows up twice, like in PortMidi.
rtmidi has no scheduler: timestamps on output are ignored and messages are
sent immediately, as with a PortMidi stream opened with latency 0. Input
timestamps are milliseconds since the stream was opened, accumulated from
rtmidi's delta times.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, List, Optional, Sequence, Tuple

try:
    import rtmidi
    RTMIDI_AVAILABLE = True
except ImportError:
    RTMIDI_AVAILABLE = False
    rtmidi = None

from ..midi.codec import EOX, SYSEX, MidiMessage, decode, encode, pack_sysex, unpack_word
from ..midi.errors import ErrorKind, PmError, error_text
from .base import PM_NO_DEVICE, MidiEngine, NativeDeviceInfo, RawEvent

log = logging.getLogger(__name__)

# rtmidi's own default input queue size
DEFAULT_QUEUE_SIZE = 1024


@dataclass
class _RtDevice:
    name: str
    is_input: bool
    port_index: int
    is_virtual: bool = False
    opened: bool = False
    deleted: bool = False
    # Owned rtmidi.MidiOut of a virtual output
    virtual_port: Any = None


@dataclass
class _RtStream:
    device_id: int
    midi: Any
    is_input: bool
    owns_port: bool = True
    closed: bool = False
    clock_ms: float = 0.0
    pending: Deque[RawEvent] = field(default_factory=deque)
    sysex: bytearray = field(default_factory=bytearray)
    host_error: Optional[str] = None


class RtMidiEngine(MidiEngine):
    """MidiEngine backed by python-rtmidi"""

    name = "rtmidi"

    def __init__(self, api: Optional[str] = None, client_name: str = "midilink"):
        """
        Args:
            api: rtmidi API name (e.g. "alsa", "jack", "coremidi"), None for the default
            client_name: Client name shown to other applications
        """
        self.api_name = api
        self.client_name = client_name
        self._devices: List[_RtDevice] = []
        self._interface = ""
        self._host_error = ""
        self._initialized = False
        # Guards the device table against concurrent virtual device calls
        self._lock = threading.Lock()

    def _api(self) -> int:
        if not self.api_name:
            return rtmidi.API_UNSPECIFIED
        for api in rtmidi.get_compiled_api():
            if rtmidi.get_api_name(api) == self.api_name.lower():
                return api
        raise ValueError(f"rtmidi API not available: {self.api_name}")

    def _fail(self, error: Exception) -> int:
        """Record an rtmidi exception as the host error of the failing call"""
        text = str(error) or type(error).__name__
        log.error(f"rtmidi: {text}")
        self._host_error = text
        return PmError.HOST_ERROR

    def _on_error(self, error_type, message, stream):
        """rtmidi error callback, runs outside of any engine call"""
        log.warning(f"rtmidi host error on device {stream.device_id}: {message}")
        stream.host_error = message

    def _take_pending(self, stream: _RtStream) -> bool:
        """Report an asynchronous host error once, then clear it"""
        if stream.host_error is None:
            return False
        self._host_error, stream.host_error = stream.host_error, None
        return True

    def initialize(self) -> int:
        if not RTMIDI_AVAILABLE:
            log.error("python-rtmidi not available")
            log.info("Install with: pip install python-rtmidi")
            return PmError.HOST_ERROR

        try:
            api = self._api()
            midi_in = rtmidi.MidiIn(api, name=self.client_name)
            midi_out = rtmidi.MidiOut(api, name=self.client_name)
            self._interface = rtmidi.get_api_display_name(midi_in.get_current_api())
            self._devices = (
                [_RtDevice(name, True, index) for index, name in enumerate(midi_in.get_ports())]
                + [_RtDevice(name, False, index) for index, name in enumerate(midi_out.get_ports())]
            )
            midi_in.delete()
            midi_out.delete()
        except (rtmidi.RtMidiError, ValueError) as e:
            return self._fail(e)

        self._initialized = True
        log.debug(f"rtmidi: {len(self._devices)} devices on {self._interface}")
        return PmError.NO_ERROR

    def terminate(self) -> int:
        with self._lock:
            if not self._initialized:
                return PmError.NO_ERROR
            for device in self._devices:
                if device.virtual_port is not None:
                    device.virtual_port.delete()
                    device.virtual_port = None
            self._devices = []
            self._initialized = False
        return PmError.NO_ERROR

    def count_devices(self) -> int:
        return len(self._devices) if self._initialized else -1

    def _first(self, is_input: bool) -> int:
        for device_id, device in enumerate(self._devices):
            if device.is_input == is_input and not device.is_virtual and not device.deleted:
                return device_id
        return PM_NO_DEVICE

    def default_input_device_id(self) -> int:
        return self._first(is_input=True)

    def default_output_device_id(self) -> int:
        return self._first(is_input=False)

    def _device(self, device_id: int) -> Optional[_RtDevice]:
        if 0 <= device_id < len(self._devices) and not self._devices[device_id].deleted:
            return self._devices[device_id]
        return None

    def device_info(self, device_id: int) -> Optional[NativeDeviceInfo]:
        device = self._device(device_id)
        if device is None:
            return None
        return NativeDeviceInfo(
            interf=self._interface,
            name=device.name,
            input=device.is_input,
            output=not device.is_input,
            opened=device.opened,
            is_virtual=device.is_virtual,
        )

    def create_virtual_output(self, name: str, interf: Optional[str] = None) -> int:
        with self._lock:
            if not name or any(d.is_virtual and not d.deleted and d.name == name for d in self._devices):
                return PmError.INVALID_DEVICE_ID
            try:
                midi_out = rtmidi.MidiOut(self._api(), name=self.client_name)
                midi_out.open_virtual_port(name)
            except (rtmidi.RtMidiError, ValueError) as e:
                return self._fail(e)

            device_id = len(self._devices)
            self._devices.append(_RtDevice(name, False, -1, is_virtual=True, virtual_port=midi_out))
        return device_id

    def delete_virtual_device(self, device_id: int) -> int:
        with self._lock:
            device = self._device(device_id)
            if device is None or not device.is_virtual:
                return PmError.INVALID_DEVICE_ID
            if device.opened:
                return PmError.BAD_POINTER
            device.virtual_port.close_port()
            device.virtual_port.delete()
            device.virtual_port = None
            device.deleted = True
        return PmError.NO_ERROR

    def _open(self, device_id: int, is_input: bool, buffer_size: int) -> Tuple[int, Any]:
        device = self._device(device_id)
        if device is None or device.is_input != is_input or device.opened:
            return PmError.INVALID_DEVICE_ID, None

        if device.is_virtual:
            stream = _RtStream(device_id, device.virtual_port, is_input, owns_port=False)
        else:
            try:
                if is_input:
                    midi = rtmidi.MidiIn(self._api(), name=self.client_name,
                                         queue_size_limit=buffer_size or DEFAULT_QUEUE_SIZE)
                    midi.ignore_types(sysex=False, timing=False, active_sense=False)
                else:
                    midi = rtmidi.MidiOut(self._api(), name=self.client_name)
                midi.open_port(device.port_index)
            except (rtmidi.RtMidiError, ValueError) as e:
                return self._fail(e), None
            stream = _RtStream(device_id, midi, is_input)
            midi.set_error_callback(self._on_error, stream)

        device.opened = True
        return PmError.NO_ERROR, stream

    def open_input(self, device_id: int, buffer_size: int) -> Tuple[int, Any]:
        return self._open(device_id, True, buffer_size)

    def open_output(self, device_id: int, buffer_size: int,
                    latency: int = 0) -> Tuple[int, Any]:
        if latency:
            log.warning("rtmidi has no scheduler, output latency is ignored")
        return self._open(device_id, False, buffer_size)

    def _valid(self, stream: Any, is_input: Optional[bool] = None) -> bool:
        if not isinstance(stream, _RtStream) or stream.closed:
            return False
        return is_input is None or stream.is_input == is_input

    def _fetch(self, stream: _RtStream) -> bool:
        """Move one rtmidi message into the pending queue"""
        item = stream.midi.get_message()
        if item is None:
            return False
        data, delta = item
        stream.clock_ms += delta * 1000.0
        timestamp = int(stream.clock_ms) & 0xFFFFFFFF
        if data and data[0] == SYSEX:
            for word in pack_sysex(data):
                stream.pending.append((word, timestamp))
        elif data:
            word = encode(MidiMessage.from_bytes(data[:3]))
            stream.pending.append((word, timestamp))
        return True

    def read(self, stream: Any, buffer: List[RawEvent], length: int) -> int:
        if not self._valid(stream, is_input=True):
            return PmError.BAD_POINTER
        if self._take_pending(stream):
            return PmError.HOST_ERROR

        try:
            while len(stream.pending) < length and self._fetch(stream):
                pass
        except rtmidi.RtMidiError as e:
            return self._fail(e)

        count = 0
        while stream.pending and count < length:
            buffer.append(stream.pending.popleft())
            count += 1
        return count

    def _send(self, stream: _RtStream, word: int) -> None:
        status = word & 0xFF
        if stream.sysex or status == SYSEX:
            stream.sysex.extend(unpack_word(word))
            if EOX in stream.sysex:
                end = stream.sysex.index(EOX) + 1
                stream.midi.send_message(bytes(stream.sysex[:end]))
                stream.sysex.clear()
            return
        message = decode(word)
        stream.midi.send_message(message.to_bytes())

    def write(self, stream: Any, events: Sequence[RawEvent]) -> int:
        if not self._valid(stream, is_input=False):
            return PmError.BAD_POINTER
        if self._take_pending(stream):
            return PmError.HOST_ERROR
        try:
            for word, _timestamp in events:
                # Real-time bytes may interrupt a sysex message
                if stream.sysex and (word & 0xF8) == 0xF8:
                    stream.midi.send_message([word & 0xFF])
                    continue
                self._send(stream, word)
        except rtmidi.RtMidiError as e:
            return self._fail(e)
        return PmError.NO_ERROR

    def write_short(self, stream: Any, timestamp: int, message: int) -> int:
        if not self._valid(stream, is_input=False):
            return PmError.BAD_POINTER
        if (message & 0xFF) == SYSEX:
            return PmError.BAD_DATA
        return self.write(stream, [(message & 0xFFFFFF, timestamp)])

    def abort(self, stream: Any) -> int:
        if not self._valid(stream, is_input=False):
            return PmError.BAD_POINTER
        stream.sysex.clear()
        return PmError.NO_ERROR

    def close(self, stream: Any) -> int:
        if not self._valid(stream):
            return PmError.BAD_POINTER
        stream.closed = True
        device = self._device(stream.device_id)
        if device is not None:
            device.opened = False
        if stream.owns_port:
            stream.midi.close_port()
            stream.midi.delete()
        return PmError.NO_ERROR

    def poll(self, stream: Any) -> int:
        if not self._valid(stream, is_input=True):
            return PmError.BAD_POINTER
        if self._take_pending(stream):
            return PmError.HOST_ERROR
        if stream.pending:
            return PmError.GOT_DATA
        try:
            return PmError.GOT_DATA if self._fetch(stream) else PmError.NO_ERROR
        except rtmidi.RtMidiError as e:
            return self._fail(e)

    def has_host_error(self, stream: Any) -> bool:
        return self._valid(stream) and stream.host_error is not None

    def error_text(self, status: int) -> str:
        return error_text(ErrorKind.from_status(status))

    def host_error_text(self, length: int) -> str:
        text, self._host_error = self._host_error[:length], ""
        return text
