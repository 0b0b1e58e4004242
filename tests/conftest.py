"""
Shared fixtures: an in-memory engine that records every call.
"""

import threading
from collections import deque

import pytest

from midilink.engine.base import MidiEngine, NativeDeviceInfo
from midilink.midi.errors import PmError
from midilink.midi.registry import MidiRegistry


class FakeStream:
    def __init__(self, device_id, is_input, buffer_size, latency=0):
        self.device_id = device_id
        self.is_input = is_input
        self.buffer_size = buffer_size
        self.latency = latency
        self.incoming = deque()
        self.written = []
        self.closed = False


class FakeEngine(MidiEngine):
    """Engine double with scripted devices and recorded calls"""

    name = "fake"

    def __init__(self, devices=None, default_input=0, default_output=1):
        if devices is None:
            devices = [
                NativeDeviceInfo("ALSA", "Keyboard In", True, False, False),
                NativeDeviceInfo("ALSA", "Synth Out", False, True, False),
                NativeDeviceInfo("ALSA", "Interface Out", False, True, False),
            ]
        self.devices = list(devices)
        self.default_input = default_input
        self.default_output = default_output
        self.calls = []
        self.streams = []
        self.init_status = PmError.NO_ERROR
        self.terminate_status = PmError.NO_ERROR
        self.count_override = None
        self.create_status = None
        self.delete_status = PmError.NO_ERROR
        self.open_status = PmError.NO_ERROR
        self.read_status = None
        self.write_status = PmError.NO_ERROR
        self.close_status = PmError.NO_ERROR
        self.host_error = ""
        self.pending_host_error = False
        self.lock = threading.Lock()
        self.on_create = None

    def _record(self, name, *args):
        self.calls.append((name,) + args)

    def calls_to(self, name):
        return [call for call in self.calls if call[0] == name]

    def initialize(self):
        self._record("initialize")
        return self.init_status

    def terminate(self):
        self._record("terminate")
        return self.terminate_status

    def count_devices(self):
        self._record("count_devices")
        if self.count_override is not None:
            return self.count_override
        return len(self.devices)

    def default_input_device_id(self):
        return self.default_input

    def default_output_device_id(self):
        return self.default_output

    def device_info(self, device_id):
        self._record("device_info", device_id)
        if 0 <= device_id < len(self.devices):
            return self.devices[device_id]
        return None

    def create_virtual_output(self, name, interf=None):
        self._record("create_virtual_output", name)
        if self.create_status is not None:
            return self.create_status
        with self.lock:
            device_id = len(self.devices)
            self.devices.append(NativeDeviceInfo("ALSA", name, False, True, False, is_virtual=True))
        if self.on_create is not None:
            self.on_create(device_id)
        return device_id

    def delete_virtual_device(self, device_id):
        self._record("delete_virtual_device", device_id)
        return self.delete_status

    def _open(self, device_id, is_input, buffer_size, latency=0):
        if self.open_status != PmError.NO_ERROR:
            return self.open_status, None
        stream = FakeStream(device_id, is_input, buffer_size, latency)
        self.streams.append(stream)
        return PmError.NO_ERROR, stream

    def open_input(self, device_id, buffer_size):
        self._record("open_input", device_id, buffer_size)
        return self._open(device_id, True, buffer_size)

    def open_output(self, device_id, buffer_size, latency=0):
        self._record("open_output", device_id, buffer_size, latency)
        return self._open(device_id, False, buffer_size, latency)

    def read(self, stream, buffer, length):
        self._record("read", stream, length)
        if self.read_status is not None:
            return self.read_status
        count = 0
        while stream.incoming and count < length:
            buffer.append(stream.incoming.popleft())
            count += 1
        return count

    def write(self, stream, events):
        self._record("write", stream, list(events))
        stream.written.extend(events)
        return self.write_status

    def write_short(self, stream, timestamp, message):
        self._record("write_short", stream, timestamp, message)
        stream.written.append((message, timestamp))
        return self.write_status

    def abort(self, stream):
        self._record("abort", stream)
        return PmError.NO_ERROR

    def close(self, stream):
        self._record("close", stream)
        stream.closed = True
        return self.close_status

    def poll(self, stream):
        self._record("poll", stream)
        return PmError.GOT_DATA if stream.incoming else PmError.NO_ERROR

    def has_host_error(self, stream):
        return self.pending_host_error

    def error_text(self, status):
        return f"fake error {int(status)}"

    def host_error_text(self, length):
        text, self.host_error = self.host_error[:length], ""
        return text


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def registry(engine):
    reg = MidiRegistry(engine)
    yield reg
    reg.close()
