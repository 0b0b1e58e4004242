"""
PortMidi Engine

ctypes binding to the PortMidi C library. Virtual devices need PortMidi 2.0
or later; older libraries still work for physical devices.
"""

import ctypes
import ctypes.util
import logging
from typing import Any, List, Optional, Sequence, Tuple

from ..midi.errors import PmError
from .base import MidiEngine, NativeDeviceInfo, RawEvent

log = logging.getLogger(__name__)

# PmDeviceInfo layouts with this version or later carry the is_virtual field
PM_DEVICEINFO_VERS = 200

# PortMidi 2.0 status for a virtual device name that is already taken
PM_NAME_CONFLICT = -9989


class PmEvent(ctypes.Structure):
    _fields_ = [
        ("message", ctypes.c_int32),
        ("timestamp", ctypes.c_int32),
    ]


class PmDeviceInfo(ctypes.Structure):
    _fields_ = [
        ("structVersion", ctypes.c_int),
        ("interf", ctypes.c_char_p),
        ("name", ctypes.c_char_p),
        ("input", ctypes.c_int),
        ("output", ctypes.c_int),
        ("opened", ctypes.c_int),
        ("is_virtual", ctypes.c_int),
    ]


def find_portmidi_library() -> Optional[str]:
    """Locate libportmidi on this system"""
    return ctypes.util.find_library("portmidi")


def _bind(lib, name: str, restype, argtypes) -> None:
    func = getattr(lib, name)
    func.restype = restype
    func.argtypes = argtypes


def _decode(raw: Optional[bytes]) -> str:
    return raw.decode("utf-8", errors="replace") if raw else ""


class PortMidiEngine(MidiEngine):
    """MidiEngine on top of libportmidi"""

    name = "portmidi"

    def __init__(self, library: Optional[str] = None, lib: Any = None):
        """
        Args:
            library: Path or name of the shared library, searched when None
            lib: Already loaded library object, mainly for tests
        """
        if lib is None:
            path = library or find_portmidi_library()
            if path is None:
                raise OSError("PortMidi library not found, install libportmidi")
            log.debug(f"Loading PortMidi from {path}")
            lib = ctypes.CDLL(path)

        self._lib = lib
        self.supports_virtual = hasattr(lib, "Pm_CreateVirtualOutput")
        self._declare()

    def _declare(self):
        lib = self._lib
        stream = ctypes.c_void_p
        _bind(lib, "Pm_Initialize", ctypes.c_int, [])
        _bind(lib, "Pm_Terminate", ctypes.c_int, [])
        _bind(lib, "Pm_CountDevices", ctypes.c_int, [])
        _bind(lib, "Pm_GetDefaultInputDeviceID", ctypes.c_int, [])
        _bind(lib, "Pm_GetDefaultOutputDeviceID", ctypes.c_int, [])
        _bind(lib, "Pm_GetDeviceInfo", ctypes.POINTER(PmDeviceInfo), [ctypes.c_int])
        _bind(lib, "Pm_OpenInput", ctypes.c_int,
              [ctypes.POINTER(stream), ctypes.c_int, ctypes.c_void_p,
               ctypes.c_int32, ctypes.c_void_p, ctypes.c_void_p])
        _bind(lib, "Pm_OpenOutput", ctypes.c_int,
              [ctypes.POINTER(stream), ctypes.c_int, ctypes.c_void_p,
               ctypes.c_int32, ctypes.c_void_p, ctypes.c_void_p, ctypes.c_int32])
        _bind(lib, "Pm_Read", ctypes.c_int, [stream, ctypes.POINTER(PmEvent), ctypes.c_int32])
        _bind(lib, "Pm_Write", ctypes.c_int, [stream, ctypes.POINTER(PmEvent), ctypes.c_int32])
        _bind(lib, "Pm_WriteShort", ctypes.c_int, [stream, ctypes.c_int32, ctypes.c_int32])
        _bind(lib, "Pm_Abort", ctypes.c_int, [stream])
        _bind(lib, "Pm_Close", ctypes.c_int, [stream])
        _bind(lib, "Pm_Poll", ctypes.c_int, [stream])
        _bind(lib, "Pm_HasHostError", ctypes.c_int, [stream])
        _bind(lib, "Pm_GetErrorText", ctypes.c_char_p, [ctypes.c_int])
        _bind(lib, "Pm_GetHostErrorText", None, [ctypes.c_char_p, ctypes.c_uint])
        if self.supports_virtual:
            _bind(lib, "Pm_CreateVirtualOutput", ctypes.c_int,
                  [ctypes.c_char_p, ctypes.c_char_p, ctypes.c_void_p])
            _bind(lib, "Pm_DeleteVirtualDevice", ctypes.c_int, [ctypes.c_int])

    def initialize(self) -> int:
        return self._lib.Pm_Initialize()

    def terminate(self) -> int:
        return self._lib.Pm_Terminate()

    def count_devices(self) -> int:
        return self._lib.Pm_CountDevices()

    def default_input_device_id(self) -> int:
        return self._lib.Pm_GetDefaultInputDeviceID()

    def default_output_device_id(self) -> int:
        return self._lib.Pm_GetDefaultOutputDeviceID()

    def device_info(self, device_id: int) -> Optional[NativeDeviceInfo]:
        ptr = self._lib.Pm_GetDeviceInfo(device_id)
        if not ptr:
            return None
        info = ptr.contents
        version = info.structVersion
        return NativeDeviceInfo(
            interf=_decode(info.interf),
            name=_decode(info.name),
            input=info.input > 0,
            output=info.output > 0,
            opened=info.opened > 0,
            # Older layouts end before is_virtual
            is_virtual=version >= PM_DEVICEINFO_VERS and info.is_virtual > 0,
            struct_version=version,
        )

    def create_virtual_output(self, name: str, interf: Optional[str] = None) -> int:
        if not self.supports_virtual:
            log.error("Virtual devices require PortMidi 2.0 or later")
            return PmError.INTERNAL_ERROR
        status = self._lib.Pm_CreateVirtualOutput(
            name.encode("utf-8"),
            interf.encode("utf-8") if interf else None,
            None,
        )
        if status == PM_NAME_CONFLICT:
            return PmError.INVALID_DEVICE_ID
        return status

    def delete_virtual_device(self, device_id: int) -> int:
        if not self.supports_virtual:
            return PmError.INTERNAL_ERROR
        return self._lib.Pm_DeleteVirtualDevice(device_id)

    def open_input(self, device_id: int, buffer_size: int) -> Tuple[int, Any]:
        stream = ctypes.c_void_p()
        status = self._lib.Pm_OpenInput(ctypes.byref(stream), device_id, None,
                                        buffer_size, None, None)
        if status != PmError.NO_ERROR:
            return status, None
        return status, stream

    def open_output(self, device_id: int, buffer_size: int,
                    latency: int = 0) -> Tuple[int, Any]:
        stream = ctypes.c_void_p()
        status = self._lib.Pm_OpenOutput(ctypes.byref(stream), device_id, None,
                                         buffer_size, None, None, latency)
        if status != PmError.NO_ERROR:
            return status, None
        return status, stream

    def read(self, stream: Any, buffer: List[RawEvent], length: int) -> int:
        events = (PmEvent * length)()
        count = self._lib.Pm_Read(stream, events, length)
        for event in events[:max(count, 0)]:
            buffer.append((event.message & 0xFFFFFFFF, event.timestamp & 0xFFFFFFFF))
        return count

    def write(self, stream: Any, events: Sequence[RawEvent]) -> int:
        array = (PmEvent * len(events))()
        for slot, (message, timestamp) in zip(array, events):
            slot.message = ctypes.c_int32(message & 0xFFFFFFFF).value
            slot.timestamp = ctypes.c_int32(timestamp & 0xFFFFFFFF).value
        return self._lib.Pm_Write(stream, array, len(events))

    def write_short(self, stream: Any, timestamp: int, message: int) -> int:
        return self._lib.Pm_WriteShort(
            stream,
            ctypes.c_int32(timestamp & 0xFFFFFFFF).value,
            ctypes.c_int32(message & 0xFFFFFFFF).value,
        )

    def abort(self, stream: Any) -> int:
        return self._lib.Pm_Abort(stream)

    def close(self, stream: Any) -> int:
        return self._lib.Pm_Close(stream)

    def poll(self, stream: Any) -> int:
        return self._lib.Pm_Poll(stream)

    def has_host_error(self, stream: Any) -> bool:
        return bool(self._lib.Pm_HasHostError(stream))

    def error_text(self, status: int) -> str:
        return _decode(self._lib.Pm_GetErrorText(status))

    def host_error_text(self, length: int) -> str:
        buffer = ctypes.create_string_buffer(length)
        self._lib.Pm_GetHostErrorText(buffer, length)
        return _decode(buffer.value)
