"""
MIDI Engine Module

Native MIDI engines the registry talks to: PortMidi through ctypes and
python-rtmidi.
"""

from .base import MidiEngine, NativeDeviceInfo, PM_NO_DEVICE
from .portmidi_engine import PortMidiEngine
from .rtmidi_engine import RtMidiEngine

BACKENDS = ('portmidi', 'rtmidi')


def create_engine(backend: str = 'portmidi', library=None, rtmidi_api=None) -> MidiEngine:
    """
    Build the engine for a backend name

    Args:
        backend: 'portmidi' or 'rtmidi'
        library: PortMidi shared library path (portmidi only)
        rtmidi_api: rtmidi API name (rtmidi only)
    """
    if backend == 'portmidi':
        return PortMidiEngine(library)
    if backend == 'rtmidi':
        return RtMidiEngine(rtmidi_api)
    raise ValueError(f"Unknown MIDI backend '{backend}', expected one of {BACKENDS}")


__all__ = [
    'BACKENDS',
    'MidiEngine',
    'NativeDeviceInfo',
    'PM_NO_DEVICE',
    'PortMidiEngine',
    'RtMidiEngine',
    'create_engine',
]
