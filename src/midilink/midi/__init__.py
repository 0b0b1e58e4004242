"""
MIDI Module

Message codec, error taxonomy, device registry and ports.
"""

from .codec import (
    MidiEvent,
    MidiMessage,
    decode,
    encode,
    is_realtime,
    pack_sysex,
)
from .errors import (
    ContractViolation,
    ErrorKind,
    MidiError,
    PmError,
    error_text,
)
from .device import DeviceDescriptor
from .ports import InputPort, OutputPort, PortState
from .registry import MidiRegistry, open_registry

__all__ = [
    'ContractViolation',
    'DeviceDescriptor',
    'ErrorKind',
    'InputPort',
    'MidiError',
    'MidiEvent',
    'MidiMessage',
    'MidiRegistry',
    'OutputPort',
    'PmError',
    'PortState',
    'decode',
    'encode',
    'error_text',
    'is_realtime',
    'open_registry',
    'pack_sysex',
]
