"""
midilink - MIDI device access over a native engine
==================================================

Discover MIDI devices, open input/output ports on them and exchange
timestamped MIDI events through PortMidi or python-rtmidi.

Registry and ports: midi/ module
Native engines: engine/ module
Configuration: config.py
Logging and error bookkeeping: production/ module
"""

__version__ = "0.3.0"
__description__ = "MIDI device registry and ports over PortMidi or python-rtmidi"

from .config import FullConfig, load_config, save_config, create_default_config
# midi before engine: the engine backends import the codec and error modules
from .midi import (
    ContractViolation,
    DeviceDescriptor,
    ErrorKind,
    InputPort,
    MidiError,
    MidiEvent,
    MidiMessage,
    MidiRegistry,
    OutputPort,
    PortState,
    open_registry,
)
from .engine import MidiEngine, PortMidiEngine, RtMidiEngine, create_engine
from .production import setup_production_logging

__all__ = [
    'ContractViolation',
    'DeviceDescriptor',
    'ErrorKind',
    'FullConfig',
    'InputPort',
    'MidiEngine',
    'MidiError',
    'MidiEvent',
    'MidiMessage',
    'MidiRegistry',
    'OutputPort',
    'PortMidiEngine',
    'PortState',
    'RtMidiEngine',
    'create_default_config',
    'create_engine',
    'load_config',
    'open_registry',
    'save_config',
    'setup_production_logging',
]
