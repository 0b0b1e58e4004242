"""
MIDI Engine Interface

The boundary between midilink and a native MIDI engine. Every method returns
the engine's raw status codes (see midilink.midi.errors.PmError); the
registry and ports translate them. Engines never raise for engine-level
failures.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

# Sentinel device id meaning "no device"
PM_NO_DEVICE = -1

# (packed message word, timestamp) as exchanged with the engine
RawEvent = Tuple[int, int]


@dataclass(frozen=True)
class NativeDeviceInfo:
    """Device record as reported by the engine"""
    interf: str
    name: str
    input: bool
    output: bool
    opened: bool
    is_virtual: bool = False
    struct_version: int = 0


class MidiEngine(ABC):
    """Abstract native MIDI engine"""

    name = "engine"

    # Session

    @abstractmethod
    def initialize(self) -> int:
        pass

    @abstractmethod
    def terminate(self) -> int:
        pass

    # Enumeration

    @abstractmethod
    def count_devices(self) -> int:
        """Number of devices, negative on failure"""

    @abstractmethod
    def default_input_device_id(self) -> int:
        """Default input id or PM_NO_DEVICE"""

    @abstractmethod
    def default_output_device_id(self) -> int:
        """Default output id or PM_NO_DEVICE"""

    @abstractmethod
    def device_info(self, device_id: int) -> Optional[NativeDeviceInfo]:
        """Device record, None if the id is out of range"""

    # Virtual devices

    @abstractmethod
    def create_virtual_output(self, name: str, interf: Optional[str] = None) -> int:
        """New device id (>= 0) or a negative status"""

    @abstractmethod
    def delete_virtual_device(self, device_id: int) -> int:
        pass

    # Streams

    @abstractmethod
    def open_input(self, device_id: int, buffer_size: int) -> Tuple[int, Any]:
        """(status, stream handle); the handle is None unless status is NO_ERROR"""

    @abstractmethod
    def open_output(self, device_id: int, buffer_size: int,
                    latency: int = 0) -> Tuple[int, Any]:
        """(status, stream handle); the handle is None unless status is NO_ERROR"""

    @abstractmethod
    def read(self, stream: Any, buffer: List[RawEvent], length: int) -> int:
        """
        Append up to `length` events to `buffer`.

        Returns:
            Number of events read, or a negative status
        """

    @abstractmethod
    def write(self, stream: Any, events: Sequence[RawEvent]) -> int:
        pass

    @abstractmethod
    def write_short(self, stream: Any, timestamp: int, message: int) -> int:
        pass

    @abstractmethod
    def abort(self, stream: Any) -> int:
        pass

    @abstractmethod
    def close(self, stream: Any) -> int:
        pass

    @abstractmethod
    def poll(self, stream: Any) -> int:
        """GOT_DATA, NO_ERROR or a negative status"""

    @abstractmethod
    def has_host_error(self, stream: Any) -> bool:
        pass

    # Error text

    @abstractmethod
    def error_text(self, status: int) -> str:
        pass

    @abstractmethod
    def host_error_text(self, length: int) -> str:
        """Pending host error, at most `length` characters; clears it"""
