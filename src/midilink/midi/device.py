"""
Device descriptors handed out by the registry.
"""

from dataclasses import dataclass

from ..engine.base import NativeDeviceInfo


@dataclass(frozen=True)
class DeviceDescriptor:
    """Snapshot of one device. Query the registry again for fresh state."""
    id: int
    interface: str
    name: str
    is_input: bool
    is_output: bool
    is_opened: bool
    is_virtual: bool = False

    @classmethod
    def from_native(cls, device_id: int, info: NativeDeviceInfo) -> "DeviceDescriptor":
        return cls(
            id=device_id,
            interface=info.interf,
            name=info.name,
            is_input=bool(info.input),
            is_output=bool(info.output),
            is_opened=bool(info.opened),
            is_virtual=bool(info.is_virtual),
        )

    @property
    def direction(self) -> str:
        if self.is_input and self.is_output:
            return "input/output"
        return "input" if self.is_input else "output"

    def __str__(self):
        return f"{self.id}: {self.name} ({self.interface}) [{self.direction}]"
