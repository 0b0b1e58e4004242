"""
MIDI Device Registry

Owns one engine session: enumerates devices, creates virtual outputs and
hands out ports. Virtual devices created through a registry are deleted when
the registry is closed.

Typical use:

    with MidiRegistry(engine) as registry:
        port = registry.default_output_port(buffer_size=100)
        port.write_message(MidiMessage(0x90, 60, 100))
        port.close()

Ports must not outlive the registry that opened them.
"""

import threading
import logging
from pathlib import Path
from typing import List, Optional

from ..config import FullConfig, PortConfig, load_config
from ..engine import create_engine
from ..engine.base import MidiEngine, PM_NO_DEVICE
from ..production.error_handler import MidiErrorHandler, ErrorSeverity
from ..production.logging import setup_production_logging
from .device import DeviceDescriptor
from .errors import (
    ContractViolation,
    ErrorKind,
    MidiError,
    PM_HOST_ERROR_MSG_LEN,
    check_status,
    error_text,
)
from .ports import InputPort, OutputPort

log = logging.getLogger(__name__)


class MidiRegistry:
    """
    A MIDI engine session.

    The engine does not support hot plugging: devices connected after the
    registry is opened are not picked up and `device_count` never changes.
    """

    def __init__(self, engine: MidiEngine, error_handler: Optional[MidiErrorHandler] = None,
                 port_config: Optional[PortConfig] = None):
        self.engine = engine
        self.error_handler = error_handler or MidiErrorHandler()
        self.port_config = port_config or PortConfig()
        self._virtual_devices: List[int] = []
        self._virtual_lock = threading.Lock()
        self._closed = False

        try:
            check_status(engine.initialize())
        except MidiError as e:
            log.error(f"{engine.name}: initialization failed: {e}")
            raise MidiError(ErrorKind.INVALID, str(e)) from e

        count = engine.count_devices()
        if count < 0:
            log.error(f"{engine.name}: could not count devices ({count})")
            self._terminate()
            self._closed = True
            raise MidiError(ErrorKind.INVALID)

        self._device_count = count
        log.info(f"✓ {engine.name} session opened, {count} devices")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def __repr__(self):
        state = "closed" if self._closed else f"{self._device_count} devices"
        return f"<MidiRegistry {self.engine.name} {state}>"

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def device_count(self) -> int:
        """Number of devices, fixed for the lifetime of the session"""
        self._require_open()
        return self._device_count

    @property
    def virtual_device_count(self) -> int:
        """Number of virtual devices created through this registry"""
        with self._virtual_lock:
            return len(self._virtual_devices)

    @property
    def virtual_device_ids(self) -> List[int]:
        with self._virtual_lock:
            return list(self._virtual_devices)

    def default_input_device_id(self) -> int:
        """Id of the default input device, MidiError(NO_DEFAULT_DEVICE) if there is none"""
        self._require_open()
        device_id = self.engine.default_input_device_id()
        if device_id == PM_NO_DEVICE:
            raise MidiError(ErrorKind.NO_DEFAULT_DEVICE)
        return device_id

    def default_output_device_id(self) -> int:
        """Id of the default output device, MidiError(NO_DEFAULT_DEVICE) if there is none"""
        self._require_open()
        device_id = self.engine.default_output_device_id()
        if device_id == PM_NO_DEVICE:
            raise MidiError(ErrorKind.NO_DEFAULT_DEVICE)
        return device_id

    def device(self, device_id: int) -> DeviceDescriptor:
        """Descriptor for `device_id`, MidiError(INVALID_DEVICE_ID) if the engine has none"""
        self._require_open()
        info = self.engine.device_info(device_id)
        if info is None:
            raise MidiError(ErrorKind.INVALID_DEVICE_ID)
        return DeviceDescriptor.from_native(device_id, info)

    def devices(self) -> List[DeviceDescriptor]:
        """All devices in id order. Fails on the first device that cannot be described."""
        return [self.device(device_id) for device_id in range(self.device_count)]

    def create_virtual_output(self, name: str, interface: Optional[str] = None) -> DeviceDescriptor:
        """
        Register a new virtual output device with the engine

        Args:
            name: Device name, must be unique within the engine
            interface: Engine interface to create it on, None for the default

        Returns:
            Descriptor of the new device

        Raises:
            ContractViolation: the name already exists or is invalid
            MidiError: any other engine failure
        """
        self._require_open()
        result = self.engine.create_virtual_output(name, interface)
        if result < 0:
            kind = ErrorKind.from_status(result)
            if kind == ErrorKind.INVALID_DEVICE_ID:
                raise ContractViolation(f'Device name "{name}" already exists or is invalid')
            raise MidiError(kind)

        with self._virtual_lock:
            if self._closed:
                # Closed concurrently: the session is already terminated
                log.warning(f"Virtual output '{name}' (id {result}) created after close, "
                            f"engine already terminated")
                raise ContractViolation("MIDI registry has been closed")
            self._virtual_devices.append(result)

        log.info(f"✓ Created virtual output '{name}' (id {result})")
        return self.device(result)

    def input_port(self, device: DeviceDescriptor, buffer_size: Optional[int] = None) -> InputPort:
        """Open an input port on `device`, buffer size from the port config when None"""
        self._require_open()
        if buffer_size is None:
            buffer_size = self.port_config.input_buffer_size
        return InputPort(self, device, buffer_size).open()

    def output_port(self, device: DeviceDescriptor, buffer_size: Optional[int] = None,
                    latency: Optional[int] = None) -> OutputPort:
        """Open an output port on `device`, defaults from the port config when None"""
        self._require_open()
        if buffer_size is None:
            buffer_size = self.port_config.output_buffer_size
        if latency is None:
            latency = self.port_config.output_latency
        return OutputPort(self, device, buffer_size, latency).open()

    def default_input_port(self, buffer_size: Optional[int] = None) -> InputPort:
        return self.input_port(self.device(self.default_input_device_id()), buffer_size)

    def default_output_port(self, buffer_size: Optional[int] = None,
                            latency: Optional[int] = None) -> OutputPort:
        return self.output_port(self.device(self.default_output_device_id()), buffer_size, latency)

    def error_text(self, kind: ErrorKind) -> str:
        """Description of `kind`, from the engine where it has one"""
        if kind.status is not None and not self._closed:
            return self.engine.error_text(int(kind.status))
        return error_text(kind)

    def host_error_text(self) -> str:
        """Pending host error message, empty if none. Clears the pending error."""
        self._require_open()
        return self.engine.host_error_text(PM_HOST_ERROR_MSG_LEN)

    def close(self):
        """
        Delete all virtual devices created here and terminate the session.

        Runs once; later calls do nothing. Failures are logged, never raised.
        """
        with self._virtual_lock:
            if self._closed:
                log.debug("Registry already closed")
                return
            self._closed = True

            for device_id in self._virtual_devices:
                self._delete_virtual_device(device_id)
            self._virtual_devices.clear()

            self._terminate()
        log.info(f"✓ {self.engine.name} session closed")

    def _delete_virtual_device(self, device_id: int):
        try:
            check_status(self.engine.delete_virtual_device(device_id))
            log.debug(f"Deleted virtual device {device_id}")
        except (MidiError, ContractViolation) as e:
            self.error_handler.handle_error(
                e, 'virtual_device_delete', ErrorSeverity.MEDIUM,
                {'device_id': device_id}
            )

    def _terminate(self):
        try:
            check_status(self.engine.terminate())
        except (MidiError, ContractViolation) as e:
            self.error_handler.handle_error(e, 'engine_terminate', ErrorSeverity.HIGH)

    def _require_open(self):
        if self._closed:
            raise ContractViolation("MIDI registry has been closed")


def open_registry(config: Optional[FullConfig] = None, setup_logging: bool = False) -> MidiRegistry:
    """
    Open a registry on the engine selected by configuration

    Args:
        config: FullConfig, loaded from the default location when None
        setup_logging: Also configure the midilink logger from the config
    """
    if config is None:
        config = load_config()

    if setup_logging:
        setup_production_logging(
            verbose=config.logging.verbose,
            log_file=Path(config.logging.log_file) if config.logging.log_file else None,
        )

    try:
        engine = create_engine(
            config.engine.backend,
            library=config.engine.library,
            rtmidi_api=config.engine.rtmidi_api,
        )
    except OSError as e:
        log.error(f"Could not load MIDI engine: {e}")
        raise MidiError(ErrorKind.INVALID, str(e)) from e
    return MidiRegistry(engine, port_config=config.ports)
