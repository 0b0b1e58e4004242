"""
midilink Configuration Module
=============================
YAML configuration for the engine backend, port buffers and logging.
"""

import os
import logging
from pathlib import Path
from dataclasses import dataclass, field, asdict
from typing import List, Optional

import yaml

log = logging.getLogger(__name__)

BACKENDS = ('portmidi', 'rtmidi')

# Default configuration as YAML template
DEFAULT_CONFIG_YAML = """# midilink Configuration
# ======================
# Place in ~/.config/midilink/config.yaml (or point MIDILINK_CONFIG at a file)

# MIDI engine
engine:
  backend: portmidi   # portmidi or rtmidi
  library: null       # null = search for libportmidi, or path to the library
  rtmidi_api: null    # null = platform default, or alsa, jack, coremidi, ...

# Port defaults
ports:
  input_buffer_size: 256   # events queued by the engine, 0 = engine default
  output_buffer_size: 0
  output_latency: 0        # ms; 0 = send immediately, timestamps ignored

# Logging
logging:
  verbose: false
  log_file: null
"""


class ConfigValidationError(Exception):
    """Configuration validation error"""
    pass


@dataclass
class EngineConfig:
    backend: str = "portmidi"
    library: Optional[str] = None
    rtmidi_api: Optional[str] = None


@dataclass
class PortConfig:
    input_buffer_size: int = 256
    output_buffer_size: int = 0
    output_latency: int = 0


@dataclass
class LoggingConfig:
    verbose: bool = False
    log_file: Optional[str] = None


@dataclass
class FullConfig:
    engine: EngineConfig = field(default_factory=EngineConfig)
    ports: PortConfig = field(default_factory=PortConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_path() -> Path:
    """Get the configuration file path"""
    override = os.environ.get('MIDILINK_CONFIG')
    if override:
        return Path(override)
    xdg_config = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
    return Path(xdg_config) / 'midilink' / 'config.yaml'


def create_default_config(path: Optional[str] = None) -> Path:
    """Create default configuration file, leaving an existing one alone"""
    config_path = Path(path) if path else get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    if not config_path.exists():
        config_path.write_text(DEFAULT_CONFIG_YAML)
        log.info(f"Created default config: {config_path}")
    else:
        log.info(f"Config already exists: {config_path}")
    return config_path


def validate_config(config: FullConfig) -> List[str]:
    """
    Check configuration values

    Returns:
        List of error messages, empty when valid
    """
    errors = []

    if config.engine.backend not in BACKENDS:
        errors.append(f"engine.backend: must be one of {', '.join(BACKENDS)}, "
                      f"got '{config.engine.backend}'")

    for name in ('input_buffer_size', 'output_buffer_size', 'output_latency'):
        value = getattr(config.ports, name)
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            errors.append(f"ports.{name}: must be a non-negative integer, got {value!r}")

    return errors


def load_config(path: Optional[str] = None) -> FullConfig:
    """
    Load configuration from YAML file

    Missing or unreadable files give the defaults; readable files with
    invalid values raise ConfigValidationError.
    """
    config_path = Path(path) if path else get_config_path()
    config = FullConfig()

    if not config_path.exists():
        return config

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        log.warning(f"Failed to load config {config_path}: {e}")
        return config

    if not data:
        return config
    if not isinstance(data, dict):
        raise ConfigValidationError(f"Invalid config {config_path}: top level must be a mapping")

    errors = []

    def section(name):
        value = data.get(name) or {}
        if not isinstance(value, dict):
            errors.append(f"{name}: must be a mapping, got {value!r}")
            return {}
        return value

    if 'engine' in data:
        engine = section('engine')
        config.engine = EngineConfig(
            backend=engine.get('backend', 'portmidi'),
            library=engine.get('library'),
            rtmidi_api=engine.get('rtmidi_api'),
        )

    if 'ports' in data:
        ports = section('ports')
        config.ports = PortConfig(
            input_buffer_size=ports.get('input_buffer_size', 256),
            output_buffer_size=ports.get('output_buffer_size', 0),
            output_latency=ports.get('output_latency', 0),
        )

    if 'logging' in data:
        logging_data = section('logging')
        config.logging = LoggingConfig(
            verbose=bool(logging_data.get('verbose', False)),
            log_file=logging_data.get('log_file'),
        )

    errors.extend(validate_config(config))
    if errors:
        raise ConfigValidationError(f"Invalid config {config_path}: " + "; ".join(errors))

    log.debug(f"Loaded config: {config_path}")
    return config


def save_config(config: FullConfig, path: Optional[str] = None) -> Path:
    """Save configuration to YAML file"""
    config_path = Path(path) if path else get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w') as f:
        yaml.dump(asdict(config), f, default_flow_style=False, sort_keys=False)

    log.info(f"Saved config: {config_path}")
    return config_path
