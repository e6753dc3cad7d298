"""Simple YAML configuration loader for Voxlink."""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional
import logging

from ..errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "VOXLINK_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "voxlink" / "config.yaml"
DEFAULT_LOG_PATH = Path.home() / ".local" / "state" / "voxlink" / "voxlink.log"

PID_FILE_NAME = "pid"
STATE_FILE_NAME = "state"
LEVEL_FILE_NAME = "audio_level"

DEFAULT_STATUS_COMMAND = ["voxlink", "status", "--follow", "--format", "json"]
DEFAULT_RECORD_COMMAND = ["voxlink", "record"]

BACKEND_LABELS = {
    "cpu": "CPU (legacy)",
    "native": "CPU (native)",
    "avx2": "CPU (AVX2)",
    "avx512": "CPU (AVX-512)",
    "vulkan": "GPU (Vulkan)",
}


def runtime_dir() -> Path:
    """Per-user runtime directory holding the PID lock and mailbox files."""
    xdg_runtime = os.environ.get("XDG_RUNTIME_DIR")
    if xdg_runtime:
        return Path(xdg_runtime) / "voxlink"
    return Path(f"/tmp/voxlink-{os.getuid()}")


def level_file_for(state_path: Path) -> Path:
    """The level file always lives next to the state file."""
    return state_path.with_name(LEVEL_FILE_NAME)


class VoxlinkConfig:
    """Voxlink configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, uses $VOXLINK_CONFIG
                        or ~/.config/voxlink/config.yaml, and falls back to an
                        empty configuration when that default does not exist.
        """
        explicit = config_path or os.environ.get(CONFIG_ENV_VAR)
        self.config_file = Path(explicit).expanduser() if explicit else DEFAULT_CONFIG_PATH

        if not self.config_file.exists():
            if explicit:
                raise ConfigError(f"Configuration file not found: {self.config_file}")
            logger.debug(f"No configuration file at {self.config_file}, using defaults")
            self.config: Dict[str, Any] = {}
            return

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_dir: Optional[Path] = None) -> "VoxlinkConfig":
        """Build a configuration from an in-memory mapping (used by tests and tools)."""
        instance = cls.__new__(cls)
        instance.config_file = (base_dir or Path.cwd()) / "config.yaml"
        instance.config = dict(data)
        instance._resolve_paths(instance.config)
        return instance

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in configuration file: {e}")
        except OSError as e:
            raise ConfigError(f"Failed to load configuration: {e}")

        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level")

        # Resolve relative paths
        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        state_file = config.get('state_file')
        if isinstance(state_file, str) and state_file and state_file != "auto":
            state_path = Path(state_file).expanduser()
            if not state_path.is_absolute():
                config['state_file'] = str(config_dir / state_path)

        logging_section = config.get('logging')
        if isinstance(logging_section, dict) and 'file_path' in logging_section:
            log_path = Path(logging_section['file_path']).expanduser()
            if not log_path.is_absolute():
                logging_section['file_path'] = str(config_dir / log_path)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'status.icon_theme').

        Args:
            key_path: Dot-separated key path (e.g., 'whisper.model')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def resolve_state_file(self) -> Optional[Path]:
        """Resolve the configured state file path, or None when unconfigured."""
        state_file = self.get('state_file')
        if not state_file:
            return None
        if state_file == "auto":
            return runtime_dir() / STATE_FILE_NAME
        return Path(state_file)

    def pid_file(self) -> Path:
        return runtime_dir() / PID_FILE_NAME

    def profile_names(self) -> List[str]:
        """Names of the configured profiles, sorted for stable display."""
        profiles = self.get('profiles', {})
        if not isinstance(profiles, dict):
            return []
        return sorted(str(name) for name in profiles)

    def has_profile(self, name: str) -> bool:
        return name in self.profile_names()

    def backend_label(self) -> str:
        backend = self.get('whisper.backend')
        if not isinstance(backend, str):
            return "unknown"
        return BACKEND_LABELS.get(backend.lower(), "unknown")

    def status_command(self) -> List[str]:
        command = self.get('ui.status_command', DEFAULT_STATUS_COMMAND)
        return [str(part) for part in command]

    def record_command(self) -> List[str]:
        command = self.get('ui.record_command', DEFAULT_RECORD_COMMAND)
        return [str(part) for part in command]

    def get_log_file_path(self) -> str:
        return str(self.get('logging.file_path', DEFAULT_LOG_PATH))
