"""Configuration management for soundtrack-downloader."""

import copy
import os
import sys
from pathlib import Path
from typing import Any, List, Optional

import yaml

CONFIG_ENV_VAR = "SOUNDTRACK_DOWNLOADER_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.config/soundtrack-downloader/config.yaml")

DEFAULTS = {
    "output_dir": ".",
    "http": {
        "timeout": 30,
        "user_agent": None,
    },
    "downloads": {
        "format_preference": ["FLAC", "MP3", "OGG", "*"],
        "overwrite": False,
    },
    "tags": {
        "infer_names": False,
    },
    "logging": {
        "level": "INFO",
    },
}


def _merge(base: dict, override: dict) -> dict:
    """Recursively overlay ``override`` onto a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Config:
    """Soundtrack downloader configuration."""

    _instance = None

    def __new__(cls, config_path: Optional[Path] = None):
        """Singleton pattern for config."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    @classmethod
    def reset(cls):
        """Reset singleton for testing."""
        cls._instance = None

    def __init__(self, config_path: Optional[Path] = None):
        """Load configuration from a YAML file.

        Args:
            config_path: Explicit config file; must exist when given
        """
        if self._initialized:
            return

        self.explicit = config_path is not None or bool(os.environ.get(CONFIG_ENV_VAR))
        if config_path is None:
            config_path = Path(os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)
        self.config_path = Path(config_path).expanduser()
        self.config = self._load_config()
        self._initialized = True

    def _load_config(self) -> dict:
        """Load and parse config file, falling back to defaults."""
        if not self.config_path.exists():
            if self.explicit:
                print(f"Error: Configuration file not found: {self.config_path}", file=sys.stderr)
                sys.exit(1)
            return copy.deepcopy(DEFAULTS)

        with open(self.config_path) as f:
            loaded = yaml.safe_load(f) or {}

        if not isinstance(loaded, dict):
            print(f"Error: Configuration must be a mapping: {self.config_path}", file=sys.stderr)
            sys.exit(1)

        config = _merge(DEFAULTS, loaded)
        # Expand home directory in paths
        self._expand_paths(config)
        return config

    def _expand_paths(self, config: dict):
        """Expand ~ in path values."""
        for key, value in config.items():
            if isinstance(value, str) and value.startswith("~"):
                config[key] = os.path.expanduser(value)
            elif isinstance(value, dict):
                self._expand_paths(value)

    def get(self, key: str, default: Any = None) -> Any:
        """Get config value by dot-separated key."""
        keys = key.split(".")
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    @property
    def output_dir(self) -> Path:
        """Get the directory album folders are created in."""
        return Path(self.get("output_dir", "."))

    @property
    def timeout(self) -> float:
        """Get per-request HTTP timeout in seconds."""
        return float(self.get("http.timeout", 30))

    @property
    def user_agent(self) -> Optional[str]:
        """Get User-Agent override."""
        agent = self.get("http.user_agent")
        return agent if agent else None

    @property
    def format_preference(self) -> List[str]:
        """Get download format preference."""
        preference = self.get("downloads.format_preference", [])
        if isinstance(preference, str):
            preference = preference.split(",")
        return [str(code).strip().upper() for code in preference if str(code).strip()]

    @property
    def overwrite_downloads(self) -> bool:
        """Get whether existing files are downloaded again."""
        return bool(self.get("downloads.overwrite", False))

    @property
    def infer_names(self) -> bool:
        """Get whether tags are inferred from file names by default."""
        return bool(self.get("tags.infer_names", False))

    @property
    def log_level(self) -> str:
        """Get logging level."""
        return str(self.get("logging.level", "INFO")).upper()
