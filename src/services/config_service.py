"""
Configuration Service Module

Manages client configuration read/write: backend location, timeouts,
playback tuning and logging.
"""

from typing import Any, Dict, Optional
from pathlib import Path
import copy
import os
import sys
import yaml
import threading
import logging

logger = logging.getLogger(__name__)


class ConfigService:
    """
    Configuration Service - Singleton Pattern

    Merges built-in defaults, the repository template and the per-user YAML file.

    Usage Example:
        config = ConfigService("config/default_config.yaml")

        # Get configuration
        url = config.get("backend.url", "http://127.0.0.1:8080")

        # Set configuration
        config.set("playback.default_volume", 0.9)
        config.save()
    """

    _instance: Optional['ConfigService'] = None
    _lock = threading.Lock()

    def __new__(cls, config_path: str = None) -> 'ConfigService':
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: str = None):
        if self._initialized:
            return

        self._default_config_path = "config/default_config.yaml"
        default_path = Path(self._default_config_path)
        provided_path = Path(config_path) if config_path else None

        # A custom path is used for both loading and saving (test isolation);
        # the repository template is never written back.
        self._use_custom_path = provided_path is not None and provided_path != default_path

        if self._use_custom_path:
            self._user_config_path = provided_path
        else:
            self._user_config_path = self._get_user_config_path()

        self._config: Dict[str, Any] = {}
        self._lock = threading.Lock()
        self._initialized = True

        self._load()

    @staticmethod
    def _get_user_config_path() -> Path:
        """Get user configuration file path (platform-specific)"""
        if sys.platform == "win32":
            base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        elif sys.platform == "darwin":
            base = Path.home() / "Library" / "Application Support"
        else:
            base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
        return base / "music-aggregator-client" / "config.yaml"

    @property
    def user_config_path(self) -> Path:
        return self._user_config_path

    def _load(self) -> None:
        """Load and merge from default and user configuration"""
        config = self._get_default_config()

        sources = [self._user_config_path]
        if not self._use_custom_path:
            sources.insert(0, Path(self._default_config_path))

        for path in sources:
            if not path.exists():
                continue
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    self._deep_merge(config, yaml.safe_load(f) or {})
            except (OSError, yaml.YAMLError) as e:
                logger.warning("Failed to load configuration %s: %s", path, e)

        with self._lock:
            self._config = config

    def _deep_merge(self, base: Dict, override: Dict) -> None:
        """Deep merge dictionaries, override overwrites base"""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration"""
        return {
            'app': {
                'name': 'Music Aggregator Client',
                'version': '1.0.0',
            },
            'backend': {
                'url': 'http://127.0.0.1:8080',
                'api_prefix': '/api',
                'timeout_seconds': 30.0,
                'streaming_timeout_seconds': 180.0,
                'analysis_timeout_seconds': 300.0,
                'health_timeout_seconds': 3.0,
            },
            'connectivity': {
                'poll_interval_seconds': 5.0,
            },
            'search': {
                'default_service': 'qobuz',
                'page_size': 20,
            },
            'audio': {
                'backend': 'vlc',
            },
            'playback': {
                'default_volume': 0.8,
                'audio_info_interval_seconds': 3.0,
                'background_poll_interval_ms': 500,
                'completion_debounce_ms': 500,
                'persist_playlist_queue': True,
            },
            'saved': {
                'page_size': 50,
            },
            'logging': {
                'level': 'INFO',
            },
        }

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Supports dot-separated nested keys, e.g., "backend.url".

        Args:
            key: Configuration key
            default: Default value

        Returns:
            Configuration value or the default value.
        """
        with self._lock:
            value = self._config
            try:
                for k in key.split('.'):
                    value = value[k]
                return value
            except (KeyError, TypeError):
                return default

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value.

        Args:
            key: Configuration key (dot-separated)
            value: Configuration value
        """
        with self._lock:
            keys = key.split('.')
            config = self._config
            for k in keys[:-1]:
                if not isinstance(config.get(k), dict):
                    config[k] = {}
                config = config[k]
            config[keys[-1]] = value

    def get_all(self) -> Dict[str, Any]:
        """Get all configurations."""
        with self._lock:
            return copy.deepcopy(self._config)

    def save(self) -> bool:
        """
        Save configuration to the user configuration file.

        Returns:
            bool: True if saving was successful.
        """
        try:
            self._user_config_path.parent.mkdir(parents=True, exist_ok=True)
            with self._lock:
                with open(self._user_config_path, 'w', encoding='utf-8') as f:
                    yaml.safe_dump(self._config, f, allow_unicode=True, default_flow_style=False)
            logger.debug("Configuration saved to: %s", self._user_config_path)
            return True
        except (OSError, yaml.YAMLError) as e:
            logger.error("Failed to save configuration: %s", e)
            return False

    def reload(self) -> bool:
        """
        Reload configuration

        Returns:
            bool: Whether loading was successful
        """
        try:
            self._load()
            return True
        except Exception:
            logger.exception("Failed to reload configuration")
            return False

    def reset(self) -> None:
        """Reset to default configuration."""
        with self._lock:
            self._config = self._get_default_config()

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton instance (for testing only)."""
        with cls._lock:
            cls._instance = None
