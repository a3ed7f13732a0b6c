#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Configuration management for the shelf engine.
Loads YAML config and credentials with environment variable support.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml


logger = logging.getLogger(__name__)


class ConfigManager:
    """
    Configuration manager that loads settings from YAML files.
    Supports environment variable expansion for sensitive values.
    """

    def __init__(self, config_path: str = "shelf-config.yaml", credentials_path: str = "credentials.yaml"):
        self.config_path = Path(config_path)
        self.credentials_path = Path(credentials_path)
        self._config: Dict[str, Any] = {}
        self._credentials: Dict[str, Any] = {}
        self.load()

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'ConfigManager':
        """Build from an in-memory mapping (no files read)"""
        manager = cls.__new__(cls)
        manager.config_path = Path("<memory>")
        manager.credentials_path = Path("<memory>")
        manager._config = config
        manager._credentials = {}
        return manager

    def load(self) -> None:
        """Load configuration and credentials files"""
        if self.config_path.exists():
            with open(self.config_path, 'r', encoding='utf-8') as f:
                self._config = yaml.safe_load(f) or {}
        else:
            logger.info("Config file not found: %s (using defaults)", self.config_path)
            self._config = self._default_config()

        if self.credentials_path.exists():
            with open(self.credentials_path, 'r', encoding='utf-8') as f:
                self._credentials = yaml.safe_load(f) or {}

    def _default_config(self) -> Dict[str, Any]:
        """Return default configuration"""
        return {
            'api': {
                'user_agent': 'VinylShelf/1.0.0 ( local )',
                'musicbrainz': {'rate_limit': 1.0},
                'itunes': {'rate_limit': 0.05, 'country': 'us'},
                'discogs': {'rate_limit': 2.4},
            },
            'state': {
                'path': 'state'
            },
            'reorder': {
                'throttle_seconds': 0.1
            },
            'rack': {
                'spin_seconds': 2.0,
                'settle_seconds': 0.5,
                'revolutions': [2, 3],
                'gesture_cooldown_seconds': 0.35
            },
            'import': {
                'delay_seconds': 1.0
            }
        }

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get config value with dot notation.

        Examples:
            config.get('api.musicbrainz.rate_limit')
            config.get('rack.spin_seconds')

        Environment variables are expanded if value is like ${VAR_NAME}
        """
        keys = key.split('.')
        value = self._config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default
            if value is None:
                return default

        if isinstance(value, str) and value.startswith('${') and value.endswith('}'):
            env_var = value[2:-1]
            return os.environ.get(env_var, default)

        return value

    def get_credential(self, key: str) -> Optional[str]:
        """
        Get credential value with dot notation.

        Examples:
            config.get_credential('discogs.token')
        """
        keys = key.split('.')
        value = self._credentials

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return None

        return value

    def get_api_settings(self, source: str) -> Dict[str, Any]:
        """Get API settings for a specific source"""
        return self.get(f'api.{source}', {}) or {}

    @property
    def user_agent(self) -> str:
        return self.get('api.user_agent', 'VinylShelf/1.0.0 ( local )')

    @property
    def state_path(self) -> str:
        return self.get('state.path', 'state')

    @property
    def reorder_throttle(self) -> float:
        return float(self.get('reorder.throttle_seconds', 0.1))

    @property
    def rack_spin_seconds(self) -> float:
        return float(self.get('rack.spin_seconds', 2.0))

    @property
    def rack_settle_seconds(self) -> float:
        return float(self.get('rack.settle_seconds', 0.5))

    @property
    def rack_revolutions(self) -> Tuple[int, ...]:
        return tuple(int(r) for r in self.get('rack.revolutions', [2, 3]))

    @property
    def rack_gesture_cooldown(self) -> float:
        return float(self.get('rack.gesture_cooldown_seconds', 0.35))

    @property
    def import_delay(self) -> float:
        return float(self.get('import.delay_seconds', 1.0))

    @property
    def discogs_token(self) -> Optional[str]:
        return self.get_credential('discogs.token') or self.get('api.discogs.token')

    def __repr__(self) -> str:
        return f"ConfigManager(config={self.config_path}, credentials={self.credentials_path})"
