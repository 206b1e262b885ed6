from __future__ import annotations

import os
from typing import Any, Dict, Optional

import yaml


class ConfigService:
    """
    Manages layered config:
    - config/default.yaml (checked in)
    - config/config.yaml (local overrides)
    - an explicitly provided path (applied last)
    """

    DEFAULT_PATH = os.path.join("config", "default.yaml")
    OVERRIDES_PATH = os.path.join("config", "config.yaml")

    @staticmethod
    def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        for k, v in (override or {}).items():
            if isinstance(v, dict) and isinstance(base.get(k), dict):
                ConfigService._deep_merge(base[k], v)
            else:
                base[k] = v
        return base

    @staticmethod
    def _read_yaml(path: str) -> Dict[str, Any]:
        if not os.path.exists(path):
            return {}
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        return data

    @classmethod
    def load_effective_config(cls, config_path: Optional[str] = None) -> Dict[str, Any]:
        """
        Merge the layers in order. When `config_path` is given, the default and
        override files are looked up next to it.
        """
        if config_path:
            config_dir = os.path.dirname(config_path)
            default_path = os.path.join(config_dir, "default.yaml")
            overrides_path = os.path.join(config_dir, "config.yaml")
        else:
            default_path, overrides_path = cls.DEFAULT_PATH, cls.OVERRIDES_PATH

        merged = cls._deep_merge(cls._read_yaml(default_path), cls._read_yaml(overrides_path))
        if config_path and os.path.abspath(config_path) != os.path.abspath(overrides_path):
            if not os.path.exists(config_path):
                raise FileNotFoundError(f"Config file not found: {config_path}")
            merged = cls._deep_merge(merged, cls._read_yaml(config_path))
        return merged
