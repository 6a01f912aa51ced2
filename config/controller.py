"""Configuration controller for YAML-based settings."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml


@dataclass(frozen=True)
class ConfigPaths:
    """Filesystem paths for configuration files."""

    config_dir: Path
    config_file: Path
    override_file: Path


# Flat calibration keys from earlier deployments.
_LEGACY_PROXIMITY_KEYS = {
    "brightness_threshold": "threshold",
    "averaging_window_size": "window_size",
    "check_interval": "check_interval_ms",
    "detection_zone_size_ratio": "roi_ratio",
}


class ConfigController:
    """Singleton controller for loading configuration."""

    _instance: "ConfigController | None" = None

    def __init__(self, config_file: str = "default.yaml", config_dir: Path | None = None) -> None:
        if ConfigController._instance is not None:
            raise RuntimeError("You cannot create another ConfigController class")

        config_dir = config_dir if config_dir is not None else Path("config")
        self.paths = ConfigPaths(
            config_dir=config_dir,
            config_file=config_dir / config_file,
            override_file=config_dir / "override.yaml",
        )
        self.config: dict[str, Any] = {}
        self.load_config()

    @classmethod
    def get_instance(cls) -> "ConfigController":
        """Return the singleton instance of the controller."""

        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def load_config(self) -> None:
        """Load configuration from default and override YAML files."""

        self.config = self.read_config(self.paths)

    @classmethod
    def read_config(cls, paths: ConfigPaths) -> dict[str, Any]:
        """Read, merge and normalize the YAML files at ``paths``.

        Leaves the singleton untouched, so diagnostics can validate a config
        directory exactly as the runtime would load it.
        """

        with paths.config_file.open("r", encoding="utf-8") as file:
            config = yaml.safe_load(file) or {}

        if paths.override_file.exists():
            with paths.override_file.open("r", encoding="utf-8") as file:
                override_config = yaml.safe_load(file) or {}
            if override_config:
                config = cls._deep_merge(config, override_config)

        return cls._normalize_legacy_config(config)

    def get_config(self) -> dict[str, Any]:
        """Return the currently loaded configuration."""

        return dict(self.config)

    @classmethod
    def _deep_merge(cls, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge dictionaries, overriding base values with override values."""

        merged = dict(base)
        for key, value in override.items():
            if (
                key in merged
                and isinstance(merged[key], dict)
                and isinstance(value, dict)
            ):
                merged[key] = cls._deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    @staticmethod
    def _normalize_legacy_config(config: dict[str, Any]) -> dict[str, Any]:
        """Fold flat calibration keys into the ``proximity`` section."""

        normalized = dict(config)
        proximity_cfg = dict(normalized.get("proximity") or {})

        for legacy_key, key in _LEGACY_PROXIMITY_KEYS.items():
            if legacy_key in normalized and key not in proximity_cfg:
                proximity_cfg[key] = normalized[legacy_key]

        normalized["proximity"] = proximity_cfg
        return normalized
