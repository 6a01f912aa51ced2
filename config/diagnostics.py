"""Diagnostics routines for the configuration subsystem."""

from __future__ import annotations

from pathlib import Path

import yaml

from config.controller import ConfigController, ConfigPaths
from diagnostics.models import DiagnosticResult, DiagnosticStatus


def probe(base_dir: Path | None = None) -> DiagnosticResult:
    """Check that the config files are readable and the proximity section is valid.

    Args:
        base_dir: Optional base directory for offline testing.

    Returns:
        Diagnostic result indicating config readiness.
    """

    from services.proximity_detector import ProximityConfig

    name = "config"
    root_dir = base_dir if base_dir is not None else Path.cwd()
    config_dir = root_dir / "config"
    default_config = config_dir / "default.yaml"

    if not config_dir.exists():
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Config directory missing at {config_dir}",
        )

    if not default_config.exists():
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Missing default config at {default_config}",
        )

    paths = ConfigPaths(
        config_dir=config_dir,
        config_file=default_config,
        override_file=config_dir / "override.yaml",
    )
    try:
        config = ConfigController.read_config(paths)
    except (OSError, yaml.YAMLError) as exc:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Config access failed: {exc}",
        )

    proximity_cfg = config.get("proximity")
    if not proximity_cfg:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.WARN,
            details="No proximity section; built-in defaults will be used",
        )

    try:
        ProximityConfig.from_mapping(proximity_cfg)
    except (TypeError, ValueError) as exc:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Invalid proximity config: {exc}",
        )

    return DiagnosticResult(
        name=name,
        status=DiagnosticStatus.PASS,
        details=f"Config files readable at {config_dir}",
    )
