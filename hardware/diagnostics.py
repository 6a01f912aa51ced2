"""Diagnostics routines for camera dependencies."""

from __future__ import annotations

import importlib.util
from dataclasses import dataclass

from diagnostics.models import DiagnosticResult, DiagnosticStatus


@dataclass(frozen=True)
class HardwareProbeConfig:
    """Configuration for camera dependency checks."""

    require_all: bool = False


def probe(config: HardwareProbeConfig | None = None, available_modules: set[str] | None = None) -> DiagnosticResult:
    """Run a hardware probe to validate camera backends.

    Args:
        config: Optional configuration for probe behavior.
        available_modules: Optional override set for offline testing.

    Returns:
        Diagnostic result indicating camera dependency readiness.
    """

    name = "hardware"
    settings = config or HardwareProbeConfig()
    required = ["numpy", "cv2"]
    optional = ["picamera2"]

    def is_available(module_name: str) -> bool:
        if available_modules is not None:
            return module_name in available_modules
        return importlib.util.find_spec(module_name) is not None

    missing_required = [module for module in required if not is_available(module)]
    missing_optional = [module for module in optional if not is_available(module)]

    if missing_required:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Missing camera deps: {', '.join(missing_required)}",
        )

    if missing_optional:
        status = DiagnosticStatus.FAIL if settings.require_all else DiagnosticStatus.WARN
        return DiagnosticResult(
            name=name,
            status=status,
            details=f"Optional camera backends unavailable: {', '.join(missing_optional)}",
        )

    return DiagnosticResult(
        name=name,
        status=DiagnosticStatus.PASS,
        details="All camera backends available",
    )
