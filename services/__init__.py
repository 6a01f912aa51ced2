"""Detection session services."""

from services.proximity_detector import (
    LifecycleState,
    ProximityConfig,
    ProximityDetector,
    TickResult,
    load_proximity_config,
)
from services.scheduling import RepeatingTask

__all__ = [
    "LifecycleState",
    "ProximityConfig",
    "ProximityDetector",
    "RepeatingTask",
    "TickResult",
    "load_proximity_config",
]
