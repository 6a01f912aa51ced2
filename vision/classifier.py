"""Threshold classification of smoothed brightness."""

from __future__ import annotations

from enum import Enum


class DetectionState(str, Enum):
    """Detection state reported on every tick."""

    STOPPED = "stopped"
    WARMING_UP = "warming_up"
    NORMAL = "normal"
    APPROACHING = "approaching"


def classify(smoothed_value: float, threshold: float, is_window_full: bool) -> DetectionState:
    """Classify a smoothed brightness value.

    Nothing is classified until the smoothing window is full. The comparison is
    strictly less-than, so a value equal to the threshold is NORMAL. There is
    no hysteresis: values hovering around the threshold may flip every tick.
    """

    if not is_window_full:
        return DetectionState.WARMING_UP
    if smoothed_value < threshold:
        return DetectionState.APPROACHING
    return DetectionState.NORMAL
