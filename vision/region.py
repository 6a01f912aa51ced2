"""Centered region-of-interest extraction for camera frames.

Frames are ``uint8`` numpy arrays shaped ``(height, width, channels)`` with
RGB or RGBA channel order. The region is a centered window whose size is a
fixed fraction of the frame, recomputed from the frame's own dimensions on
every call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from core.errors import InvalidFrame


@dataclass(frozen=True)
class RegionOfInterest:
    """Rectangle in frame pixel coordinates."""

    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height


def validate_ratio(ratio: float) -> float:
    ratio = float(ratio)
    if not 0.0 < ratio <= 1.0:
        raise ValueError(f"ROI ratio must be in (0, 1], got {ratio}")
    return ratio


def compute_roi(width: int, height: int, ratio: float) -> RegionOfInterest:
    """Return the centered window of ``ratio * width`` by ``ratio * height``."""

    ratio = validate_ratio(ratio)
    if width <= 0 or height <= 0:
        raise InvalidFrame(f"Frame has zero area ({width}x{height})")

    zone_width = int(width * ratio)
    zone_height = int(height * ratio)
    return RegionOfInterest(
        x=(width - zone_width) // 2,
        y=(height - zone_height) // 2,
        width=zone_width,
        height=zone_height,
    )


def sample_region(
    frame: NDArray[Any], ratio: float
) -> tuple[RegionOfInterest, NDArray[np.uint8]]:
    """Return the ROI and a read-only view of its pixels."""

    if not isinstance(frame, np.ndarray) or frame.ndim != 3 or frame.shape[2] < 3:
        shape = getattr(frame, "shape", None)
        raise InvalidFrame(f"Expected an HxWxC frame with at least 3 channels, got {shape}")

    height, width = frame.shape[:2]
    roi = compute_roi(width, height, ratio)
    pixels = frame[roi.y : roi.y + roi.height, roi.x : roi.x + roi.width]
    pixels = pixels.view()
    pixels.flags.writeable = False
    return roi, pixels
