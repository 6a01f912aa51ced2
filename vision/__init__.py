"""Vision package exports."""

from vision.classifier import DetectionState, classify
from vision.luminance import estimate_luminance
from vision.region import RegionOfInterest, compute_roi, sample_region
from vision.smoothing import SmoothingWindow

__all__ = [
    "DetectionState",
    "RegionOfInterest",
    "SmoothingWindow",
    "classify",
    "compute_roi",
    "estimate_luminance",
    "sample_region",
]
