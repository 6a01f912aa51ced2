"""Perceptual brightness of a block of RGB pixels."""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import NDArray

from core.errors import EmptyRegion

RED_WEIGHT = 0.299
GREEN_WEIGHT = 0.587
BLUE_WEIGHT = 0.114


def estimate_luminance(pixels: NDArray[Any]) -> float:
    """Return ``mean(0.299 r + 0.587 g + 0.114 b)`` over every pixel.

    Channel sums are accumulated as integers before weighting, which keeps the
    result exact for uniform colours. Any alpha channel is ignored.
    """

    if pixels.ndim < 2 or pixels.shape[-1] < 3:
        raise EmptyRegion(f"Expected pixel data with RGB channels, got shape {pixels.shape}")

    flat = pixels.reshape(-1, pixels.shape[-1])
    pixel_count = flat.shape[0]
    if pixel_count == 0:
        raise EmptyRegion("Region of interest contains no pixels")

    sums = flat[:, :3].sum(axis=0, dtype=np.int64)
    mean_r, mean_g, mean_b = (int(total) / pixel_count for total in sums)
    return RED_WEIGHT * mean_r + GREEN_WEIGHT * mean_g + BLUE_WEIGHT * mean_b
