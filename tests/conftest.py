"""Shared fakes for camera-driven tests."""

from __future__ import annotations

from typing import Iterable

import numpy as np
import pytest

from config.controller import ConfigController


class FakeCamera:
    """Frame source yielding uniform grey frames, repeating the last level."""

    def __init__(self, levels: Iterable[int], shape: tuple[int, int] = (8, 8)) -> None:
        self._levels = list(levels)
        self._shape = shape
        self.frames_read = 0
        self.release_calls = 0

    @property
    def released(self) -> bool:
        return self.release_calls > 0

    def current_frame(self) -> np.ndarray:
        index = min(self.frames_read, len(self._levels) - 1)
        self.frames_read += 1
        height, width = self._shape
        return np.full((height, width, 4), self._levels[index], dtype=np.uint8)

    def release(self) -> None:
        self.release_calls += 1


@pytest.fixture(autouse=True)
def _reset_config_singleton():
    ConfigController._instance = None
    yield
    ConfigController._instance = None


@pytest.fixture
def make_camera():
    return FakeCamera
