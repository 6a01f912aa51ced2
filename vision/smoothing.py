"""Sliding-window moving average for brightness samples."""

from __future__ import annotations

from collections import deque


class SmoothingWindow:
    """Bounded FIFO of recent samples with a trailing mean."""

    def __init__(self, capacity: int) -> None:
        if int(capacity) <= 0:
            raise ValueError(f"Smoothing window capacity must be positive, got {capacity}")
        self._capacity = int(capacity)
        self._samples: deque[float] = deque(maxlen=self._capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def samples(self) -> tuple[float, ...]:
        return tuple(self._samples)

    def __len__(self) -> int:
        return len(self._samples)

    def push(self, sample: float) -> None:
        """Append a sample, evicting the oldest one once capacity is reached."""

        self._samples.append(float(sample))

    def current_average(self) -> float:
        if not self._samples:
            raise ValueError("Cannot average an empty smoothing window")
        return sum(self._samples) / len(self._samples)

    def is_full(self) -> bool:
        return len(self._samples) == self._capacity

    def reset(self) -> None:
        self._samples.clear()
