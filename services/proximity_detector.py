"""Proximity detection session driven by a periodic brightness pipeline."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping

from core.errors import DeviceUnavailable, ErrorInfo, ProximityError
from core.logging import logger
from hardware.frame_source import (
    CAMERA_BACKENDS,
    FACING_MODES,
    FrameSourceAcquirer,
    FrameSourceConstraints,
    FrameSourceHandle,
    acquire_frame_source,
)
from services.scheduling import RepeatingTask
from vision.classifier import DetectionState, classify
from vision.luminance import estimate_luminance
from vision.region import RegionOfInterest, sample_region, validate_ratio
from vision.smoothing import SmoothingWindow


class LifecycleState(str, Enum):
    """Session lifecycle reported to listeners."""

    STOPPED = "stopped"
    RUNNING = "running"


@dataclass(frozen=True)
class ProximityConfig:
    """Static settings for one detection session."""

    threshold: float = 90.0
    window_size: int = 10
    check_interval_ms: int = 100
    roi_ratio: float = 0.5
    facing_mode: str = "user"
    manual_focus: bool = True
    camera_backend: str = "opencv"
    device_index: int | None = None
    acquire_timeout_s: float | None = None

    def __post_init__(self) -> None:
        if self.window_size <= 0:
            raise ValueError(f"window_size must be positive, got {self.window_size}")
        if self.check_interval_ms <= 0:
            raise ValueError(f"check_interval_ms must be positive, got {self.check_interval_ms}")
        validate_ratio(self.roi_ratio)
        if self.facing_mode not in FACING_MODES:
            raise ValueError(f"facing_mode must be one of {FACING_MODES}, got {self.facing_mode!r}")
        if self.camera_backend not in CAMERA_BACKENDS:
            raise ValueError(
                f"camera_backend must be one of {CAMERA_BACKENDS}, got {self.camera_backend!r}"
            )
        if self.acquire_timeout_s is not None and self.acquire_timeout_s <= 0:
            raise ValueError(f"acquire_timeout_s must be positive, got {self.acquire_timeout_s}")

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> "ProximityConfig":
        defaults = cls()
        device_index = config.get("device_index")
        timeout = config.get("acquire_timeout_s")
        return cls(
            threshold=float(config.get("threshold", defaults.threshold)),
            window_size=int(config.get("window_size", defaults.window_size)),
            check_interval_ms=int(config.get("check_interval_ms", defaults.check_interval_ms)),
            roi_ratio=float(config.get("roi_ratio", defaults.roi_ratio)),
            facing_mode=str(config.get("facing_mode", defaults.facing_mode)),
            manual_focus=bool(config.get("manual_focus", defaults.manual_focus)),
            camera_backend=str(config.get("camera_backend", defaults.camera_backend)),
            device_index=int(device_index) if device_index is not None else None,
            acquire_timeout_s=float(timeout) if timeout is not None else None,
        )

    @property
    def check_interval_s(self) -> float:
        return self.check_interval_ms / 1000.0

    def constraints(self) -> FrameSourceConstraints:
        return FrameSourceConstraints(
            facing_mode=self.facing_mode,
            manual_focus=self.manual_focus,
            device_index=self.device_index,
            backend=self.camera_backend,
        )


def load_proximity_config() -> ProximityConfig:
    """Build the session config from the ``proximity`` section of the YAML config."""

    from config import ConfigController

    config = ConfigController.get_instance().get_config()
    return ProximityConfig.from_mapping(config.get("proximity") or {})


@dataclass(frozen=True)
class TickResult:
    """Outcome of one pipeline run."""

    raw_brightness: float
    smoothed_brightness: float
    state: DetectionState
    roi: RegionOfInterest


TickListener = Callable[[float, float, DetectionState], None]
LifecycleListener = Callable[..., None]


def _release_late_handle(future: "asyncio.Future[FrameSourceHandle]") -> None:
    if future.cancelled() or future.exception() is not None:
        return
    logger.warning("[PROXIMITY] Camera opened after acquisition timeout; releasing it")
    future.result().release()


class ProximityDetector:
    """One detection session: camera handle, smoothing window and tick loop.

    Construct a fresh detector per run. All state is touched only from the
    event loop that called :meth:`start`.
    """

    def __init__(
        self,
        config: ProximityConfig,
        acquire: FrameSourceAcquirer = acquire_frame_source,
        on_tick: TickListener | None = None,
        on_lifecycle: LifecycleListener | None = None,
    ) -> None:
        self.config = config
        self._acquire = acquire
        self._on_tick = on_tick
        self._on_lifecycle = on_lifecycle
        self._window = SmoothingWindow(config.window_size)
        self._task = RepeatingTask(self.tick, config.check_interval_s, name="proximity-tick")
        self._handle: FrameSourceHandle | None = None
        self._lifecycle = LifecycleState.STOPPED
        self._detection_state = DetectionState.STOPPED
        self._starting = False
        self._start_aborted = False
        self.last_result: TickResult | None = None

    @property
    def lifecycle(self) -> LifecycleState:
        return self._lifecycle

    @property
    def detection_state(self) -> DetectionState:
        return self._detection_state

    @property
    def is_running(self) -> bool:
        return self._lifecycle is LifecycleState.RUNNING

    @property
    def window(self) -> SmoothingWindow:
        return self._window

    async def start(self) -> None:
        """Acquire the camera and begin ticking.

        Acquisition failures are reported once through ``on_lifecycle`` and then
        re-raised; the session stays stopped. Calling ``start()`` again after a
        ``stop()`` issued during acquisition cancels that stop, so the pending
        acquisition completes into a running session.
        """

        if self._starting and self._start_aborted:
            self._start_aborted = False
            logger.info("[PROXIMITY] Start requested during camera acquisition; resuming pending start")
            return
        if self.is_running or self._starting:
            logger.debug("[PROXIMITY] start() ignored; session already active")
            return

        self._starting = True
        self._start_aborted = False
        try:
            handle = await self._acquire_handle()
        except Exception as exc:
            logger.error("[PROXIMITY] Unable to access camera: %s", exc)
            self._notify_lifecycle(LifecycleState.STOPPED, ErrorInfo.from_exception(exc))
            raise
        finally:
            self._starting = False

        if self._start_aborted:
            logger.info("[PROXIMITY] Stopped during camera acquisition; releasing camera")
            self._release_handle(handle)
            return

        self._handle = handle
        self._window.reset()
        self.last_result = None
        self._lifecycle = LifecycleState.RUNNING
        self._detection_state = DetectionState.WARMING_UP
        logger.info(
            "[PROXIMITY] Detection started (threshold=%.2f window=%s interval=%sms roi=%.2f)",
            self.config.threshold,
            self.config.window_size,
            self.config.check_interval_ms,
            self.config.roi_ratio,
        )
        self._notify_lifecycle(LifecycleState.RUNNING)
        # A RUNNING listener may already have stopped the session.
        if self._lifecycle is LifecycleState.RUNNING:
            self._task.start()

    def stop(self) -> None:
        """Stop ticking and release the camera. No-op when already stopped."""

        if self._starting:
            self._start_aborted = True
            return
        if self._lifecycle is LifecycleState.STOPPED:
            return
        self._shutdown(None)

    def tick(self) -> TickResult | None:
        """Run the pipeline once and report the result."""

        if self._lifecycle is not LifecycleState.RUNNING or self._handle is None:
            return None

        try:
            frame = self._handle.current_frame()
            roi, pixels = sample_region(frame, self.config.roi_ratio)
            raw_brightness = estimate_luminance(pixels)
        except ProximityError as exc:
            logger.error("[PROXIMITY] Tick failed; stopping detection: %s", exc)
            self._shutdown(ErrorInfo.from_exception(exc))
            return None
        except Exception as exc:
            logger.exception("[PROXIMITY] Unexpected tick failure; stopping detection: %s", exc)
            self._shutdown(ErrorInfo.from_exception(DeviceUnavailable(str(exc) or type(exc).__name__)))
            return None

        self._window.push(raw_brightness)
        smoothed = self._window.current_average()
        state = classify(smoothed, self.config.threshold, self._window.is_full())

        if state is not self._detection_state:
            logger.info(
                "[PROXIMITY] %s -> %s (smoothed=%.2f)",
                self._detection_state.value,
                state.value,
                smoothed,
            )
        self._detection_state = state

        result = TickResult(
            raw_brightness=raw_brightness,
            smoothed_brightness=smoothed,
            state=state,
            roi=roi,
        )
        self.last_result = result
        logger.debug(
            "[PROXIMITY] tick raw=%.2f smoothed=%.2f state=%s",
            raw_brightness,
            smoothed,
            state.value,
        )
        self._notify_tick(result)
        return result

    async def _acquire_handle(self) -> FrameSourceHandle:
        acquisition = asyncio.ensure_future(self._acquire(self.config.constraints()))
        timeout = self.config.acquire_timeout_s
        if timeout is None:
            return await acquisition
        try:
            return await asyncio.wait_for(asyncio.shield(acquisition), timeout)
        except asyncio.TimeoutError as exc:
            acquisition.add_done_callback(_release_late_handle)
            raise DeviceUnavailable(f"Camera acquisition timed out after {timeout:.1f}s") from exc

    def _shutdown(self, error: ErrorInfo | None) -> None:
        self._task.cancel()
        self._lifecycle = LifecycleState.STOPPED
        self._detection_state = DetectionState.STOPPED
        handle, self._handle = self._handle, None
        if handle is not None:
            self._release_handle(handle)
        self._window.reset()
        if error is None:
            logger.info("[PROXIMITY] Detection stopped")
        self._notify_lifecycle(LifecycleState.STOPPED, error)

    def _release_handle(self, handle: FrameSourceHandle) -> None:
        try:
            handle.release()
        except Exception as exc:
            logger.exception("[PROXIMITY] Failed to release camera: %s", exc)

    def _notify_tick(self, result: TickResult) -> None:
        if self._on_tick is None:
            return
        try:
            self._on_tick(result.raw_brightness, result.smoothed_brightness, result.state)
        except Exception as exc:
            logger.exception("[PROXIMITY] Tick listener failed: %s", exc)

    def _notify_lifecycle(self, state: LifecycleState, error: ErrorInfo | None = None) -> None:
        if self._on_lifecycle is None:
            return
        try:
            self._on_lifecycle(state, error)
        except Exception as exc:
            logger.exception("[PROXIMITY] Lifecycle listener failed: %s", exc)
