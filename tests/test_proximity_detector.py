"""Tests for the proximity detection session lifecycle and pipeline."""

from __future__ import annotations

import asyncio
from dataclasses import replace

import pytest

from core.errors import DeviceUnavailable, ErrorInfo, PermissionDenied
from services.proximity_detector import LifecycleState, ProximityConfig, ProximityDetector
from vision.classifier import DetectionState

# Long interval so scheduled ticks never interfere with manual ticks.
_MANUAL = ProximityConfig(threshold=50.0, window_size=3, check_interval_ms=60_000, roi_ratio=1.0)


class _Recorder:
    def __init__(self) -> None:
        self.ticks: list[tuple[float, float, DetectionState]] = []
        self.lifecycle: list[tuple[LifecycleState, ErrorInfo | None]] = []

    def on_tick(self, raw: float, smoothed: float, state: DetectionState) -> None:
        self.ticks.append((raw, smoothed, state))

    def on_lifecycle(self, state: LifecycleState, error: ErrorInfo | None = None) -> None:
        self.lifecycle.append((state, error))


def _acquire_from(*cameras):
    pending = list(cameras)

    async def acquire(constraints):
        return pending.pop(0)

    return acquire


def _detector(config: ProximityConfig, acquire, recorder: _Recorder) -> ProximityDetector:
    return ProximityDetector(
        config,
        acquire=acquire,
        on_tick=recorder.on_tick,
        on_lifecycle=recorder.on_lifecycle,
    )


def test_end_to_end_brightness_sequence(make_camera) -> None:
    recorder = _Recorder()
    camera = make_camera([80, 80, 80, 10, 10, 10, 10])
    detector = _detector(_MANUAL, _acquire_from(camera), recorder)

    async def scenario() -> None:
        await detector.start()
        for _ in range(7):
            detector.tick()
        detector.stop()

    asyncio.run(scenario())

    smoothed = [tick[1] for tick in recorder.ticks]
    states = [tick[2] for tick in recorder.ticks]
    assert smoothed == pytest.approx([80, 80, 80, 56.6667, 33.3333, 10, 10], abs=1e-3)
    assert states == [
        DetectionState.WARMING_UP,
        DetectionState.WARMING_UP,
        DetectionState.NORMAL,
        DetectionState.NORMAL,
        DetectionState.APPROACHING,
        DetectionState.APPROACHING,
        DetectionState.APPROACHING,
    ]
    assert recorder.ticks[3][0] == pytest.approx(10.0)


def test_restart_begins_warming_up_again(make_camera) -> None:
    recorder = _Recorder()
    detector = _detector(
        _MANUAL,
        _acquire_from(make_camera([0]), make_camera([0])),
        recorder,
    )

    async def scenario() -> None:
        await detector.start()
        for _ in range(3):
            detector.tick()
        assert detector.detection_state is DetectionState.APPROACHING
        detector.stop()
        assert len(detector.window) == 0
        await detector.start()
        detector.tick()
        detector.stop()

    asyncio.run(scenario())
    assert recorder.ticks[-1][2] is DetectionState.WARMING_UP


def test_stop_is_idempotent(make_camera) -> None:
    recorder = _Recorder()
    camera = make_camera([100])
    detector = _detector(_MANUAL, _acquire_from(camera), recorder)

    async def scenario() -> None:
        await detector.start()
        detector.stop()
        detector.stop()

    asyncio.run(scenario())
    assert recorder.lifecycle == [(LifecycleState.RUNNING, None), (LifecycleState.STOPPED, None)]
    assert camera.release_calls == 1
    assert detector.detection_state is DetectionState.STOPPED


def test_stop_before_start_is_noop() -> None:
    recorder = _Recorder()
    detector = _detector(_MANUAL, _acquire_from(), recorder)

    detector.stop()

    assert recorder.lifecycle == []
    assert detector.lifecycle is LifecycleState.STOPPED


def test_tick_while_stopped_does_nothing(make_camera) -> None:
    recorder = _Recorder()
    camera = make_camera([100])
    detector = _detector(_MANUAL, _acquire_from(camera), recorder)

    assert detector.tick() is None
    assert camera.frames_read == 0
    assert recorder.ticks == []


def test_acquisition_error_is_reported_and_raised() -> None:
    recorder = _Recorder()

    async def denied(constraints):
        raise PermissionDenied("camera access refused")

    detector = _detector(_MANUAL, denied, recorder)

    with pytest.raises(PermissionDenied):
        asyncio.run(detector.start())

    assert detector.lifecycle is LifecycleState.STOPPED
    assert recorder.lifecycle == [
        (LifecycleState.STOPPED, ErrorInfo(kind="permission_denied", message="camera access refused"))
    ]


def test_acquisition_passes_configured_constraints(make_camera) -> None:
    seen = []

    async def acquire(constraints):
        seen.append(constraints)
        return make_camera([100])

    config = replace(_MANUAL, facing_mode="environment", manual_focus=False, device_index=3)
    detector = ProximityDetector(config, acquire=acquire)

    async def scenario() -> None:
        await detector.start()
        detector.stop()

    asyncio.run(scenario())
    assert seen[0].facing_mode == "environment"
    assert seen[0].manual_focus is False
    assert seen[0].resolve_device_index() == 3


def test_start_while_running_is_noop(make_camera) -> None:
    acquisitions = []

    async def acquire(constraints):
        acquisitions.append(constraints)
        return make_camera([100])

    detector = ProximityDetector(_MANUAL, acquire=acquire)

    async def scenario() -> None:
        await detector.start()
        await detector.start()
        detector.stop()

    asyncio.run(scenario())
    assert len(acquisitions) == 1


def test_scheduled_ticks_run_and_stop_cancels_them(make_camera) -> None:
    recorder = _Recorder()
    camera = make_camera([120])
    config = replace(_MANUAL, check_interval_ms=10)
    detector = _detector(config, _acquire_from(camera), recorder)

    async def scenario() -> int:
        await detector.start()
        await asyncio.sleep(0.1)
        detector.stop()
        count = len(recorder.ticks)
        await asyncio.sleep(0.05)
        return count

    count = asyncio.run(scenario())
    assert count >= 2
    assert len(recorder.ticks) == count
    assert camera.released


def test_stop_from_tick_listener_prevents_next_tick(make_camera) -> None:
    ticks: list[DetectionState] = []
    config = replace(_MANUAL, check_interval_ms=10)
    detector = ProximityDetector(config, acquire=_acquire_from(make_camera([120])))

    def on_tick(raw: float, smoothed: float, state: DetectionState) -> None:
        ticks.append(state)
        detector.stop()

    detector._on_tick = on_tick

    async def scenario() -> None:
        await detector.start()
        await asyncio.sleep(0.05)

    asyncio.run(scenario())
    assert ticks == [DetectionState.WARMING_UP]


def test_invalid_frame_stops_session(make_camera) -> None:
    recorder = _Recorder()
    camera = make_camera([100], shape=(0, 0))
    detector = _detector(_MANUAL, _acquire_from(camera), recorder)

    async def scenario() -> None:
        await detector.start()
        assert detector.tick() is None

    asyncio.run(scenario())
    assert detector.lifecycle is LifecycleState.STOPPED
    assert camera.released
    state, error = recorder.lifecycle[-1]
    assert state is LifecycleState.STOPPED
    assert error is not None and error.kind == "invalid_frame"


def test_empty_region_stops_session(make_camera) -> None:
    recorder = _Recorder()
    config = replace(_MANUAL, roi_ratio=0.05)
    detector = _detector(config, _acquire_from(make_camera([100], shape=(8, 8))), recorder)

    async def scenario() -> None:
        await detector.start()
        detector.tick()

    asyncio.run(scenario())
    assert recorder.lifecycle[-1][1].kind == "empty_region"


def test_camera_read_failure_stops_session(make_camera) -> None:
    recorder = _Recorder()
    camera = make_camera([100])

    def broken_frame():
        raise DeviceUnavailable("camera unplugged")

    camera.current_frame = broken_frame
    detector = _detector(_MANUAL, _acquire_from(camera), recorder)

    async def scenario() -> None:
        await detector.start()
        detector.tick()

    asyncio.run(scenario())
    assert recorder.lifecycle[-1] == (
        LifecycleState.STOPPED,
        ErrorInfo(kind="device_unavailable", message="camera unplugged"),
    )


def test_listener_failure_does_not_break_tick(make_camera) -> None:
    def on_tick(raw: float, smoothed: float, state: DetectionState) -> None:
        raise RuntimeError("display gone")

    detector = ProximityDetector(_MANUAL, acquire=_acquire_from(make_camera([100])), on_tick=on_tick)

    async def scenario():
        await detector.start()
        result = detector.tick()
        detector.stop()
        return result

    result = asyncio.run(scenario())
    assert result is not None
    assert result.raw_brightness == pytest.approx(100.0)


def test_acquire_timeout_raises_and_releases_late_camera(make_camera) -> None:
    recorder = _Recorder()
    camera = make_camera([100])
    config = replace(_MANUAL, acquire_timeout_s=0.02)

    async def scenario() -> None:
        gate = asyncio.Event()

        async def slow_acquire(constraints):
            await gate.wait()
            return camera

        detector = _detector(config, slow_acquire, recorder)
        with pytest.raises(DeviceUnavailable):
            await detector.start()
        gate.set()
        for _ in range(5):
            await asyncio.sleep(0)

    asyncio.run(scenario())
    assert camera.released
    assert recorder.lifecycle[0][1].kind == "device_unavailable"


def test_stop_during_acquisition_aborts_start(make_camera) -> None:
    recorder = _Recorder()
    camera = make_camera([100])

    async def scenario() -> ProximityDetector:
        gate = asyncio.Event()

        async def slow_acquire(constraints):
            await gate.wait()
            return camera

        detector = _detector(_MANUAL, slow_acquire, recorder)
        pending = asyncio.create_task(detector.start())
        await asyncio.sleep(0)
        detector.stop()
        gate.set()
        await pending
        return detector

    detector = asyncio.run(scenario())
    assert detector.lifecycle is LifecycleState.STOPPED
    assert camera.released
    assert recorder.lifecycle == []


def test_stop_from_running_listener_keeps_task_idle(make_camera) -> None:
    camera = make_camera([100])
    config = replace(_MANUAL, check_interval_ms=5)
    detector = ProximityDetector(config, acquire=_acquire_from(camera))

    def on_lifecycle(state: LifecycleState, error: ErrorInfo | None = None) -> None:
        if state is LifecycleState.RUNNING:
            detector.stop()

    detector._on_lifecycle = on_lifecycle

    async def scenario() -> None:
        await detector.start()
        await asyncio.sleep(0.05)

    asyncio.run(scenario())
    assert detector.lifecycle is LifecycleState.STOPPED
    assert not detector._task.active
    assert detector._task.run_count == 0
    assert camera.frames_read == 0
    assert camera.released


def test_unexpected_frame_error_stops_session(make_camera) -> None:
    recorder = _Recorder()
    camera = make_camera([100])

    def broken_frame():
        raise RuntimeError("sensor timeout")

    camera.current_frame = broken_frame
    config = replace(_MANUAL, check_interval_ms=5)
    detector = _detector(config, _acquire_from(camera), recorder)

    async def scenario() -> None:
        await detector.start()
        await asyncio.sleep(0.05)

    asyncio.run(scenario())
    assert detector.lifecycle is LifecycleState.STOPPED
    assert not detector._task.active
    assert detector._task.run_count == 1
    assert camera.released
    assert recorder.lifecycle == [
        (LifecycleState.RUNNING, None),
        (LifecycleState.STOPPED, ErrorInfo(kind="device_unavailable", message="sensor timeout")),
    ]


def test_start_after_stop_during_acquisition_resumes_pending_start(make_camera) -> None:
    recorder = _Recorder()
    camera = make_camera([100])
    acquisitions = []

    async def scenario() -> ProximityDetector:
        gate = asyncio.Event()

        async def slow_acquire(constraints):
            acquisitions.append(constraints)
            await gate.wait()
            return camera

        detector = _detector(_MANUAL, slow_acquire, recorder)
        pending = asyncio.create_task(detector.start())
        await asyncio.sleep(0)
        detector.stop()
        await detector.start()
        gate.set()
        await pending
        assert detector.is_running
        detector.stop()
        return detector

    detector = asyncio.run(scenario())
    assert len(acquisitions) == 1
    assert camera.release_calls == 1
    assert recorder.lifecycle == [(LifecycleState.RUNNING, None), (LifecycleState.STOPPED, None)]
    assert detector.lifecycle is LifecycleState.STOPPED
