"""Raspberry Pi camera module frame source."""

from __future__ import annotations

import threading
from typing import Any

from numpy.typing import NDArray

from core.errors import DeviceNotFound, DeviceUnavailable, PermissionDenied
from core.logging import logger
from hardware.frame_source import FrameSourceConstraints


def _require_camera_deps() -> Any:
    import importlib
    import importlib.util

    if importlib.util.find_spec("picamera2") is None:
        raise DeviceUnavailable("picamera2 is required for the picamera2 camera backend")

    picamera2 = importlib.import_module("picamera2")
    return picamera2.Picamera2


class PiCamera:
    """Camera handle backed by Picamera2."""

    def __init__(self, constraints: FrameSourceConstraints) -> None:
        Picamera2 = _require_camera_deps()
        self._lock = threading.Lock()
        self._camera_num = constraints.resolve_device_index()
        self._main_size = (640, 480)

        try:
            cameras = Picamera2.global_camera_info()
        except Exception as exc:
            raise DeviceUnavailable(f"Unable to enumerate cameras: {exc}") from exc
        if self._camera_num >= len(cameras):
            raise DeviceNotFound(
                f"Camera {self._camera_num} requested but {len(cameras)} detected"
            )

        try:
            self.picam2 = Picamera2(self._camera_num)
        except PermissionError as exc:
            raise PermissionDenied(str(exc)) from exc
        except (RuntimeError, OSError) as exc:
            raise DeviceUnavailable(str(exc)) from exc

        self.camera_configuration = self.picam2.create_preview_configuration(
            main={"size": self._main_size, "format": "RGB888"},
            buffer_count=2,
        )
        self.picam2.configure(self.camera_configuration)
        self.picam2.start()
        self._started = True

        if constraints.manual_focus:
            try:
                self.picam2.set_controls({"AfMode": 0})
            except Exception:
                logger.info("[CAMERA] Manual focus not supported by camera %s", self._camera_num)

        # The first capture blocks until the sensor has produced a frame.
        try:
            self.current_frame()
        except RuntimeError as exc:
            self.release()
            raise DeviceUnavailable(f"Camera {self._camera_num} delivered no frames") from exc
        logger.info("[CAMERA] Picamera2 camera %s ready", self._camera_num)

    def current_frame(self) -> NDArray[Any]:
        with self._lock:
            if not self._started:
                raise DeviceUnavailable("Camera has been released")
            try:
                frame = self.picam2.capture_array("main")
            except RuntimeError as exc:
                raise DeviceUnavailable(f"Camera {self._camera_num} capture failed: {exc}") from exc
        # RGB888 arrays arrive in BGR byte order.
        return frame[:, :, ::-1]

    def release(self) -> None:
        with self._lock:
            if not self._started:
                return
            self._started = False
            self.picam2.stop()
            self.picam2.close()
        logger.info("[CAMERA] Picamera2 camera %s released", self._camera_num)
