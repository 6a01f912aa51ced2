"""OpenCV webcam frame source."""

from __future__ import annotations

import os
from pathlib import Path
import sys
import threading
from typing import Any

import cv2
from numpy.typing import NDArray

from core.errors import DeviceNotFound, DeviceUnavailable, PermissionDenied
from core.logging import logger
from hardware.frame_source import FrameSourceConstraints


def _check_device_node(index: int) -> None:
    """Map missing or unreadable V4L2 nodes to typed errors on Linux."""

    if not sys.platform.startswith("linux"):
        return
    node = Path(f"/dev/video{index}")
    if not node.exists():
        raise DeviceNotFound(f"No camera device at {node}")
    if not os.access(node, os.R_OK | os.W_OK):
        raise PermissionDenied(f"Camera device {node} is not accessible; check the 'video' group")


class OpenCvCamera:
    """Camera handle backed by ``cv2.VideoCapture``."""

    def __init__(self, constraints: FrameSourceConstraints) -> None:
        self._constraints = constraints
        self._index = constraints.resolve_device_index()
        self._lock = threading.Lock()
        self._capture: Any = None

        _check_device_node(self._index)
        try:
            capture = cv2.VideoCapture(self._index)
        except cv2.error as exc:
            message = str(exc)
            if "permission" in message.lower() or "not authorized" in message.lower():
                raise PermissionDenied(message) from exc
            raise DeviceUnavailable(message) from exc

        if not capture.isOpened():
            capture.release()
            raise DeviceNotFound(f"Unable to open camera index {self._index}")
        self._capture = capture

        if constraints.manual_focus:
            # Silently ignored by drivers without focus control.
            if not capture.set(cv2.CAP_PROP_AUTOFOCUS, 0):
                logger.info("[CAMERA] Manual focus not supported by camera %s", self._index)

        ok, _ = capture.read()
        if not ok:
            self.release()
            raise DeviceUnavailable(f"Camera index {self._index} opened but delivered no frames")
        logger.info("[CAMERA] OpenCV camera %s ready", self._index)

    def current_frame(self) -> NDArray[Any]:
        with self._lock:
            if self._capture is None:
                raise DeviceUnavailable("Camera has been released")
            try:
                ok, frame = self._capture.read()
            except cv2.error as exc:
                raise DeviceUnavailable(f"Camera index {self._index} read failed: {exc}") from exc
        if not ok or frame is None:
            raise DeviceUnavailable(f"Camera index {self._index} stopped delivering frames")
        try:
            return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        except cv2.error as exc:
            raise DeviceUnavailable(f"Camera index {self._index} returned an unreadable frame: {exc}") from exc

    def release(self) -> None:
        with self._lock:
            if self._capture is None:
                return
            self._capture.release()
            self._capture = None
        logger.info("[CAMERA] OpenCV camera %s released", self._index)
