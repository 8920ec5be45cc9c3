"""Camera device management for the capture workflow."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional, Protocol

import cv2


logger = logging.getLogger(__name__)


class CameraError(RuntimeError):
    """Raised when the webcam cannot be opened or read."""


class CameraProvider(Protocol):
    """Abstraction for objects that can supply cv2.VideoCapture."""

    def open(self, index: int) -> cv2.VideoCapture:
        ...


class DefaultCameraProvider:
    """Real provider that uses OpenCV to create VideoCapture objects."""

    def open(self, index: int) -> cv2.VideoCapture:
        capture = cv2.VideoCapture(index)
        if not capture or not capture.isOpened():
            if capture is not None:
                capture.release()
            raise CameraError(f"Cannot open camera index {index}")
        return capture


@dataclass
class CameraConfig:
    index: int = 0
    width: Optional[int] = None
    height: Optional[int] = None
    warmup_frames: int = 3
    buffer_size: Optional[int] = 2


class CameraManager:
    """Owns one live VideoCapture at a time.

    ``start`` always releases the previous capture before opening a new one,
    so the kiosk never holds two handles on the device.
    """

    def __init__(
        self,
        index: int = 0,
        provider: Optional[CameraProvider] = None,
        width: Optional[int] = None,
        height: Optional[int] = None,
        warmup_frames: int = 3,
        buffer_size: Optional[int] = 2,
    ):
        self.config = CameraConfig(
            index=index,
            width=width,
            height=height,
            warmup_frames=warmup_frames,
            buffer_size=buffer_size,
        )
        self.provider = provider or DefaultCameraProvider()
        self._capture: Optional[cv2.VideoCapture] = None

    def start(self) -> None:
        self.stop()
        try:
            capture = self.provider.open(self.config.index)
        except CameraError:
            raise
        except Exception as exc:
            raise CameraError(str(exc)) from exc
        self._configure_capture(capture)
        self._capture = capture

    def _configure_capture(self, capture: cv2.VideoCapture) -> None:
        try:
            if self.config.width:
                capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.width)
            if self.config.height:
                capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.height)
            if self.config.buffer_size is not None and hasattr(cv2, "CAP_PROP_BUFFERSIZE"):
                capture.set(cv2.CAP_PROP_BUFFERSIZE, self.config.buffer_size)

            actual_w = int(capture.get(cv2.CAP_PROP_FRAME_WIDTH))
            actual_h = int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
            fps = capture.get(cv2.CAP_PROP_FPS)
            logger.info(
                "[Camera] Ready: %sx%s @ %.2f fps",
                actual_w,
                actual_h,
                fps or 0,
            )

            warmup = max(0, self.config.warmup_frames)
            if warmup:
                logger.debug("[Camera] Warming up (%s frames)", warmup)
                success = 0
                for _ in range(warmup):
                    ret, _frame = capture.read()
                    if ret:
                        success += 1
                    time.sleep(0.05)
                logger.debug("[Camera] Warmup frames ok=%s/%s", success, warmup)
        except Exception as exc:
            logger.warning("[Camera] Unable to configure camera: %s", exc)

    def stop(self) -> None:
        capture = self._capture
        self._capture = None
        if capture is not None:
            capture.release()
            logger.info("[Camera] Released camera index %s", self.config.index)

    def read(self):
        capture = self._capture
        if capture is None or not capture.isOpened():
            raise CameraError("Camera is not running")
        ret, frame = capture.read()
        if not ret or frame is None:
            raise CameraError("Unable to read frame from camera")
        return frame

    def is_active(self) -> bool:
        capture = self._capture
        return bool(capture is not None and capture.isOpened())
