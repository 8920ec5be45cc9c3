from unittest.mock import MagicMock

import numpy as np
import pytest

from smart_attendance.core import camera_manager
from smart_attendance.core.camera_manager import CameraError, CameraManager


class DummyCapture:
    def __init__(self, frames=None):
        self.frames = list(frames or [])
        self.released = False
        self.set_calls = []

    def isOpened(self):
        return not self.released

    def read(self):
        if self.frames:
            return True, self.frames.pop(0)
        return False, None

    def set(self, prop, value):
        self.set_calls.append((prop, value))
        return True

    def get(self, prop):
        return 0

    def release(self):
        self.released = True


class DummyProvider:
    def __init__(self, captures=None, error=None):
        self.captures = list(captures or [])
        self.error = error
        self.opened = []

    def open(self, index):
        if self.error is not None:
            raise self.error
        capture = self.captures.pop(0) if self.captures else DummyCapture()
        self.opened.append(capture)
        return capture


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr(camera_manager.time, 'sleep', lambda _s: None)


def test_start_releases_previous_capture():
    provider = DummyProvider()
    manager = CameraManager(provider=provider, warmup_frames=0)

    manager.start()
    manager.start()

    assert len(provider.opened) == 2
    assert provider.opened[0].released is True
    assert provider.opened[1].released is False
    assert manager.is_active()


def test_start_wraps_provider_errors():
    manager = CameraManager(provider=DummyProvider(error=OSError('busy')))

    with pytest.raises(CameraError, match='busy'):
        manager.start()
    assert manager.is_active() is False


def test_start_applies_resolution_and_warms_up():
    frame = np.zeros((4, 4, 3), dtype=np.uint8)
    capture = DummyCapture(frames=[frame, frame, frame])
    manager = CameraManager(provider=DummyProvider([capture]), width=320, height=240, warmup_frames=2)

    manager.start()

    props = [prop for prop, _ in capture.set_calls]
    assert camera_manager.cv2.CAP_PROP_FRAME_WIDTH in props
    assert camera_manager.cv2.CAP_PROP_FRAME_HEIGHT in props
    assert len(capture.frames) == 1


def test_read_returns_frame():
    frame = np.ones((4, 4, 3), dtype=np.uint8)
    manager = CameraManager(provider=DummyProvider([DummyCapture(frames=[frame])]), warmup_frames=0)
    manager.start()

    assert manager.read() is frame


def test_read_requires_running_camera():
    manager = CameraManager(provider=DummyProvider())

    with pytest.raises(CameraError):
        manager.read()


def test_read_without_frame_raises():
    manager = CameraManager(provider=DummyProvider(), warmup_frames=0)
    manager.start()

    with pytest.raises(CameraError):
        manager.read()


def test_stop_is_idempotent():
    provider = DummyProvider()
    manager = CameraManager(provider=provider, warmup_frames=0)
    manager.start()

    manager.stop()
    manager.stop()

    assert provider.opened[0].released is True
    assert manager.is_active() is False


def test_default_provider_raises_when_device_missing(monkeypatch):
    capture = MagicMock()
    capture.isOpened.return_value = False
    monkeypatch.setattr(camera_manager.cv2, 'VideoCapture', lambda index: capture)

    with pytest.raises(CameraError, match='Cannot open camera index 3'):
        camera_manager.DefaultCameraProvider().open(3)
    capture.release.assert_called_once()
