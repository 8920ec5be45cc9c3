"""Capture workflow phases and the in-memory capture session."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Phase(str, Enum):
    IDLE = 'idle'
    CAMERA_ACTIVE = 'camera_active'
    CAPTURED = 'captured'
    PROCESSING = 'processing'
    READY_FOR_NAME = 'ready_for_name'
    LISTENING = 'listening'
    LOGGING = 'logging'


# Phases with an outbound call in flight; every user action is refused in them.
BUSY_PHASES = frozenset({Phase.PROCESSING, Phase.LISTENING, Phase.LOGGING})

ACTION_PHASES = {
    'start_camera': frozenset({Phase.IDLE}),
    'capture_image': frozenset({Phase.CAMERA_ACTIVE}),
    'process_image': frozenset({Phase.CAPTURED}),
    'start_voice_input': frozenset({Phase.READY_FOR_NAME}),
    # Retake is also offered in IDLE and CAMERA_ACTIVE, where it acts as a stop-then-restart of the camera
    'retake': frozenset({Phase.IDLE, Phase.CAMERA_ACTIVE, Phase.CAPTURED, Phase.READY_FOR_NAME}),
}


class InvalidTransition(RuntimeError):
    """An action was requested in a phase that does not offer it."""

    def __init__(self, action: str, phase: Phase):
        super().__init__(f"'{action}' is not available while {phase.value}")
        self.action = action
        self.phase = phase


@dataclass
class CaptureSession:
    """Ephemeral state of one camera-to-record cycle. Never persisted."""

    captured_image: Optional[str] = None
    face_detected: bool = False
    recognized_name: str = ''
    classify_attempts: int = 0

    def clear(self) -> None:
        self.captured_image = None
        self.face_detected = False
        self.recognized_name = ''
        self.classify_attempts = 0

    def hold_image(self, image: str) -> None:
        """Replace the pending image; the gate and name belong to the old one."""
        self.captured_image = image
        self.face_detected = False
        self.recognized_name = ''
        self.classify_attempts = 0
