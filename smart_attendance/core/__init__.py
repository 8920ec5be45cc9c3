"""
Core package - capture workflow state machine and camera handling
"""

from .camera_manager import CameraError, CameraManager
from .notices import Notice, NoticeBoard
from .state import CaptureSession, InvalidTransition, Phase
from .workflow import CaptureWorkflow

__all__ = [
    'CameraError',
    'CameraManager',
    'Notice',
    'NoticeBoard',
    'CaptureSession',
    'InvalidTransition',
    'Phase',
    'CaptureWorkflow',
]
