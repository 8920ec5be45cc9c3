"""Capture workflow controller: camera -> still -> face check -> spoken name -> record."""
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional, Protocol

from logging_config import workflow_logger
from smart_attendance.core.camera_manager import CameraError
from smart_attendance.core.notices import NoticeBoard
from smart_attendance.core.state import (
    ACTION_PHASES,
    BUSY_PHASES,
    CaptureSession,
    InvalidTransition,
    Phase,
)
from smart_attendance.models.attendance_record import AttendanceRecord, RecordStoreError
from smart_attendance.utils.image_utils import frame_to_data_uri, frame_to_jpeg

CAMERA_ERROR_MESSAGE = (
    "Error: Could not access webcam. Please ensure it's connected and permissions are granted."
)
CAPTURE_NOT_READY_MESSAGE = "Camera or capture area not ready. Please try again."
LOGGING_DISABLED_MESSAGE = (
    "Attendance logging not enabled (record store not ready or user not authenticated)."
)


class MediaSource(Protocol):
    def start(self) -> None: ...

    def stop(self) -> None: ...

    def read(self): ...

    def is_active(self) -> bool: ...


class Classifier(Protocol):
    def detect_face(self, image_data_uri: str): ...


class Recognizer(Protocol):
    def is_available(self, audio: Optional[bytes] = None) -> bool: ...

    def listen(self, audio: Optional[bytes] = None) -> str: ...


class RecordStore(Protocol):
    def add_record(self, record: AttendanceRecord) -> str: ...


class CaptureWorkflow:
    """Single-kiosk state machine with exactly one active ``Phase``.

    Phase checks and transitions happen under ``_lock``. Outbound calls
    (classifier, recognizer, store) run outside it, after the phase has been
    moved to a busy value, so concurrent requests see the busy phase and are
    refused with ``InvalidTransition`` instead of queueing.
    """

    def __init__(
        self,
        media_source: MediaSource,
        classifier: Classifier,
        recognizer: Optional[Recognizer],
        record_store: Optional[RecordStore],
        notices: Optional[NoticeBoard] = None,
        broadcaster=None,
        max_classify_attempts: int = 5,
        logger: Optional[logging.Logger] = None,
    ):
        self.media_source = media_source
        self.classifier = classifier
        self.recognizer = recognizer
        self.record_store = record_store
        self.notices = notices or NoticeBoard()
        self.broadcaster = broadcaster
        self.max_classify_attempts = max_classify_attempts
        self.logger = logger or logging.getLogger(__name__)

        self.session = CaptureSession()
        self._phase = Phase.IDLE
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Introspection
    @property
    def phase(self) -> Phase:
        return self._phase

    def allowed_actions(self) -> List[str]:
        with self._lock:
            return [name for name, phases in ACTION_PHASES.items() if self._phase in phases]

    def snapshot(self, include_image: bool = True) -> Dict[str, Any]:
        with self._lock:
            notice = self.notices.current()
            data = {
                'phase': self._phase.value,
                'busy': self._phase in BUSY_PHASES,
                'cameraActive': self.media_source.is_active(),
                'hasImage': self.session.captured_image is not None,
                'faceDetected': self.session.face_detected,
                'recognizedName': self.session.recognized_name,
                'classifyAttempts': self.session.classify_attempts,
                'allowedActions': self.allowed_actions(),
                'message': notice.text if notice else None,
                'messageLevel': notice.level if notice else None,
            }
            if include_image:
                data['capturedImage'] = self.session.captured_image
            return data

    # ------------------------------------------------------------------
    # Internal helpers (call with _lock held)
    def _require(self, action: str) -> None:
        if action not in self.allowed_actions():
            workflow_logger.log_rejected(action, self._phase.value)
            raise InvalidTransition(action, self._phase)

    def _set_phase(self, phase: Phase, action: str) -> None:
        previous = self._phase
        self._phase = phase
        workflow_logger.log_transition(action, previous.value, phase.value)
        if self.broadcaster is not None:
            self.broadcaster.broadcast_workflow_state(self.snapshot(include_image=False))

    def _post(self, text: str, level: str = 'info') -> None:
        self.notices.post(text, level)

    def _start_camera_locked(self, action: str) -> None:
        self.session.clear()
        try:
            self.media_source.stop()
            self.media_source.start()
        except CameraError as exc:
            self.media_source.stop()
            self.logger.error("[Camera] ❌ Could not start camera: %s", exc)
            workflow_logger.log_failure(action, str(exc))
            self._post(CAMERA_ERROR_MESSAGE, 'error')
            self._set_phase(Phase.IDLE, action)
            return
        self._set_phase(Phase.CAMERA_ACTIVE, action)

    # ------------------------------------------------------------------
    # Actions
    def start_camera(self) -> Dict[str, Any]:
        """IDLE -> CAMERA_ACTIVE, or stay IDLE with an error notice."""
        with self._lock:
            self._require('start_camera')
            self.notices.clear()
            self._start_camera_locked('start_camera')
            return self.snapshot()

    def capture_image(self) -> Dict[str, Any]:
        """CAMERA_ACTIVE -> CAPTURED; the camera is released once the still is held."""
        with self._lock:
            self._require('capture_image')
            try:
                image = frame_to_data_uri(self.media_source.read())
            except (CameraError, ValueError) as exc:
                self.logger.warning("[Camera] Capture failed: %s", exc)
                self._post(CAPTURE_NOT_READY_MESSAGE, 'warning')
                return self.snapshot()

            self.media_source.stop()
            self.session.hold_image(image)
            self.notices.clear()
            self._set_phase(Phase.CAPTURED, 'capture_image')
            return self.snapshot()

    def process_image(self) -> Dict[str, Any]:
        """CAPTURED -> PROCESSING -> READY_FOR_NAME on a face, back to CAPTURED otherwise."""
        with self._lock:
            self._require('process_image')
            if not self.session.captured_image:
                self._post("No image captured to process.", 'warning')
                return self.snapshot()
            if self.max_classify_attempts and self.session.classify_attempts >= self.max_classify_attempts:
                self._post(
                    f"Face check already tried {self.session.classify_attempts} times for this image. "
                    "Please retake image.",
                    'warning',
                )
                return self.snapshot()

            self.session.classify_attempts += 1
            self.session.face_detected = False
            image = self.session.captured_image
            self._post("Processing image with AI for face detection...")
            self._set_phase(Phase.PROCESSING, 'process_image')

        result, error = None, None
        try:
            result = self.classifier.detect_face(image)
        except Exception as exc:
            error = exc
            self.logger.error("Error during AI processing: %s", exc, exc_info=True)

        with self._lock:
            if result is not None and result.is_positive:
                self.session.face_detected = True
                self.session.recognized_name = ''
                workflow_logger.log_face_check(True, result.message)
                self._post("Face detected! Please click 'Say My Name' to provide your name.", 'success')
                self._set_phase(Phase.READY_FOR_NAME, 'process_image')
            elif result is not None:
                self.session.face_detected = False
                self.session.recognized_name = ''
                workflow_logger.log_face_check(False, result.message)
                self._post(
                    f"AI response: {result.message or 'No face detected'}. Please retake image.",
                    'warning',
                )
                self._set_phase(Phase.CAPTURED, 'process_image')
            else:
                self.session.face_detected = False
                workflow_logger.log_failure('process_image', str(error))
                self._post(f"Error during AI processing: {error}.", 'error')
                self._set_phase(Phase.CAPTURED, 'process_image')
            return self.snapshot()

    def start_voice_input(self, audio: Optional[bytes] = None, user_id: Optional[str] = None) -> Dict[str, Any]:
        """READY_FOR_NAME -> LISTENING, then straight on to logging once a name is heard."""
        with self._lock:
            self._require('start_voice_input')
            if self.recognizer is None or not self.recognizer.is_available(audio):
                self._post(
                    "Speech recognition not available. Please upload a recording or enable a microphone.",
                    'error',
                )
                return self.snapshot()

            self.session.recognized_name = ''
            self._post("Listening for your name... Please speak clearly.")
            self._set_phase(Phase.LISTENING, 'start_voice_input')

        try:
            transcript = (self.recognizer.listen(audio) or '').strip()
            if not transcript:
                raise ValueError('no-speech')
        except Exception as exc:
            self.logger.error("Speech recognition error: %s", exc)
            with self._lock:
                self.session.recognized_name = ''
                workflow_logger.log_failure('start_voice_input', str(exc))
                self._post(f"Voice input error: {exc}. Please try again.", 'error')
                self._set_phase(Phase.READY_FOR_NAME, 'start_voice_input')
                return self.snapshot()

        return self._complete_transcript(transcript, user_id)

    def _complete_transcript(self, transcript: str, user_id: Optional[str]) -> Dict[str, Any]:
        """Transition LISTENING --transcript--> LOGGING.

        Side effect: exactly one ``add_record`` call carrying the held image,
        the transcript and ``user_id``. The write only happens if the face
        gate is set for the held image and the name is non-empty.

        Success -> CAPTURED with name and gate cleared (the image stays up for
        review; a new cycle needs an explicit retake).
        Failure -> READY_FOR_NAME with image and gate kept, so voice input can
        be retried without capturing again.
        """
        with self._lock:
            self.session.recognized_name = transcript
            self._post(f"Name recognized: {transcript}. Logging attendance...")
            self._set_phase(Phase.LOGGING, 'transcript')
            image = self.session.captured_image
            gate_open = self.session.face_detected

        record_id, error = None, None
        try:
            if not gate_open:
                raise RecordStoreError("No face confirmed for the captured image. Please retake.")
            if self.record_store is None or not user_id:
                raise RecordStoreError(LOGGING_DISABLED_MESSAGE)
            record = AttendanceRecord(person_name=transcript, image=image, logged_by_user_id=user_id)
            record_id = self.record_store.add_record(record)
        except Exception as exc:
            error = exc
            self.logger.error("Error during attendance logging: %s", exc)

        with self._lock:
            self.session.recognized_name = ''
            if error is None:
                self.session.face_detected = False
                workflow_logger.log_attendance_logged(transcript, user_id, record_id)
                self._post(f"Attendance logged successfully for {transcript}!", 'success')
                self._set_phase(Phase.CAPTURED, 'log_attendance')
                if self.broadcaster is not None:
                    self.broadcaster.broadcast_attendance_logged(record_id, transcript, user_id)
            else:
                workflow_logger.log_failure('log_attendance', str(error))
                self._post(f"Error logging attendance: {error}.", 'error')
                self._set_phase(Phase.READY_FOR_NAME, 'log_attendance')
            return self.snapshot()

    def retake(self) -> Dict[str, Any]:
        """Discard image, name and gate, stop the camera, then start it again."""
        with self._lock:
            self._require('retake')
            self.session.clear()
            self.media_source.stop()
            self._set_phase(Phase.IDLE, 'retake')
            self.notices.clear()
            self._start_camera_locked('retake')
            if self._phase is Phase.CAMERA_ACTIVE:
                self._post('Ready for new attendance capture.')
            return self.snapshot()

    def preview_frame(self) -> Optional[bytes]:
        """One JPEG frame for the live preview, or None once the camera is no longer live.

        Reads happen under the lock so they never interleave with ``capture_image``.
        """
        with self._lock:
            if self._phase is not Phase.CAMERA_ACTIVE:
                return None
            try:
                return frame_to_jpeg(self.media_source.read())
            except (CameraError, ValueError) as exc:
                self.logger.debug("[Camera] Preview frame unavailable: %s", exc)
                return None

    def shutdown(self) -> None:
        """Release the camera whatever the phase; used on application teardown."""
        with self._lock:
            try:
                self.media_source.stop()
            except CameraError as exc:
                self.logger.debug("[Camera] stop() failed during shutdown: %s", exc)
            if self._phase is Phase.CAMERA_ACTIVE:
                self._set_phase(Phase.IDLE, 'shutdown')
