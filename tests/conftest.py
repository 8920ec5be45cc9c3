import numpy as np
import pytest

from database import AttendanceDatabase
from smart_attendance import create_app
from smart_attendance.core.camera_manager import CameraError
from smart_attendance.core.notices import NoticeBoard
from smart_attendance.core.workflow import CaptureWorkflow
from smart_attendance.models.attendance_record import AttendanceRecord, RecordStoreError
from smart_attendance.models.event_broadcaster import EventBroadcaster
from smart_attendance.services.gemini_service import ClassificationResult, GeminiError

FACE = ClassificationResult(status='success', face_detected=True, message='Face detected')


class FakeCamera:
    """Media source that counts live handles."""

    def __init__(self, fail_start=False, fail_read=False):
        self.fail_start = fail_start
        self.fail_read = fail_read
        # Reads left before the feed dries up; None means unlimited
        self.frame_budget = None
        self.live = 0
        self.max_live = 0
        self.start_calls = 0
        self.stop_calls = 0

    def start(self):
        self.start_calls += 1
        if self.fail_start:
            raise CameraError('Permission denied')
        self.live += 1
        self.max_live = max(self.max_live, self.live)

    def stop(self):
        self.stop_calls += 1
        self.live = 0

    def read(self):
        if self.live == 0:
            raise CameraError('Camera is not running')
        if self.fail_read:
            raise CameraError('Unable to read frame from camera')
        if self.frame_budget is not None:
            if self.frame_budget <= 0:
                raise CameraError('Unable to read frame from camera')
            self.frame_budget -= 1
        return np.full((8, 8, 3), 127, dtype=np.uint8)

    def is_active(self):
        return self.live > 0


class FakeClassifier:
    configured = True

    def __init__(self, *results):
        self.results = list(results) or [FACE]
        self.calls = []
        self.summary = 'Alice attended on 2024-05-01.'
        self.summary_error = None
        self.summary_records = None

    def detect_face(self, image_data_uri):
        self.calls.append(image_data_uri)
        result = self.results[0] if len(self.results) == 1 else self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    def generate_attendance_summary(self, records):
        if self.summary_error:
            raise GeminiError(self.summary_error)
        self.summary_records = list(records)
        return self.summary

    def generate_welcome_message(self, name):
        return f'Welcome, {name}!'


class FakeRecognizer:
    def __init__(self, transcript='Alice', error=None, available=True):
        self.transcript = transcript
        self.error = error
        self.available = available
        self.calls = []

    def is_available(self, audio=None):
        return self.available

    def listen(self, audio=None):
        self.calls.append(audio)
        if self.error is not None:
            raise self.error
        return self.transcript


class FakeStore:
    def __init__(self, fail=False):
        self.fail = fail
        self.records = []

    def is_ready(self):
        return not self.fail

    def add_record(self, record):
        if self.fail:
            raise RecordStoreError('Store offline')
        record.validate()
        self.records.append(record)
        return str(len(self.records))

    def list_records(self, limit=50, include_image=True):
        if self.fail:
            raise RecordStoreError('Store offline')
        return [
            {
                'id': str(i + 1),
                'personName': r.person_name,
                'timestamp': '2024-05-01T09:30:00.000Z',
                'image': r.image if include_image else None,
                'loggedByUserId': r.logged_by_user_id,
            }
            for i, r in reversed(list(enumerate(self.records)))
        ][:limit]


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def camera():
    return FakeCamera()


@pytest.fixture
def classifier():
    return FakeClassifier()


@pytest.fixture
def recognizer():
    return FakeRecognizer()


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def workflow(camera, classifier, recognizer, store, clock):
    return CaptureWorkflow(
        media_source=camera,
        classifier=classifier,
        recognizer=recognizer,
        record_store=store,
        notices=NoticeBoard(display_seconds=5, clock=clock),
        broadcaster=EventBroadcaster(),
    )


@pytest.fixture
def ready_workflow(workflow):
    """Workflow with a captured image that passed the face check."""
    workflow.start_camera()
    workflow.capture_image()
    workflow.process_image()
    return workflow


@pytest.fixture
def sqlite_db(tmp_path):
    return AttendanceDatabase(tmp_path / 'attendance.db')


@pytest.fixture
def app(tmp_path, camera, classifier, recognizer, sqlite_db):
    app = create_app(
        config_overrides={
            'TESTING': True,
            'SECRET_KEY': 'test-secret',
            'LOG_DIR': str(tmp_path / 'logs'),
            'DATABASE_PATH': str(tmp_path / 'attendance.db'),
            'INITIAL_AUTH_TOKEN': None,
            'GEMINI_MODEL': 'gemini-test',
            'PREVIEW_FRAME_INTERVAL': 0,
        },
        services={
            'firebase_app': None,
            'camera': camera,
            'gemini': classifier,
            'speech': recognizer,
            'store': sqlite_db,
        },
    )
    yield app
    app.extensions['smart_attendance']['workflow'].shutdown()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def ready_record(sqlite_db):
    """Write records straight into the app's SQLite store."""

    def add(name='Alice'):
        return sqlite_db.add_record(AttendanceRecord(
            person_name=name,
            image='data:image/png;base64,iVBORw0KGgo=',
            logged_by_user_id='user-1',
        ))

    return add
