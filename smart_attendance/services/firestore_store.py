"""
Firestore record store
Append-only attendance documents under artifacts/<app_id>/public/data/attendance
"""
import logging
from typing import Optional

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions

from logging_config import database_logger
from smart_attendance.models.attendance_record import AttendanceRecord, RecordStoreError


class FirestoreAttendanceStore:
    """Record store backed by Cloud Firestore; timestamps use SERVER_TIMESTAMP."""

    def __init__(self, client, app_id='default-app-id', logger: Optional[logging.Logger] = None):
        self.client = client
        self.app_id = app_id
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_app(cls, firebase_app, app_id='default-app-id', logger=None):
        return cls(firestore.client(app=firebase_app), app_id=app_id, logger=logger)

    @property
    def collection_path(self):
        return f"artifacts/{self.app_id}/public/data/attendance"

    def is_ready(self):
        return self.client is not None

    def add_record(self, record: AttendanceRecord) -> str:
        record.validate()
        document = record.to_document()
        document['timestamp'] = firestore.SERVER_TIMESTAMP
        try:
            _, ref = self.client.collection(self.collection_path).add(document)
        except google_exceptions.GoogleAPIError as exc:
            database_logger.log_error('firestore add', str(exc))
            raise RecordStoreError(str(exc)) from exc
        self.logger.info("[Firestore] Logged attendance for %s (%s)", document['personName'], ref.id)
        return ref.id

    def list_records(self, limit=50, include_image=True):
        query = (
            self.client.collection(self.collection_path)
            .order_by('timestamp', direction=firestore.Query.DESCENDING)
            .limit(int(limit))
        )
        try:
            snapshots = list(query.stream())
        except google_exceptions.GoogleAPIError as exc:
            database_logger.log_error('firestore list', str(exc))
            raise RecordStoreError(str(exc)) from exc

        records = []
        for snapshot in snapshots:
            data = snapshot.to_dict() or {}
            records.append({
                'id': snapshot.id,
                'personName': data.get('personName'),
                'timestamp': data.get('timestamp'),
                'image': data.get('image') if include_image else None,
                'loggedByUserId': data.get('loggedByUserId'),
            })
        return records
