"""
Database module for the Smart Attendance kiosk
SQLite-backed, append-only attendance record store
"""

import logging
import sqlite3
import time
from pathlib import Path

from logging_config import database_logger
from smart_attendance.models.attendance_record import AttendanceRecord, RecordStoreError

logger = logging.getLogger(__name__)


class AttendanceDatabase:
    """Record store on a local SQLite file.

    Timestamps come from SQLite itself at insert time, never from the caller.
    """

    def __init__(self, db_path="data/attendance.db"):
        self.db_path = str(db_path)
        if self.db_path != ':memory:':
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.init_database()

    def get_connection(self):
        """Open a connection with name-based row access"""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_database(self):
        """Create tables when missing"""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS attendance (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    person_name VARCHAR(100) NOT NULL CHECK (length(trim(person_name)) > 0),
                    timestamp TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
                    image TEXT NOT NULL,
                    logged_by_user_id VARCHAR(128) NOT NULL
                )
            ''')
            cursor.execute('''
                CREATE INDEX IF NOT EXISTS idx_attendance_timestamp
                ON attendance (timestamp)
            ''')
            conn.commit()
        logger.info("Attendance database ready at %s", self.db_path)

    def is_ready(self):
        return True

    # === ATTENDANCE RECORDS ===
    def add_record(self, record: AttendanceRecord) -> str:
        """Insert one record; returns its id as a string"""
        record.validate()
        document = record.to_document()
        started = time.perf_counter()
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute('''
                    INSERT INTO attendance (person_name, image, logged_by_user_id)
                    VALUES (?, ?, ?)
                ''', (document['personName'], document['image'], document['loggedByUserId']))
                conn.commit()
                record_id = cursor.lastrowid
        except sqlite3.Error as exc:
            database_logger.log_error('insert attendance', str(exc))
            raise RecordStoreError(str(exc)) from exc

        database_logger.log_query('INSERT', 'attendance', time.perf_counter() - started)
        logger.info("Logged attendance for %s (record %s)", document['personName'], record_id)
        return str(record_id)

    def list_records(self, limit=50, include_image=True):
        """Newest records first"""
        columns = 'id, person_name, timestamp, logged_by_user_id'
        if include_image:
            columns += ', image'
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(f'''
                    SELECT {columns} FROM attendance
                    ORDER BY timestamp DESC, id DESC
                    LIMIT ?
                ''', (int(limit),))
                rows = cursor.fetchall()
        except sqlite3.Error as exc:
            database_logger.log_error('list attendance', str(exc))
            raise RecordStoreError(str(exc)) from exc
        return [self._row_to_record(row) for row in rows]

    def get_record(self, record_id):
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT * FROM attendance WHERE id = ?', (record_id,))
            row = cursor.fetchone()
        return self._row_to_record(row) if row else None

    def count_records(self):
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT COUNT(*) FROM attendance')
            return cursor.fetchone()[0]

    @staticmethod
    def _row_to_record(row):
        data = dict(row)
        return {
            'id': str(data['id']),
            'personName': data['person_name'],
            'timestamp': data['timestamp'],
            'image': data.get('image'),
            'loggedByUserId': data['logged_by_user_id'],
        }
