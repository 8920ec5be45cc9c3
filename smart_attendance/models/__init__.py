"""
Models Package - domain objects shared by routes and services
"""

from .attendance_record import AttendanceRecord, RecordStoreError
from .event_broadcaster import EventBroadcaster

__all__ = [
    'AttendanceRecord',
    'RecordStoreError',
    'EventBroadcaster',
]
