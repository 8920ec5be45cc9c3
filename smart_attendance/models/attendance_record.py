"""
Attendance Record - the single document written per logging action
"""
from dataclasses import dataclass
from typing import Any, Dict


class RecordStoreError(RuntimeError):
    """Raised when an attendance record cannot be written or read."""


@dataclass(frozen=True)
class AttendanceRecord:
    """An append-only attendance entry.

    The timestamp is not part of this object: stores assign it at write time.
    """

    person_name: str
    image: str
    logged_by_user_id: str

    def validate(self) -> None:
        if not (self.person_name or '').strip():
            raise RecordStoreError("No name provided for attendance logging.")
        if not self.image:
            raise RecordStoreError("No image captured to log attendance against. Please retake.")
        if not self.logged_by_user_id:
            raise RecordStoreError("User is not authenticated.")

    def to_document(self) -> Dict[str, Any]:
        """Field names as stored, minus the server-assigned timestamp."""
        return {
            'personName': self.person_name.strip(),
            'image': self.image,
            'loggedByUserId': self.logged_by_user_id,
        }
