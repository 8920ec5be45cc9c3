"""
Data utilities
Helper functions for request parsing and record serialization
"""
from datetime import datetime

from flask import request


def parse_datetime_safe(value):
    """
    Parse a datetime string into a datetime, or return None.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value.endswith('Z'):
        value = value[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(value)
    except (ValueError, TypeError):
        pass
    for fmt in ['%Y-%m-%d %H:%M:%S', '%Y-%m-%d']:
        try:
            return datetime.strptime(value, fmt)
        except (ValueError, TypeError):
            continue
    return None


def get_request_data():
    """Read request data from JSON or form."""
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


def parse_bool(value, default=None):
    """
    Parse a boolean from a string, int or bool.
    Returns: True, False, or default when undecidable.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        lower = value.strip().lower()
        if lower in ('true', '1', 'yes', 'on'):
            return True
        if lower in ('false', '0', 'no', 'off'):
            return False
    return default


def parse_limit(value, default, maximum):
    """Clamp a ?limit= query value into 1..maximum."""
    try:
        limit = int(value) if value is not None else default
    except (TypeError, ValueError):
        limit = default
    return max(1, min(limit, maximum))


def serialize_record(record, include_image=True):
    """Convert an attendance record dict into a JSON-friendly payload."""
    if not record:
        return None
    timestamp = record.get('timestamp')
    if isinstance(timestamp, datetime):
        timestamp = timestamp.isoformat()
    payload = {
        'id': record.get('id'),
        'personName': record.get('personName'),
        'timestamp': timestamp,
        'loggedByUserId': record.get('loggedByUserId'),
    }
    if include_image:
        payload['image'] = record.get('image')
    return payload
