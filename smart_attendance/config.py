"""
Configuration constants and settings
Everything is read from the environment (optionally loaded from .env by run.py)
"""
import json
import os
from pathlib import Path

# Flask
SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16MB

# Camera configuration
CAMERA_INDEX = int(os.getenv('CAMERA_INDEX', '0'))
CAMERA_WIDTH = int(os.getenv('CAMERA_WIDTH', '640'))
CAMERA_HEIGHT = int(os.getenv('CAMERA_HEIGHT', '480'))
CAMERA_WARMUP_FRAMES = int(os.getenv('CAMERA_WARMUP_FRAMES', '3'))
CAMERA_BUFFER_SIZE = int(os.getenv('CAMERA_BUFFER_SIZE', '2'))

# Gemini (face check, summaries, welcome messages)
GEMINI_API_KEY = os.getenv('GEMINI_API_KEY', '')
GEMINI_MODEL = os.getenv('GEMINI_MODEL', 'gemini-2.0-flash')
GEMINI_API_BASE = os.getenv(
    'GEMINI_API_BASE',
    'https://generativelanguage.googleapis.com/v1beta/models',
)
GEMINI_TIMEOUT = float(os.getenv('GEMINI_TIMEOUT', '30'))

# Speech recognition
SPEECH_LANGUAGE = os.getenv('SPEECH_LANGUAGE', 'en-US')
SPEECH_TIMEOUT = float(os.getenv('SPEECH_TIMEOUT', '8'))
SPEECH_PHRASE_LIMIT = float(os.getenv('SPEECH_PHRASE_LIMIT', '6'))
# Upper bound on the recognition HTTP request
SPEECH_OPERATION_TIMEOUT = float(os.getenv('SPEECH_OPERATION_TIMEOUT', '10'))
SPEECH_USE_MICROPHONE = os.getenv('SPEECH_USE_MICROPHONE', '1') == '1'

# Record store: 'sqlite' (default) or 'firestore'
RECORD_STORE = os.getenv('RECORD_STORE', 'sqlite').strip().lower()
DATABASE_PATH = os.getenv('DATABASE_PATH', str(Path('data') / 'attendance.db'))
FIREBASE_APP_ID = os.getenv('FIREBASE_APP_ID', 'default-app-id')
FIREBASE_CREDENTIALS = os.getenv('FIREBASE_CREDENTIALS', '')
# Must be a Firebase ID token (verified with auth.verify_id_token); custom tokens are rejected
INITIAL_AUTH_TOKEN = os.getenv('INITIAL_AUTH_TOKEN') or None


def _parse_firebase_config(raw):
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except ValueError:
        return {}
    return parsed if isinstance(parsed, dict) else {}


# Single-line JSON, e.g. {"projectId": "..."}; malformed JSON is treated as absent
FIREBASE_CONFIG = _parse_firebase_config(os.getenv('FIREBASE_CONFIG', ''))

# Workflow behaviour
MESSAGE_DISPLAY_SECONDS = float(os.getenv('MESSAGE_DISPLAY_SECONDS', '5'))
MAX_CLASSIFY_ATTEMPTS = max(0, int(os.getenv('MAX_CLASSIFY_ATTEMPTS', '5')))
# Seconds between live preview frames
PREVIEW_FRAME_INTERVAL = float(os.getenv('PREVIEW_FRAME_INTERVAL', '0.05'))

# Attendance log view
RECORDS_DEFAULT_LIMIT = 50
RECORDS_MAX_LIMIT = 200

# Logging
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_DIR = os.getenv('LOG_DIR', 'logs')

# Public endpoints (no identity required)
PUBLIC_ENDPOINTS = {'static', 'system_api.api_system_status'}
