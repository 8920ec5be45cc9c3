"""
Gemini Service - calls to the hosted generative model
Face presence check for captured images, attendance summaries, welcome messages
"""
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

import requests

from logging_config import api_logger
from smart_attendance.utils.data_utils import parse_datetime_safe
from smart_attendance.utils.image_utils import split_data_uri

FACE_DETECTED_MESSAGE = 'Face detected'

FACE_PROMPT = (
    "Analyze this image. If it contains a human face, respond with 'Face detected'. "
    "If no face is detected, respond with 'No face detected'. Format your response as a "
    "JSON object with 'status' and 'message' fields, e.g., "
    "{'status': 'success', 'message': 'Face detected'} or "
    "{'status': 'failure', 'message': 'No face detected'}."
)

FACE_RESPONSE_SCHEMA = {
    'type': 'OBJECT',
    'properties': {
        'status': {'type': 'STRING'},
        'message': {'type': 'STRING'},
    },
    'propertyOrdering': ['status', 'message'],
}


class GeminiError(RuntimeError):
    """Raised when the Gemini API call fails or returns an unusable body."""


@dataclass(frozen=True)
class ClassificationResult:
    status: str
    face_detected: bool
    message: str

    @property
    def is_positive(self) -> bool:
        return self.status == 'success' and self.face_detected

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status,
            'faceDetected': self.face_detected,
            'message': self.message,
        }


def _error_result(message: str) -> ClassificationResult:
    return ClassificationResult(status='error', face_detected=False, message=message)


class GeminiService:
    """Thin client for the ``generateContent`` endpoint."""

    def __init__(
        self,
        api_key: str = '',
        model: str = 'gemini-2.0-flash',
        api_base: str = 'https://generativelanguage.googleapis.com/v1beta/models',
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.api_key = api_key or ''
        self.model = model
        self.api_base = api_base.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logger or logging.getLogger(__name__)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @property
    def endpoint(self) -> str:
        return f"{self.api_base}/{self.model}:generateContent"

    # ------------------------------------------------------------------
    # Face check
    def detect_face(self, image_data_uri: str) -> ClassificationResult:
        """
        Ask the model whether the captured image contains a human face.

        Never raises: every failure comes back as a result with status 'error'
        and a message suitable for display.
        """
        if not self.configured:
            self.logger.error("[Gemini] API key is not set for image processing")
            return _error_result('Gemini API Key is not configured.')

        try:
            mime_type, base64_data = split_data_uri(image_data_uri)
        except ValueError as exc:
            return _error_result(f'AI processing failed: {exc}.')

        payload = {
            'contents': [
                {
                    'role': 'user',
                    'parts': [
                        {'text': FACE_PROMPT},
                        {'inlineData': {'mimeType': mime_type, 'data': base64_data}},
                    ],
                }
            ],
            'generationConfig': {
                'responseMimeType': 'application/json',
                'responseSchema': FACE_RESPONSE_SCHEMA,
            },
        }

        try:
            result = self._post(payload, purpose='image processing')
        except GeminiError as exc:
            return _error_result(str(exc))

        text = self._extract_text(result)
        if text is None:
            self.logger.error("[Gemini] Unexpected response structure for image processing: %s", result)
            return _error_result('AI processing failed: Invalid response structure.')

        try:
            parsed = json.loads(text)
        except ValueError as exc:
            self.logger.error("[Gemini] Non-JSON face check response: %r", text)
            return _error_result(f'AI processing failed: {exc}.')
        if not isinstance(parsed, dict):
            return _error_result('AI processing failed: Invalid response structure.')

        message = str(parsed.get('message') or '')
        status = str(parsed.get('status') or 'error')
        return ClassificationResult(
            status=status,
            face_detected=message == FACE_DETECTED_MESSAGE,
            message=message,
        )

    # ------------------------------------------------------------------
    # Free-text helpers
    def generate_attendance_summary(self, records: Iterable[Dict[str, Any]]) -> str:
        """Summarize attendance per day; raises GeminiError"""
        if not self.configured:
            raise GeminiError('Gemini API Key is not configured for summary generation.')

        formatted = '\n'.join(self._format_log_line(record) for record in records)
        prompt = (
            f"Given the following attendance records:\n{formatted}\n\n"
            "Provide a concise summary of who attended, categorized by date, and mention the "
            "total count for each day. If multiple people attended on a day, list their names."
        )
        return self._generate_text(prompt, purpose='summary')

    def generate_welcome_message(self, person_name: str) -> str:
        """Short friendly greeting for a person who just logged attendance"""
        if not self.configured:
            raise GeminiError('Gemini API Key is not configured for welcome message generation.')
        if not (person_name or '').strip():
            raise GeminiError('A name is required for the welcome message.')

        prompt = (
            f"Generate a friendly, brief welcome message for {person_name.strip()} who has just "
            "logged into an attendance system for an event/session. Make it sound welcoming "
            "and encouraging."
        )
        return self._generate_text(prompt, purpose='welcome message')

    # ------------------------------------------------------------------
    # Internal helpers
    def _generate_text(self, prompt: str, purpose: str) -> str:
        payload = {'contents': [{'role': 'user', 'parts': [{'text': prompt}]}]}
        result = self._post(payload, purpose=purpose)
        text = self._extract_text(result)
        if text is None:
            self.logger.error("[Gemini] Unexpected response structure for %s: %s", purpose, result)
            raise GeminiError(f'Failed to generate {purpose}: Invalid AI response structure.')
        return text

    def _post(self, payload: Dict[str, Any], purpose: str) -> Dict[str, Any]:
        started = time.perf_counter()
        try:
            response = self.session.post(
                self.endpoint,
                params={'key': self.api_key},
                json=payload,
                headers={'Content-Type': 'application/json'},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as exc:
            self.logger.error("[Gemini] Request failed for %s: %s", purpose, exc)
            raise GeminiError(f'AI processing failed: {exc}.') from exc

        api_logger.log_outbound(f'gemini:{purpose}', response.status_code, time.perf_counter() - started)

        if not response.ok:
            detail = self._error_detail(response)
            self.logger.error(
                "[Gemini] HTTP error for %s: %s %s %s",
                purpose, response.status_code, response.reason, detail,
            )
            raise GeminiError(
                f'Gemini API Error: {response.status_code} {response.reason}. Details: {detail}'
            )

        try:
            return response.json()
        except ValueError as exc:
            raise GeminiError('AI processing failed: Invalid response structure.') from exc

    @staticmethod
    def _error_detail(response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or 'no details'
        if isinstance(body, dict):
            error = body.get('error')
            if isinstance(error, dict) and error.get('message'):
                return error['message']
        return json.dumps(body)

    @staticmethod
    def _extract_text(result: Any) -> Optional[str]:
        try:
            text = result['candidates'][0]['content']['parts'][0]['text']
        except (KeyError, IndexError, TypeError):
            return None
        return text if isinstance(text, str) else None

    @staticmethod
    def _format_log_line(record: Dict[str, Any]) -> str:
        moment = parse_datetime_safe(record.get('timestamp'))
        if moment is not None and moment.tzinfo is not None:
            moment = moment.astimezone()
        date_text = moment.strftime('%Y-%m-%d') if moment else 'Unknown Date'
        time_text = moment.strftime('%H:%M:%S') if moment else 'Unknown Time'
        return f"- {record.get('personName')} on {date_text} at {time_text}"
