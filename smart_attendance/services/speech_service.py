"""
Speech Service - turns one spoken utterance into a name
Uses the SpeechRecognition package (Google Web Speech backend)
"""
import io
import logging
import socket
from typing import Optional

import speech_recognition as sr


class SpeechRecognitionError(RuntimeError):
    """Recognition failed; ``code`` mirrors the short reason shown to the user."""

    def __init__(self, code: str, message: Optional[str] = None):
        super().__init__(message or code)
        self.code = code


class SpeechUnavailableError(SpeechRecognitionError):
    """No way to capture audio on this platform."""

    def __init__(self, message: str = 'not-supported'):
        super().__init__('not-supported', message)


class SpeechService:
    """Single-utterance recognizer.

    Audio comes either from an uploaded clip (WAV/AIFF/FLAC recorded by the
    kiosk page) or, when enabled, from the server's default microphone.
    """

    def __init__(
        self,
        language: str = 'en-US',
        timeout: float = 8.0,
        phrase_time_limit: float = 6.0,
        operation_timeout: Optional[float] = 10.0,
        use_microphone: bool = True,
        recognizer: Optional[sr.Recognizer] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.language = language
        self.timeout = timeout
        self.phrase_time_limit = phrase_time_limit
        self.use_microphone = use_microphone
        self.recognizer = recognizer or sr.Recognizer()
        # Bounds the recognition request; the library default of None waits forever
        self.recognizer.operation_timeout = operation_timeout
        self.logger = logger or logging.getLogger(__name__)
        self._microphone_ok: Optional[bool] = None

    def _microphone_available(self) -> bool:
        if not self.use_microphone:
            return False
        if self._microphone_ok is None:
            try:
                sr.Microphone.get_pyaudio()
                self._microphone_ok = bool(sr.Microphone.list_microphone_names())
            except (AttributeError, OSError) as exc:
                self.logger.warning("[Speech] Microphone unavailable: %s", exc)
                self._microphone_ok = False
        return self._microphone_ok

    def is_available(self, audio: Optional[bytes] = None) -> bool:
        return bool(audio) or self._microphone_available()

    def listen(self, audio: Optional[bytes] = None) -> str:
        """Return the final transcript of one utterance; raises SpeechRecognitionError"""
        if audio:
            captured = self._load_clip(audio)
        elif self._microphone_available():
            captured = self._record_microphone()
        else:
            raise SpeechUnavailableError(
                "Speech recognition not available. Please upload a recording or enable a microphone."
            )

        try:
            transcript = self.recognizer.recognize_google(captured, language=self.language)
        except sr.UnknownValueError as exc:
            raise SpeechRecognitionError('no-match') from exc
        except sr.RequestError as exc:
            self.logger.error("[Speech] Recognition service unavailable: %s", exc)
            raise SpeechRecognitionError('network', f'network ({exc})') from exc
        except (socket.timeout, TimeoutError) as exc:
            self.logger.error("[Speech] Recognition request timed out: %s", exc)
            raise SpeechRecognitionError('network', 'network (timed out)') from exc

        transcript = (transcript or '').strip() if isinstance(transcript, str) else ''
        if not transcript:
            raise SpeechRecognitionError('no-speech')
        self.logger.info("[Speech] Recognized speech: %s", transcript)
        return transcript

    def _load_clip(self, audio: bytes):
        try:
            with sr.AudioFile(io.BytesIO(audio)) as source:
                return self.recognizer.record(source)
        except (ValueError, EOFError, OSError) as exc:
            raise SpeechRecognitionError('audio-capture', f'audio-capture ({exc})') from exc

    def _record_microphone(self):
        try:
            with sr.Microphone() as source:
                self.recognizer.adjust_for_ambient_noise(source, duration=0.3)
                return self.recognizer.listen(
                    source,
                    timeout=self.timeout,
                    phrase_time_limit=self.phrase_time_limit,
                )
        except sr.WaitTimeoutError as exc:
            raise SpeechRecognitionError('no-speech') from exc
        except OSError as exc:
            raise SpeechRecognitionError('audio-capture', f'audio-capture ({exc})') from exc
