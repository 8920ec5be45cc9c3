"""
External services used by the capture workflow.

- gemini_service.GeminiService: face presence check and free-text generation
- speech_service.SpeechService: one-utterance speech recognition
- identity_service.IdentityService: token or anonymous sign-in
- firestore_store.FirestoreAttendanceStore: Firestore-backed record store
"""

# firebase_admin and speech_recognition are imported by the modules that use them,
# so importing this package stays cheap.
