"""
App package initialization
Builds the Flask application and wires the capture workflow collaborators
"""
import atexit
import os

from flask import Flask

from logging_config import setup_logging
from smart_attendance import config

EXTENSION_KEY = 'smart_attendance'


def _load_config(app, config_overrides=None):
    """Copy module-level settings into app.config, then apply overrides"""
    for name in dir(config):
        if name.isupper():
            app.config[name] = getattr(config, name)
    if config_overrides:
        app.config.update(config_overrides)


def _init_record_store(app, firebase_app):
    """SQLite by default; Firestore when requested and Firebase is initialised"""
    from database import AttendanceDatabase

    if app.config['RECORD_STORE'] == 'firestore':
        if firebase_app is not None:
            from smart_attendance.services.firestore_store import FirestoreAttendanceStore

            store = FirestoreAttendanceStore.from_app(
                firebase_app,
                app_id=app.config['FIREBASE_APP_ID'],
                logger=app.logger,
            )
            app.logger.info("[STARTUP] ✅ Firestore record store at %s", store.collection_path)
            return store
        app.logger.warning("[STARTUP] ⚠️ Firestore requested but Firebase is not configured; using SQLite")

    store = AttendanceDatabase(app.config['DATABASE_PATH'])
    app.logger.info("[STARTUP] ✅ SQLite record store at %s", os.path.abspath(store.db_path))
    return store


def _init_services(app, overrides):
    """Construct every collaborator unless a test supplied its own"""
    from smart_attendance.core.camera_manager import CameraManager
    from smart_attendance.core.notices import NoticeBoard
    from smart_attendance.core.workflow import CaptureWorkflow
    from smart_attendance.models.event_broadcaster import EventBroadcaster
    from smart_attendance.services.gemini_service import GeminiService
    from smart_attendance.services.identity_service import IdentityService, firebase_token_verifier
    from smart_attendance.services.speech_service import SpeechService

    services = dict(overrides or {})

    # 1. Firebase (identity and optional Firestore storage)
    if 'firebase_app' not in services:
        from smart_attendance.services.firebase_service import init_firebase_app

        services['firebase_app'] = init_firebase_app(
            app.config['FIREBASE_CONFIG'],
            app.config['FIREBASE_CREDENTIALS'],
            logger=app.logger,
        )
    firebase_app = services['firebase_app']

    # 2. Camera
    if 'camera' not in services:
        services['camera'] = CameraManager(
            index=app.config['CAMERA_INDEX'],
            width=app.config['CAMERA_WIDTH'],
            height=app.config['CAMERA_HEIGHT'],
            warmup_frames=app.config['CAMERA_WARMUP_FRAMES'],
            buffer_size=app.config['CAMERA_BUFFER_SIZE'],
        )
        app.logger.info("[STARTUP] ✅ CameraManager initialized (index %s)", app.config['CAMERA_INDEX'])

    # 3. Gemini
    if 'gemini' not in services:
        services['gemini'] = GeminiService(
            api_key=app.config['GEMINI_API_KEY'],
            model=app.config['GEMINI_MODEL'],
            api_base=app.config['GEMINI_API_BASE'],
            timeout=app.config['GEMINI_TIMEOUT'],
            logger=app.logger,
        )
        if not services['gemini'].configured:
            app.logger.warning("[STARTUP] ⚠️ GEMINI_API_KEY is not set; face checks will fail")

    # 4. Speech
    if 'speech' not in services:
        services['speech'] = SpeechService(
            language=app.config['SPEECH_LANGUAGE'],
            timeout=app.config['SPEECH_TIMEOUT'],
            phrase_time_limit=app.config['SPEECH_PHRASE_LIMIT'],
            operation_timeout=app.config['SPEECH_OPERATION_TIMEOUT'],
            use_microphone=app.config['SPEECH_USE_MICROPHONE'],
            logger=app.logger,
        )

    # 5. Identity
    if 'identity' not in services:
        verifier = firebase_token_verifier(firebase_app) if firebase_app is not None else None
        services['identity'] = IdentityService(
            initial_token=app.config['INITIAL_AUTH_TOKEN'],
            token_verifier=verifier,
            logger=app.logger,
        )

    # 6. Record store
    if 'store' not in services:
        services['store'] = _init_record_store(app, firebase_app)

    # 7. Notices, events, workflow
    if 'notices' not in services:
        services['notices'] = NoticeBoard(display_seconds=app.config['MESSAGE_DISPLAY_SECONDS'])
    if 'broadcaster' not in services:
        services['broadcaster'] = EventBroadcaster(logger=app.logger)
    if 'workflow' not in services:
        services['workflow'] = CaptureWorkflow(
            media_source=services['camera'],
            classifier=services['gemini'],
            recognizer=services['speech'],
            record_store=services['store'],
            notices=services['notices'],
            broadcaster=services['broadcaster'],
            max_classify_attempts=app.config['MAX_CLASSIFY_ATTEMPTS'],
            logger=app.logger,
        )

    app.logger.info("[STARTUP] ✅ All services initialized successfully")
    return services


def get_services(app=None):
    """Service registry of the current (or given) application"""
    if app is None:
        from flask import current_app as app
    return app.extensions[EXTENSION_KEY]


def create_app(config_overrides=None, services=None):
    """Factory function that builds the Flask application"""
    app = Flask(__name__,
                template_folder='../templates',
                static_folder='../static')

    _load_config(app, config_overrides)

    setup_logging(app, log_level=app.config['LOG_LEVEL'], log_dir=app.config['LOG_DIR'])
    app.logger.info(f"[STARTUP] Working directory: {os.getcwd()}")

    app.extensions[EXTENSION_KEY] = _init_services(app, services)

    workflow = app.extensions[EXTENSION_KEY]['workflow']
    atexit.register(workflow.shutdown)

    # Register middleware
    from smart_attendance.middleware.auth import register_auth_middleware
    register_auth_middleware(app)

    # Register blueprints
    from smart_attendance.routes import register_blueprints
    register_blueprints(app)

    _register_error_handlers(app)

    return app


def _register_error_handlers(app):
    """JSON errors for API paths; HTML pages keep Flask's defaults"""
    from flask import jsonify, request
    from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(exc):
        limit_mb = app.config['MAX_CONTENT_LENGTH'] // (1024 * 1024)
        return jsonify({'success': False, 'message': f'Upload is larger than {limit_mb}MB.'}), 413

    @app.errorhandler(HTTPException)
    def handle_http_error(exc):
        if not request.path.startswith('/api/'):
            return exc
        return jsonify({'success': False, 'message': exc.description}), exc.code
