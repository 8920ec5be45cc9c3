"""
Routes package
Registers every blueprint
"""
from .main import main_bp
from .api_identity import identity_api_bp
from .api_capture import capture_api_bp
from .api_attendance import attendance_api_bp
from .api_events import events_api_bp
from .api_system import system_api_bp


def register_blueprints(app):
    """Register all blueprints with the Flask app."""
    # Pages
    app.register_blueprint(main_bp)

    # API routes
    app.register_blueprint(identity_api_bp)
    app.register_blueprint(capture_api_bp)
    app.register_blueprint(attendance_api_bp)
    app.register_blueprint(events_api_bp)
    app.register_blueprint(system_api_bp)

    app.logger.info("✅ All blueprints registered")
