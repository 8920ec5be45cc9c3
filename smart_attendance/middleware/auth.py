"""
Identity middleware
Resolves the kiosk operator's identity for every request and exposes it as g.user_id
"""
from flask import current_app, g, request, session

from logging_config import get_client_ip, log_request_info
from smart_attendance import get_services
from smart_attendance.services.identity_service import IdentityError

AUTH_FAILED_MESSAGE = "Failed to authenticate. Please try again."
AUTH_NOTICE_FLAG = 'auth_failure_notified'


def is_api_request():
    """Whether the current request targets the JSON API."""
    path = request.path or ''
    return path.startswith('/api/')


def is_public_endpoint(endpoint):
    """Endpoints that never trigger sign-in."""
    if not endpoint:
        return False
    if endpoint == 'static' or endpoint.startswith('static.'):
        return True
    return endpoint in current_app.config['PUBLIC_ENDPOINTS']


def load_identity():
    """Attach the resolved identity to g; a failed sign-in leaves it None."""
    g.user_id = None

    if is_public_endpoint(request.endpoint) or request.path.startswith('/static/'):
        return

    services = get_services()
    ip_address = get_client_ip(request)
    try:
        g.user_id = services['identity'].resolve(session, ip_address=ip_address)
    except IdentityError as exc:
        current_app.logger.error("Authentication error: %s", exc)
        # Posted once per session
        if not session.get(AUTH_NOTICE_FLAG):
            session[AUTH_NOTICE_FLAG] = True
            services['notices'].post(AUTH_FAILED_MESSAGE, 'error')
            services['broadcaster'].broadcast_system_message(AUTH_FAILED_MESSAGE, 'error')
    else:
        if AUTH_NOTICE_FLAG in session:
            session.pop(AUTH_NOTICE_FLAG)

    if is_api_request():
        log_request_info(request, user_id=g.user_id)


def inject_identity_context():
    """Expose the current identity to every template."""
    user_id = getattr(g, 'user_id', None)
    return {
        'current_user_id': user_id,
        'identity_display': user_id or 'Authenticating...',
    }


def register_auth_middleware(app):
    """Register the identity middleware with the Flask app."""
    app.before_request(load_identity)
    app.context_processor(inject_identity_context)
