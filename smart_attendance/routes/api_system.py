"""
API routes for system status
"""
from flask import Blueprint, current_app, jsonify

from smart_attendance import get_services

system_api_bp = Blueprint('system_api', __name__, url_prefix='/api/system')


@system_api_bp.route('/status')
def api_system_status():
    """Configuration health of each collaborator."""
    services = get_services()
    store = services['store']
    return jsonify({
        'success': True,
        'gemini_configured': services['gemini'].configured,
        'gemini_model': current_app.config['GEMINI_MODEL'],
        'firebase_initialized': services.get('firebase_app') is not None,
        'record_store': type(store).__name__,
        'record_store_ready': store.is_ready(),
        'camera_active': services['camera'].is_active(),
        'phase': services['workflow'].phase.value,
        'sse_clients': services['broadcaster'].get_client_count(),
    })
