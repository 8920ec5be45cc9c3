"""
API routes for the kiosk identity
"""
from flask import Blueprint, g, jsonify

identity_api_bp = Blueprint('identity_api', __name__, url_prefix='/api')


@identity_api_bp.route('/identity', methods=['GET'])
def api_identity():
    """Identity resolved by the middleware for this browser session."""
    user_id = getattr(g, 'user_id', None)
    return jsonify({
        'success': user_id is not None,
        'user_id': user_id,
        'display': user_id or 'Authenticating...',
    })
