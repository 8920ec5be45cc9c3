"""
Main routes
Kiosk page and attendance history page
"""
from flask import Blueprint, current_app, render_template

from smart_attendance import get_services
from smart_attendance.utils import serialize_record

main_bp = Blueprint('main', __name__)


@main_bp.route('/')
def index():
    """Kiosk page - capture workflow."""
    workflow = get_services()['workflow']
    return render_template('index.html', state=workflow.snapshot(include_image=False))


@main_bp.route('/history')
def history():
    """Historical attendance records, newest first."""
    store = get_services()['store']
    limit = current_app.config['RECORDS_DEFAULT_LIMIT']
    try:
        records = [serialize_record(record) for record in store.list_records(limit=limit)]
        error = None
    except Exception as exc:
        current_app.logger.error(f"Error loading attendance history: {exc}", exc_info=True)
        records = []
        error = 'Could not load attendance records.'
    return render_template('history.html', records=records, error=error)
