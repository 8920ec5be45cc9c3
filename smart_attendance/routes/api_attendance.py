"""
API routes for attendance records
Listing plus the Gemini-generated summary and welcome message
"""
from flask import Blueprint, current_app, jsonify, request

from smart_attendance import get_services
from smart_attendance.models.attendance_record import RecordStoreError
from smart_attendance.services.gemini_service import GeminiError
from smart_attendance.utils import get_request_data, parse_bool, parse_limit, serialize_record

attendance_api_bp = Blueprint('attendance_api', __name__, url_prefix='/api/attendance')


def _records_limit(value):
    return parse_limit(
        value,
        current_app.config['RECORDS_DEFAULT_LIMIT'],
        current_app.config['RECORDS_MAX_LIMIT'],
    )


@attendance_api_bp.route('/records', methods=['GET'])
def api_list_records():
    """Attendance records, newest first."""
    limit = _records_limit(request.args.get('limit'))
    include_image = parse_bool(request.args.get('include_image'), default=True)
    try:
        records = get_services()['store'].list_records(limit=limit, include_image=include_image)
    except RecordStoreError as exc:
        current_app.logger.error(f"Error listing attendance records: {exc}")
        return jsonify({'success': False, 'message': str(exc)}), 500

    return jsonify({
        'success': True,
        'count': len(records),
        'limit': limit,
        'records': [serialize_record(record, include_image=include_image) for record in records],
    })


@attendance_api_bp.route('/summary', methods=['POST'])
def api_attendance_summary():
    """Gemini summary of the most recent records."""
    data = get_request_data()
    limit = _records_limit(data.get('limit'))
    services = get_services()
    try:
        records = services['store'].list_records(limit=limit, include_image=False)
    except RecordStoreError as exc:
        current_app.logger.error(f"Error listing attendance records: {exc}")
        return jsonify({'success': False, 'message': str(exc)}), 500

    if not records:
        return jsonify({'success': False, 'message': 'No attendance records to summarize.'}), 400

    try:
        summary = services['gemini'].generate_attendance_summary(
            serialize_record(record, include_image=False) for record in records
        )
    except GeminiError as exc:
        current_app.logger.error(f"Error generating attendance summary: {exc}")
        return jsonify({'success': False, 'message': str(exc)}), 502

    return jsonify({'success': True, 'summary': summary, 'count': len(records)})


@attendance_api_bp.route('/welcome', methods=['POST'])
def api_welcome_message():
    """Gemini welcome message for a just-logged name."""
    data = get_request_data()
    name = (data.get('name') or '').strip()
    if not name:
        return jsonify({'success': False, 'message': 'Please provide a name.'}), 400

    try:
        message = get_services()['gemini'].generate_welcome_message(name)
    except GeminiError as exc:
        current_app.logger.error(f"Error generating welcome message: {exc}")
        return jsonify({'success': False, 'message': str(exc)}), 502

    return jsonify({'success': True, 'message': message})
