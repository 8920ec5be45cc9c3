"""
API routes for the capture workflow
Every action returns the controller snapshot; illegal transitions answer 409
"""
import time
from functools import wraps

from flask import Blueprint, Response, current_app, g, jsonify, request, stream_with_context

from logging_config import api_logger
from smart_attendance import get_services
from smart_attendance.core.state import InvalidTransition, Phase

capture_api_bp = Blueprint('capture_api', __name__, url_prefix='/api/capture')


def workflow_action(view_func):
    """Wrap a workflow call in the JSON envelope."""

    @wraps(view_func)
    def wrapper(*args, **kwargs):
        try:
            state = view_func(get_services()['workflow'], *args, **kwargs)
        except InvalidTransition as exc:
            return jsonify({
                'success': False,
                'message': str(exc),
                'state': get_services()['workflow'].snapshot(),
            }), 409
        except Exception as exc:
            current_app.logger.error(f"Error in {request.endpoint}: {exc}", exc_info=True)
            api_logger.log_error(request.endpoint, str(exc))
            return jsonify({'success': False, 'message': f'Unexpected error: {exc}'}), 500
        return jsonify({'success': True, 'state': state})

    return wrapper


@capture_api_bp.route('/state', methods=['GET'])
def api_capture_state():
    """Current workflow snapshot."""
    workflow = get_services()['workflow']
    return jsonify({'success': True, 'state': workflow.snapshot()})


@capture_api_bp.route('/camera/start', methods=['POST'])
@workflow_action
def api_start_camera(workflow):
    return workflow.start_camera()


@capture_api_bp.route('/capture', methods=['POST'])
@workflow_action
def api_capture_image(workflow):
    return workflow.capture_image()


@capture_api_bp.route('/process', methods=['POST'])
@workflow_action
def api_process_image(workflow):
    return workflow.process_image()


@capture_api_bp.route('/voice', methods=['POST'])
@workflow_action
def api_start_voice_input(workflow):
    """Optional ``audio`` upload (WAV/AIFF/FLAC); otherwise the server microphone is used."""
    upload = request.files.get('audio')
    audio = upload.read() if upload else None
    return workflow.start_voice_input(audio=audio or None, user_id=getattr(g, 'user_id', None))


@capture_api_bp.route('/retake', methods=['POST'])
@workflow_action
def api_retake(workflow):
    return workflow.retake()


@capture_api_bp.route('/video_feed', methods=['GET'])
def api_video_feed():
    """MJPEG live preview while the camera is active; the stream ends when the phase changes."""
    workflow = get_services()['workflow']
    if workflow.phase is not Phase.CAMERA_ACTIVE:
        return jsonify({'success': False, 'message': 'Camera is not active.'}), 409

    interval = current_app.config['PREVIEW_FRAME_INTERVAL']

    def frame_stream():
        while True:
            jpeg = workflow.preview_frame()
            if jpeg is None:
                return
            yield (b'--frame\r\n'
                   b'Content-Type: image/jpeg\r\n\r\n' + jpeg + b'\r\n')
            if interval:
                time.sleep(interval)

    return Response(
        stream_with_context(frame_stream()),
        mimetype='multipart/x-mixed-replace; boundary=frame'
    )
