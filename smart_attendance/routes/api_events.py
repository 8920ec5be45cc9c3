"""
API routes for Server-Sent Events (SSE)
Real-time workflow and attendance updates for the kiosk page
"""
import queue

from flask import Blueprint, Response, stream_with_context

from smart_attendance import get_services

events_api_bp = Blueprint('events_api', __name__, url_prefix='/api/events')

HEARTBEAT_SECONDS = 30


@events_api_bp.route('/stream')
def api_events_stream():
    """Server-Sent Events stream"""
    services = get_services()
    broadcaster = services['broadcaster']
    client_queue = broadcaster.add_client()
    initial_state = services['workflow'].snapshot(include_image=False)

    def event_stream():
        try:
            yield broadcaster.format_sse_message({'type': 'connected'})
            yield broadcaster.format_sse_message({'type': 'workflow_state', 'data': initial_state})

            while True:
                try:
                    event_data = client_queue.get(timeout=HEARTBEAT_SECONDS)
                    yield broadcaster.format_sse_message(event_data)
                except queue.Empty:
                    # Keep the connection alive
                    yield broadcaster.format_sse_message({'type': 'heartbeat'})
        finally:
            broadcaster.remove_client(client_queue)

    return Response(stream_with_context(event_stream()), mimetype='text/event-stream')
