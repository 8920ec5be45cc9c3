"""
Event Broadcaster - Server-Sent Events (SSE)
Pushes workflow and attendance updates to connected kiosk pages
"""
import json
import queue
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional


class EventBroadcaster:
    """Fan-out of SSE events to one queue per connected client"""

    def __init__(self, logger=None, max_queue_size: int = 50):
        self.clients: List[queue.Queue] = []
        self.clients_lock = threading.Lock()
        self.logger = logger
        self.max_queue_size = max_queue_size

    def add_client(self) -> queue.Queue:
        """Register a new client and return its queue"""
        client_queue = queue.Queue(maxsize=self.max_queue_size)

        with self.clients_lock:
            self.clients.append(client_queue)
            total = len(self.clients)

        if self.logger:
            self.logger.info(f"[SSE] ✅ New client connected. Total: {total}")

        return client_queue

    def remove_client(self, client_queue: queue.Queue):
        """Drop a client on disconnect"""
        with self.clients_lock:
            if client_queue in self.clients:
                self.clients.remove(client_queue)
                if self.logger:
                    self.logger.info(f"[SSE] Client disconnected. Remaining: {len(self.clients)}")

    def broadcast_event(self, event_data: Dict[str, Any]):
        """
        Broadcast an event to every client

        Args:
            event_data: dict with
                - type: event name ('workflow_state', 'attendance_logged', ...)
                - data: payload
                - timestamp: optional, filled in when missing
        """
        if 'timestamp' not in event_data:
            event_data['timestamp'] = datetime.now().isoformat()

        full_clients = []

        with self.clients_lock:
            for client_queue in self.clients:
                try:
                    client_queue.put_nowait(event_data)
                except queue.Full:
                    full_clients.append(client_queue)
                    if self.logger:
                        self.logger.warning("[SSE] Client queue full, marking for removal")

        for client_queue in full_clients:
            self.remove_client(client_queue)

        if self.logger and self.clients:
            self.logger.debug(
                f"[SSE] Broadcast {event_data.get('type', 'unknown')} to {len(self.clients)} clients"
            )

    @staticmethod
    def format_sse_message(event_data: Dict[str, Any]) -> str:
        """SSE wire format: event: type\\ndata: json\\n\\n"""
        event_type = event_data.get('type', 'message')
        return f"event: {event_type}\ndata: {json.dumps(event_data)}\n\n"

    def broadcast_workflow_state(self, snapshot: Dict[str, Any]):
        """Broadcast the controller's current snapshot"""
        self.broadcast_event({
            'type': 'workflow_state',
            'data': snapshot,
        })

    def broadcast_attendance_logged(self, record_id: str, person_name: str, logged_by: Optional[str]):
        """Broadcast a freshly written attendance record (without its image)"""
        self.broadcast_event({
            'type': 'attendance_logged',
            'data': {
                'id': record_id,
                'personName': person_name,
                'loggedByUserId': logged_by,
            },
        })

    def broadcast_system_message(self, message: str, level: str = 'info'):
        """Broadcast system message"""
        self.broadcast_event({
            'type': 'system_message',
            'data': {
                'message': message,
                'level': level,  # 'info', 'warning', 'error', 'success'
            },
        })

    def get_client_count(self) -> int:
        with self.clients_lock:
            return len(self.clients)
