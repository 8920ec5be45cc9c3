"""
Logging configuration for the Smart Attendance kiosk
"""

import logging
import logging.handlers
from datetime import datetime
from pathlib import Path


def setup_logging(app, log_level='INFO', log_dir='logs', max_log_size=10*1024*1024, backup_count=5):
    """
    Configure logging for the Flask application

    Args:
        app: Flask app instance
        log_level: DEBUG, INFO, WARNING, ERROR, CRITICAL
        log_dir: directory holding the rotating log files
        max_log_size: max size of one log file (bytes)
        backup_count: number of rotated files kept
    """

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    log_level = getattr(logging, str(log_level).upper(), logging.INFO)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(lineno)d - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    file_handler = logging.handlers.RotatingFileHandler(
        log_dir / 'attendance_system.log',
        maxBytes=max_log_size,
        backupCount=backup_count,
        encoding='utf-8'
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)

    error_handler = logging.handlers.RotatingFileHandler(
        log_dir / 'errors.log',
        maxBytes=max_log_size,
        backupCount=backup_count,
        encoding='utf-8'
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(formatter)

    security_handler = logging.handlers.RotatingFileHandler(
        log_dir / 'security.log',
        maxBytes=max_log_size,
        backupCount=backup_count,
        encoding='utf-8'
    )
    security_handler.setLevel(logging.INFO)
    security_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Replace handlers from a previous create_app() call
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)
    root_logger.addHandler(error_handler)

    security_logger_ = logging.getLogger('security')
    for handler in security_logger_.handlers[:]:
        security_logger_.removeHandler(handler)
        handler.close()
    security_logger_.addHandler(security_handler)
    security_logger_.setLevel(logging.INFO)

    logging.getLogger('workflow').setLevel(logging.INFO)
    logging.getLogger('database').setLevel(logging.INFO)
    logging.getLogger('api').setLevel(logging.INFO)

    app.logger.setLevel(log_level)

    app.logger.info("=" * 50)
    app.logger.info("SMART ATTENDANCE STARTUP")
    app.logger.info(f"Timestamp: {datetime.now().isoformat()}")
    app.logger.info(f"Log Level: {logging.getLevelName(log_level)}")
    app.logger.info(f"Log Directory: {log_dir.absolute()}")
    app.logger.info("=" * 50)


class SecurityLogger:
    """Logger for identity and access events"""

    def __init__(self):
        self.logger = logging.getLogger('security')

    def log_sign_in(self, user_id, method, ip_address=None):
        """Log a resolved identity"""
        ip_info = f", IP: {ip_address}" if ip_address else ""
        self.logger.info(f"SIGN IN - User: {user_id}, Method: {method}{ip_info}")

    def log_sign_in_failed(self, method, error_message, ip_address=None):
        ip_info = f", IP: {ip_address}" if ip_address else ""
        self.logger.warning(f"SIGN IN FAILED - Method: {method}, Error: {error_message}{ip_info}")


class WorkflowLogger:
    """Logger for capture workflow transitions"""

    def __init__(self):
        self.logger = logging.getLogger('workflow')

    def log_transition(self, action, from_phase, to_phase):
        self.logger.info(f"Transition - {action}: {from_phase} -> {to_phase}")

    def log_rejected(self, action, phase):
        self.logger.warning(f"Rejected - {action} not allowed in {phase}")

    def log_face_check(self, face_detected, message):
        self.logger.info(f"Face check - Detected: {face_detected}, Message: {message}")

    def log_attendance_logged(self, name, user_id, record_id):
        self.logger.info(f"Attendance logged - Name: {name}, User: {user_id}, Record: {record_id}")

    def log_failure(self, action, error_message):
        self.logger.error(f"{action} failed - {error_message}")


class DatabaseLogger:
    """Logger for record store operations"""

    def __init__(self):
        self.logger = logging.getLogger('database')

    def log_query(self, query_type, table, duration=None):
        duration_info = f", Duration: {duration:.3f}s" if duration else ""
        self.logger.debug(f"DB Query - Type: {query_type}, Table: {table}{duration_info}")

    def log_error(self, operation, error_message):
        self.logger.error(f"DB Error - Operation: {operation}, Error: {error_message}")


class APILogger:
    """Logger for HTTP requests and outbound API calls"""

    def __init__(self):
        self.logger = logging.getLogger('api')

    def log_request(self, method, endpoint, user_id=None, ip_address=None):
        user_info = f", User: {user_id}" if user_id else ""
        ip_info = f", IP: {ip_address}" if ip_address else ""
        self.logger.info(f"API Request - {method} {endpoint}{user_info}{ip_info}")

    def log_outbound(self, service, status_code, duration=None):
        duration_info = f", Duration: {duration:.3f}s" if duration else ""
        self.logger.info(f"Outbound - {service}, Status: {status_code}{duration_info}")

    def log_error(self, endpoint, error_message, status_code=500):
        self.logger.error(f"API Error - {endpoint}, Status: {status_code}, Error: {error_message}")


security_logger = SecurityLogger()
workflow_logger = WorkflowLogger()
database_logger = DatabaseLogger()
api_logger = APILogger()


def get_client_ip(request):
    """Client IP, honouring reverse-proxy headers"""
    if request.headers.get('X-Forwarded-For'):
        return request.headers.get('X-Forwarded-For').split(',')[0].strip()
    elif request.headers.get('X-Real-IP'):
        return request.headers.get('X-Real-IP')
    else:
        return request.remote_addr


def log_request_info(request, user_id=None):
    """Log one incoming API request"""
    ip_address = get_client_ip(request)
    api_logger.log_request(
        request.method,
        request.endpoint,
        user_id=user_id,
        ip_address=ip_address
    )
    return ip_address
