"""
Image utilities
Encode camera frames as PNG data URIs and JPEG preview frames
"""
import base64

import cv2

PNG_DATA_URI_PREFIX = 'data:image/png;base64,'


def frame_to_data_uri(frame):
    """Encode a BGR frame as a PNG data URI (the form stored with each record)."""
    if frame is None or getattr(frame, 'size', 0) == 0:
        raise ValueError('Empty frame')
    ok, buffer = cv2.imencode('.png', frame)
    if not ok:
        raise ValueError('Could not encode frame as PNG')
    return PNG_DATA_URI_PREFIX + base64.b64encode(buffer.tobytes()).decode('ascii')


def split_data_uri(data_uri):
    """
    Split ``data:<mime>;base64,<payload>`` into (mime_type, payload).
    A bare base64 string is accepted and reported as image/png.
    """
    if not data_uri:
        raise ValueError('Missing image data')
    if data_uri.startswith('data:') and ',' in data_uri:
        header, payload = data_uri.split(',', 1)
        mime_type = header[len('data:'):].split(';', 1)[0] or 'image/png'
    else:
        mime_type, payload = 'image/png', data_uri
    if not payload:
        raise ValueError('Missing image data')
    return mime_type, payload


def frame_to_jpeg(frame, quality=80):
    """Encode a BGR frame as JPEG bytes for the live preview stream."""
    if frame is None or getattr(frame, 'size', 0) == 0:
        raise ValueError('Empty frame')
    ok, buffer = cv2.imencode('.jpg', frame, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
    if not ok:
        raise ValueError('Could not encode frame as JPEG')
    return buffer.tobytes()
