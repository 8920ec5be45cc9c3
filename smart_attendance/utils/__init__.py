"""
Utils package
"""
from .data_utils import (
    parse_datetime_safe,
    get_request_data,
    parse_bool,
    parse_limit,
    serialize_record,
)
from .image_utils import (
    frame_to_data_uri,
    split_data_uri,
    frame_to_jpeg,
)

__all__ = [
    'parse_datetime_safe',
    'get_request_data',
    'parse_bool',
    'parse_limit',
    'serialize_record',
    'frame_to_data_uri',
    'split_data_uri',
    'frame_to_jpeg',
]
