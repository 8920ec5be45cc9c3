import json
from unittest.mock import MagicMock

import pytest
import requests

from smart_attendance.services.gemini_service import GeminiError, GeminiService

IMAGE = 'data:image/png;base64,iVBORw0KGgo='


def make_response(status_code=200, body=None, reason='OK', text=''):
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.reason = reason
    response.text = text
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


def candidate(text):
    return {'candidates': [{'content': {'parts': [{'text': text}]}}]}


def make_service(response=None, error=None, api_key='test-key'):
    session = MagicMock()
    if error is not None:
        session.post.side_effect = error
    else:
        session.post.return_value = response
    return GeminiService(api_key=api_key, model='gemini-test', session=session), session


def test_face_detected():
    body = candidate(json.dumps({'status': 'success', 'message': 'Face detected'}))
    service, session = make_service(make_response(body=body))

    result = service.detect_face(IMAGE)

    assert result.face_detected is True
    assert result.is_positive is True
    args, kwargs = session.post.call_args
    assert args[0].endswith('/gemini-test:generateContent')
    assert kwargs['params'] == {'key': 'test-key'}
    parts = kwargs['json']['contents'][0]['parts']
    assert parts[1]['inlineData'] == {'mimeType': 'image/png', 'data': 'iVBORw0KGgo='}
    assert kwargs['json']['generationConfig']['responseMimeType'] == 'application/json'
    assert kwargs['timeout'] == service.timeout


def test_no_face():
    body = candidate(json.dumps({'status': 'failure', 'message': 'No face detected'}))
    service, _ = make_service(make_response(body=body))

    result = service.detect_face(IMAGE)

    assert result.face_detected is False
    assert result.message == 'No face detected'


def test_success_status_with_other_message_is_not_a_face():
    body = candidate(json.dumps({'status': 'success', 'message': 'A face is visible'}))
    service, _ = make_service(make_response(body=body))

    assert service.detect_face(IMAGE).is_positive is False


def test_missing_api_key_short_circuits():
    service, session = make_service(make_response(body={}), api_key='')

    result = service.detect_face(IMAGE)

    assert result.status == 'error'
    assert result.message == 'Gemini API Key is not configured.'
    session.post.assert_not_called()


def test_http_error_message():
    body = {'error': {'message': 'API key not valid'}}
    service, _ = make_service(make_response(400, body=body, reason='Bad Request'))

    result = service.detect_face(IMAGE)

    assert result.status == 'error'
    assert result.message == 'Gemini API Error: 400 Bad Request. Details: API key not valid'


def test_malformed_body():
    service, _ = make_service(make_response(body={'candidates': []}))

    result = service.detect_face(IMAGE)

    assert result.message == 'AI processing failed: Invalid response structure.'


def test_network_error():
    service, _ = make_service(error=requests.exceptions.ConnectionError('unreachable'))

    result = service.detect_face(IMAGE)

    assert result.status == 'error'
    assert result.message == 'AI processing failed: unreachable.'


def test_attendance_summary_prompt_lists_records():
    service, session = make_service(make_response(body=candidate('Two people attended.')))
    records = [
        {'personName': 'Alice', 'timestamp': '2024-05-01 09:30:00'},
        {'personName': 'Bob', 'timestamp': None},
    ]

    summary = service.generate_attendance_summary(records)

    assert summary == 'Two people attended.'
    prompt = session.post.call_args.kwargs['json']['contents'][0]['parts'][0]['text']
    assert prompt.startswith('Given the following attendance records:')
    assert '- Alice on 2024-05-01 at 09:30:00' in prompt
    assert '- Bob on Unknown Date at Unknown Time' in prompt


def test_welcome_message():
    service, _ = make_service(make_response(body=candidate('Welcome aboard, Alice!')))

    assert service.generate_welcome_message('Alice') == 'Welcome aboard, Alice!'


def test_text_generation_failures_raise():
    service, _ = make_service(make_response(500, body={}, reason='Server Error'))

    with pytest.raises(GeminiError, match='500 Server Error'):
        service.generate_welcome_message('Alice')

    unconfigured, _ = make_service(api_key='')
    with pytest.raises(GeminiError, match='not configured'):
        unconfigured.generate_attendance_summary([])
