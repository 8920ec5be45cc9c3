import io

from smart_attendance.services.gemini_service import ClassificationResult

NO_FACE = ClassificationResult(status='failure', face_detected=False, message='No face detected')


def post(client, path, **kwargs):
    response = client.post(path, **kwargs)
    return response, response.get_json()


def test_index_and_history_pages_render(client):
    assert client.get('/').status_code == 200
    assert client.get('/history').status_code == 200


def test_identity_is_anonymous_and_stable(client):
    first = client.get('/api/identity').get_json()
    second = client.get('/api/identity').get_json()

    assert first['success'] is True
    assert first['user_id'].startswith('anon-')
    assert first['display'] == first['user_id']
    assert second['user_id'] == first['user_id']


def test_full_capture_cycle_logs_one_record(client, sqlite_db):
    identity = client.get('/api/identity').get_json()['user_id']

    _, body = post(client, '/api/capture/camera/start')
    assert body['state']['phase'] == 'camera_active'
    _, body = post(client, '/api/capture/capture')
    assert body['state']['phase'] == 'captured'
    _, body = post(client, '/api/capture/process')
    assert body['state']['phase'] == 'ready_for_name'

    response, body = post(client, '/api/capture/voice')

    assert response.status_code == 200
    assert body['success'] is True
    assert body['state']['phase'] == 'captured'
    assert body['state']['message'] == 'Attendance logged successfully for Alice!'
    records = sqlite_db.list_records()
    assert len(records) == 1
    assert records[0]['personName'] == 'Alice'
    assert records[0]['loggedByUserId'] == identity


def test_voice_upload_is_passed_to_recognizer(client, recognizer):
    post(client, '/api/capture/camera/start')
    post(client, '/api/capture/capture')
    post(client, '/api/capture/process')

    post(
        client,
        '/api/capture/voice',
        data={'audio': (io.BytesIO(b'RIFF-clip'), 'name.wav')},
        content_type='multipart/form-data',
    )

    assert recognizer.calls == [b'RIFF-clip']


def test_illegal_transition_is_409(client):
    response, body = post(client, '/api/capture/process')

    assert response.status_code == 409
    assert body['success'] is False
    assert body['state']['phase'] == 'idle'


def test_no_face_keeps_captured(client, classifier):
    classifier.results = [NO_FACE]
    post(client, '/api/capture/camera/start')
    post(client, '/api/capture/capture')

    _, body = post(client, '/api/capture/process')

    assert body['state']['phase'] == 'captured'
    assert body['state']['message'] == 'AI response: No face detected. Please retake image.'


def test_retake_resets_session(client):
    post(client, '/api/capture/camera/start')
    post(client, '/api/capture/capture')

    _, body = post(client, '/api/capture/retake')

    assert body['state']['phase'] == 'camera_active'
    assert body['state']['capturedImage'] is None
    assert body['state']['message'] == 'Ready for new attendance capture.'


def test_state_endpoint(client):
    body = client.get('/api/capture/state').get_json()

    assert body['success'] is True
    assert body['state']['allowedActions'] == ['start_camera', 'retake']


def test_records_limit_is_clamped(client, sqlite_db, ready_record):
    for _ in range(3):
        ready_record()

    body = client.get('/api/attendance/records?limit=2').get_json()
    assert body['count'] == 2
    assert body['limit'] == 2

    body = client.get('/api/attendance/records?limit=5000&include_image=false').get_json()
    assert body['limit'] == 200
    assert body['count'] == 3
    assert 'image' not in body['records'][0]


def test_summary_uses_recent_records(client, classifier, ready_record):
    ready_record('Alice')

    response = client.post('/api/attendance/summary', json={})

    assert response.status_code == 200
    assert response.get_json()['summary'] == classifier.summary
    assert classifier.summary_records[0]['personName'] == 'Alice'


def test_summary_without_records_is_400(client):
    response = client.post('/api/attendance/summary', json={})

    assert response.status_code == 400


def test_summary_gemini_failure_is_502(client, classifier, ready_record):
    ready_record('Alice')
    classifier.summary_error = 'Gemini API Error: 503 Service Unavailable. Details: overloaded'

    response = client.post('/api/attendance/summary', json={})

    assert response.status_code == 502
    assert 'overloaded' in response.get_json()['message']


def test_welcome_message(client):
    response = client.post('/api/attendance/welcome', json={'name': ' Alice '})

    assert response.get_json() == {'success': True, 'message': 'Welcome, Alice!'}


def test_welcome_requires_name(client):
    response = client.post('/api/attendance/welcome', json={})

    assert response.status_code == 400


def test_system_status(client):
    body = client.get('/api/system/status').get_json()

    assert body['success'] is True
    assert body['gemini_configured'] is True
    assert body['gemini_model'] == 'gemini-test'
    assert body['firebase_initialized'] is False
    assert body['record_store'] == 'AttendanceDatabase'
    assert body['phase'] == 'idle'


def test_unknown_api_path_is_json_404(client):
    response = client.get('/api/does-not-exist')

    assert response.status_code == 404
    assert response.get_json()['success'] is False


def test_failed_sign_in_posts_notice(app, client):
    services = app.extensions['smart_attendance']
    services['identity'].initial_token = 'bad-token'

    body = client.get('/api/identity').get_json()

    assert body['success'] is False
    assert body['display'] == 'Authenticating...'
    assert services['notices'].current().text == 'Failed to authenticate. Please try again.'


def test_auth_failure_notice_is_posted_once_per_session(app, client):
    services = app.extensions['smart_attendance']
    services['identity'].initial_token = 'bad-token'
    events = services['broadcaster'].add_client()

    client.get('/api/identity')
    services['notices'].clear()
    client.get('/api/capture/state')

    assert services['notices'].current() is None
    messages = []
    while not events.empty():
        event = events.get_nowait()
        if event['type'] == 'system_message':
            messages.append(event['data'])
    assert messages == [{'message': 'Failed to authenticate. Please try again.', 'level': 'error'}]


def test_video_feed_streams_jpeg_frames_while_camera_active(client, camera):
    post(client, '/api/capture/camera/start')
    camera.frame_budget = 2

    response = client.get('/api/capture/video_feed')
    body = response.get_data()

    assert response.status_code == 200
    assert response.mimetype == 'multipart/x-mixed-replace'
    assert body.count(b'--frame\r\nContent-Type: image/jpeg\r\n\r\n\xff\xd8') == 2


def test_video_feed_requires_active_camera(client):
    response = client.get('/api/capture/video_feed')

    assert response.status_code == 409
    assert response.get_json()['success'] is False
