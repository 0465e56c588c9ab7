"""Test the HTTP endpoints."""
import json
from datetime import timedelta
import pytest
from sqlalchemy.exc import OperationalError
from smart_attendance.models.user import UserRole
from smart_attendance.repositories import SessionRepository, store_call
from smart_attendance.services.session_service import SessionLifecycle
from smart_attendance.utils.helpers import utcnow

@pytest.fixture
def live_session(course, section):
    """Active session that started five minutes ago."""
    start = utcnow().replace(microsecond=0) - timedelta(minutes=5)
    lifecycle = SessionLifecycle()
    attendance_session = lifecycle.create(
        course_id=course.id,
        section_id=section.id,
        session_name='Live lecture',
        start_time=start,
        end_time=start + timedelta(minutes=90)
    )
    return lifecycle.start(attendance_session.id, now=start)

@pytest.fixture
def lecturer_headers(lecturer, auth_headers):
    return auth_headers(lecturer)

@pytest.fixture
def student_headers(student, auth_headers):
    return auth_headers(student)

def payload_of(client, session_id, headers):
    response = client.get(f'/api/sessions/{session_id}/qr', headers=headers)
    return json.loads(response.data)['data']['payload']

def test_health_check(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert json.loads(response.data)['status'] == 'healthy'

def test_swagger_spec(client):
    response = client.get('/api/swagger.json')
    assert response.status_code == 200
    assert '/api/attendance/checkin' in json.loads(response.data)['paths']

def test_requires_token(client, live_session):
    response = client.get(f'/api/sessions/{live_session.id}')
    assert response.status_code == 401
    assert json.loads(response.data)['message'] == 'Authorization token required'

# =================== SESSIONS ===================

def test_create_session(client, course, section, lecturer_headers):
    start = utcnow().replace(microsecond=0) + timedelta(hours=1)
    response = client.post('/api/sessions/', headers=lecturer_headers, json={
        'course_id': course.id,
        'section_id': section.id,
        'session_name': 'Week 3',
        'start_time': start.isoformat() + 'Z',
        'end_time': (start + timedelta(minutes=90)).isoformat() + 'Z',
        'location': 'Hall A101'
    })

    assert response.status_code == 201
    data = json.loads(response.data)
    assert data['error'] == False
    assert data['data']['status'] == 'scheduled'
    assert data['data']['location'] == 'Hall A101'

def test_create_session_validation(client, course, section, lecturer_headers):
    response = client.post('/api/sessions/', headers=lecturer_headers, json={})
    assert response.status_code == 400

    response = client.post('/api/sessions/', headers=lecturer_headers, json={
        'course_id': course.id,
        'section_id': section.id,
        'session_name': 'Week 3',
        'start_time': 'tomorrow',
        'end_time': 'later'
    })
    assert response.status_code == 400
    assert 'ISO datetime' in json.loads(response.data)['message']

@pytest.mark.parametrize('field, value', [
    ('session_name', 123),
    ('location', 42),
    ('location', ['Hall A101']),
])
def test_create_session_rejects_non_string_fields(client, course, section, lecturer_headers, field, value):
    start = utcnow().replace(microsecond=0) + timedelta(hours=1)
    body = {
        'course_id': course.id,
        'section_id': section.id,
        'session_name': 'Week 3',
        'start_time': start.isoformat() + 'Z',
        'end_time': (start + timedelta(minutes=90)).isoformat() + 'Z'
    }
    body[field] = value

    response = client.post('/api/sessions/', headers=lecturer_headers, json=body)

    assert response.status_code == 400
    assert 'must be a string' in json.loads(response.data)['message']

def test_students_cannot_create_sessions(client, course, section, student_headers):
    response = client.post('/api/sessions/', headers=student_headers, json={'course_id': course.id})
    assert response.status_code == 403

def test_token_hidden_from_students(client, live_session, student_headers, lecturer_headers):
    student_view = json.loads(client.get(f'/api/sessions/{live_session.id}', headers=student_headers).data)
    lecturer_view = json.loads(client.get(f'/api/sessions/{live_session.id}', headers=lecturer_headers).data)

    assert 'qr_token' not in student_view['data']
    assert lecturer_view['data']['qr_token'] == live_session.qr_token

def test_unknown_session_is_404(client, lecturer_headers):
    response = client.get('/api/sessions/999', headers=lecturer_headers)
    data = json.loads(response.data)

    assert response.status_code == 404
    assert data['code'] == 'session_not_found'
    assert data['retryable'] == False

def test_start_and_close_flow(client, course, section, lecturer_headers):
    start = utcnow().replace(microsecond=0) + timedelta(hours=2)
    attendance_session = SessionLifecycle().create(
        course_id=course.id, section_id=section.id, session_name='Flow',
        start_time=start, end_time=start + timedelta(minutes=60)
    )

    response = client.post(f'/api/sessions/{attendance_session.id}/start', headers=lecturer_headers)
    assert response.status_code == 200
    assert json.loads(response.data)['data']['qr_token']

    response = client.post(f'/api/sessions/{attendance_session.id}/close', headers=lecturer_headers)
    data = json.loads(response.data)
    assert response.status_code == 200
    assert data['data']['session']['status'] == 'completed'
    assert data['data']['summary']['total'] == 0

    response = client.post(f'/api/sessions/{attendance_session.id}/close', headers=lecturer_headers)
    data = json.loads(response.data)
    assert response.status_code == 409
    assert data['code'] == 'invalid_transition'
    assert data['details']['current'] == 'completed'

def test_qr_endpoint(client, live_session, lecturer_headers):
    response = client.get(f'/api/sessions/{live_session.id}/qr', headers=lecturer_headers)
    data = json.loads(response.data)['data']

    assert response.status_code == 200
    assert data['payload'].startswith(f'https://attend.test/attend/{live_session.id}?token=')
    assert data['qr_image'].startswith('data:image/png;base64,')

def test_extend_endpoint(client, live_session, lecturer_headers):
    end = live_session.end_time
    response = client.post(f'/api/sessions/{live_session.id}/extend', headers=lecturer_headers, json={'minutes': 15})
    assert response.status_code == 200
    assert json.loads(response.data)['data']['end_time'] == (end + timedelta(minutes=15)).isoformat()

    response = client.post(f'/api/sessions/{live_session.id}/extend', headers=lecturer_headers, json={'minutes': 500})
    assert response.status_code == 400

def test_rotate_token_endpoint(client, live_session, lecturer_headers, student_headers):
    old_payload = payload_of(client, live_session.id, lecturer_headers)
    response = client.post(f'/api/sessions/{live_session.id}/rotate-token', headers=lecturer_headers)
    assert response.status_code == 200

    response = client.post('/api/attendance/checkin', headers=student_headers, json={'qr_data': old_payload})
    assert response.status_code == 400
    assert json.loads(response.data)['code'] == 'invalid_or_expired_token'

def test_countdown(client, live_session, student_headers):
    response = client.get(f'/api/sessions/{live_session.id}/countdown', headers=student_headers)
    data = json.loads(response.data)['data']

    assert response.status_code == 200
    assert data['status'] == 'active'
    assert 0 < data['seconds_remaining'] <= 85 * 60

def test_delete_requires_admin(client, live_session, lecturer_headers, make_user, auth_headers):
    response = client.delete(f'/api/sessions/{live_session.id}', headers=lecturer_headers)
    assert response.status_code == 403

    admin = make_user('Admin', role=UserRole.ADMIN)
    response = client.delete(f'/api/sessions/{live_session.id}', headers=auth_headers(admin))
    assert response.status_code == 200
    assert client.get(f'/api/sessions/{live_session.id}', headers=auth_headers(admin)).status_code == 404

def test_store_outage_is_503(client, live_session, lecturer_headers, monkeypatch):
    @store_call('read session')
    def unavailable(self, session_id):
        raise OperationalError('SELECT', {}, Exception('server closed the connection'))

    monkeypatch.setattr(SessionRepository, 'get', unavailable)
    response = client.get(f'/api/sessions/{live_session.id}', headers=lecturer_headers)
    data = json.loads(response.data)

    assert response.status_code == 503
    assert data['code'] == 'data_unavailable'
    assert data['retryable'] == True

# =================== CHECK-IN ===================

def test_check_in_by_qr_data(client, live_session, lecturer_headers, student_headers):
    qr_data = payload_of(client, live_session.id, lecturer_headers)

    response = client.post('/api/attendance/checkin', headers=student_headers, json={'qr_data': qr_data})
    data = json.loads(response.data)
    assert response.status_code == 201
    assert data['data']['status'] == 'present'
    assert 'notice' not in data

    response = client.post('/api/attendance/checkin', headers=student_headers, json={'qr_data': qr_data})
    data = json.loads(response.data)
    assert response.status_code == 200
    assert data['notice'] == 'already_marked'

def test_check_in_by_session_and_token(client, live_session, student_headers):
    response = client.post('/api/attendance/checkin', headers=student_headers, json={
        'session_id': live_session.id,
        'token': live_session.qr_token
    })
    assert response.status_code == 201

def test_check_in_requires_input(client, student_headers):
    response = client.post('/api/attendance/checkin', headers=student_headers, json={})
    assert response.status_code == 400

def test_check_in_rejects_numeric_token(client, live_session, student_headers):
    response = client.post('/api/attendance/checkin', headers=student_headers, json={
        'session_id': live_session.id,
        'token': 12345
    })
    assert response.status_code == 400
    assert 'token must be a string' in json.loads(response.data)['message']

def test_check_in_rejects_foreign_qr(client, student_headers):
    response = client.post('/api/attendance/checkin', headers=student_headers, json={'qr_data': 'https://example.com/pay/1'})
    assert response.status_code == 400

def test_lecturers_cannot_check_in(client, live_session, lecturer_headers):
    response = client.post('/api/attendance/checkin', headers=lecturer_headers, json={
        'session_id': live_session.id,
        'token': live_session.qr_token
    })
    assert response.status_code == 403

def test_not_enrolled_check_in(client, live_session, make_user, auth_headers):
    outsider = make_user('Outsider')
    response = client.post('/api/attendance/checkin', headers=auth_headers(outsider), json={
        'session_id': live_session.id,
        'token': live_session.qr_token
    })
    data = json.loads(response.data)

    assert response.status_code == 403
    assert data['code'] == 'not_enrolled'
    assert data['details']['required_section_code'] == 'A'

def test_locked_session_check_in(client, live_session, lecturer_headers, student_headers):
    assert client.post(f'/api/sessions/{live_session.id}/lock', headers=lecturer_headers).status_code == 200

    response = client.post('/api/attendance/checkin', headers=student_headers, json={
        'session_id': live_session.id,
        'token': live_session.qr_token
    })
    assert response.status_code == 409
    assert json.loads(response.data)['code'] == 'session_not_open'

    assert client.post(f'/api/sessions/{live_session.id}/unlock', headers=lecturer_headers).status_code == 200

# =================== LECTURER ACTIONS ===================

def test_manual_mark(client, live_session, student, lecturer_headers):
    response = client.post(
        f'/api/attendance/sessions/{live_session.id}/mark',
        headers=lecturer_headers,
        json={'student_id': student.id}
    )
    data = json.loads(response.data)
    assert response.status_code == 201
    assert data['data']['method'] == 'manual'

def test_bulk_override(client, live_session, student, lecturer, lecturer_headers):
    response = client.patch(
        f'/api/attendance/sessions/{live_session.id}/records',
        headers=lecturer_headers,
        json={'student_ids': [student.id], 'status': 'late'}
    )
    data = json.loads(response.data)

    assert response.status_code == 200
    assert data['data']['updated'][0]['status'] == 'late'
    assert data['data']['updated'][0]['updated_by'] == lecturer.id

    response = client.patch(
        f'/api/attendance/sessions/{live_session.id}/records',
        headers=lecturer_headers,
        json={'student_ids': [], 'status': 'late'}
    )
    assert response.status_code == 400

def test_my_records(client, live_session, student_headers):
    client.post('/api/attendance/checkin', headers=student_headers, json={
        'session_id': live_session.id,
        'token': live_session.qr_token
    })

    response = client.get('/api/attendance/my-records', headers=student_headers)
    data = json.loads(response.data)
    assert response.status_code == 200
    assert data['total'] == 1
    assert data['data'][0]['session_name'] == 'Live lecture'

# =================== REPORTS ===================

def test_reports(client, live_session, course, student, make_user, section, enroll, student_headers, lecturer_headers):
    enroll(make_user('Absentee'), section)
    client.post('/api/attendance/checkin', headers=student_headers, json={
        'session_id': live_session.id,
        'token': live_session.qr_token
    })

    summary = json.loads(client.get(f'/api/reports/sessions/{live_session.id}/summary', headers=lecturer_headers).data)
    assert summary['data']['live']['total'] == 2
    assert summary['data']['live']['attendance_rate'] == 50
    assert summary['data']['final'] is None

    export = json.loads(client.get(f'/api/reports/sessions/{live_session.id}/export', headers=lecturer_headers).data)
    assert export['total'] == 2
    assert {row['status'] for row in export['data']} == {'present', 'absent'}

    course_summary = json.loads(client.get(f'/api/reports/courses/{course.id}/summary', headers=lecturer_headers).data)
    assert course_summary['data']['sessions'] == 1
    assert course_summary['data']['present'] == 1

def test_reports_forbidden_for_students(client, live_session, student_headers):
    response = client.get(f'/api/reports/sessions/{live_session.id}/summary', headers=student_headers)
    assert response.status_code == 403
