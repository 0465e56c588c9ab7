"""Shared fixtures for the attendance tests."""
from datetime import datetime, timedelta
import pytest
from flask_jwt_extended import create_access_token
from smart_attendance import create_app, db
from smart_attendance.models.course import Course, Section
from smart_attendance.models.enrollment import EnrollmentStatus, SectionEnrollment
from smart_attendance.models.user import User, UserRole
from smart_attendance.services.session_service import SessionLifecycle

# Monday 09:00 UTC
T0 = datetime(2026, 3, 2, 9, 0)

def at(minutes):
    """T0 shifted by a number of minutes."""
    return T0 + timedelta(minutes=minutes)

@pytest.fixture
def app():
    """Create test app."""
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()

@pytest.fixture
def course(app):
    course = Course(code='CS101', name='Introduction to Programming')
    course.save()
    return course

@pytest.fixture
def section(course):
    section = Section(course_id=course.id, section_code='A')
    section.save()
    return section

@pytest.fixture
def other_section(course):
    section = Section(course_id=course.id, section_code='B')
    section.save()
    return section

@pytest.fixture
def make_user(app):
    counter = {'n': 0}

    def _make_user(name=None, role=UserRole.STUDENT):
        counter['n'] += 1
        n = counter['n']
        user = User(
            email=f'user{n}@university.edu',
            name=name or f'User {n}',
            matric_number=f'M{n:04d}' if role == UserRole.STUDENT else None,
            role=role
        )
        return user.save()
    return _make_user

@pytest.fixture
def enroll(app):
    def _enroll(student, section, status=EnrollmentStatus.ACTIVE):
        enrollment = SectionEnrollment(student_id=student.id, section_id=section.id, status=status)
        return enrollment.save()
    return _enroll

@pytest.fixture
def lecturer(make_user):
    return make_user('Dr. Lecturer', role=UserRole.LECTURER)

@pytest.fixture
def student(make_user, section, enroll):
    """A student actively enrolled in ``section``."""
    user = make_user('Alice')
    enroll(user, section)
    return user

@pytest.fixture
def make_session(course, section):
    def _make_session(start=T0, minutes=90, target_section=None, name='Lecture 1'):
        return SessionLifecycle().create(
            course_id=course.id,
            section_id=(target_section or section).id,
            session_name=name,
            start_time=start,
            end_time=start + timedelta(minutes=minutes)
        )
    return _make_session

@pytest.fixture
def active_session(make_session):
    """A 09:00-10:30 session started at 09:00."""
    attendance_session = make_session()
    return SessionLifecycle().start(attendance_session.id, now=T0)

@pytest.fixture
def auth_headers(app):
    def _auth_headers(user):
        token = create_access_token(
            identity=str(user.id),
            additional_claims={'role': user.role.value}
        )
        return {'Authorization': f'Bearer {token}'}
    return _auth_headers
