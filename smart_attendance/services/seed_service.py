"""Database seeding service for demo data."""
from datetime import timedelta
from typing import Dict, List
from smart_attendance import db
from smart_attendance.models.attendance_session import AttendanceSession, SessionStatus
from smart_attendance.models.course import Course, Section
from smart_attendance.models.enrollment import EnrollmentStatus, SectionEnrollment
from smart_attendance.models.user import User, UserRole
from smart_attendance.services.session_service import SessionLifecycle
from smart_attendance.utils.helpers import utcnow

class SeedService:
    """Service to seed the database with a small demo course."""

    @staticmethod
    def seed_all() -> Dict:
        """Seed a lecturer, a course with two sections, students and one session."""
        lecturer = SeedService.seed_lecturer()
        course, sections = SeedService.seed_course()
        students = SeedService.seed_students(sections)
        attendance_session = SeedService.seed_session(course, sections[0], lecturer)

        return {
            'course': course.code,
            'students': len(students),
            'session_id': attendance_session.id
        }

    @staticmethod
    def seed_lecturer() -> User:
        lecturer = User.query.filter_by(email='lecturer@university.edu').first()
        if not lecturer:
            lecturer = User(
                email='lecturer@university.edu',
                name='Dr. Ahmed Hassan',
                role=UserRole.LECTURER
            )
            db.session.add(lecturer)
            db.session.commit()
        return lecturer

    @staticmethod
    def seed_course():
        course = Course.query.filter_by(code='CS101').first()
        if not course:
            course = Course(code='CS101', name='Introduction to Programming')
            db.session.add(course)
            db.session.flush()
            for code in ('A', 'B'):
                db.session.add(Section(course_id=course.id, section_code=code))
            db.session.commit()

        sections = Section.query.filter_by(course_id=course.id).order_by(Section.section_code).all()
        return course, sections

    @staticmethod
    def seed_students(sections: List[Section], per_section: int = 10) -> List[User]:
        """Students split evenly over the sections, one active enrollment each."""
        students = []
        for section in sections:
            for number in range(1, per_section + 1):
                matric = f"CS{section.section_code}{number:03d}"
                student = User.query.filter_by(matric_number=matric).first()
                if not student:
                    student = User(
                        email=f"{matric.lower()}@student.university.edu",
                        name=f"Student {section.section_code}{number}",
                        matric_number=matric,
                        role=UserRole.STUDENT
                    )
                    db.session.add(student)
                    db.session.flush()
                    db.session.add(SectionEnrollment(
                        student_id=student.id,
                        section_id=section.id,
                        status=EnrollmentStatus.ACTIVE,
                        enrollment_date=utcnow().date()
                    ))
                students.append(student)

        db.session.commit()
        return students

    @staticmethod
    def seed_session(course: Course, section: Section, lecturer: User):
        """A 90-minute session starting in an hour, unless one is still open."""
        session_name = f'{course.code} Lecture'
        existing = AttendanceSession.query.filter(
            AttendanceSession.section_id == section.id,
            AttendanceSession.session_name == session_name,
            AttendanceSession.status != SessionStatus.COMPLETED
        ).first()
        if existing:
            return existing

        start = utcnow().replace(second=0, microsecond=0) + timedelta(hours=1)
        return SessionLifecycle().create(
            course_id=course.id,
            section_id=section.id,
            session_name=session_name,
            start_time=start,
            end_time=start + timedelta(minutes=90),
            location='Hall A101',
            created_by=lecturer.id
        )
