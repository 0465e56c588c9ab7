"""Read-only access to section enrollments."""
from typing import List, Tuple
from smart_attendance.models.course import Section
from smart_attendance.models.enrollment import EnrollmentStatus, SectionEnrollment
from smart_attendance.models.user import User
from smart_attendance.repositories.base import Repository, store_call

class EnrollmentRepository(Repository):

    @store_call('read enrollments')
    def count_active(self, student_id: int, section_id: int) -> int:
        return SectionEnrollment.query.filter_by(
            student_id=student_id,
            section_id=section_id,
            status=EnrollmentStatus.ACTIVE
        ).count()

    @store_call('read enrollments')
    def active_sections(self, student_id: int) -> List[Tuple[int, str]]:
        """(section id, section code) for each active enrollment of a student."""
        rows = self.session.query(Section.id, Section.section_code).join(
            SectionEnrollment, SectionEnrollment.section_id == Section.id
        ).filter(
            SectionEnrollment.student_id == student_id,
            SectionEnrollment.status == EnrollmentStatus.ACTIVE
        ).order_by(Section.id).all()
        return [(row.id, row.section_code) for row in rows]

    @store_call('read enrollments')
    def roster(self, section_id: int) -> List[User]:
        """Distinct students with an active enrollment in the section."""
        return User.query.join(
            SectionEnrollment, SectionEnrollment.student_id == User.id
        ).filter(
            SectionEnrollment.section_id == section_id,
            SectionEnrollment.status == EnrollmentStatus.ACTIVE
        ).distinct().order_by(User.name, User.id).all()

    @store_call('read section')
    def section(self, section_id: int):
        return self.session.get(Section, section_id)
