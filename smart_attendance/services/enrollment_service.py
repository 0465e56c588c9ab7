"""Enrollment gate: who may check into a section's sessions."""
from typing import List, Tuple
from flask import current_app
from smart_attendance.models.user import User
from smart_attendance.repositories import EnrollmentRepository
from smart_attendance.utils.errors import InconsistentEnrollment

class EnrollmentGate:
    """Read-only answers about section membership.

    A store failure raises DataUnavailable from the repository, so callers
    never treat an unreachable store as a yes.
    """

    def __init__(self, enrollments: EnrollmentRepository = None):
        self.enrollments = enrollments or EnrollmentRepository()

    def is_enrolled(self, student_id: int, section_id: int) -> bool:
        count = self.enrollments.count_active(student_id, section_id)
        if count > 1:
            current_app.logger.error(
                'Student %s has %s active enrollments in section %s',
                student_id, count, section_id
            )
            raise InconsistentEnrollment(student_id, section_id, count)
        return count == 1

    def active_enrollments(self, student_id: int) -> List[Tuple[int, str]]:
        return self.enrollments.active_sections(student_id)

    def roster(self, section_id: int) -> List[User]:
        return self.enrollments.roster(section_id)

    def section_code(self, section_id: int):
        section = self.enrollments.section(section_id)
        return section.section_code if section else None
