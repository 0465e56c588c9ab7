"""Section enrollment model."""
from enum import Enum
from smart_attendance import db
from smart_attendance.models.base import BaseModel

class EnrollmentStatus(Enum):
    ACTIVE = 'active'
    INACTIVE = 'inactive'

class SectionEnrollment(BaseModel):
    """A student's membership of a section.

    Inactive history rows may repeat per (student, section). At most one row
    may be active; the enrollment gate reports a duplicate as inconsistent.
    """

    __tablename__ = 'section_enrollments'

    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    section_id = db.Column(db.Integer, db.ForeignKey('sections.id'), nullable=False, index=True)
    status = db.Column(db.Enum(EnrollmentStatus), nullable=False, default=EnrollmentStatus.ACTIVE, index=True)
    enrollment_date = db.Column(db.Date, nullable=True)

    student = db.relationship('User')
    section = db.relationship('Section')

    def __repr__(self) -> str:
        return f'<SectionEnrollment {self.student_id}-{self.section_id}>'
