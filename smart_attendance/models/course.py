"""Course and section reference models."""
from smart_attendance import db
from smart_attendance.models.base import BaseModel

class Course(BaseModel):
    """A course offered by a department."""

    __tablename__ = 'courses'

    code = db.Column(db.String(20), unique=True, nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)

    sections = db.relationship('Section', backref='course', lazy='dynamic')

    def __repr__(self) -> str:
        return f'<Course {self.code}>'

class Section(BaseModel):
    """Class roster grouping that scopes who may attend a session."""

    __tablename__ = 'sections'

    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False, index=True)
    section_code = db.Column(db.String(20), nullable=False)

    __table_args__ = (
        db.UniqueConstraint('course_id', 'section_code', name='uq_section_course_code'),
    )

    def __repr__(self) -> str:
        return f'<Section {self.section_code}>'
