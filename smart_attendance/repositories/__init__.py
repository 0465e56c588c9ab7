"""Per-entity data access used by the attendance services."""
from .base import Repository, store_call
from .sessions import SessionRepository
from .records import RecordRepository, SummaryRepository
from .enrollments import EnrollmentRepository

__all__ = [
    'Repository', 'store_call',
    'SessionRepository', 'RecordRepository', 'SummaryRepository',
    'EnrollmentRepository'
]
