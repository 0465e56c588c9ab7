"""Shared repository plumbing."""
from functools import wraps
from sqlalchemy.exc import DBAPIError, OperationalError, TimeoutError as PoolTimeoutError
from smart_attendance import db
from smart_attendance.utils.errors import DataUnavailable

def store_call(operation: str):
    """Translate connectivity failures of the data store into DataUnavailable.

    Constraint violations and programming errors pass through unchanged.
    """
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except (OperationalError, PoolTimeoutError) as e:
                db.session.rollback()
                raise DataUnavailable(operation, str(getattr(e, 'orig', e))) from e
            except DBAPIError as e:
                if e.connection_invalidated:
                    db.session.rollback()
                    raise DataUnavailable(operation, str(e.orig)) from e
                raise
        return wrapper
    return decorator

class Repository:
    """Base repository bound to the Flask-SQLAlchemy session."""

    @property
    def session(self):
        return db.session

    @store_call('commit')
    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
