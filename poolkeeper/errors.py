"""
Error taxonomy for the grading, override and standings services.

Every error carries a stable ``kind`` plus a human readable message. Database
errors raised by SQLAlchemy are translated into the same taxonomy by
``translate_db_error`` so callers only ever handle ``PoolKeeperError``.
"""

from sqlalchemy.exc import IntegrityError, NoResultFound
from sqlalchemy.orm.exc import StaleDataError

# SQLSTATE codes (PostgreSQL) for the constraint violations we distinguish
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


class PoolKeeperError(Exception):
    """Base class for all service errors"""

    kind = "error"
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"error": self.message, "kind": self.kind}


class NotFoundError(PoolKeeperError):
    kind = "not_found"
    status_code = 404

    def __init__(self, message, resource=None):
        super().__init__(message)
        self.resource = resource


class ValidationError(PoolKeeperError):
    kind = "validation"
    status_code = 400

    def __init__(self, message, field=None):
        super().__init__(message)
        self.field = field

    def to_dict(self):
        data = super().to_dict()
        if self.field:
            data["field"] = self.field
        return data


class ConflictError(PoolKeeperError):
    kind = "conflict"
    status_code = 409

    def __init__(self, message, field=None):
        super().__init__(message)
        self.field = field

    def to_dict(self):
        data = super().to_dict()
        if self.field:
            data["field"] = self.field
        return data


class DatabaseError(PoolKeeperError):
    kind = "database"
    status_code = 500

    def __init__(self, message, code=None, original_error=None):
        super().__init__(message)
        self.code = code
        self.original_error = original_error


def _driver_code(exc):
    """Extract the SQLSTATE code from the DBAPI exception, if the driver has one"""
    orig = getattr(exc, "orig", None)
    if orig is None:
        return None
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def translate_db_error(exc):
    """
    Map a SQLAlchemy exception onto the service error taxonomy.

    Args:
        exc: Exception raised by SQLAlchemy during a flush, commit or query

    Returns:
        PoolKeeperError: unique violations become ConflictError, missing rows
        become NotFoundError, everything else is a DatabaseError
    """
    if isinstance(exc, PoolKeeperError):
        return exc

    if isinstance(exc, (NoResultFound, StaleDataError)):
        return NotFoundError("Resource not found")

    code = _driver_code(exc)

    if isinstance(exc, IntegrityError):
        message = str(getattr(exc, "orig", exc))
        if code == UNIQUE_VIOLATION or "UNIQUE constraint failed" in message:
            # SQLite reports "UNIQUE constraint failed: grades.pick_id"
            field = None
            if "UNIQUE constraint failed:" in message:
                field = message.split("UNIQUE constraint failed:")[1].strip()
                field = field.split(",")[0].split(".")[-1]
            return ConflictError("Resource already exists", field=field)
        if code == FOREIGN_KEY_VIOLATION or "FOREIGN KEY constraint failed" in message:
            return DatabaseError(
                "Foreign key constraint failed", code=code, original_error=exc
            )

    return DatabaseError("Database operation failed", code=code, original_error=exc)


def validate_required(value, field_name):
    """Raise ValidationError if a required argument is missing or blank"""
    if value is None or (isinstance(value, str) and value.strip() == ""):
        raise ValidationError(f"{field_name} is required", field=field_name)
