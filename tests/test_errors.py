"""
Tests for database error translation and argument validation.
"""

import sqlite3

import pytest
from sqlalchemy.exc import IntegrityError, NoResultFound, OperationalError

from poolkeeper.errors import (
    ConflictError,
    DatabaseError,
    NotFoundError,
    ValidationError,
    translate_db_error,
    validate_required,
)


class FakePgError(Exception):
    """Stands in for a psycopg error carrying a SQLSTATE"""

    def __init__(self, message, sqlstate):
        super().__init__(message)
        self.sqlstate = sqlstate


def integrity_error(orig):
    return IntegrityError("INSERT INTO grades ...", {}, orig)


class TestTranslateDbError:
    def test_sqlite_unique_violation_names_the_column(self):
        exc = integrity_error(sqlite3.IntegrityError("UNIQUE constraint failed: grades.pick_id"))

        error = translate_db_error(exc)

        assert isinstance(error, ConflictError)
        assert error.field == "pick_id"
        assert error.status_code == 409

    def test_postgres_unique_violation(self):
        exc = integrity_error(FakePgError("duplicate key value", "23505"))

        assert isinstance(translate_db_error(exc), ConflictError)

    def test_foreign_key_violation(self):
        exc = integrity_error(FakePgError("violates foreign key constraint", "23503"))

        error = translate_db_error(exc)

        assert isinstance(error, DatabaseError)
        assert error.code == "23503"
        assert error.original_error is exc

    def test_no_result_is_not_found(self):
        assert isinstance(translate_db_error(NoResultFound()), NotFoundError)

    def test_anything_else_is_database_error(self):
        exc = OperationalError("SELECT 1", {}, sqlite3.OperationalError("database is locked"))

        error = translate_db_error(exc)

        assert isinstance(error, DatabaseError)
        assert error.to_dict() == {"error": "Database operation failed", "kind": "database"}

    def test_service_errors_pass_through(self):
        original = ValidationError("bad", field="x")

        assert translate_db_error(original) is original


class TestValidateRequired:
    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_missing_values_rejected(self, value):
        with pytest.raises(ValidationError) as exc:
            validate_required(value, "season")

        assert exc.value.field == "season"
        assert exc.value.to_dict()["field"] == "season"

    @pytest.mark.parametrize("value", [0, 2024, "x"])
    def test_present_values_accepted(self, value):
        validate_required(value, "season")
