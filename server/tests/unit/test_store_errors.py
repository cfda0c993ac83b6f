# server/tests/unit/test_store_errors.py
import pytest
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm.exc import StaleDataError

from app.api.errors import error_body, status_for
from app.domain.errors import (
    Conflict,
    EvaluationFailed,
    NotFound,
    StoreTimeout,
    StoreUnavailable,
    ValidationError,
)
from app.infrastructure.persistence.database.errors import store_errors

pytestmark = pytest.mark.unit


class _PgError(Exception):
    def __init__(self, msg, sqlstate=None):
        super().__init__(msg)
        self.sqlstate = sqlstate


@pytest.mark.parametrize(
    "exc,expected",
    [
        (StaleDataError("UPDATE statement on table 'alerts' expected to update 1 row(s); 0 were matched."), Conflict),
        (PoolTimeoutError("QueuePool limit reached"), StoreTimeout),
        (OperationalError("SELECT 1", {}, _PgError("canceling statement", sqlstate="57014")), StoreTimeout),
        (OperationalError("UPDATE", {}, _PgError("database is locked")), StoreTimeout),
        (OperationalError("SELECT 1", {}, _PgError("could not connect to server")), StoreUnavailable),
        (InterfaceError("SELECT 1", {}, _PgError("connection already closed")), StoreUnavailable),
        (IntegrityError("INSERT", {}, _PgError("CHECK constraint failed")), ValidationError),
    ],
)
def test_sqlalchemy_errors_are_translated(exc, expected):
    with pytest.raises(expected) as ei:
        with store_errors():
            raise exc
    assert ei.value.__cause__ is exc


def test_unrelated_errors_pass_through():
    with pytest.raises(KeyError):
        with store_errors():
            raise KeyError("x")


@pytest.mark.parametrize(
    "exc,code",
    [
        (ValidationError("min_value", "must be <= max_value"), 422),
        (NotFound("alert", "a1"), 404),
        (Conflict("retry once"), 409),
        (StoreTimeout("timeout"), 504),
        (StoreUnavailable("down"), 503),
        (EvaluationFailed("s1", "threshold lookup failed"), 503),
    ],
)
def test_http_status_mapping(exc, code):
    assert status_for(exc) == code


def test_error_body_names_field():
    body = error_body(ValidationError("end_time", "must not be before start_time"))
    assert body == {"error": "validation_error", "detail": "must not be before start_time", "field": "end_time"}
