"""Tests for the error taxonomy."""

import pytest

from procurement.core.errors import (
    ProcurementError,
    UnauthenticatedError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    ConflictError,
    GoneError,
    UnprocessableError,
    InternalError,
)


@pytest.mark.parametrize(
    "error_cls, kind, status_code",
    [
        (UnauthenticatedError, "unauthenticated", 401),
        (ForbiddenError, "forbidden", 403),
        (InvalidInputError, "invalid_input", 400),
        (NotFoundError, "not_found", 404),
        (ConflictError, "conflict", 409),
        (GoneError, "gone", 410),
        (UnprocessableError, "unprocessable", 422),
        (InternalError, "internal", 500),
    ],
)
def test_kinds_and_statuses(error_cls, kind, status_code):
    error = error_cls("boom")

    assert isinstance(error, ProcurementError)
    assert error.kind == kind
    assert error.status_code == status_code
    assert error.to_dict() == {"error": kind, "detail": "boom"}


def test_details_included_when_present():
    error = ConflictError("dup", [{"field": "code", "message": "taken"}])
    assert error.to_dict()["details"] == [{"field": "code", "message": "taken"}]


def test_from_validation_errors_strips_locations():
    error = InvalidInputError.from_validation_errors([
        {"loc": ("body", "approver_email"), "msg": "value is not a valid email address"},
        {"loc": ("query", "scope"), "msg": "Input should be 'apertura_tender', ..."},
        {"loc": ("body", "items", 0, "amount"), "msg": "must be positive"},
    ])

    assert error.fields == ["approver_email", "scope", "items.0.amount"]
    assert error.status_code == 400
