"""Tests for structural data validation."""

import pytest

from flakeguard.core.validation import (
    EMPLOYEE_SCHEMA,
    USER_SCHEMA,
    inspect,
    json_type,
    validate,
    validate_credentials,
)

pytestmark = [
    pytest.mark.tier(0),
    pytest.mark.tra("Core.DataStore.Validation"),
]

VALID_USER = {
    "username": "qa_user",
    "password": "longenough",
    "userRole": "ESS",
    "status": "Enabled",
}


@pytest.mark.core
class TestJsonType:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, "null"),
            (True, "boolean"),
            (3, "number"),
            (2.5, "number"),
            ("x", "string"),
            ({}, "object"),
            ([1], "array"),
        ],
    )
    def test_names_json_types(self, value: object, expected: str) -> None:
        assert json_type(value) == expected


@pytest.mark.core
class TestValidate:
    """Tests for validate."""

    def test_valid_record_has_no_errors(self) -> None:
        assert validate(VALID_USER, USER_SCHEMA) == []

    def test_reports_every_violation(self) -> None:
        record = {"firstName": "A", "lastName": 7, "email": None}

        errors = validate(record, EMPLOYEE_SCHEMA)

        assert errors == [
            "Field lastName expected type string, got number",
            "Missing required field: employeeId",
            "Field email expected type string, got null",
        ]

    def test_boolean_is_not_a_number(self) -> None:
        assert validate({"n": True}, {"n": "number"}) == [
            "Field n expected type number, got boolean"
        ]

    def test_non_object_value(self) -> None:
        assert validate(["not", "a", "record"], USER_SCHEMA) == ["Expected an object, got array"]

    def test_unknown_schema_type_is_reported_not_raised(self) -> None:
        assert validate({"n": 1}, {"n": "integer"}) == ["Field n declares unknown type integer"]

    def test_extra_fields_are_allowed(self) -> None:
        assert validate({**VALID_USER, "note": 1}, USER_SCHEMA) == []


@pytest.mark.core
class TestInspect:
    """Tests for inspect warnings."""

    def test_short_password_is_a_warning_not_an_error(self) -> None:
        report = inspect({**VALID_USER, "password": "abc"}, USER_SCHEMA)

        assert report.is_valid
        assert report.warnings == ["Password may be too short: 3 characters"]

    def test_suspicious_email_warns(self) -> None:
        record = {
            "firstName": "A",
            "lastName": "B",
            "employeeId": "E1",
            "email": "not-an-email",
        }

        report = inspect(record, EMPLOYEE_SCHEMA)

        assert report.warnings == ["Email format may be invalid: not-an-email"]

    def test_errors_are_carried(self) -> None:
        report = inspect({}, USER_SCHEMA)
        assert not report.is_valid
        assert len(report.errors) == 4


@pytest.mark.core
class TestValidateCredentials:
    def test_valid_pair(self) -> None:
        assert validate_credentials("Admin", "admin123") == []

    def test_blank_values_are_required(self) -> None:
        assert validate_credentials("  ", None) == [
            "Username is required",
            "Password is required",
        ]

    def test_overlong_values(self) -> None:
        errors = validate_credentials("u" * 101, "p" * 101)
        assert errors == [
            "Username is too long (max 100 characters)",
            "Password is too long (max 100 characters)",
        ]
