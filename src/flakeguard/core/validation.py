"""Structural validation of test data.

Validation reports problems as lists of messages; it never raises for bad
data.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

Schema = Mapping[str, str]

JSON_TYPES = frozenset({"string", "number", "boolean", "object", "array", "null"})

EMPLOYEE_SCHEMA: Schema = {
    "firstName": "string",
    "lastName": "string",
    "employeeId": "string",
    "email": "string",
}
USER_SCHEMA: Schema = {
    "username": "string",
    "password": "string",
    "userRole": "string",
    "status": "string",
}
LEAVE_SCHEMA: Schema = {
    "leaveType": "string",
    "fromDate": "string",
    "toDate": "string",
    "comment": "string",
}
PERFORMANCE_SCHEMA: Schema = {
    "employeeName": "string",
    "reviewPeriod": "string",
    "jobTitle": "string",
}

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_MIN_PASSWORD_LENGTH = 8
_MAX_CREDENTIAL_LENGTH = 100


def json_type(value: Any) -> str:
    """Name the JSON type of a Python value.

    ``bool`` is checked before numbers since it subclasses ``int``.
    Values with no JSON counterpart report their Python class name.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


@dataclass(frozen=True)
class ValidationReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def validate(value: Any, schema: Schema) -> list[str]:
    """Check every schema field is present with the declared JSON type.

    Returns:
        One message per violation; empty when the value is valid.
    """
    if not isinstance(value, Mapping):
        return [f"Expected an object, got {json_type(value)}"]
    errors = []
    for key, expected in schema.items():
        if expected not in JSON_TYPES:
            errors.append(f"Field {key} declares unknown type {expected}")
            continue
        if key not in value:
            errors.append(f"Missing required field: {key}")
            continue
        actual = json_type(value[key])
        if actual != expected:
            errors.append(f"Field {key} expected type {expected}, got {actual}")
    return errors


def inspect(value: Any, schema: Schema) -> ValidationReport:
    """Validate and also flag suspicious emails and short passwords."""
    errors = validate(value, schema)
    warnings = []
    if isinstance(value, Mapping):
        email = value.get("email")
        if "email" in schema and isinstance(email, str) and email and not _EMAIL_RE.match(email):
            warnings.append(f"Email format may be invalid: {email}")
        password = value.get("password")
        if (
            "password" in schema
            and isinstance(password, str)
            and password
            and len(password) < _MIN_PASSWORD_LENGTH
        ):
            warnings.append(f"Password may be too short: {len(password)} characters")
    return ValidationReport(errors=errors, warnings=warnings)


def validate_credentials(username: str | None, password: str | None) -> list[str]:
    """Check a username/password pair is usable for a login attempt."""
    username = username or ""
    password = password or ""
    errors = []
    if not username.strip():
        errors.append("Username is required")
    if not password.strip():
        errors.append("Password is required")
    if len(username) > _MAX_CREDENTIAL_LENGTH:
        errors.append(f"Username is too long (max {_MAX_CREDENTIAL_LENGTH} characters)")
    if len(password) > _MAX_CREDENTIAL_LENGTH:
        errors.append(f"Password is too long (max {_MAX_CREDENTIAL_LENGTH} characters)")
    return errors
