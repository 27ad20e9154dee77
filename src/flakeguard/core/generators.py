"""Synthetic record generators for HR test data.

Every record kind is a pure function of its options, the clock reading and
the random source, so a fixed clock with ``unique=False`` always produces
the same record.
"""

import random
import string
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import StrEnum
from typing import Any, assert_never

Record = dict[str, Any]

_BASE36 = string.digits + string.ascii_lowercase
_ALPHANUMERIC = string.ascii_uppercase + string.ascii_lowercase + string.digits


class RecordKind(StrEnum):
    USER = "user"
    EMPLOYEE = "employee"
    LEAVE = "leave"
    PERFORMANCE = "performance"
    ADMIN = "admin"
    CUSTOM = "custom"


class ScenarioKind(StrEnum):
    LOGIN = "login"
    REGISTRATION = "registration"
    EMPLOYEE_CREATION = "employee_creation"
    LEAVE_REQUEST = "leave_request"
    PERFORMANCE_REVIEW = "performance_review"


@dataclass(frozen=True)
class GenerationOptions:
    """Options shared by every record kind.

    Attributes:
        prefix: Text prepended to generated names.
        include_timestamp: Embed the clock reading (milliseconds) in values.
        custom_fields: Fields merged over the generated record; they win on
            key conflict.
        unique: Embed a random 9-character base36 suffix in values.
        count: Number of records; above 1 a list is returned.
    """

    prefix: str = "Test"
    include_timestamp: bool = True
    custom_fields: Mapping[str, Any] = field(default_factory=dict)
    unique: bool = True
    count: int = 1

    def __post_init__(self) -> None:
        if self.count < 1:
            raise ValueError("count must be at least 1")


LOGIN_CREDENTIALS: dict[str, dict[str, str]] = {
    "valid_credentials": {"username": "Admin", "password": "admin123"},
    "invalid_credentials": {"username": "InvalidUser", "password": "wrongpassword"},
    "empty_credentials": {"username": "", "password": ""},
}


def _employee(prefix: str, suffix: str) -> Record:
    return {
        "firstName": f"{prefix}{suffix}",
        "lastName": f"User{suffix}",
        "employeeId": f"EMP{suffix}",
        "email": f"test{suffix}@example.com",
        "middleName": f"Middle{suffix}",
        "nickname": f"Nick{suffix}",
        "otherId": f"OTH{suffix}",
        "driverLicenseNumber": f"DL{suffix}",
        "licenseExpiryDate": "2025-12-31",
        "gender": "Male",
        "maritalStatus": "Single",
        "nationality": "American",
        "dateOfBirth": "1990-01-01",
        "address": {
            "street": "123 Test Street",
            "city": "Test City",
            "state": "Test State",
            "zipCode": "12345",
            "country": "United States",
        },
        "contact": {
            "homePhone": "555-123-4567",
            "mobilePhone": "555-987-6543",
            "workPhone": "555-456-7890",
            "workEmail": f"work{suffix}@example.com",
            "otherEmail": f"other{suffix}@example.com",
        },
    }


def _user(prefix: str, suffix: str) -> Record:
    password = f"TestPass{suffix}!"
    return {
        "username": f"{prefix}User{suffix}",
        "password": password,
        "confirmPassword": password,
        "userRole": "Admin",
        "status": "Enabled",
        "employeeName": f"{prefix} Employee{suffix}",
        "email": f"user{suffix}@example.com",
    }


def _leave(prefix: str, suffix: str) -> Record:
    return {
        "leaveType": "Annual Leave",
        "fromDate": "2024-01-01",
        "toDate": "2024-01-05",
        "comment": f"{prefix} leave request {suffix}",
        "duration": "5 days",
        "status": "Pending",
    }


def _performance(prefix: str, suffix: str) -> Record:
    return {
        "employeeName": f"{prefix} Employee {suffix}",
        "reviewPeriod": "2024",
        "jobTitle": "Test Engineer",
        "department": "Engineering",
        "reviewDate": "2024-12-31",
        "reviewer": "Test Manager",
        "goals": [
            "Complete project on time",
            "Improve team collaboration",
            "Enhance technical skills",
        ],
        "achievements": [
            "Successfully delivered project",
            "Improved team efficiency",
            "Completed training program",
        ],
    }


def _admin(prefix: str, suffix: str) -> Record:
    return {
        "username": f"admin{suffix}",
        "password": f"AdminPass{suffix}!",
        "userRole": "Admin",
        "status": "Enabled",
        "employeeName": f"Admin User {suffix}",
        "email": f"admin{suffix}@example.com",
    }


def base_record(kind: RecordKind, prefix: str, suffix: str) -> Record:
    """Build the generated part of a record, before custom fields."""
    match kind:
        case RecordKind.EMPLOYEE:
            return _employee(prefix, suffix)
        case RecordKind.USER:
            return _user(prefix, suffix)
        case RecordKind.LEAVE:
            return _leave(prefix, suffix)
        case RecordKind.PERFORMANCE:
            return _performance(prefix, suffix)
        case RecordKind.ADMIN:
            return _admin(prefix, suffix)
        case RecordKind.CUSTOM:
            return {}
        case _:
            assert_never(kind)


class RecordGenerator:
    """Generates records and random values from an injectable clock and RNG.

    Args:
        clock: Returns unix seconds; embedded as milliseconds.
        rng: Random source; seed it for reproducible unique suffixes.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        rng: random.Random | None = None,
    ) -> None:
        self._clock = clock
        self._rng = rng or random.Random()

    def unique_id(self, length: int = 9) -> str:
        return "".join(self._rng.choice(_BASE36) for _ in range(length))

    def generate(
        self, kind: RecordKind | str, options: GenerationOptions | None = None
    ) -> Record | list[Record]:
        """Generate one record, or a list of ``options.count`` records."""
        kind = RecordKind(kind)
        options = options or GenerationOptions()
        timestamp = str(int(self._clock() * 1000)) if options.include_timestamp else ""
        unique_id = self.unique_id() if options.unique else ""
        record = {
            **base_record(kind, options.prefix, f"{timestamp}{unique_id}"),
            **options.custom_fields,
        }
        if options.count == 1:
            return record
        return [
            {**record, "id": index, "uniqueId": f"{unique_id}_{index}"}
            for index in range(1, options.count + 1)
        ]

    def scenario(
        self,
        kind: ScenarioKind | str,
        count: int = 1,
        custom_fields: Mapping[str, Any] | None = None,
    ) -> Record | list[Record]:
        """Generate the data a common test scenario needs."""
        kind = ScenarioKind(kind)
        options = GenerationOptions(count=count, custom_fields=dict(custom_fields or {}))
        match kind:
            case ScenarioKind.LOGIN:
                return {name: dict(creds) for name, creds in LOGIN_CREDENTIALS.items()}
            case ScenarioKind.REGISTRATION:
                return self.generate(RecordKind.USER, options)
            case ScenarioKind.EMPLOYEE_CREATION:
                return self.generate(RecordKind.EMPLOYEE, options)
            case ScenarioKind.LEAVE_REQUEST:
                return self.generate(RecordKind.LEAVE, options)
            case ScenarioKind.PERFORMANCE_REVIEW:
                return self.generate(RecordKind.PERFORMANCE, options)
            case _:
                assert_never(kind)

    # Random helpers.

    def random_string(self, length: int = 10, charset: str = _ALPHANUMERIC) -> str:
        return "".join(self._rng.choice(charset) for _ in range(length))

    def random_number(self, low: int = 0, high: int = 100) -> int:
        """Random integer in the inclusive range [low, high]."""
        return self._rng.randint(low, high)

    def random_date(self, start: str = "2020-01-01", end: str = "2025-12-31") -> str:
        """Random ISO date between start and end, inclusive."""
        first = date.fromisoformat(start)
        span = (date.fromisoformat(end) - first).days
        if span < 0:
            raise ValueError("end must not be before start")
        return (first + timedelta(days=self._rng.randint(0, span))).isoformat()

    def random_email(self, domain: str = "example.com") -> str:
        return f"{self.random_string(8, string.ascii_lowercase + string.digits)}@{domain}"

    def random_phone(self, pattern: str = "XXX-XXX-XXXX") -> str:
        """Replace every ``X`` in pattern with a random digit."""
        return "".join(str(self._rng.randint(0, 9)) if ch == "X" else ch for ch in pattern)
