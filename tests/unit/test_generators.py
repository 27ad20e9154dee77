"""Tests for synthetic record generators."""

import random
import re

import pytest

from flakeguard.core.generators import (
    LOGIN_CREDENTIALS,
    GenerationOptions,
    RecordGenerator,
    RecordKind,
    ScenarioKind,
)
from flakeguard.core.validation import (
    EMPLOYEE_SCHEMA,
    LEAVE_SCHEMA,
    PERFORMANCE_SCHEMA,
    USER_SCHEMA,
    validate,
)

pytestmark = [
    pytest.mark.tier(0),
    pytest.mark.tra("Core.DataStore.Generators"),
]

FIXED = GenerationOptions(unique=False)


@pytest.fixture
def generator() -> RecordGenerator:
    return RecordGenerator(clock=lambda: 1_700_000_000.5, rng=random.Random(7))


@pytest.mark.core
class TestGenerate:
    """Tests for RecordGenerator.generate."""

    def test_employee_embeds_millisecond_timestamp(self, generator: RecordGenerator) -> None:
        record = generator.generate(RecordKind.EMPLOYEE, FIXED)

        assert record["firstName"] == "Test1700000000500"
        assert record["employeeId"] == "EMP1700000000500"
        assert record["email"] == "test1700000000500@example.com"
        assert record["address"]["country"] == "United States"

    def test_fixed_clock_without_uniqueness_is_deterministic(self) -> None:
        first = RecordGenerator(clock=lambda: 5.0).generate("user", FIXED)
        second = RecordGenerator(clock=lambda: 5.0).generate("user", FIXED)

        assert first == second

    def test_unique_suffix_is_nine_base36_characters(self, generator: RecordGenerator) -> None:
        record = generator.generate(
            RecordKind.ADMIN, GenerationOptions(include_timestamp=False)
        )

        suffix = record["username"].removeprefix("admin")
        assert re.fullmatch(r"[0-9a-z]{9}", suffix)

    def test_prefix_and_custom_fields(self, generator: RecordGenerator) -> None:
        options = GenerationOptions(
            prefix="QA", unique=False, include_timestamp=False, custom_fields={"status": "Disabled"}
        )

        record = generator.generate(RecordKind.USER, options)

        assert record["username"] == "QAUser"
        assert record["status"] == "Disabled"
        assert record["password"] == record["confirmPassword"]

    def test_custom_kind_is_just_custom_fields(self, generator: RecordGenerator) -> None:
        options = GenerationOptions(custom_fields={"sku": "A-1"})
        assert generator.generate(RecordKind.CUSTOM, options) == {"sku": "A-1"}

    def test_count_returns_numbered_list(self, generator: RecordGenerator) -> None:
        records = generator.generate(RecordKind.LEAVE, GenerationOptions(count=3))

        assert isinstance(records, list)
        assert [r["id"] for r in records] == [1, 2, 3]
        assert len({r["uniqueId"] for r in records}) == 3
        assert all(r["leaveType"] == "Annual Leave" for r in records)

    def test_unknown_kind_raises(self, generator: RecordGenerator) -> None:
        with pytest.raises(ValueError):
            generator.generate("spaceship")

    def test_count_below_one_raises(self) -> None:
        with pytest.raises(ValueError, match="count"):
            GenerationOptions(count=0)

    @pytest.mark.parametrize(
        ("kind", "schema"),
        [
            (RecordKind.EMPLOYEE, EMPLOYEE_SCHEMA),
            (RecordKind.USER, USER_SCHEMA),
            (RecordKind.LEAVE, LEAVE_SCHEMA),
            (RecordKind.PERFORMANCE, PERFORMANCE_SCHEMA),
        ],
    )
    def test_generated_records_match_their_schema(
        self, generator: RecordGenerator, kind: RecordKind, schema: dict[str, str]
    ) -> None:
        assert validate(generator.generate(kind), schema) == []


@pytest.mark.core
class TestScenarios:
    """Tests for RecordGenerator.scenario."""

    def test_login_scenario_returns_credential_sets(self, generator: RecordGenerator) -> None:
        data = generator.scenario(ScenarioKind.LOGIN)

        assert data == LOGIN_CREDENTIALS
        data["valid_credentials"]["username"] = "changed"
        assert LOGIN_CREDENTIALS["valid_credentials"]["username"] == "Admin"

    def test_registration_scenario_generates_users(self, generator: RecordGenerator) -> None:
        users = generator.scenario("registration", count=2)

        assert isinstance(users, list)
        assert all("username" in user for user in users)

    def test_scenario_custom_fields(self, generator: RecordGenerator) -> None:
        review = generator.scenario(
            ScenarioKind.PERFORMANCE_REVIEW, custom_fields={"reviewer": "Lead"}
        )
        assert review["reviewer"] == "Lead"

    def test_unknown_scenario_raises(self, generator: RecordGenerator) -> None:
        with pytest.raises(ValueError):
            generator.scenario("onboarding")


@pytest.mark.core
class TestRandomHelpers:
    """Tests for the random value helpers."""

    def test_random_string_length_and_charset(self, generator: RecordGenerator) -> None:
        value = generator.random_string(12, charset="ab")
        assert len(value) == 12
        assert set(value) <= {"a", "b"}

    def test_random_number_is_inclusive(self, generator: RecordGenerator) -> None:
        values = {generator.random_number(1, 2) for _ in range(200)}
        assert values == {1, 2}

    def test_random_date_within_range(self, generator: RecordGenerator) -> None:
        for _ in range(50):
            assert "2024-01-01" <= generator.random_date("2024-01-01", "2024-01-31") <= "2024-01-31"

    def test_random_date_rejects_reversed_range(self, generator: RecordGenerator) -> None:
        with pytest.raises(ValueError):
            generator.random_date("2025-01-01", "2024-01-01")

    def test_random_email_and_phone(self, generator: RecordGenerator) -> None:
        assert re.fullmatch(r"[a-z0-9]{8}@corp\.test", generator.random_email("corp.test"))
        assert re.fullmatch(r"\(\d{3}\) \d{3}-\d{4}", generator.random_phone("(XXX) XXX-XXXX"))

    def test_seeded_generators_agree(self) -> None:
        a = RecordGenerator(rng=random.Random(1))
        b = RecordGenerator(rng=random.Random(1))
        assert a.unique_id() == b.unique_id()
