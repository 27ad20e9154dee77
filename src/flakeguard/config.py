"""Run configuration read from ``FLAKEGUARD_*`` environment variables."""

from pathlib import Path

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from flakeguard.core.models import LogLevel, RetryPolicy


class FlakeguardSettings(BaseSettings):
    """Settings for a test run.

    Every field maps to ``FLAKEGUARD_<NAME>``; ``base_url`` and ``headless``
    also honor the conventional ``BASE_URL`` and ``HEADLESS`` variables.
    Delays are in seconds.
    """

    log_level: str = "info"
    artifacts_dir: Path = Path("test-results")
    fail_on_export_error: bool = False
    screenshot_on_failure: bool = True

    max_attempts: int = Field(default=3, ge=1)
    base_delay: float = Field(default=1.0, ge=0)
    max_delay: float = Field(default=10.0, ge=0)
    multiplier: float = Field(default=2.0, ge=1)

    log_db: str | None = None

    base_url: str = Field(
        default="https://opensource-demo.orangehrmlive.com",
        validation_alias=AliasChoices("FLAKEGUARD_BASE_URL", "BASE_URL"),
    )
    headless: bool = Field(
        default=True,
        validation_alias=AliasChoices("FLAKEGUARD_HEADLESS", "HEADLESS"),
    )

    model_config = SettingsConfigDict(
        env_prefix="FLAKEGUARD_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        return LogLevel.parse(value).label

    @model_validator(mode="after")
    def _delays_ordered(self):
        """max_delay caps every backoff delay, the first one included."""
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be greater than or equal to base_delay")
        return self

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            multiplier=self.multiplier,
        )
