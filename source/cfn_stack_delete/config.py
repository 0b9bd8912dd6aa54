# ABOUTME: Configuration management for CloudFormation Stack Delete
# ABOUTME: Polling, timeout and retry settings with environment overrides and range validation

"""Configuration management for CloudFormation Stack Delete."""

import os
from dataclasses import asdict, dataclass, fields
from typing import Any

from cfn_stack_delete.cli.utils.cf_exceptions import ValidationError

ENV_PREFIX = "CFN_DELETE_"


@dataclass
class RetrySettings:
    """Backoff bounds for one class of API call."""

    max_attempts: int = 5
    base_delay: float = 2
    max_delay: float = 60
    overall_timeout: float = 300


@dataclass
class DeletionSettings:
    """Tunables for one deletion run."""

    poll_interval: int = 5  # Seconds between polls, 1-60
    active_poll_interval: int = 1  # Seconds between polls once deletion events are flowing
    timeout_minutes: int = 60  # Monitoring deadline, 1-1440
    wait_for_completion: bool = True
    max_consecutive_failures: int = 3
    delete_request_timeout: float = 30  # Bound for the delete-stack call itself

    # Describe calls made while analysing the stack
    describe_retry: RetrySettings = None
    # Calls made on every poll; kept short so a dead API cannot stall the loop
    poll_retry: RetrySettings = None
    # The delete request
    delete_retry: RetrySettings = None

    def __post_init__(self):
        if self.describe_retry is None:
            self.describe_retry = RetrySettings(max_attempts=3, base_delay=2, max_delay=60, overall_timeout=300)
        if self.poll_retry is None:
            self.poll_retry = RetrySettings(max_attempts=3, base_delay=1, max_delay=10, overall_timeout=60)
        if self.delete_retry is None:
            self.delete_retry = RetrySettings(
                max_attempts=3, base_delay=2, max_delay=10, overall_timeout=self.delete_request_timeout
            )

    @property
    def timeout_seconds(self) -> int:
        return self.timeout_minutes * 60

    def validate(self) -> "DeletionSettings":
        """Check ranges; raises ValidationError on the first bad value."""
        if not 1 <= self.poll_interval <= 60:
            raise ValidationError(f"Poll interval must be between 1 and 60 seconds (got {self.poll_interval})")
        if not 1 <= self.timeout_minutes <= 1440:
            raise ValidationError(f"Timeout must be between 1 and 1440 minutes (got {self.timeout_minutes})")
        if self.active_poll_interval < 1 or self.active_poll_interval > self.poll_interval:
            raise ValidationError("Active poll interval must be at least 1 second and not exceed the poll interval")
        if self.max_consecutive_failures < 1:
            raise ValidationError("Max consecutive failures must be at least 1")
        for name in ("describe_retry", "poll_retry", "delete_retry"):
            retry = getattr(self, name)
            if retry.max_attempts < 1 or retry.base_delay < 0 or retry.max_delay < retry.base_delay:
                raise ValidationError(f"Invalid retry settings for {name}: {retry}")
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DeletionSettings":
        """Create settings from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        for name in ("describe_retry", "poll_retry", "delete_retry"):
            if isinstance(values.get(name), dict):
                values[name] = RetrySettings(**values[name])
        return cls(**values)

    @classmethod
    def from_env(cls, environ: dict[str, str] = None) -> "DeletionSettings":
        """
        Build settings from ``CFN_DELETE_*`` environment variables.

        Recognised: POLL_INTERVAL, ACTIVE_POLL_INTERVAL, TIMEOUT_MINUTES,
        MAX_CONSECUTIVE_FAILURES, DELETE_REQUEST_TIMEOUT, MAX_ATTEMPTS.
        """
        environ = os.environ if environ is None else environ
        data: dict[str, Any] = {}

        integer_keys = ("poll_interval", "active_poll_interval", "timeout_minutes", "max_consecutive_failures")
        for key in integer_keys:
            value = environ.get(f"{ENV_PREFIX}{key.upper()}")
            if value:
                data[key] = _parse_int(key, value)

        delete_timeout = environ.get(f"{ENV_PREFIX}DELETE_REQUEST_TIMEOUT")
        if delete_timeout:
            data["delete_request_timeout"] = _parse_int("delete_request_timeout", delete_timeout)

        settings = cls.from_dict(data)

        max_attempts = environ.get(f"{ENV_PREFIX}MAX_ATTEMPTS")
        if max_attempts:
            settings.describe_retry.max_attempts = _parse_int("max_attempts", max_attempts)

        return settings


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        raise ValidationError(f"Invalid integer for {name}: '{value}'")
