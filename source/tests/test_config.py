# ABOUTME: Tests for deletion settings
# ABOUTME: Defaults, range validation, dictionary round trip and environment overrides

import pytest

from cfn_stack_delete.cli.utils.cf_exceptions import ValidationError
from cfn_stack_delete.config import DeletionSettings, RetrySettings


class TestDeletionSettings:
    def test_defaults(self):
        settings = DeletionSettings()
        assert settings.poll_interval == 5
        assert settings.timeout_minutes == 60
        assert settings.timeout_seconds == 3600
        assert settings.max_consecutive_failures == 3
        assert settings.delete_retry.overall_timeout == 30
        assert settings.delete_retry.max_attempts == 3

    def test_validate_returns_self(self):
        settings = DeletionSettings()
        assert settings.validate() is settings

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"poll_interval": 0},
            {"poll_interval": 61},
            {"timeout_minutes": 0},
            {"timeout_minutes": 1441},
            {"poll_interval": 2, "active_poll_interval": 3},
            {"max_consecutive_failures": 0},
            {"poll_retry": RetrySettings(max_attempts=0)},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValidationError):
            DeletionSettings(**kwargs).validate()

    def test_dict_round_trip(self):
        settings = DeletionSettings(poll_interval=10, timeout_minutes=30)
        restored = DeletionSettings.from_dict(settings.to_dict())
        assert restored == settings
        assert isinstance(restored.poll_retry, RetrySettings)

    def test_from_dict_ignores_unknown_keys(self):
        assert DeletionSettings.from_dict({"poll_interval": 7, "colour": "red"}).poll_interval == 7

    def test_from_env(self):
        settings = DeletionSettings.from_env(
            {
                "CFN_DELETE_POLL_INTERVAL": "10",
                "CFN_DELETE_TIMEOUT_MINUTES": "15",
                "CFN_DELETE_DELETE_REQUEST_TIMEOUT": "45",
                "CFN_DELETE_MAX_ATTEMPTS": "7",
            }
        )
        assert settings.poll_interval == 10
        assert settings.timeout_minutes == 15
        assert settings.delete_retry.overall_timeout == 45
        assert settings.describe_retry.max_attempts == 7

    def test_from_env_empty(self):
        assert DeletionSettings.from_env({}) == DeletionSettings()

    def test_from_env_rejects_garbage(self):
        with pytest.raises(ValidationError, match="poll_interval"):
            DeletionSettings.from_env({"CFN_DELETE_POLL_INTERVAL": "often"})
