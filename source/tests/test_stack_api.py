# ABOUTME: Tests for the retry-wrapped CloudFormation facade
# ABOUTME: Covers polling budgets, existence checks and describe mapping

from conftest import client_error, not_found, stack

from cfn_stack_delete.stack_status import StackStatus


class TestPollBudget:
    """Polling retries never outlive the caller's deadline"""

    def test_no_timeout_uses_poll_settings(self, api, settings):
        assert api.poll_budget() is settings.poll_retry

    def test_generous_timeout_uses_poll_settings(self, api, settings):
        assert api.poll_budget(600) is settings.poll_retry

    def test_short_timeout_caps_budget(self, api, settings):
        budget = api.poll_budget(12)

        assert budget.overall_timeout == 12
        assert budget.max_attempts == settings.poll_retry.max_attempts
        assert settings.poll_retry.overall_timeout == 60

    def test_spent_timeout_is_zero(self, api):
        assert api.poll_budget(-4).overall_timeout == 0


class TestConfirmExists:
    def test_exists(self, api, manager):
        manager.describe_stack.return_value = stack("DELETE_IN_PROGRESS")
        assert api.confirm_exists("test-stack") is True

    def test_gone(self, api, manager):
        manager.describe_stack.side_effect = not_found()
        assert api.confirm_exists("test-stack") is False

    def test_failed_check_is_inconclusive(self, api, manager, clock):
        """Test a failed existence check is reported as unknown and not retried"""
        manager.describe_stack.side_effect = client_error("Throttling", "Rate exceeded")

        assert api.confirm_exists("test-stack") is None
        assert manager.describe_stack.call_count == 1
        assert clock.sleeps == []

    def test_no_time_left_skips_check(self, api, manager):
        """Test no describe call is made once the caller's deadline has passed"""
        assert api.confirm_exists("test-stack", timeout=0) is None
        manager.describe_stack.assert_not_called()


class TestStatus:
    def test_absent_stack_is_not_found(self, api, manager):
        manager.describe_stack.side_effect = not_found()
        assert api.status("test-stack").status is StackStatus.NOT_FOUND

    def test_throttled_status_retried_within_timeout(self, api, manager, clock):
        manager.describe_stack.side_effect = [client_error("Throttling", "Rate exceeded"), stack("DELETE_IN_PROGRESS")]

        observed = api.status("test-stack", timeout=30)

        assert observed.status is StackStatus.DELETE_IN_PROGRESS
        assert clock.sleeps == [1]
