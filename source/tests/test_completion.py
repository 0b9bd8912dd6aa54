# ABOUTME: Tests for the completion tracker
# ABOUTME: Short-circuiting, outcome classification and failure diagnosis

from conftest import client_error, event, not_found, stack

from cfn_stack_delete.completion import CompletionTracker, first_failure_reason, reported_status
from cfn_stack_delete.config import DeletionSettings
from cfn_stack_delete.events import EventMonitor
from cfn_stack_delete.models import CompletionOutcome, StackEvent
from cfn_stack_delete.stack_status import NOT_FOUND, classify


def tracker(api, clock, settings=None):
    settings = settings or api.settings
    return CompletionTracker(api, EventMonitor(api, clock=clock, on_event=lambda e: None), settings, clock)


class TestShortCircuit:
    """Already finished deletions are reported without polling"""

    def test_already_deleted(self, api, manager, clock):
        manager.describe_stack.return_value = stack("DELETE_COMPLETE")

        report = tracker(api, clock).track("test-stack", started_at=clock.now())

        assert report.outcome is CompletionOutcome.SUCCESS
        assert report.already_completed
        assert report.final_status == "DELETE_COMPLETE"
        assert clock.sleeps == []
        assert manager.describe_stack.call_count == 1
        manager.describe_stack_events.assert_not_called()

    def test_already_gone_reports_delete_complete(self, api, manager, clock):
        manager.describe_stack.side_effect = not_found()

        report = tracker(api, clock).track("test-stack")

        assert report.outcome is CompletionOutcome.SUCCESS
        assert report.final_status == "DELETE_COMPLETE"
        assert report.duration_seconds == 0

    def test_already_failed_is_diagnosed(self, api, manager, clock):
        manager.describe_stack.return_value = stack("DELETE_FAILED", reason="The following resource(s) failed")
        manager.describe_stack_events.return_value = [
            event(20, "Bucket", "DELETE_FAILED", reason="bucket not empty"),
            event(10, "Topic", "DELETE_FAILED", "AWS::SNS::Topic", reason="Resource creation cancelled"),
        ]

        report = tracker(api, clock).track("test-stack")

        assert report.outcome is CompletionOutcome.FAILED
        assert report.already_completed
        assert report.final_status == "DELETE_FAILED"
        assert "AWS::S3::Bucket (Bucket): bucket not empty" in report.message
        assert clock.sleeps == []


class TestTracking:
    """Outcomes after monitoring"""

    def test_success(self, api, manager, clock):
        manager.describe_stack.side_effect = [
            stack("DELETE_IN_PROGRESS"),
            stack("DELETE_IN_PROGRESS"),
            not_found(),
        ]
        manager.describe_stack_events.return_value = [event(10, "Bucket", "DELETE_IN_PROGRESS")]

        report = tracker(api, clock).track("test-stack", started_at=clock.now())

        assert report.outcome is CompletionOutcome.SUCCESS
        assert report.final_status == "DELETE_COMPLETE"
        assert report.status_change_count == 1
        assert report.events_count == 2
        assert not report.already_completed
        assert report.duration_seconds == 1

    def test_failed_with_reason(self, api, manager, clock):
        manager.describe_stack.side_effect = [
            stack("DELETE_IN_PROGRESS"),
            stack("DELETE_FAILED", reason="The following resource(s) failed to delete: [Bucket]"),
        ]
        manager.describe_stack_events.return_value = [event(10, "Bucket", "DELETE_FAILED", reason="bucket not empty")]

        report = tracker(api, clock).track("test-stack")

        assert report.outcome is CompletionOutcome.FAILED
        assert "bucket not empty" in report.message
        assert report.events_count == 1

    def test_failed_falls_back_to_stack_reason(self, api, manager, clock):
        manager.describe_stack.side_effect = [
            stack("DELETE_IN_PROGRESS"),
            stack("DELETE_FAILED", reason="Role is not authorized"),
        ]

        report = tracker(api, clock).track("test-stack")

        assert report.outcome is CompletionOutcome.FAILED
        assert "Role is not authorized" in report.message

    def test_timeout_measured_from_start(self, api, manager, clock):
        """Test time spent before tracking counts against the deadline"""
        manager.describe_stack.return_value = stack("DELETE_IN_PROGRESS")
        started = clock.now()
        clock.time += 20

        report = tracker(api, clock).track("test-stack", started_at=started, timeout_minutes=1)

        assert report.outcome is CompletionOutcome.TIMEOUT
        assert report.duration_seconds == 60
        assert report.final_status == "DELETE_IN_PROGRESS"

    def test_error_after_repeated_failures(self, api, manager, clock):
        denied = client_error("AccessDenied", "Access Denied")
        manager.describe_stack.side_effect = [stack("DELETE_IN_PROGRESS")] + [denied] * 6
        settings = DeletionSettings(max_consecutive_failures=3)

        report = tracker(api, clock, settings).track("test-stack")

        assert report.outcome is CompletionOutcome.ERROR
        assert report.final_status == "DELETE_IN_PROGRESS"
        assert "consecutive failures" in report.message

    def test_initial_check_failure_still_monitors(self, api, manager, clock):
        manager.describe_stack.side_effect = [client_error("AccessDenied", "Access Denied"), not_found()]

        report = tracker(api, clock).track("test-stack")

        assert report.outcome is CompletionOutcome.SUCCESS


class TestHelpers:
    def test_reported_status(self):
        assert reported_status(NOT_FOUND) == "DELETE_COMPLETE"
        assert reported_status(classify("DELETE_FAILED")) == "DELETE_FAILED"
        assert reported_status(None) == "UNKNOWN"

    def test_first_failure_reason_prefers_latest(self):
        events = [
            StackEvent.from_api(event(10, "Old", "DELETE_FAILED", reason="old failure")),
            StackEvent.from_api(event(20, "New", "DELETE_FAILED", reason="new failure")),
            StackEvent.from_api(event(30, "Other", "DELETE_COMPLETE")),
        ]
        assert first_failure_reason(events) == "AWS::S3::Bucket (New): new failure"

    def test_first_failure_reason_none(self):
        assert first_failure_reason([]) is None
