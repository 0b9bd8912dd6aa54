# ABOUTME: Tracks a stack deletion to its end and classifies the outcome
# ABOUTME: Short-circuits already finished deletions and explains failed ones from stack events

"""Completion detection for stack deletions."""

import logging

from cfn_stack_delete.cli.utils.cf_exceptions import CloudFormationError
from cfn_stack_delete.clock import SystemClock
from cfn_stack_delete.config import DeletionSettings
from cfn_stack_delete.events import EventMonitor
from cfn_stack_delete.models import CompletionOutcome, CompletionReport, MonitoringOutcome, StackEvent
from cfn_stack_delete.stack_api import StackAPI
from cfn_stack_delete.stack_status import ObservedStatus, StackStatus

logger = logging.getLogger(__name__)


def reported_status(observed: ObservedStatus | None) -> str:
    """Status string to report; a vanished stack is reported as DELETE_COMPLETE."""
    if observed is None:
        return StackStatus.UNKNOWN.value
    if observed.status is StackStatus.NOT_FOUND:
        return StackStatus.DELETE_COMPLETE.value
    return observed.raw


def first_failure_reason(events: list[StackEvent]) -> str | None:
    """
    Most recent failed, non-cancelled event rendered as ``Type (LogicalId): reason``.

    Args:
        events: Events in any order
    """
    for event in sorted(events, key=lambda e: e.timestamp, reverse=True):
        if not event.resource_status.endswith("FAILED") or not event.status_reason:
            continue
        if "cancelled" in event.status_reason.lower():
            continue
        return f"{event.resource_type} ({event.logical_resource_id}): {event.status_reason}"
    return None


class CompletionTracker:
    """Waits for a deletion to finish and produces the CompletionReport."""

    def __init__(self, api: StackAPI, monitor: EventMonitor, settings: DeletionSettings = None, clock=None):
        self.api = api
        self.monitor = monitor
        self.settings = settings or DeletionSettings()
        self.clock = clock or SystemClock()

    def track(self, stack_name: str, started_at: float = None, timeout_minutes: int = None) -> CompletionReport:
        """
        Track a deletion until it completes, fails or times out.

        Args:
            stack_name: Stack being deleted
            started_at: Clock reading when the run started, defaults to now
            timeout_minutes: Deadline measured from started_at, defaults to the settings

        Returns:
            CompletionReport including events and status changes seen so far on every path
        """
        started_at = self.clock.now() if started_at is None else started_at
        timeout_minutes = timeout_minutes or self.settings.timeout_minutes
        deadline = started_at + timeout_minutes * 60

        initial = None
        try:
            initial = self.api.status(stack_name, timeout=deadline - self.clock.now())
        except CloudFormationError as e:
            logger.warning(f"Initial status check failed, starting monitoring anyway: {e.message}")

        if initial is not None and initial.is_terminal:
            logger.info(f"Stack '{stack_name}' is already in terminal state: {initial.raw}")
            return self._report_terminal(stack_name, initial, started_at, events=[], already_completed=True)

        result = self.monitor.poll_until_terminal(
            stack_name,
            poll_interval=self.settings.poll_interval,
            max_duration=max(0, deadline - self.clock.now()),
            max_consecutive_failures=self.settings.max_consecutive_failures,
            active_poll_interval=self.settings.active_poll_interval,
            initial_status=initial,
        )

        if result.outcome is MonitoringOutcome.COMPLETED:
            report = self._report_terminal(stack_name, result.final_status, started_at, events=result.events)
            report.status_change_count = result.status_changes
            return report

        outcome = CompletionOutcome.TIMEOUT if result.outcome is MonitoringOutcome.TIMEOUT else CompletionOutcome.ERROR
        return CompletionReport(
            outcome=outcome,
            final_status=reported_status(result.final_status),
            duration_seconds=self.clock.now() - started_at,
            events_count=result.events_displayed,
            status_change_count=result.status_changes,
            message=result.message,
            events=result.events,
        )

    def _report_terminal(
        self,
        stack_name: str,
        observed: ObservedStatus,
        started_at: float,
        events: list[StackEvent],
        already_completed: bool = False,
    ) -> CompletionReport:
        duration = self.clock.now() - started_at
        if observed.is_success:
            logger.info(f"Stack '{stack_name}' deleted successfully")
            return CompletionReport(
                outcome=CompletionOutcome.SUCCESS,
                final_status=reported_status(observed),
                duration_seconds=duration,
                events_count=len(events),
                message="Stack deletion completed successfully",
                already_completed=already_completed,
                events=events,
            )

        reason = self.diagnose_failure(stack_name, observed, events)
        self._log_recovery_guidance(stack_name, observed)
        return CompletionReport(
            outcome=CompletionOutcome.FAILED,
            final_status=observed.raw,
            duration_seconds=duration,
            events_count=len(events),
            message=f"Stack deletion failed: {reason}" if reason else "Stack deletion failed",
            already_completed=already_completed,
            events=events,
        )

    def diagnose_failure(self, stack_name: str, observed: ObservedStatus, events: list[StackEvent]) -> str | None:
        """
        Explain a failed deletion from its events, falling back to the stack's status reason.

        Events are fetched when none were collected during monitoring.
        """
        if not events:
            try:
                events = self.api.events(stack_name)
            except CloudFormationError as e:
                logger.debug(f"Could not fetch events for failure diagnosis: {e.message}")
                events = []

        reason = first_failure_reason(events) or observed.reason
        if reason:
            logger.error(f"Failure reason: {reason}")
        return reason

    def _log_recovery_guidance(self, stack_name: str, observed: ObservedStatus) -> None:
        if observed.status is StackStatus.DELETE_FAILED:
            logger.error("Recovery options:")
            logger.error("  1. Retry deletion (some failures are transient)")
            logger.error("  2. Check CloudFormation events for specific resource failures")
            logger.error(
                f"  3. Skip problematic resources: aws cloudformation delete-stack --stack-name '{stack_name}' "
                "--retain-resources <logical-id>"
            )
        elif observed.status is StackStatus.ROLLBACK_FAILED:
            logger.error("Manual intervention required:")
            logger.error(
                f"  1. Continue rollback: aws cloudformation continue-update-rollback --stack-name '{stack_name}'"
            )
            logger.error("  2. Contact AWS Support if the rollback cannot be completed")
