# ABOUTME: Orchestrates one deletion run from analysis to completion report
# ABOUTME: Wires the analyzer, initiator, event monitor and completion tracker together

"""
Stack deletion workflow.

A run is a single stateless pass: analyse the live stack, send the delete
request when the analysis calls for it, then track the deletion to a terminal
status. Each step hands a typed result to the next; the final DeletionRun is
what the reporting layer publishes.
"""

import logging
from collections.abc import Callable

from cfn_stack_delete.analyzer import StackStateAnalyzer
from cfn_stack_delete.cli.utils.cf_exceptions import (
    EXIT_STACK_ERROR,
    AccessDeniedError,
    AuthError,
    CloudFormationError,
    DeletionError,
    DependencyConflictError,
    StackStateError,
)
from cfn_stack_delete.cli.utils.reporting import exit_code_for
from cfn_stack_delete.clock import SystemClock
from cfn_stack_delete.completion import CompletionTracker, reported_status
from cfn_stack_delete.config import DeletionSettings
from cfn_stack_delete.events import EventMonitor
from cfn_stack_delete.initiator import DeletionInitiator
from cfn_stack_delete.models import (
    ActionType,
    CompletionOutcome,
    CompletionReport,
    DeletionAction,
    DeletionRun,
    InitiationOutcome,
    InitiationResult,
    OperationResult,
    StackEvent,
)
from cfn_stack_delete.stack_api import StackAPI
from cfn_stack_delete.stack_status import StackStatus

logger = logging.getLogger(__name__)

_RESULTS = {
    CompletionOutcome.SUCCESS: OperationResult.SUCCESS,
    CompletionOutcome.FAILED: OperationResult.FAILED,
    CompletionOutcome.TIMEOUT: OperationResult.TIMEOUT,
    CompletionOutcome.ERROR: OperationResult.ERROR,
}


class StackDeletionWorkflow:
    """Runs analysis, initiation and completion tracking for one stack."""

    def __init__(
        self,
        api: StackAPI,
        settings: DeletionSettings = None,
        clock=None,
        on_event: Callable[[StackEvent], None] = None,
    ):
        self.api = api
        self.settings = settings or api.settings
        self.clock = clock or api.clock or SystemClock()
        self.analyzer = StackStateAnalyzer(api)
        self.initiator = DeletionInitiator(api)
        self.monitor = EventMonitor(api, clock=self.clock, on_event=on_event)
        self.tracker = CompletionTracker(api, self.monitor, settings=self.settings, clock=self.clock)

    def check_credentials(self) -> dict[str, str]:
        """
        Verify AWS credentials with STS.

        Returns:
            Caller identity with Account, UserId and Arn

        Raises:
            AuthError: If the credentials are missing, expired or rejected
        """
        try:
            identity = self.api.caller_identity()
        except CloudFormationError as e:
            raise AuthError(f"AWS credentials are not configured or invalid: {e.message}")
        logger.info(f"AWS credentials valid for account {identity['Account']} ({identity['Arn']})")
        return identity

    def check(self, stack_name: str) -> tuple[DeletionAction, list[str]]:
        """Analyse a stack without changing it; returns the action and any deletion risks."""
        action = self.analyzer.analyze(stack_name)
        risks = self.analyzer.assess_risks(action.stack) if action.stack is not None else []
        return action, risks

    def run(self, stack_name: str, wait_for_completion: bool = None) -> DeletionRun:
        """
        Delete a stack and, unless told not to wait, track it to completion.

        Args:
            stack_name: Stack to delete
            wait_for_completion: Track the deletion after initiating it; defaults to the settings

        Returns:
            DeletionRun with the action taken, the initiation result and the completion report
        """
        if wait_for_completion is None:
            wait_for_completion = self.settings.wait_for_completion

        started = self.clock.now()
        run = _RunBuilder(self, stack_name, started)

        action = self.analyzer.analyze(stack_name)
        run.action = action
        logger.info(f"Action: {action.action.value} - {action.message}")

        if action.action is ActionType.ERROR:
            return run.finish(CompletionOutcome.ERROR, "UNKNOWN", action.reason or action.message)

        if action.action is ActionType.SKIP_ALREADY_DELETED:
            return run.finish(
                CompletionOutcome.SUCCESS,
                reported_status(action.status),
                action.message,
                result=OperationResult.SKIPPED,
            )

        if action.action is ActionType.WAIT_FOR_STABLE_STATE:
            error = StackStateError(action.message, current_status=action.status.raw, stack_name=stack_name)
            return run.fail(error, error.current_status)

        if action.requires_initiation:
            run.risks = self.analyzer.assess_risks(action.stack)
            initiation = self.initiator.initiate(stack_name, action.stack)
            run.initiation = initiation

            try:
                self._raise_for_initiation(stack_name, initiation)
            except CloudFormationError as e:
                return run.fail(e, action.status.raw)
            if initiation.status is not None and initiation.status.status is StackStatus.NOT_FOUND:
                return run.finish(
                    CompletionOutcome.SUCCESS,
                    reported_status(initiation.status),
                    initiation.message,
                    result=OperationResult.SKIPPED,
                )

        if not wait_for_completion:
            logger.info("Not waiting for deletion to complete")
            return run.finish(
                CompletionOutcome.SUCCESS, StackStatus.DELETE_IN_PROGRESS.value, "Stack deletion initiated"
            )

        if run.initiation is not None and run.initiation.initiated:
            # Reads right after a retried delete can still show the previous DELETE_FAILED
            self.initiator.verify_initiated(stack_name)

        report = self.tracker.track(stack_name, started_at=started, timeout_minutes=self.settings.timeout_minutes)
        return run.complete(report)

    def monitor_existing(self, stack_name: str) -> DeletionRun:
        """Track a deletion started elsewhere."""
        started = self.clock.now()
        report = self.tracker.track(stack_name, started_at=started, timeout_minutes=self.settings.timeout_minutes)
        return _RunBuilder(self, stack_name, started).complete(report)

    def _raise_for_initiation(self, stack_name: str, initiation: InitiationResult) -> None:
        """
        Turn a blocked delete request into its error.

        Raises:
            AccessDeniedError: The caller may not delete the stack
            DependencyConflictError: Other stacks import this stack's exports
            DeletionError: CloudFormation rejected the delete request
        """
        if initiation.outcome is InitiationOutcome.PERMISSION_ERROR:
            raise AccessDeniedError(initiation.message, stack_name=stack_name)
        if initiation.outcome is InitiationOutcome.DEPENDENCY_CONFLICT:
            raise DependencyConflictError(
                initiation.message, exports_in_use=initiation.exports_in_use, stack_name=stack_name
            )
        if initiation.outcome is InitiationOutcome.ERROR:
            raise DeletionError(initiation.message, stack_name=stack_name)


class _RunBuilder:
    """Collects the parts of a DeletionRun as the workflow progresses."""

    def __init__(self, workflow: StackDeletionWorkflow, stack_name: str, started: float):
        self.clock = workflow.clock
        self.stack_name = stack_name
        self.started = started
        self.started_at = self.clock.wall_time()
        self.action = None
        self.initiation = None
        self.risks: list[str] = []

    def fail(self, error: CloudFormationError, final_status: str) -> DeletionRun:
        """Run that stopped on error; the error's exit code becomes the run's."""
        return self.finish(CompletionOutcome.ERROR, final_status, error.message, error_exit_code=error.exit_code)

    def finish(
        self,
        outcome: CompletionOutcome,
        final_status: str,
        message: str,
        error_exit_code: int = EXIT_STACK_ERROR,
        result: OperationResult = None,
    ) -> DeletionRun:
        report = CompletionReport(
            outcome=outcome,
            final_status=final_status,
            duration_seconds=self.clock.now() - self.started,
            message=message,
            already_completed=result is OperationResult.SKIPPED,
        )
        return self.complete(report, error_exit_code=error_exit_code, result=result)

    def complete(
        self, report: CompletionReport, error_exit_code: int = EXIT_STACK_ERROR, result: OperationResult = None
    ) -> DeletionRun:
        result = result or _RESULTS[report.outcome]
        return DeletionRun(
            stack_name=self.stack_name,
            report=report,
            operation_result=result,
            exit_code=exit_code_for(result, report.final_status, error_exit_code),
            action=self.action,
            initiation=self.initiation,
            risks=self.risks,
            started_at=self.started_at,
            finished_at=self.clock.wall_time(),
        )
