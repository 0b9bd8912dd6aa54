# ABOUTME: Retry-wrapped, classified view of the CloudFormation calls used by the deletion pipeline
# ABOUTME: Turns raw describe responses into StackDetails and "does not exist" into STACK_NOT_FOUND

"""Provider API facade shared by the analyzer, initiator and monitors."""

import logging
from dataclasses import replace
from typing import Any

from cfn_stack_delete.cli.utils.cf_exceptions import APICallError, CloudFormationError
from cfn_stack_delete.cli.utils.cloudformation import CloudFormationManager
from cfn_stack_delete.clock import SystemClock
from cfn_stack_delete.config import DeletionSettings, RetrySettings
from cfn_stack_delete.models import StackDetails, StackEvent
from cfn_stack_delete.retry import RetryingAPIClient
from cfn_stack_delete.stack_status import NOT_FOUND, ObservedStatus, classify

logger = logging.getLogger(__name__)


class StackAPI:
    """CloudFormation calls routed through one RetryingAPIClient."""

    def __init__(self, manager: CloudFormationManager, settings: DeletionSettings = None, clock=None):
        self.manager = manager
        self.settings = settings or DeletionSettings()
        self.clock = clock or SystemClock()
        self.retry = RetryingAPIClient(clock=self.clock)

    def _call(self, operation, operation_name: str, retry: RetrySettings) -> Any:
        return self.retry.call(
            operation,
            operation_name,
            max_attempts=retry.max_attempts,
            base_delay=retry.base_delay,
            max_delay=retry.max_delay,
            overall_timeout=retry.overall_timeout,
        )

    def describe(self, stack_name: str, retry: RetrySettings = None) -> StackDetails:
        """
        Describe a stack, mapping absence to STACK_NOT_FOUND.

        Raises:
            APICallError: If the lookup fails for any other reason
            StackTimeoutError: If the retry budget runs out
        """
        try:
            stack = self._call(
                lambda: self.manager.describe_stack(stack_name),
                f"Describe stack '{stack_name}'",
                retry or self.settings.describe_retry,
            )
        except APICallError as e:
            if e.is_not_found:
                return StackDetails(name=stack_name, status=NOT_FOUND)
            raise

        return StackDetails(
            name=stack_name,
            status=classify(stack.get("StackStatus", "UNKNOWN"), stack.get("StackStatusReason")),
            outputs=tuple(stack.get("Outputs", [])),
            creation_time=stack.get("CreationTime"),
            last_updated_time=stack.get("LastUpdatedTime"),
        )

    def poll_budget(self, timeout: float = None) -> RetrySettings:
        """Polling retry settings whose overall budget never exceeds timeout."""
        retry = self.settings.poll_retry
        if timeout is None or timeout >= retry.overall_timeout:
            return retry
        return replace(retry, overall_timeout=max(0, timeout))

    def status(self, stack_name: str, timeout: float = None) -> ObservedStatus:
        """
        Current status using the short polling retry budget.

        Args:
            stack_name: Stack to look up
            timeout: Seconds left before the caller's deadline; caps the retry budget
        """
        return self.describe(stack_name, retry=self.poll_budget(timeout)).status

    def confirm_exists(self, stack_name: str, timeout: float = None) -> bool | None:
        """
        Single unretried existence check.

        Args:
            stack_name: Stack to look up
            timeout: Seconds left before the caller's deadline; no check is made once it is spent

        Returns:
            True if the stack exists, False if it does not, None if the check failed or had no time left
        """
        retry = self.poll_budget(timeout)
        if retry.overall_timeout <= 0:
            logger.debug(f"No time left to check whether '{stack_name}' exists")
            return None

        try:
            self.retry.call(
                lambda: self.manager.describe_stack(stack_name),
                f"Existence check for '{stack_name}'",
                max_attempts=1,
                overall_timeout=retry.overall_timeout,
            )
            return True
        except APICallError as e:
            if e.is_not_found:
                return False
            logger.debug(f"Existence check for '{stack_name}' failed: {e.message}")
            return None
        except CloudFormationError as e:
            logger.debug(f"Existence check for '{stack_name}' failed: {e.message}")
            return None

    def events(self, stack_name: str, timeout: float = None) -> list[StackEvent]:
        """All events for the stack, oldest first; timeout caps the polling retry budget."""
        raw_events = self._call(
            lambda: self.manager.describe_stack_events(stack_name),
            f"Describe events for '{stack_name}'",
            self.poll_budget(timeout),
        )
        events = [StackEvent.from_api(event) for event in raw_events if event.get("Timestamp")]
        return sorted(events, key=lambda event: event.timestamp)

    def delete(self, stack_name: str) -> None:
        self._call(
            lambda: self.manager.delete_stack(stack_name),
            f"Delete stack '{stack_name}'",
            self.settings.delete_retry,
        )

    def importers(self, export_name: str) -> list[str]:
        return self._call(
            lambda: self.manager.list_imports(export_name),
            f"List imports of '{export_name}'",
            self.settings.describe_retry,
        )

    def template(self, stack_name: str) -> dict[str, Any]:
        return self._call(
            lambda: self.manager.get_template(stack_name),
            f"Get template for '{stack_name}'",
            self.settings.describe_retry,
        )

    def caller_identity(self) -> dict[str, str]:
        return self._call(self.manager.get_caller_identity, "AWS credential validation", self.settings.describe_retry)
