# ABOUTME: Stack state analysis deciding what a deletion run should do
# ABOUTME: Maps one status snapshot to skip, monitor, wait, proceed, retry, caution or error

"""
Stack state analysis.

The decision table here keeps delete requests away from stacks that are in the
middle of a create, update or rollback; CloudFormation rejects those and the
run would waste its timeout budget finding out.
"""

import logging

from cfn_stack_delete.cli.utils.cf_exceptions import EXIT_STACK_ERROR, CloudFormationError
from cfn_stack_delete.models import ActionType, DeletionAction, StackDetails
from cfn_stack_delete.stack_api import StackAPI
from cfn_stack_delete.stack_status import StackStatus

logger = logging.getLogger(__name__)

NESTED_STACK_TYPE = "AWS::CloudFormation::Stack"

# Exit code a standalone check reports when the stack could not be analysed
ANALYSIS_ERROR_EXIT_CODE = 2


class StackStateAnalyzer:
    """Chooses the deletion action for a stack."""

    def __init__(self, api: StackAPI):
        self.api = api

    def analyze(self, stack_name: str) -> DeletionAction:
        """
        Query the stack once and decide how to proceed.

        Args:
            stack_name: Name of the stack to delete

        Returns:
            DeletionAction; lookup failures become ActionType.ERROR rather than raising
        """
        logger.info(f"Analyzing stack state for '{stack_name}'...")
        try:
            details = self.api.describe(stack_name)
        except CloudFormationError as e:
            logger.error(f"Failed to retrieve stack status for '{stack_name}': {e.message}")
            return DeletionAction(
                action=ActionType.ERROR,
                message="Failed to retrieve stack status",
                exit_code=ANALYSIS_ERROR_EXIT_CODE,
                reason=e.message,
            )

        return self.decide(details)

    def decide(self, details: StackDetails) -> DeletionAction:
        """Apply the decision table to a stack snapshot."""
        observed = details.status
        status = observed.status
        name = details.name

        def action(kind: ActionType, message: str, exit_code: int = 0) -> DeletionAction:
            return DeletionAction(
                action=kind,
                message=message,
                exit_code=exit_code,
                status=observed,
                stack=details,
                reason=observed.reason,
            )

        if status is StackStatus.NOT_FOUND:
            logger.warning(f"Stack '{name}' does not exist - nothing to delete")
            return action(ActionType.SKIP_ALREADY_DELETED, "Stack does not exist, deletion not needed")

        if status is StackStatus.DELETE_IN_PROGRESS:
            logger.info(f"Stack '{name}' is already being deleted")
            return action(
                ActionType.MONITOR_EXISTING_DELETION,
                "Stack deletion already in progress, will monitor existing deletion",
            )

        if status is StackStatus.DELETE_COMPLETE:
            logger.warning(f"Stack '{name}' is already deleted")
            return action(ActionType.SKIP_ALREADY_DELETED, "Stack is already in DELETE_COMPLETE state")

        if status is StackStatus.DELETE_FAILED:
            logger.warning(f"Stack '{name}' has a previous failed deletion")
            return action(
                ActionType.RETRY_DELETION, "Stack has failed deletion status, will attempt deletion again"
            )

        if status in (StackStatus.CREATE_COMPLETE, StackStatus.UPDATE_COMPLETE, StackStatus.ROLLBACK_COMPLETE):
            logger.info(f"Stack '{name}' is in stable state and can be deleted")
            return action(ActionType.PROCEED_WITH_DELETION, "Stack is in stable state, proceeding with deletion")

        if status in (
            StackStatus.CREATE_IN_PROGRESS,
            StackStatus.UPDATE_IN_PROGRESS,
            StackStatus.ROLLBACK_IN_PROGRESS,
        ):
            logger.warning(f"Stack '{name}' is currently in progress state: {observed.raw}")
            return action(
                ActionType.WAIT_FOR_STABLE_STATE,
                f"Stack is in progress state ({observed.raw}), should wait for stable state before deletion",
                exit_code=EXIT_STACK_ERROR,
            )

        logger.warning(f"Stack '{name}' is in unexpected state: {observed.raw}")
        return action(
            ActionType.PROCEED_WITH_CAUTION,
            f"Stack is in unexpected state ({observed.raw}), proceeding with caution",
        )

    def assess_risks(self, details: StackDetails) -> list[str]:
        """
        Look for things that commonly make a deletion fail or leave resources behind.

        Informational only. Returns human-readable warnings; failures of the
        underlying lookups are logged and skipped.
        """
        warnings = []
        if details.status.status is StackStatus.NOT_FOUND:
            return warnings

        logger.info(f"Analyzing stack '{details.name}' for potential deletion risks...")

        for export_name in details.export_names:
            warnings.append(f"Stack exports '{export_name}' - deletion fails while other stacks import it")

        try:
            template = self.api.template(details.name)
        except CloudFormationError as e:
            logger.warning(f"Could not retrieve template for risk analysis: {e.message}")
            template = {}

        resources = template.get("Resources", {}) if isinstance(template, dict) else {}
        for logical_id, resource in resources.items():
            if not isinstance(resource, dict):
                continue
            if resource.get("Type") == NESTED_STACK_TYPE:
                warnings.append(f"Nested stack '{logical_id}' will be deleted with its parent")
            if resource.get("DeletionPolicy") == "Retain":
                warnings.append(f"Resource '{logical_id}' has DeletionPolicy: Retain and will not be deleted")

        for warning in warnings:
            logger.warning(warning)
        if not warnings:
            logger.info("No significant deletion risks detected")
        return warnings
