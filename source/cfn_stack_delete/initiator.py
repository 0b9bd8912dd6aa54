# ABOUTME: Sends the delete-stack request and interprets its failures
# ABOUTME: Checks export imports first; "already gone" and "already deleting" count as success

"""Deletion initiation for CloudFormation stacks."""

import logging
import re

from cfn_stack_delete.cli.utils.cf_exceptions import CloudFormationError
from cfn_stack_delete.models import InitiationOutcome, InitiationResult, StackDetails
from cfn_stack_delete.stack_api import StackAPI
from cfn_stack_delete.stack_status import NOT_FOUND, ObservedStatus, StackStatus, classify

logger = logging.getLogger(__name__)

DEPENDENCY_PATTERNS = (
    r"dependent.*resource",
    r"resource.*dependency",
    r"export.*cannot.*be.*deleted",
    r"export.*is.*in.*use",
    r"resource.*not.*stabilized",
    r"resource.*in.*use",
)
NOT_FOUND_PATTERNS = (r"does not exist", r"stack.*not.*exist")
IN_PROGRESS_PATTERNS = (r"already being deleted", r"delete_in_progress")
PERMISSION_PATTERNS = (r"access.*denied", r"insufficient.*privileges", r"unauthorized")

# Statuses showing a delete request took effect
DELETION_STARTED_STATUSES = frozenset(
    {StackStatus.DELETE_IN_PROGRESS, StackStatus.DELETE_COMPLETE, StackStatus.NOT_FOUND}
)
VERIFY_ATTEMPTS = 3
VERIFY_DELAY = 1


def _matches(text: str, patterns: tuple) -> bool:
    return any(re.search(pattern, text) for pattern in patterns)


def interpret_delete_error(message: str) -> InitiationResult:
    """
    Map a failed delete request to an outcome.

    Patterns are matched case-insensitively in priority order; dependency
    problems win over everything else because retrying cannot fix them.
    """
    text = message.lower()

    if _matches(text, DEPENDENCY_PATTERNS):
        return InitiationResult(
            InitiationOutcome.DEPENDENCY_CONFLICT, f"Stack has dependencies that prevent deletion: {message}"
        )
    if _matches(text, NOT_FOUND_PATTERNS):
        return InitiationResult(
            InitiationOutcome.NOT_NEEDED, "Stack does not exist, deletion not needed", status=NOT_FOUND
        )
    if _matches(text, IN_PROGRESS_PATTERNS):
        return InitiationResult(
            InitiationOutcome.NOT_NEEDED,
            "Stack deletion already in progress",
            status=classify(StackStatus.DELETE_IN_PROGRESS.value),
        )
    if _matches(text, PERMISSION_PATTERNS):
        return InitiationResult(
            InitiationOutcome.PERMISSION_ERROR, f"Insufficient permissions to delete stack: {message}"
        )
    if re.search(r"cannot.*delete.*stack", text) and re.search(r"in.*progress", text):
        return InitiationResult(
            InitiationOutcome.ERROR, f"Cannot delete stack while another operation is in progress: {message}"
        )
    return InitiationResult(InitiationOutcome.ERROR, f"Failed to initiate stack deletion: {message}")


class DeletionInitiator:
    """The one component that changes remote state."""

    def __init__(self, api: StackAPI):
        self.api = api

    def find_imported_exports(self, stack: StackDetails) -> dict[str, list[str]]:
        """
        Find this stack's exports that other stacks still import.

        Lookup errors are logged and the export is treated as not in use.

        Returns:
            Mapping of export name to importing stack names, only for exports in use
        """
        in_use = {}
        for export_name in stack.export_names:
            try:
                importers = self.api.importers(export_name)
            except CloudFormationError as e:
                logger.warning(f"Could not check imports for export '{export_name}': {e.message}")
                continue
            if importers:
                in_use[export_name] = importers
        return in_use

    def initiate(self, stack_name: str, stack: StackDetails = None) -> InitiationResult:
        """
        Request deletion of a stack.

        Args:
            stack_name: Name of the stack to delete
            stack: Snapshot from the analysis step; its exports are checked for imports first

        Returns:
            InitiationResult describing what happened; never raises for provider errors
        """
        if stack is not None:
            in_use = self.find_imported_exports(stack)
            if in_use:
                for export_name, importers in in_use.items():
                    logger.error(f"Export '{export_name}' is imported by: {', '.join(importers)}")
                logger.error("Delete or update the importing stacks first, then retry the deletion")
                return InitiationResult(
                    InitiationOutcome.DEPENDENCY_CONFLICT,
                    f"Stack exports are in use by other stacks: {', '.join(sorted(in_use))}",
                    exports_in_use=in_use,
                )

        logger.info(f"Initiating deletion of stack '{stack_name}'...")
        try:
            self.api.delete(stack_name)
        except CloudFormationError as e:
            result = interpret_delete_error(e.message)
            self._log_outcome(stack_name, result)
            return result

        logger.info(f"Stack deletion initiated successfully for '{stack_name}'")
        return InitiationResult(
            InitiationOutcome.INITIATED,
            "Stack deletion initiated",
            status=classify(StackStatus.DELETE_IN_PROGRESS.value),
        )

    def verify_initiated(
        self, stack_name: str, attempts: int = VERIFY_ATTEMPTS, delay: float = VERIFY_DELAY
    ) -> ObservedStatus | None:
        """
        Re-read the status until the delete request shows, so a stale DELETE_FAILED is not taken as the result.

        Args:
            stack_name: Stack the delete request was sent for
            attempts: Status reads before giving up
            delay: Seconds between reads

        Returns:
            The confirming status, or None if the deletion could not be confirmed
        """
        logger.info(f"Verifying deletion initiation for stack '{stack_name}'...")
        for attempt in range(1, attempts + 1):
            try:
                observed = self.api.status(stack_name)
            except CloudFormationError as e:
                logger.debug(f"Verification attempt {attempt}/{attempts} failed: {e.message}")
            else:
                if observed.status in DELETION_STARTED_STATUSES:
                    logger.debug(f"Deletion verified, stack is {observed.raw}")
                    return observed
                logger.debug(f"Stack still reports {observed.raw} (attempt {attempt}/{attempts})")

            if attempt < attempts:
                self.api.clock.sleep(delay)

        logger.warning(f"Could not confirm that deletion of '{stack_name}' started after {attempts} checks")
        return None

    def _log_outcome(self, stack_name: str, result: InitiationResult) -> None:
        if result.outcome is InitiationOutcome.NOT_NEEDED:
            logger.warning(f"{result.message} ('{stack_name}')")
        elif result.outcome is InitiationOutcome.DEPENDENCY_CONFLICT:
            logger.error(result.message)
            logger.error("Check for stacks importing this stack's outputs and delete them first")
        elif result.outcome is InitiationOutcome.PERMISSION_ERROR:
            logger.error(result.message)
            logger.error("Required permissions: cloudformation:DeleteStack, cloudformation:DescribeStacks")
        else:
            logger.error(result.message)
