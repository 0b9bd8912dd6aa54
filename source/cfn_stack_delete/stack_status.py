# ABOUTME: Maps raw CloudFormation stack status strings to semantic categories
# ABOUTME: Pure lookup tables used by the analyzer, the event monitor and the completion tracker

"""
Stack status classification.

Every status query ends up here. The provider's raw string (or the absence of a
stack) becomes an ``ObservedStatus``: a ``StackStatus`` member plus the raw text,
so statuses outside the known table survive as ``UNKNOWN`` with their original
value instead of raising.
"""

from dataclasses import dataclass
from enum import Enum


class StackStatus(str, Enum):
    """Stack statuses the deletion logic distinguishes."""

    NOT_FOUND = "STACK_NOT_FOUND"
    DELETE_IN_PROGRESS = "DELETE_IN_PROGRESS"
    DELETE_COMPLETE = "DELETE_COMPLETE"
    DELETE_FAILED = "DELETE_FAILED"
    CREATE_COMPLETE = "CREATE_COMPLETE"
    UPDATE_COMPLETE = "UPDATE_COMPLETE"
    ROLLBACK_COMPLETE = "ROLLBACK_COMPLETE"
    CREATE_IN_PROGRESS = "CREATE_IN_PROGRESS"
    UPDATE_IN_PROGRESS = "UPDATE_IN_PROGRESS"
    ROLLBACK_IN_PROGRESS = "ROLLBACK_IN_PROGRESS"
    CREATE_FAILED = "CREATE_FAILED"
    UPDATE_FAILED = "UPDATE_FAILED"
    ROLLBACK_FAILED = "ROLLBACK_FAILED"
    UNKNOWN = "UNKNOWN"


class StatusCategory(str, Enum):
    TERMINAL_SUCCESS = "terminal-success"
    TERMINAL_FAILURE = "terminal-failure"
    IN_PROGRESS = "in-progress"
    STABLE = "stable"
    UNKNOWN = "unknown"


_CATEGORIES = {
    StackStatus.NOT_FOUND: StatusCategory.TERMINAL_SUCCESS,
    StackStatus.DELETE_COMPLETE: StatusCategory.TERMINAL_SUCCESS,
    StackStatus.DELETE_FAILED: StatusCategory.TERMINAL_FAILURE,
    StackStatus.CREATE_FAILED: StatusCategory.TERMINAL_FAILURE,
    StackStatus.UPDATE_FAILED: StatusCategory.TERMINAL_FAILURE,
    StackStatus.ROLLBACK_FAILED: StatusCategory.TERMINAL_FAILURE,
    StackStatus.DELETE_IN_PROGRESS: StatusCategory.IN_PROGRESS,
    StackStatus.CREATE_IN_PROGRESS: StatusCategory.IN_PROGRESS,
    StackStatus.UPDATE_IN_PROGRESS: StatusCategory.IN_PROGRESS,
    StackStatus.ROLLBACK_IN_PROGRESS: StatusCategory.IN_PROGRESS,
    StackStatus.CREATE_COMPLETE: StatusCategory.STABLE,
    StackStatus.UPDATE_COMPLETE: StatusCategory.STABLE,
    StackStatus.ROLLBACK_COMPLETE: StatusCategory.STABLE,
    StackStatus.UNKNOWN: StatusCategory.UNKNOWN,
}

_BY_VALUE = {status.value: status for status in StackStatus if status is not StackStatus.UNKNOWN}


@dataclass(frozen=True)
class ObservedStatus:
    """One classified status snapshot."""

    status: StackStatus
    raw: str
    reason: str | None = None

    @property
    def category(self) -> StatusCategory:
        return _CATEGORIES[self.status]

    @property
    def is_terminal(self) -> bool:
        return self.category in (StatusCategory.TERMINAL_SUCCESS, StatusCategory.TERMINAL_FAILURE)

    @property
    def is_success(self) -> bool:
        return self.category is StatusCategory.TERMINAL_SUCCESS

    @property
    def is_failure(self) -> bool:
        return self.category is StatusCategory.TERMINAL_FAILURE

    def __str__(self) -> str:
        return self.raw


NOT_FOUND = ObservedStatus(StackStatus.NOT_FOUND, StackStatus.NOT_FOUND.value)


def classify(raw_status: str | None, reason: str | None = None) -> ObservedStatus:
    """
    Classify a raw provider status.

    Args:
        raw_status: Status string from describe_stacks, or None when the stack does not exist
        reason: Optional StackStatusReason carried along for reporting

    Returns:
        ObservedStatus; unrecognised strings map to UNKNOWN with the raw value kept
    """
    if raw_status is None:
        return NOT_FOUND

    raw = raw_status.strip()
    status = _BY_VALUE.get(raw, StackStatus.UNKNOWN)
    return ObservedStatus(status=status, raw=raw, reason=reason)
