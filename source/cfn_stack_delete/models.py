# ABOUTME: Typed result records passed between the deletion components
# ABOUTME: Actions, events, monitoring results and completion reports for one run

"""Result types for the stack deletion pipeline."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from cfn_stack_delete.cli.utils.cf_exceptions import EXIT_SUCCESS
from cfn_stack_delete.stack_status import ObservedStatus


class ActionType(str, Enum):
    SKIP_ALREADY_DELETED = "SKIP_ALREADY_DELETED"
    MONITOR_EXISTING_DELETION = "MONITOR_EXISTING_DELETION"
    WAIT_FOR_STABLE_STATE = "WAIT_FOR_STABLE_STATE"
    PROCEED_WITH_DELETION = "PROCEED_WITH_DELETION"
    RETRY_DELETION = "RETRY_DELETION"
    PROCEED_WITH_CAUTION = "PROCEED_WITH_CAUTION"
    ERROR = "ERROR"


# Actions after which a delete request is sent
INITIATING_ACTIONS = frozenset(
    {ActionType.PROCEED_WITH_DELETION, ActionType.RETRY_DELETION, ActionType.PROCEED_WITH_CAUTION}
)


@dataclass(frozen=True)
class StackDetails:
    """The parts of a describe_stacks response the deletion logic uses."""

    name: str
    status: ObservedStatus
    outputs: tuple = ()
    creation_time: datetime | None = None
    last_updated_time: datetime | None = None

    @property
    def export_names(self) -> list[str]:
        return [output["ExportName"] for output in self.outputs if output.get("ExportName")]


@dataclass(frozen=True)
class DeletionAction:
    """Decision taken from a single status snapshot."""

    action: ActionType
    message: str
    exit_code: int = EXIT_SUCCESS
    status: ObservedStatus | None = None
    stack: StackDetails | None = None
    reason: str | None = None

    @property
    def requires_initiation(self) -> bool:
        return self.action in INITIATING_ACTIONS


class InitiationOutcome(str, Enum):
    INITIATED = "initiated"
    NOT_NEEDED = "not_needed"
    DEPENDENCY_CONFLICT = "dependency_conflict"
    PERMISSION_ERROR = "permission_error"
    ERROR = "error"


@dataclass(frozen=True)
class InitiationResult:
    """Outcome of a delete request."""

    outcome: InitiationOutcome
    message: str
    status: ObservedStatus | None = None
    exports_in_use: dict[str, list[str]] = field(default_factory=dict)

    @property
    def initiated(self) -> bool:
        return self.outcome is InitiationOutcome.INITIATED

    @property
    def succeeded(self) -> bool:
        return self.outcome in (InitiationOutcome.INITIATED, InitiationOutcome.NOT_NEEDED)


@dataclass(frozen=True)
class StackEvent:
    """One CloudFormation change event; immutable once observed."""

    timestamp: datetime
    logical_resource_id: str
    resource_type: str
    resource_status: str
    status_reason: str | None = None
    synthetic: bool = False

    @property
    def key(self) -> tuple:
        return (self.timestamp, self.logical_resource_id, self.resource_status)

    @classmethod
    def from_api(cls, event: dict[str, Any]) -> "StackEvent":
        return cls(
            timestamp=event["Timestamp"],
            logical_resource_id=event.get("LogicalResourceId", "N/A"),
            resource_type=event.get("ResourceType", "N/A"),
            resource_status=event.get("ResourceStatus", "N/A"),
            status_reason=event.get("ResourceStatusReason"),
        )


class MonitoringOutcome(str, Enum):
    COMPLETED = "completed"
    TIMEOUT = "timeout"
    ERROR = "error"


@dataclass
class MonitoringResult:
    """Accumulated output of one polling session."""

    outcome: MonitoringOutcome
    final_status: ObservedStatus | None
    events_displayed: int = 0
    status_changes: int = 0
    elapsed_seconds: float = 0.0
    events: list[StackEvent] = field(default_factory=list)
    message: str = ""


class CompletionOutcome(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    TIMEOUT = "timeout"
    ERROR = "error"


@dataclass
class CompletionReport:
    """Final outcome of tracking one deletion."""

    outcome: CompletionOutcome
    final_status: str
    duration_seconds: float
    events_count: int = 0
    status_change_count: int = 0
    message: str = ""
    already_completed: bool = False
    events: list[StackEvent] = field(default_factory=list)


class OperationResult(str, Enum):
    """Operation result as published to the workflow outputs."""

    SUCCESS = "success"
    FAILED = "failed"
    TIMEOUT = "timeout"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass
class DeletionRun:
    """Everything one run produced, handed to the reporting layer."""

    stack_name: str
    report: CompletionReport
    operation_result: OperationResult
    exit_code: int
    action: DeletionAction | None = None
    initiation: InitiationResult | None = None
    risks: list[str] = field(default_factory=list)
    started_at: datetime | None = None
    finished_at: datetime | None = None
