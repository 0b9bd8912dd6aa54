# ABOUTME: Polls stack status and events until the stack reaches a terminal status
# ABOUTME: Deduplicates events per session and emits them oldest first through a callback

"""
Event monitoring for a stack deletion.

Every poll fetches the full event list and filters out what was already shown,
instead of asking only for events newer than the last one seen. Stacks that
delete within a single poll interval would otherwise lose their only events to
the race between the query and the deletion.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from cfn_stack_delete.cli.utils.cf_exceptions import CloudFormationError
from cfn_stack_delete.clock import SystemClock
from cfn_stack_delete.models import MonitoringOutcome, MonitoringResult, StackEvent
from cfn_stack_delete.stack_api import StackAPI
from cfn_stack_delete.stack_status import NOT_FOUND, ObservedStatus, StackStatus

logger = logging.getLogger(__name__)

DELETE_EVENT_STATUSES = frozenset({"DELETE_IN_PROGRESS", "DELETE_COMPLETE", "DELETE_FAILED"})
STACK_RESOURCE_TYPE = "AWS::CloudFormation::Stack"


def format_event(event: StackEvent) -> str:
    """One-line rendering used for plain log output."""
    line = (
        f"{event.timestamp:%Y-%m-%d %H:%M:%S} | {event.resource_type} | "
        f"{event.logical_resource_id} | {event.resource_status}"
    )
    if event.status_reason:
        line += f" | {event.status_reason}"
    return line


def _log_event(event: StackEvent) -> None:
    if event.resource_status.endswith("FAILED"):
        logger.error(format_event(event))
    else:
        logger.info(format_event(event))


@dataclass
class MonitoringSession:
    """State owned by one poll_until_terminal call."""

    stack_name: str
    last_status: ObservedStatus | None = None
    seen: set = field(default_factory=set)
    events: list[StackEvent] = field(default_factory=list)
    status_changes: int = 0
    consecutive_failures: int = 0

    def record_status(self, observed: ObservedStatus) -> bool:
        """Remember the latest status; True when it differs from the previous one."""
        changed = self.last_status is not None and observed.status is not self.last_status.status
        if changed:
            logger.info(f"Stack status changed: {self.last_status.raw} -> {observed.raw}")
            self.status_changes += 1
        self.last_status = observed
        return changed

    def add(self, event: StackEvent) -> bool:
        """Record an event; False if its key was already seen this session."""
        if event.key in self.seen:
            return False
        self.seen.add(event.key)
        self.events.append(event)
        return True

    def has_stack_event(self, resource_status: str) -> bool:
        return any(
            event.logical_resource_id == self.stack_name and event.resource_status == resource_status
            for event in self.events
        )


class EventMonitor:
    """Polls one stack until it is gone, deleted, failed or the deadline passes."""

    def __init__(self, api: StackAPI, clock=None, on_event: Callable[[StackEvent], None] = None):
        self.api = api
        self.clock = clock or SystemClock()
        self.on_event = on_event or _log_event

    def poll_until_terminal(
        self,
        stack_name: str,
        poll_interval: float,
        max_duration: float,
        max_consecutive_failures: int = 3,
        active_poll_interval: float = None,
        initial_status: ObservedStatus = None,
    ) -> MonitoringResult:
        """
        Poll status and events until a terminal status, a timeout or repeated lookup failures.

        Args:
            stack_name: Stack being deleted
            poll_interval: Seconds between polls while no deletion event has been seen
            max_duration: Monitoring deadline in seconds
            max_consecutive_failures: Failed status lookups in a row before giving up
            active_poll_interval: Shorter interval used once deletion events are flowing
            initial_status: Status observed before monitoring, for status-change counting

        Returns:
            MonitoringResult with the events emitted during this session
        """
        active_poll_interval = active_poll_interval or poll_interval
        session = MonitoringSession(stack_name=stack_name, last_status=initial_status)
        start = self.clock.now()
        deadline = start + max_duration

        logger.info(f"Monitoring stack '{stack_name}' (poll interval: {poll_interval}s, timeout: {max_duration}s)")

        def finish(outcome: MonitoringOutcome, message: str) -> MonitoringResult:
            return MonitoringResult(
                outcome=outcome,
                final_status=session.last_status,
                events_displayed=len(session.events),
                status_changes=session.status_changes,
                elapsed_seconds=self.clock.now() - start,
                events=list(session.events),
                message=message,
            )

        while True:
            elapsed = self.clock.now() - start
            if elapsed >= max_duration:
                logger.error(f"Monitoring timed out after {elapsed:.0f}s")
                return finish(MonitoringOutcome.TIMEOUT, f"Stack deletion monitoring timed out after {elapsed:.0f}s")

            observed = self._query_status(session, deadline)
            if observed is None:
                if session.consecutive_failures >= max_consecutive_failures:
                    logger.error(f"Status lookups failed {session.consecutive_failures} times in a row, giving up")
                    return finish(
                        MonitoringOutcome.ERROR,
                        f"Unable to determine stack status after {session.consecutive_failures} consecutive failures",
                    )
            else:
                session.record_status(observed)
                if observed.is_terminal:
                    if observed.status is not StackStatus.NOT_FOUND:
                        self._collect_events(session, deadline)
                    self._emit_final_event(session)
                    logger.info(f"Stack reached terminal status: {session.last_status.raw}")
                    return finish(MonitoringOutcome.COMPLETED, f"Stack reached {session.last_status.raw}")

                if self._collect_events(session, deadline) is False:
                    session.record_status(NOT_FOUND)
                    self._emit_final_event(session)
                    return finish(MonitoringOutcome.COMPLETED, "Stack no longer exists")

            interval = active_poll_interval if session.events else poll_interval
            self.clock.sleep(max(0, min(interval, deadline - self.clock.now())))

    def _query_status(self, session: MonitoringSession, deadline: float) -> ObservedStatus | None:
        """Current status, or None when the lookup failed and the stack may still exist."""
        try:
            observed = self.api.status(session.stack_name, timeout=deadline - self.clock.now())
        except CloudFormationError as e:
            # A delete racing the describe call surfaces as an error; confirm before counting it
            if self.api.confirm_exists(session.stack_name, timeout=deadline - self.clock.now()) is False:
                return NOT_FOUND
            session.consecutive_failures += 1
            logger.warning(f"Failed to get stack status (attempt {session.consecutive_failures}): {e.message}")
            return None
        session.consecutive_failures = 0
        return observed

    def _collect_events(self, session: MonitoringSession, deadline: float) -> bool | None:
        """
        Fetch events and emit unseen deletion events.

        Returns:
            True on success, False if the stack turned out to be gone, None if the fetch failed
        """
        try:
            events = self.api.events(session.stack_name, timeout=deadline - self.clock.now())
        except CloudFormationError as e:
            exists = self.api.confirm_exists(session.stack_name, timeout=deadline - self.clock.now())
            if exists is False:
                logger.debug("Event query failed because the stack is gone")
                return False
            logger.warning(f"Failed to retrieve stack events: {e.message}")
            return None

        for event in events:
            if event.resource_status in DELETE_EVENT_STATUSES and session.add(event):
                self.on_event(event)
        return True

    def _emit_final_event(self, session: MonitoringSession) -> None:
        if not session.last_status.is_success or session.has_stack_event(StackStatus.DELETE_COMPLETE.value):
            return
        event = StackEvent(
            timestamp=self.clock.wall_time(),
            logical_resource_id=session.stack_name,
            resource_type=STACK_RESOURCE_TYPE,
            resource_status=StackStatus.DELETE_COMPLETE.value,
            status_reason="Stack deletion completed",
            synthetic=True,
        )
        session.add(event)
        self.on_event(event)
