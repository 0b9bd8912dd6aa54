# ABOUTME: Final status reporting for stack deletion runs
# ABOUTME: GitHub Actions outputs and job summary, exit codes and rich console report tables

"""Shared reporting utilities for the deletion commands."""

import logging
import os
import uuid

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cfn_stack_delete.models import DeletionRun, OperationResult, StackEvent

from .cf_exceptions import (
    EXIT_DELETION_ERROR,
    EXIT_STACK_ERROR,
    EXIT_SUCCESS,
    EXIT_TIMEOUT_ERROR,
)

logger = logging.getLogger(__name__)

_RESULT_EMOJI = {
    OperationResult.SUCCESS: "✅",
    OperationResult.SKIPPED: "⏭️",
    OperationResult.FAILED: "❌",
    OperationResult.TIMEOUT: "⏰",
    OperationResult.ERROR: "🚨",
}

_RESULT_STYLE = {
    OperationResult.SUCCESS: "green",
    OperationResult.SKIPPED: "yellow",
    OperationResult.FAILED: "red",
    OperationResult.TIMEOUT: "yellow",
    OperationResult.ERROR: "red",
}

_RESULT_DETAILS = {
    OperationResult.SUCCESS: (
        "The CloudFormation stack has been successfully deleted. "
        "All resources associated with the stack have been removed."
    ),
    OperationResult.SKIPPED: "The stack deletion was skipped because the stack was already deleted or does not exist.",
    OperationResult.FAILED: (
        "The stack deletion failed. Please check the CloudFormation console for detailed error information "
        "and consider manual cleanup if necessary."
    ),
    OperationResult.TIMEOUT: (
        "The stack deletion monitoring timed out. The stack may still be deleting in the background. "
        "Please check the CloudFormation console to monitor progress."
    ),
    OperationResult.ERROR: (
        "An error occurred during the deletion process. Please review the action logs for specific error details."
    ),
}


def format_duration(seconds: float) -> str:
    """Format a duration as ``1h 2m 3s``, ``2m 3s`` or ``3s``."""
    total = max(0, int(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def performance_rating(seconds: float) -> str:
    if seconds < 60:
        return "Excellent (< 1 minute)"
    if seconds < 300:
        return "Good (< 5 minutes)"
    if seconds < 900:
        return "Normal (< 15 minutes)"
    if seconds < 1800:
        return "Slow (< 30 minutes)"
    return "Very Slow (> 30 minutes)"


def exit_code_for(result: OperationResult, final_status: str = None, error_exit_code: int = EXIT_STACK_ERROR) -> int:
    """
    Process exit code for an operation result.

    Args:
        result: Operation result of the run
        final_status: Final stack status, distinguishes DELETE_FAILED from other failures
        error_exit_code: Code used for the error result, set by whoever classified the error
    """
    if result in (OperationResult.SUCCESS, OperationResult.SKIPPED):
        return EXIT_SUCCESS
    if result is OperationResult.TIMEOUT:
        return EXIT_TIMEOUT_ERROR
    if result is OperationResult.FAILED:
        return EXIT_DELETION_ERROR if final_status == "DELETE_FAILED" else EXIT_STACK_ERROR
    return error_exit_code


def generate_summary(stack_name: str, final_status: str, duration: str, result: OperationResult) -> str:
    """One-line human summary, also published as the ``summary`` output."""
    if result is OperationResult.SUCCESS:
        if final_status == "DELETE_COMPLETE":
            message = f"Stack '{stack_name}' has been successfully deleted"
        else:
            message = f"Stack '{stack_name}' deletion completed successfully (Status: {final_status})"
    elif result is OperationResult.SKIPPED:
        message = f"Stack '{stack_name}' deletion was skipped (already deleted or not found)"
    elif result is OperationResult.FAILED:
        message = f"Stack '{stack_name}' deletion failed (Status: {final_status})"
    elif result is OperationResult.TIMEOUT:
        message = f"Stack '{stack_name}' deletion timed out after {duration}"
    else:
        message = f"Error occurred during stack '{stack_name}' deletion process"

    if result is not OperationResult.TIMEOUT and duration:
        message = f"{message} (Duration: {duration})"
    return f"{_RESULT_EMOJI[result]} {message}"


def build_outputs(run: DeletionRun) -> dict[str, str]:
    """The action's outputs for a finished run."""
    duration = format_duration(run.report.duration_seconds)
    return {
        "stack-status": run.report.final_status,
        "deletion-time": duration,
        "operation-result": run.operation_result.value,
        "summary": generate_summary(run.stack_name, run.report.final_status, duration, run.operation_result),
    }


def set_github_outputs(outputs: dict[str, str], environ: dict[str, str] = None) -> bool:
    """
    Append outputs to the ``$GITHUB_OUTPUT`` file.

    Returns:
        False when not running under GitHub Actions
    """
    environ = os.environ if environ is None else environ
    output_file = environ.get("GITHUB_OUTPUT")
    if not output_file:
        for name, value in outputs.items():
            logger.debug(f"GITHUB_OUTPUT not set, would set: {name}={value}")
        return False

    with open(output_file, "a", encoding="utf-8") as f:
        for name, value in outputs.items():
            if "\n" in value:
                delimiter = f"ghadelimiter_{uuid.uuid4()}"
                f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
            else:
                f.write(f"{name}={value}\n")
    return True


def render_job_summary(run: DeletionRun) -> str:
    """Markdown job summary for a finished run."""
    result = run.operation_result
    emoji = _RESULT_EMOJI[result]
    duration = format_duration(run.report.duration_seconds)

    lines = [
        "# CloudFormation Stack Deletion Report",
        "",
        "## Summary",
        f"{emoji} **Stack deletion {result.value}**",
        "",
        "## Details",
        "| Property | Value |",
        "|----------|-------|",
        f"| Stack Name | `{run.stack_name}` |",
        f"| Final Status | `{run.report.final_status}` |",
        f"| Operation Result | {emoji} {result.value} |",
        f"| Duration | {duration} |",
        f"| Events Monitored | {run.report.events_count} |",
        f"| Status Changes | {run.report.status_change_count} |",
        "",
    ]
    if run.started_at and run.finished_at:
        lines += [
            "## Timing Information",
            f"- **Start Time:** {run.started_at:%Y-%m-%d %H:%M:%S} UTC",
            f"- **End Time:** {run.finished_at:%Y-%m-%d %H:%M:%S} UTC",
            f"- **Total Duration:** {duration}",
            "",
        ]
    lines += ["## Result", _RESULT_DETAILS[result], ""]
    if run.report.message and result in (OperationResult.FAILED, OperationResult.ERROR):
        lines += [f"> {run.report.message}", ""]
    return "\n".join(lines) + "\n"


def write_job_summary(run: DeletionRun, environ: dict[str, str] = None) -> bool:
    """Append the job summary to ``$GITHUB_STEP_SUMMARY`` when it is set."""
    environ = os.environ if environ is None else environ
    summary_file = environ.get("GITHUB_STEP_SUMMARY")
    if not summary_file:
        logger.debug("GITHUB_STEP_SUMMARY not set, skipping job summary creation")
        return False

    with open(summary_file, "a", encoding="utf-8") as f:
        f.write(render_job_summary(run))
    logger.debug("Created GitHub Actions job summary")
    return True


def print_event(console: Console, event: StackEvent) -> None:
    """Live display line for one stack event."""
    status = event.resource_status
    if status.endswith("FAILED"):
        style = "red"
    elif status.endswith("COMPLETE"):
        style = "green"
    else:
        style = "yellow"
    line = (
        f"[dim]{event.timestamp:%H:%M:%S}[/dim] [{style}]{status:<20}[/{style}] "
        f"[cyan]{escape(event.logical_resource_id)}[/cyan] [dim]({escape(event.resource_type)})[/dim]"
    )
    if event.status_reason:
        line += f" - {escape(event.status_reason)}"
    console.print(line, highlight=False)


def display_report(console: Console, run: DeletionRun) -> None:
    """Print the final report table."""
    report = run.report
    style = _RESULT_STYLE[run.operation_result]

    table = Table(title="Deletion Process Report", box=box.SIMPLE)
    table.add_column("Property", style="dim")
    table.add_column("Value")

    table.add_row("Stack Name", run.stack_name)
    table.add_row("Final Status", escape(report.final_status))
    table.add_row("Operation Result", f"[{style}]{run.operation_result.value}[/{style}]")
    if run.action is not None:
        table.add_row("Action", run.action.action.value)
    table.add_row("Duration", f"{format_duration(report.duration_seconds)} ({int(report.duration_seconds)} seconds)")
    table.add_row("Events Monitored", str(report.events_count))
    table.add_row("Status Changes", str(report.status_change_count))
    table.add_row("Performance", performance_rating(report.duration_seconds))
    if report.message:
        table.add_row("Message", escape(report.message))

    console.print(table)


def publish(run: DeletionRun, console: Console = None, environ: dict[str, str] = None) -> dict[str, str]:
    """Display the report, set outputs and write the job summary; returns the outputs."""
    console = console or Console()
    display_report(console, run)

    outputs = build_outputs(run)
    set_github_outputs(outputs, environ)
    write_job_summary(run, environ)

    summary = outputs["summary"]
    if run.operation_result in (OperationResult.SUCCESS, OperationResult.SKIPPED):
        logger.info(summary)
    elif run.operation_result is OperationResult.TIMEOUT:
        logger.warning(summary)
    else:
        logger.error(summary)
    return outputs
