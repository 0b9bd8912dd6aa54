# ABOUTME: Monitor command following a deletion that is already running
# ABOUTME: Tracks status and events to completion without sending a delete request

"""Monitor command - Follow an existing stack deletion."""

from rich.console import Console

from cfn_stack_delete.cli.utils.cf_exceptions import CloudFormationError
from cfn_stack_delete.cli.utils.reporting import publish

from .base import StackCommand


class MonitorCommand(StackCommand):
    name = "monitor"
    description = "Follow an in-progress stack deletion until it completes"

    options = StackCommand.options + StackCommand.timing_options

    def handle(self) -> int:
        """Execute the monitor command."""
        console = Console()

        try:
            stack_name, workflow = self.prepare(console)
        except CloudFormationError as e:
            return self.fail(console, e)

        console.print(f"Monitoring deletion of [cyan]{stack_name}[/cyan]...")
        run = workflow.monitor_existing(stack_name)
        publish(run, console)
        return run.exit_code
