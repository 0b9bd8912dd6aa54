# ABOUTME: Delete command removing one CloudFormation stack
# ABOUTME: Analyses the stack, starts deletion, follows its events and publishes the outcome

"""Delete command - Remove a CloudFormation stack."""

from cleo.helpers import option
from rich.console import Console
from rich.panel import Panel

from cfn_stack_delete.cli.utils.cf_exceptions import CloudFormationError
from cfn_stack_delete.cli.utils.reporting import publish
from cfn_stack_delete.cli.utils.validators import parse_boolean

from .base import StackCommand


class DeleteCommand(StackCommand):
    name = "delete"
    description = "Delete a CloudFormation stack and wait for the deletion to finish"

    options = (
        StackCommand.options
        + StackCommand.timing_options
        + [
            option("wait", description="Wait for deletion to complete (true/false)", flag=False, default="true"),
            option("no-wait", description="Return as soon as deletion has started", flag=True),
        ]
    )

    def handle(self) -> int:
        """Execute the delete command."""
        console = Console()

        try:
            wait = parse_boolean(self.option("wait"), "wait", default=True) and not self.option("no-wait")
            stack_name, workflow = self.prepare(console)
        except CloudFormationError as e:
            return self.fail(console, e)

        console.print(
            Panel.fit(
                f"[bold]Deleting CloudFormation stack[/bold] [cyan]{stack_name}[/cyan]\n"
                f"Region: {workflow.api.manager.region or 'default'} | "
                f"Timeout: {workflow.settings.timeout_minutes} min | "
                f"Poll interval: {workflow.settings.poll_interval}s",
                border_style="red",
                padding=(1, 2),
            )
        )

        run = workflow.run(stack_name, wait_for_completion=wait)
        publish(run, console)
        return run.exit_code
