# ABOUTME: Check command reporting what a deletion of a stack would do
# ABOUTME: Runs the state analysis and risk analysis without changing anything

"""Check command - Analyse a stack before deleting it."""

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cfn_stack_delete.cli.utils.cf_exceptions import CloudFormationError

from .base import StackCommand


class CheckCommand(StackCommand):
    name = "check"
    description = "Analyse a stack's state and deletion risks without deleting it"

    def handle(self) -> int:
        """Execute the check command."""
        console = Console()

        try:
            stack_name, workflow = self.prepare(console)
        except CloudFormationError as e:
            return self.fail(console, e)

        action, risks = workflow.check(stack_name)

        table = Table(title=f"Stack Analysis: {stack_name}", box=box.SIMPLE)
        table.add_column("Property", style="dim")
        table.add_column("Value")
        table.add_row("Status", escape(action.status.raw) if action.status else "UNKNOWN")
        table.add_row("Action", action.action.value)
        table.add_row("Message", escape(action.message))
        if action.reason:
            table.add_row("Reason", escape(action.reason))
        table.add_row("Exit Code", str(action.exit_code))
        console.print(table)

        if risks:
            console.print("\n[yellow]Deletion risks:[/yellow]")
            for risk in risks:
                console.print(f"• {escape(risk)}")

        return action.exit_code
