# ABOUTME: Shared argument handling for the stack commands
# ABOUTME: Validates the stack name, region and timing options and sets up logging

"""Base class for commands operating on one stack."""

from cleo.commands.command import Command
from cleo.helpers import argument, option
from rich.console import Console
from rich.markup import escape

from cfn_stack_delete.cli.utils.aws import build_workflow, resolve_region
from cfn_stack_delete.cli.utils.cf_exceptions import AuthError, CloudFormationError
from cfn_stack_delete.cli.utils.reporting import print_event
from cfn_stack_delete.cli.utils.validators import parse_int_in_range, validate_stack_name
from cfn_stack_delete.config import DeletionSettings
from cfn_stack_delete.log import configure_logging
from cfn_stack_delete.workflow import StackDeletionWorkflow


class StackCommand(Command):
    arguments = [argument("stack", description="Name of the CloudFormation stack")]

    options = [
        option("region", "r", description="AWS region (defaults to AWS_REGION or the AWS configuration)", flag=False),
        option("profile", description="AWS profile to use", flag=False),
        option("debug", description="Enable debug logging", flag=True),
    ]

    timing_options = [
        option("poll-interval", description="Seconds between status checks (1-60)", flag=False),
        option("timeout-minutes", description="Minutes to wait for deletion to complete (1-1440)", flag=False),
    ]

    def prepare(self, console: Console) -> tuple[str, StackDeletionWorkflow]:
        """
        Validate inputs, configure logging and credentials, and build the workflow.

        Raises:
            CloudFormationError: ValidationError for bad input, AuthError for bad credentials
        """
        configure_logging(self.option("debug"))

        stack_name = validate_stack_name(self.argument("stack"))
        region = resolve_region(self.option("region"))
        settings = self.settings()

        workflow = build_workflow(
            region=region,
            settings=settings,
            on_event=lambda event: print_event(console, event),
            profile=self.option("profile"),
        )
        workflow.check_credentials()
        return stack_name, workflow

    def settings(self) -> DeletionSettings:
        settings = DeletionSettings.from_env()
        if self.has_timing_options():
            settings.poll_interval = parse_int_in_range(
                self.option("poll-interval"), "Poll interval", 1, 60, default=settings.poll_interval
            )
            settings.timeout_minutes = parse_int_in_range(
                self.option("timeout-minutes"), "Timeout minutes", 1, 1440, default=settings.timeout_minutes
            )
            settings.active_poll_interval = min(settings.active_poll_interval, settings.poll_interval)
        return settings.validate()

    def has_timing_options(self) -> bool:
        return any(opt.name == "poll-interval" for opt in self.options)

    def fail(self, console: Console, error: CloudFormationError) -> int:
        if isinstance(error, AuthError):
            console.print(f"[red]AWS configuration error: {escape(error.message)}[/red]")
            console.print("Configure credentials with aws-actions/configure-aws-credentials or AWS_* variables")
        else:
            console.print(f"[red]{escape(error.message)}[/red]")
        return error.exit_code
