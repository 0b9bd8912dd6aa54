# ABOUTME: Console application for CloudFormation Stack Delete
# ABOUTME: Registers the delete, check and monitor commands

"""CLI application."""

from cleo.application import Application

from cfn_stack_delete import __version__

from .commands import CheckCommand, DeleteCommand, MonitorCommand


def create_application() -> Application:
    """Create the CLI application."""
    application = Application("cfn-stack-delete", __version__)

    application.add(DeleteCommand())
    application.add(CheckCommand())
    application.add(MonitorCommand())

    return application


def main():
    """Main entry point for the CLI."""
    application = create_application()
    application.run()


if __name__ == "__main__":
    main()
