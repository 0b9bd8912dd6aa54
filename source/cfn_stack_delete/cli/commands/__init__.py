# ABOUTME: Commands module for the stack deletion CLI
# ABOUTME: Contains all CLI command implementations

"""CLI commands for CloudFormation Stack Delete."""

from .check import CheckCommand
from .delete import DeleteCommand
from .monitor import MonitorCommand

__all__ = [
    "DeleteCommand",
    "CheckCommand",
    "MonitorCommand",
]
