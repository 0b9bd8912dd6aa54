# ABOUTME: CLI module for CloudFormation Stack Delete
# ABOUTME: Command-line entry points for deleting, checking and monitoring stacks

"""Command-line interface for CloudFormation Stack Delete."""
