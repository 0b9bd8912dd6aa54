# ABOUTME: Shared helpers for the CLI commands
# ABOUTME: AWS access, exceptions, validation and reporting
