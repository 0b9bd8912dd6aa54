# ABOUTME: CloudFormation Stack Delete - Delete AWS CloudFormation stacks and report the outcome
# ABOUTME: Main package for the stack deletion state machine and its GitHub Actions front end

"""CloudFormation Stack Delete - stack deletion with live progress reporting."""

__version__ = "1.0.0"
