# ABOUTME: Custom exception classes for CloudFormation stack deletion
# ABOUTME: Provides structured error handling with stable exit codes for each failure class

"""Custom exceptions for CloudFormation deletion operations."""

EXIT_SUCCESS = 0
EXIT_VALIDATION_ERROR = 1
EXIT_AUTH_ERROR = 2
EXIT_STACK_ERROR = 3
EXIT_DELETION_ERROR = 4
EXIT_TIMEOUT_ERROR = 5


class CloudFormationError(Exception):
    """Base exception for all CloudFormation operations."""

    exit_code = EXIT_STACK_ERROR

    def __init__(self, message: str, stack_name: str = None):
        self.message = message
        self.stack_name = stack_name
        super().__init__(self.message)


class ValidationError(CloudFormationError):
    """Raised when caller-supplied input is invalid."""

    exit_code = EXIT_VALIDATION_ERROR


class AuthError(CloudFormationError):
    """Raised when credentials are missing or invalid."""

    exit_code = EXIT_AUTH_ERROR


class AccessDeniedError(AuthError):
    """Raised when IAM permissions are insufficient for the deletion."""

    def __init__(self, message: str, required_permissions: list = None, stack_name: str = None):
        super().__init__(message, stack_name)
        self.required_permissions = required_permissions or [
            "cloudformation:DeleteStack",
            "cloudformation:DescribeStacks",
            "cloudformation:DescribeStackEvents",
        ]


class StackNotFoundError(CloudFormationError):
    """Raised when a stack does not exist."""

    pass


class StackStateError(CloudFormationError):
    """Raised when a stack is in a state deletion cannot proceed from."""

    exit_code = EXIT_STACK_ERROR

    def __init__(self, message: str, current_status: str = None, stack_name: str = None):
        super().__init__(message, stack_name)
        self.current_status = current_status


class DeletionError(CloudFormationError):
    """Raised when the delete request is rejected."""

    exit_code = EXIT_DELETION_ERROR


class DependencyConflictError(StackStateError):
    """Raised when other stacks still import this stack's exports."""

    def __init__(self, message: str, exports_in_use: dict = None, stack_name: str = None):
        super().__init__(message, stack_name=stack_name)
        self.exports_in_use = exports_in_use or {}


class StackTimeoutError(CloudFormationError):
    """Raised when a deadline passes at any level."""

    exit_code = EXIT_TIMEOUT_ERROR

    def __init__(self, message: str, operation: str = None, stack_name: str = None):
        super().__init__(message, stack_name)
        self.operation = operation


class APICallError(CloudFormationError):
    """Raised when a provider call fails for good, after any retries."""

    def __init__(self, message: str, error_class=None, attempts: int = 1, cause: Exception = None):
        super().__init__(message)
        self.error_class = error_class
        self.attempts = attempts
        self.cause = cause

    @property
    def is_not_found(self) -> bool:
        return isinstance(self.cause, StackNotFoundError) or "does not exist" in self.message.lower()
