# ABOUTME: Retry wrapper for provider API calls with error classification and exponential backoff
# ABOUTME: Bounds every call by both an attempt limit and an overall deadline

"""Classification-based retry for AWS API calls."""

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from enum import Enum
from typing import Any

from botocore.exceptions import (
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    ReadTimeoutError,
)

from cfn_stack_delete.cli.utils.cf_exceptions import APICallError, StackNotFoundError, StackTimeoutError
from cfn_stack_delete.clock import SystemClock

logger = logging.getLogger(__name__)


class RetryableErrorClass(str, Enum):
    THROTTLING = "THROTTLING"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"
    NETWORK = "NETWORK"
    TRANSIENT = "TRANSIENT"
    NON_RETRYABLE = "NON_RETRYABLE"

    @property
    def retryable(self) -> bool:
        return self is not RetryableErrorClass.NON_RETRYABLE


# Checked in order; the first matching class wins
_MESSAGE_PATTERNS = [
    (RetryableErrorClass.THROTTLING, ("throttling", "rate exceeded", "requestlimitexceeded", "too many requests")),
    (
        RetryableErrorClass.SERVICE_UNAVAILABLE,
        ("service unavailable", "serviceunavailable", "internal server error", "internalservererror"),
    ),
    (RetryableErrorClass.TIMEOUT, ("timeout", "timed out")),
    (RetryableErrorClass.NETWORK, ("connection", "network", "dns", "unable to locate credentials")),
    (RetryableErrorClass.TRANSIENT, ("temporary", "transient", "try again")),
]

_ERROR_CODES = {
    "Throttling": RetryableErrorClass.THROTTLING,
    "ThrottlingException": RetryableErrorClass.THROTTLING,
    "RequestLimitExceeded": RetryableErrorClass.THROTTLING,
    "TooManyRequestsException": RetryableErrorClass.THROTTLING,
    "ServiceUnavailable": RetryableErrorClass.SERVICE_UNAVAILABLE,
    "InternalFailure": RetryableErrorClass.SERVICE_UNAVAILABLE,
    "InternalError": RetryableErrorClass.SERVICE_UNAVAILABLE,
}


def classify_message(message: str) -> RetryableErrorClass:
    """Classify free error text by case-insensitive substring match."""
    lowered = message.lower()
    for error_class, needles in _MESSAGE_PATTERNS:
        if any(needle in lowered for needle in needles):
            return error_class
    return RetryableErrorClass.NON_RETRYABLE


def classify_error(error: BaseException) -> RetryableErrorClass:
    """
    Classify a failed call.

    Structured botocore information is used where it exists; everything else
    falls back to the message table so both paths agree on provider messages.
    """
    if isinstance(error, StackNotFoundError):
        return RetryableErrorClass.NON_RETRYABLE
    if isinstance(error, ClientError):
        code = error.response.get("Error", {}).get("Code", "")
        if code in _ERROR_CODES:
            return _ERROR_CODES[code]
    elif isinstance(error, (ReadTimeoutError, ConnectTimeoutError, StackTimeoutError)):
        return RetryableErrorClass.TIMEOUT
    elif isinstance(error, (EndpointConnectionError, ConnectionClosedError, NoCredentialsError, ConnectionError)):
        return RetryableErrorClass.NETWORK
    return classify_message(str(error))


class RetryingAPIClient:
    """
    Runs one provider operation with retry, backoff and a deadline.

    Only the last call's attempt count and delay sequence are kept, for logging
    and tests.
    """

    def __init__(
        self,
        max_attempts: int = 5,
        base_delay: float = 2,
        max_delay: float = 60,
        overall_timeout: float = 300,
        clock=None,
    ):
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.overall_timeout = overall_timeout
        self.clock = clock or SystemClock()
        self.attempts = 0
        self.delays: list[float] = []

    def call(
        self,
        operation: Callable[[], Any],
        operation_name: str = "AWS operation",
        max_attempts: int = None,
        base_delay: float = None,
        max_delay: float = None,
        overall_timeout: float = None,
    ) -> Any:
        """
        Execute an operation until it succeeds, fails for good or runs out of time.

        Args:
            operation: Zero-argument callable performing the API call
            operation_name: Label used in log messages
            max_attempts: Attempt limit, defaults to the client's
            base_delay: First backoff delay in seconds
            max_delay: Backoff cap in seconds
            overall_timeout: Budget in seconds for all attempts and sleeps

        Returns:
            Whatever the operation returned

        Raises:
            StackTimeoutError: When the overall budget is spent before an attempt
            APICallError: When a non-retryable error occurs or attempts run out
        """
        max_attempts = max_attempts or self.max_attempts
        delay = base_delay if base_delay is not None else self.base_delay
        max_delay = max_delay if max_delay is not None else self.max_delay
        overall_timeout = overall_timeout if overall_timeout is not None else self.overall_timeout

        self.attempts = 0
        self.delays = []
        start = self.clock.now()
        attempt = 1

        logger.debug(f"Starting {operation_name} (max attempts: {max_attempts}, timeout: {overall_timeout}s)")

        while True:
            remaining = overall_timeout - (self.clock.now() - start)
            if remaining <= 0:
                logger.error(f"{operation_name} timed out after {overall_timeout}s")
                raise StackTimeoutError(
                    f"{operation_name} timed out after {overall_timeout}s", operation=operation_name
                )

            self.attempts = attempt
            logger.debug(f"Attempting {operation_name} (attempt {attempt}/{max_attempts})")
            try:
                result = self._run_with_timeout(operation, remaining, operation_name)
            except Exception as e:
                error_class = classify_error(e)
                if not error_class.retryable:
                    logger.debug(f"{operation_name} failed with non-retryable error: {e}")
                    raise APICallError(str(e), error_class=error_class, attempts=attempt, cause=e) from e
                if attempt >= max_attempts:
                    logger.error(f"{operation_name} failed after {max_attempts} attempts")
                    raise APICallError(str(e), error_class=error_class, attempts=attempt, cause=e) from e

                remaining = overall_timeout - (self.clock.now() - start)
                if delay >= remaining:
                    logger.error(f"{operation_name} cannot be retried within its {overall_timeout}s budget")
                    raise StackTimeoutError(
                        f"{operation_name} timed out after {overall_timeout}s: {e}", operation=operation_name
                    ) from e

                logger.warning(
                    f"{operation_name} failed with {error_class.value}, retrying in {delay}s... "
                    f"(attempt {attempt}/{max_attempts})"
                )
                logger.debug(f"Error details: {e}")
                self.delays.append(delay)
                self.clock.sleep(delay)
                delay = min(delay * 2, max_delay)
                attempt += 1
                continue

            logger.debug(f"{operation_name} succeeded on attempt {attempt}")
            return result

    def _run_with_timeout(self, operation: Callable[[], Any], timeout: float, operation_name: str) -> Any:
        """Run one attempt, giving up on it once the remaining budget is spent."""
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="cfn-call")
        future = executor.submit(operation)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            future.cancel()
            raise StackTimeoutError(f"{operation_name} timed out after {timeout:.0f}s", operation=operation_name)
        finally:
            executor.shutdown(wait=False)
