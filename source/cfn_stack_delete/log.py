# ABOUTME: Logging setup for the stack deletion CLI
# ABOUTME: Rich console logging plus GitHub Actions workflow-command annotations

"""Logging configuration."""

import logging
import os
import sys

from rich.console import Console
from rich.logging import RichHandler

_WORKFLOW_COMMANDS = {
    logging.DEBUG: "debug",
    logging.INFO: "notice",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "error",
}


def debug_enabled(environ: dict[str, str] = None) -> bool:
    environ = os.environ if environ is None else environ
    return environ.get("DEBUG", "").lower() in ("true", "1", "yes", "y")


class GitHubAnnotationHandler(logging.Handler):
    """
    Writes warnings and errors as ``::warning::`` / ``::error::`` workflow commands.

    Debug records become ``::debug::`` lines, which GitHub only shows when step
    debugging is enabled.
    """

    def __init__(self, stream=None, level: int = logging.WARNING):
        super().__init__(level=level)
        self.stream = stream or sys.stdout

    def emit(self, record: logging.LogRecord) -> None:
        try:
            command = _WORKFLOW_COMMANDS.get(record.levelno, "notice")
            # Workflow commands are line based
            message = self.format(record).replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
            self.stream.write(f"::{command}::{message}\n")
            self.stream.flush()
        except Exception:
            self.handleError(record)


def configure_logging(debug: bool = False, environ: dict[str, str] = None) -> None:
    """
    Configure root logging once per process.

    Args:
        debug: Enable debug output; the DEBUG environment variable does the same
        environ: Environment to read, defaults to os.environ
    """
    environ = os.environ if environ is None else environ
    level = logging.DEBUG if debug or debug_enabled(environ) else logging.INFO

    handlers: list[logging.Handler] = [
        RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True, markup=False)
    ]
    if environ.get("GITHUB_ACTIONS", "").lower() == "true":
        handlers.append(GitHubAnnotationHandler(level=logging.DEBUG if level == logging.DEBUG else logging.WARNING))

    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True)
    # boto's own debug output drowns the deletion log
    for noisy in ("botocore", "boto3", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
