# ABOUTME: AWS utility functions for the stack deletion CLI
# ABOUTME: Resolves the target region and wires the boto3 manager into a deletion workflow

"""AWS utilities for CLI commands."""

import os
from collections.abc import Callable

from cfn_stack_delete.config import DeletionSettings
from cfn_stack_delete.models import StackEvent
from cfn_stack_delete.stack_api import StackAPI
from cfn_stack_delete.workflow import StackDeletionWorkflow

from .cloudformation import CloudFormationManager
from .validators import validate_aws_region


def resolve_region(region: str = None, environ: dict[str, str] = None) -> str | None:
    """Region from the option, then AWS_REGION / AWS_DEFAULT_REGION; None leaves it to boto3."""
    environ = os.environ if environ is None else environ
    candidate = region or environ.get("AWS_REGION") or environ.get("AWS_DEFAULT_REGION")
    return validate_aws_region(candidate)


def build_workflow(
    region: str = None,
    settings: DeletionSettings = None,
    on_event: Callable[[StackEvent], None] = None,
    profile: str = None,
) -> StackDeletionWorkflow:
    """Create a workflow backed by real CloudFormation clients."""
    settings = settings or DeletionSettings()
    manager = CloudFormationManager(region=region, profile=profile)
    return StackDeletionWorkflow(StackAPI(manager, settings=settings), settings=settings, on_event=on_event)
