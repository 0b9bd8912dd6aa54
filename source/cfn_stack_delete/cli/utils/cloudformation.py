# ABOUTME: CloudFormation manager using boto3 SDK
# ABOUTME: Thin wrapper over the describe, delete, events, imports and template calls used for deletion

"""CloudFormation manager for boto3-based stack operations."""

from typing import Any

import boto3
import cfn_flip
from botocore.config import Config
from botocore.exceptions import ClientError

from .cf_exceptions import StackNotFoundError


def _is_not_found(error: ClientError) -> bool:
    return "does not exist" in error.response.get("Error", {}).get("Message", "")


class CloudFormationManager:
    """
    CloudFormation operations needed to delete a stack.

    botocore's own retries are switched off; retrying is done once, by the
    RetryingAPIClient, so attempt counts and backoff stay observable.
    """

    def __init__(
        self, region: str = None, profile: str = None, connect_timeout: int = 10, read_timeout: int = 30
    ):
        """
        Initialize CloudFormation manager.

        Args:
            region: AWS region, None for the session default
            profile: Optional AWS profile name
            connect_timeout: Socket connect timeout in seconds
            read_timeout: Socket read timeout in seconds
        """
        self.session = boto3.Session(region_name=region, profile_name=profile) if profile else boto3.Session(
            region_name=region
        )
        self.region = self.session.region_name
        self.client_config = Config(
            connect_timeout=connect_timeout,
            read_timeout=read_timeout,
            retries={"max_attempts": 1, "mode": "standard"},
        )
        self._cf_client = None
        self._sts_client = None

    @property
    def cf_client(self):
        """Lazy-loaded CloudFormation client with connection pooling."""
        if not self._cf_client:
            self._cf_client = self.session.client("cloudformation", config=self.client_config)
        return self._cf_client

    @property
    def sts_client(self):
        """Lazy-loaded STS client for credential checks."""
        if not self._sts_client:
            self._sts_client = self.session.client("sts", config=self.client_config)
        return self._sts_client

    def describe_stack(self, stack_name: str) -> dict[str, Any]:
        """
        Describe a single stack.

        Args:
            stack_name: Name or ID of the stack

        Returns:
            The stack description (``Stacks[0]`` of the response)

        Raises:
            StackNotFoundError: If the stack does not exist
        """
        try:
            response = self.cf_client.describe_stacks(StackName=stack_name)
        except ClientError as e:
            if _is_not_found(e):
                raise StackNotFoundError(f"Stack {stack_name} does not exist", stack_name=stack_name) from e
            raise

        if not response.get("Stacks"):
            raise StackNotFoundError(f"Stack {stack_name} does not exist", stack_name=stack_name)
        return response["Stacks"][0]

    def delete_stack(self, stack_name: str) -> None:
        """Request deletion; CloudFormation acknowledges without waiting."""
        self.cf_client.delete_stack(StackName=stack_name)

    def describe_stack_events(self, stack_name: str) -> list[dict[str, Any]]:
        """
        Get every event recorded for a stack, newest first as the API returns them.

        Raises:
            StackNotFoundError: If the stack does not exist
        """
        events = []
        try:
            paginator = self.cf_client.get_paginator("describe_stack_events")
            for page in paginator.paginate(StackName=stack_name):
                events.extend(page.get("StackEvents", []))
        except ClientError as e:
            if _is_not_found(e):
                raise StackNotFoundError(f"Stack {stack_name} does not exist", stack_name=stack_name) from e
            raise
        return events

    def list_imports(self, export_name: str) -> list[str]:
        """
        List stacks importing an export.

        Returns:
            Importing stack names; empty when the export is not imported anywhere
        """
        importers = []
        try:
            paginator = self.cf_client.get_paginator("list_imports")
            for page in paginator.paginate(ExportName=export_name):
                importers.extend(page.get("Imports", []))
        except ClientError as e:
            if "is not imported by any stack" in e.response.get("Error", {}).get("Message", ""):
                return []
            raise
        return importers

    def get_template(self, stack_name: str) -> dict[str, Any]:
        """
        Get the stack's original template as a dictionary.

        YAML templates are parsed with cfn-flip so short-form intrinsic
        functions (``!Ref``, ``!Sub``) load instead of failing.
        """
        response = self.cf_client.get_template(StackName=stack_name, TemplateStage="Original")
        body = response.get("TemplateBody", {})
        if isinstance(body, dict):
            return body
        template, _ = cfn_flip.load(body)
        return template

    def get_caller_identity(self) -> dict[str, str]:
        """Return the account, user ID and ARN of the active credentials."""
        response = self.sts_client.get_caller_identity()
        return {"Account": response["Account"], "UserId": response["UserId"], "Arn": response["Arn"]}
