# ABOUTME: Shared fixtures for the stack deletion tests
# ABOUTME: Fake clock, fake CloudFormation manager and builders for provider responses

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from cfn_stack_delete.cli.utils.cf_exceptions import StackNotFoundError
from cfn_stack_delete.config import DeletionSettings
from cfn_stack_delete.stack_api import StackAPI

EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeClock:
    """Clock whose time only moves when something sleeps."""

    def __init__(self, start: float = 1000.0):
        self.time = start
        self.sleeps = []

    def now(self) -> float:
        return self.time

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.time += seconds

    def wall_time(self) -> datetime:
        return EPOCH + timedelta(seconds=self.time)


def client_error(code: str, message: str, operation: str = "DescribeStacks") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


def not_found(stack_name: str = "test-stack") -> StackNotFoundError:
    return StackNotFoundError(f"Stack {stack_name} does not exist", stack_name=stack_name)


def stack(status: str, reason: str = None, outputs: list = None, name: str = "test-stack") -> dict:
    description = {"StackName": name, "StackStatus": status, "CreationTime": EPOCH}
    if reason:
        description["StackStatusReason"] = reason
    if outputs:
        description["Outputs"] = outputs
    return description


def event(
    offset: int,
    logical_id: str,
    status: str,
    resource_type: str = "AWS::S3::Bucket",
    reason: str = None,
) -> dict:
    raw = {
        "Timestamp": EPOCH + timedelta(seconds=offset),
        "LogicalResourceId": logical_id,
        "ResourceType": resource_type,
        "ResourceStatus": status,
    }
    if reason:
        raw["ResourceStatusReason"] = reason
    return raw


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def manager():
    fake = MagicMock()
    fake.region = "us-east-1"
    fake.describe_stack_events.return_value = []
    fake.list_imports.return_value = []
    fake.get_template.return_value = {}
    fake.delete_stack.return_value = None
    fake.get_caller_identity.return_value = {
        "Account": "123456789012",
        "UserId": "AIDAEXAMPLE",
        "Arn": "arn:aws:iam::123456789012:user/ci",
    }
    return fake


@pytest.fixture
def settings():
    return DeletionSettings()


@pytest.fixture
def api(manager, settings, clock):
    return StackAPI(manager, settings=settings, clock=clock)
