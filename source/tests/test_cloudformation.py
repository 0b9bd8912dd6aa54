# ABOUTME: Tests for the boto3-backed CloudFormation manager
# ABOUTME: Not-found mapping, pagination, import lookups and template parsing with stubbed clients

from unittest.mock import MagicMock

import pytest
from conftest import client_error

from cfn_stack_delete.cli.utils.cf_exceptions import StackNotFoundError
from cfn_stack_delete.cli.utils.cloudformation import CloudFormationManager

YAML_TEMPLATE = """
Resources:
  Bucket:
    Type: AWS::S3::Bucket
    DeletionPolicy: Retain
Outputs:
  BucketName:
    Value: !Ref Bucket
    Export:
      Name: !Sub "${AWS::StackName}-bucket"
"""


@pytest.fixture
def cf_client():
    return MagicMock()


@pytest.fixture
def cf_manager(cf_client):
    manager = CloudFormationManager(region="us-east-1")
    manager._cf_client = cf_client
    return manager


class TestCloudFormationManager:
    def test_botocore_retries_disabled(self, cf_manager):
        """Test retrying is left to the deletion pipeline"""
        assert cf_manager.client_config.retries == {"max_attempts": 1, "mode": "standard"}
        assert cf_manager.region == "us-east-1"

    def test_describe_stack(self, cf_manager, cf_client):
        cf_client.describe_stacks.return_value = {"Stacks": [{"StackName": "s", "StackStatus": "CREATE_COMPLETE"}]}
        assert cf_manager.describe_stack("s")["StackStatus"] == "CREATE_COMPLETE"

    def test_describe_missing_stack(self, cf_manager, cf_client):
        cf_client.describe_stacks.side_effect = client_error("ValidationError", "Stack with id s does not exist")
        with pytest.raises(StackNotFoundError):
            cf_manager.describe_stack("s")

    def test_describe_other_errors_propagate(self, cf_manager, cf_client):
        cf_client.describe_stacks.side_effect = client_error("Throttling", "Rate exceeded")
        with pytest.raises(Exception, match="Rate exceeded"):
            cf_manager.describe_stack("s")

    def test_events_are_paginated(self, cf_manager, cf_client):
        cf_client.get_paginator.return_value.paginate.return_value = [
            {"StackEvents": [{"EventId": "1"}, {"EventId": "2"}]},
            {"StackEvents": [{"EventId": "3"}]},
        ]
        events = cf_manager.describe_stack_events("s")
        assert [e["EventId"] for e in events] == ["1", "2", "3"]
        cf_client.get_paginator.assert_called_with("describe_stack_events")

    def test_events_for_missing_stack(self, cf_manager, cf_client):
        cf_client.get_paginator.return_value.paginate.side_effect = client_error(
            "ValidationError", "Stack [s] does not exist", "DescribeStackEvents"
        )
        with pytest.raises(StackNotFoundError):
            cf_manager.describe_stack_events("s")

    def test_list_imports(self, cf_manager, cf_client):
        cf_client.get_paginator.return_value.paginate.return_value = [{"Imports": ["app-stack"]}]
        assert cf_manager.list_imports("shared-vpc") == ["app-stack"]

    def test_export_not_imported(self, cf_manager, cf_client):
        cf_client.get_paginator.return_value.paginate.side_effect = client_error(
            "ValidationError", "Export 'shared-vpc' is not imported by any stack.", "ListImports"
        )
        assert cf_manager.list_imports("shared-vpc") == []

    def test_yaml_template_with_short_form_functions(self, cf_manager, cf_client):
        cf_client.get_template.return_value = {"TemplateBody": YAML_TEMPLATE}

        template = cf_manager.get_template("s")

        assert template["Resources"]["Bucket"]["DeletionPolicy"] == "Retain"
        assert template["Outputs"]["BucketName"]["Value"] == {"Ref": "Bucket"}
        cf_client.get_template.assert_called_once_with(StackName="s", TemplateStage="Original")

    def test_json_template_body_as_dict(self, cf_manager, cf_client):
        body = {"Resources": {"Queue": {"Type": "AWS::SQS::Queue"}}}
        cf_client.get_template.return_value = {"TemplateBody": body}
        assert cf_manager.get_template("s") == body

    def test_caller_identity(self, cf_manager):
        cf_manager._sts_client = MagicMock()
        cf_manager._sts_client.get_caller_identity.return_value = {
            "Account": "123456789012",
            "UserId": "AIDA",
            "Arn": "arn:aws:iam::123456789012:user/ci",
            "ResponseMetadata": {},
        }
        assert cf_manager.get_caller_identity() == {
            "Account": "123456789012",
            "UserId": "AIDA",
            "Arn": "arn:aws:iam::123456789012:user/ci",
        }
