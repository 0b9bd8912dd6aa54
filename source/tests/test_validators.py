# ABOUTME: Tests for CLI input validation
# ABOUTME: Stack names, AWS regions, boolean switches and bounded integers

import pytest

from cfn_stack_delete.cli.utils.cf_exceptions import ValidationError
from cfn_stack_delete.cli.utils.validators import (
    parse_boolean,
    parse_int_in_range,
    validate_aws_region,
    validate_stack_name,
)


class TestStackName:
    """CloudFormation stack name rules"""

    def test_valid_names(self):
        for name in ("my-stack", "Stack1", "a", "pr-123-preview", "A" * 255):
            assert validate_stack_name(name) == name

    def test_name_is_trimmed(self):
        assert validate_stack_name("  my-stack \n") == "my-stack"

    @pytest.mark.parametrize(
        "name",
        [
            "",
            "   ",
            None,
            "1stack",
            "-stack",
            "my_stack",
            "my.stack",
            "my stack",
            "stack-",
            "my--stack",
            "A" * 256,
        ],
    )
    def test_invalid_names(self, name):
        with pytest.raises(ValidationError) as exc_info:
            validate_stack_name(name)
        assert exc_info.value.exit_code == 1


class TestRegion:
    def test_valid_regions(self):
        for region in ("us-east-1", "eu-west-2", "ap-southeast-2", "us-gov-west-1", "cn-northwest-1"):
            assert validate_aws_region(region) == region

    def test_empty_region_is_none(self):
        assert validate_aws_region("") is None
        assert validate_aws_region(None) is None

    def test_invalid_format(self):
        with pytest.raises(ValidationError, match="Invalid AWS region format"):
            validate_aws_region("useast1")

    def test_unknown_region(self):
        with pytest.raises(ValidationError, match="Unknown AWS region"):
            validate_aws_region("xx-nowhere-9")


class TestBoolean:
    @pytest.mark.parametrize("value", ["true", "TRUE", "yes", "1", "on", " On "])
    def test_true_values(self, value):
        assert parse_boolean(value) is True

    @pytest.mark.parametrize("value", ["false", "no", "0", "off", "OFF"])
    def test_false_values(self, value):
        assert parse_boolean(value) is False

    def test_empty_uses_default(self):
        assert parse_boolean("", default=True) is True
        assert parse_boolean(None) is False

    def test_bool_passthrough(self):
        assert parse_boolean(True) is True

    def test_invalid(self):
        with pytest.raises(ValidationError, match="wait"):
            parse_boolean("maybe", "wait")


class TestIntInRange:
    def test_parse(self):
        assert parse_int_in_range("30", "Poll interval", 1, 60) == 30

    def test_default(self):
        assert parse_int_in_range(None, "Poll interval", 1, 60, default=5) == 5

    def test_out_of_range(self):
        with pytest.raises(ValidationError, match="between 1 and 60"):
            parse_int_in_range("61", "Poll interval", 1, 60)

    def test_not_a_number(self):
        with pytest.raises(ValidationError, match="must be an integer"):
            parse_int_in_range("five", "Poll interval", 1, 60)
