# ABOUTME: Input validation functions for CLI commands and action inputs
# ABOUTME: Validates stack names, regions and boolean switches, raising ValidationError on bad input

"""Input validators for CLI commands."""

import re

from .cf_exceptions import ValidationError

MAX_STACK_NAME_LENGTH = 255

KNOWN_REGIONS = frozenset(
    {
        "us-east-1",
        "us-east-2",
        "us-west-1",
        "us-west-2",
        "eu-north-1",
        "eu-west-1",
        "eu-west-2",
        "eu-west-3",
        "eu-central-1",
        "eu-south-1",
        "ap-northeast-1",
        "ap-northeast-2",
        "ap-northeast-3",
        "ap-southeast-1",
        "ap-southeast-2",
        "ap-south-1",
        "ap-east-1",
        "ca-central-1",
        "sa-east-1",
        "af-south-1",
        "me-south-1",
        "us-gov-east-1",
        "us-gov-west-1",
        "cn-north-1",
        "cn-northwest-1",
    }
)

_TRUE_VALUES = ("true", "yes", "1", "on")
_FALSE_VALUES = ("false", "no", "0", "off")


def validate_stack_name(name: str) -> str:
    """Validate CloudFormation stack name.

    Names must start with a letter, contain only letters, digits and single
    hyphens, must not end with a hyphen and are at most 255 characters.

    Returns:
        The trimmed stack name
    """
    if name is None or not name.strip():
        raise ValidationError("Stack name is required and cannot be empty")

    name = name.strip()
    if len(name) > MAX_STACK_NAME_LENGTH:
        raise ValidationError(f"Stack name cannot exceed {MAX_STACK_NAME_LENGTH} characters (current: {len(name)})")

    if not re.match(r"^[a-zA-Z][a-zA-Z0-9-]*$", name):
        raise ValidationError(
            f"Stack name '{name}' contains invalid characters. Stack names must start with a letter "
            "and can only contain letters, numbers, and hyphens"
        )
    if name.endswith("-"):
        raise ValidationError(f"Stack name '{name}' cannot end with a hyphen")
    if "--" in name:
        raise ValidationError(f"Stack name '{name}' cannot contain consecutive hyphens")
    return name


def validate_aws_region(region: str) -> str | None:
    """Validate AWS region format and check it against the known regions.

    Returns:
        The trimmed region, or None when no region was given
    """
    if region is None or not region.strip():
        return None

    region = region.strip()
    # us-east-1, eu-west-2, us-gov-west-1
    if not re.match(r"^[a-z]{2,3}(-gov)?-[a-z]+-\d+$", region):
        raise ValidationError(
            f"Invalid AWS region format '{region}'. Expected format: us-east-1, eu-west-1, ap-southeast-2, etc."
        )
    if region not in KNOWN_REGIONS:
        raise ValidationError(f"Unknown AWS region '{region}'. Please verify the region name is correct")
    return region


def parse_boolean(value: str | bool | None, name: str = "value", default: bool = False) -> bool:
    """Parse true/false, yes/no, 1/0 or on/off; empty input gives the default."""
    if isinstance(value, bool):
        return value
    if value is None or not str(value).strip():
        return default

    lowered = str(value).strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValidationError(f"Invalid boolean value for {name}: '{value}'. Expected: true/false, yes/no, 1/0, on/off")


def parse_int_in_range(value: str | int | None, name: str, minimum: int, maximum: int, default: int = None) -> int:
    """Parse an integer option and check it lies within [minimum, maximum]."""
    if value is None or (isinstance(value, str) and not value.strip()):
        if default is None:
            raise ValidationError(f"{name} is required")
        return default
    try:
        number = int(str(value).strip())
    except ValueError:
        raise ValidationError(f"{name} must be an integer (got '{value}')")
    if not minimum <= number <= maximum:
        raise ValidationError(f"{name} must be between {minimum} and {maximum} (got {number})")
    return number
