"""
Input validation for records and identifiers.

Checks run before a record id is placed into a request path or a record
is sent to a gateway, so that obviously broken input is reported as a
per-record failure instead of producing a malformed request.
"""

from typing import Any


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate a consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Record id")
        reason: Description of the failure (e.g., "cannot be empty")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def validate_record_id(record_id: Any) -> tuple[bool, str]:
    """
    Validate a record identifier.

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.

    Validation rules:
        - Must be a string or an integer (not a bool)
        - Cannot be empty or whitespace-only
        - Cannot contain '/' (it is used as a single path segment)
    """
    if isinstance(record_id, bool) or not isinstance(record_id, (str, int)):
        return (
            False,
            format_validation_error(
                "Record id", f"must be a string, got {type(record_id).__name__}"
            ),
        )

    text = str(record_id)
    if not text.strip():
        return (False, format_validation_error("Record id", "cannot be empty"))

    if "/" in text:
        return (False, format_validation_error("Record id", "cannot contain '/'"))

    return (True, "")


def validate_record(record: Any) -> tuple[bool, str]:
    """
    Validate a project record before it is written.

    Validation rules:
        - Must be a mapping
        - Must carry a valid ``id`` (see ``validate_record_id``)
    """
    if not isinstance(record, dict):
        return (
            False,
            format_validation_error(
                "Record", f"must be an object, got {type(record).__name__}"
            ),
        )
    if "id" not in record:
        return (False, format_validation_error("Record", "is missing 'id'"))
    return validate_record_id(record["id"])
