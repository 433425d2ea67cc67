"""
Schema Validation - JSON Schema validation of desired-state documents.

Each resource kind declares a Draft 7 schema for its desired-state
document; specs are checked against it before any remote call.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft7Validator

logger = logging.getLogger(__name__)


def validate_kind_schema(schema: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate that a resource kind's schema is a valid JSON Schema.

    Args:
        schema: The schema to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        Draft7Validator.check_schema(schema)
        return True, None
    except Exception as e:
        return False, f"Invalid schema: {str(e)}"


def collect_schema_errors(
    document: Dict[str, Any], schema: Dict[str, Any]
) -> List[str]:
    """
    Collect every violation of a schema by a document.

    Args:
        document: The desired-state document to validate
        schema: The JSON Schema to validate against

    Returns:
        List of "path: message" strings, empty if the document is valid.
    """
    validator = Draft7Validator(schema, format_checker=Draft7Validator.FORMAT_CHECKER)
    errors = sorted(
        validator.iter_errors(document),
        key=lambda e: [str(p) for p in e.absolute_path],
    )

    error_messages = []
    for error in errors:
        path = ".".join(str(p) for p in error.absolute_path) or "(root)"
        error_messages.append(f"{path}: {error.message}")
    return error_messages
