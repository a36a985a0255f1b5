"""
Request data extraction and validation utilities.

Declarative field definitions for the validation endpoints, so route
handlers only deal with already-checked values.

Example usage:
    from app.utils.request_validators import extract_json_fields, RequestField

    data = extract_json_fields(
        RequestField('graph', required=True, validator=is_object),
        RequestField('options', default=None, validator=is_object),
    )
"""

import logging
from typing import Any, Callable, Dict, Optional

from flask import request

logger = logging.getLogger(__name__)


class RequestField:
    """
    Declarative field definition for request data extraction.

    Args:
        name: Field name in the request data
        required: Whether field must be present and non-empty
        default: Default value if field is missing
        transform: Optional function to transform the value
        validator: Optional function to validate the value (return True if valid)
        error_message: Custom error message for required field validation
    """

    def __init__(
        self,
        name: str,
        *,
        required: bool = False,
        default: Any = None,
        transform: Optional[Callable[[Any], Any]] = None,
        validator: Optional[Callable[[Any], bool]] = None,
        error_message: Optional[str] = None
    ):
        self.name = name
        self.required = required
        self.default = default
        self.transform = transform
        self.validator = validator
        self.error_message = error_message or f"No {name} provided"

    def extract_and_validate(self, source: Dict[str, Any]) -> Any:
        """
        Extract and validate this field from a data source.

        Raises:
            ValueError: If field is required but missing, or validation fails
        """
        value = source.get(self.name, self.default)

        # Empty strings count as missing
        if self.required and (value is None or value == ''):
            raise ValueError(self.error_message)

        if value is None:
            return value

        if self.transform:
            try:
                value = self.transform(value)
            except (TypeError, ValueError) as e:
                logger.warning("Transform failed for field '%s': %s", self.name, e)
                raise ValueError(f"Invalid format for {self.name}")

        if self.validator and not self.validator(value):
            raise ValueError(f"Invalid {self.name}")

        return value


def extract_json_fields(*fields: RequestField) -> Dict[str, Any]:
    """
    Extract and validate fields from the JSON request body.

    Raises:
        ValueError: If the body is not a JSON object, or a field fails validation
    """
    source = request.get_json(silent=True)
    if source is None:
        source = {}
    if not isinstance(source, dict):
        raise ValueError("Request body must be a JSON object")

    return {field.name: field.extract_and_validate(source) for field in fields}


def is_object(value: Any) -> bool:
    """Validator: Ensure value is a JSON object."""
    return isinstance(value, dict)


def non_empty_string(value: Any) -> bool:
    """Validator: Ensure value is a non-empty string."""
    return isinstance(value, str) and len(value.strip()) > 0


def strip_whitespace(value: Any) -> Any:
    """Transform: Strip leading/trailing whitespace from string."""
    if isinstance(value, str):
        return value.strip()
    return value
