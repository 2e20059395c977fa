"""
Request validation helpers for the planner API.

Raises the application's ValidationException so @handle_errors turns every
failure into a consistent 400 JSON response.
"""
import re
from datetime import date
from typing import Any, Dict, List, Optional

from flask import request

from shiftplanner.error_handlers.exceptions import ValidationException
from shiftplanner.services.record_normalizer import parse_iso_day


def get_json_body() -> Dict[str, Any]:
    """
    Return the JSON object body of the current request.

    Raises:
        ValidationException: If the body is missing or not a JSON object
    """
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationException("Request body must be a JSON object")
    return data


def validate_date_param(date_str: Optional[str], param_name: str = 'date') -> date:
    """
    Validate and parse date parameter from string.

    Args:
        date_str: Date string in YYYY-MM-DD format
        param_name: Name of parameter for error messages (default: 'date')

    Returns:
        date: Parsed date object

    Raises:
        ValidationException: If the date is missing or its format is invalid

    Examples:
        >>> validate_date_param('2025-10-15')
        date(2025, 10, 15)
    """
    if not date_str:
        raise ValidationException(f"Missing required field '{param_name}'", details={'field': param_name})
    return parse_iso_day(date_str, param_name)


def validate_required_fields(data: Dict[str, Any], required_fields: List[str]) -> None:
    """
    Validate that all required fields are present in request data.

    Raises:
        ValidationException: If any required field is missing
    """
    missing = [field for field in required_fields if data.get(field) in (None, '')]
    if missing:
        raise ValidationException(
            f"Missing required fields: {', '.join(missing)}",
            details={'fields': missing}
        )


def sanitize_request_data(data: str) -> str:
    """
    Remove sensitive data from request strings for safe logging.

    Examples:
        >>> sanitize_request_data('{"password": "secret123"}')
        '{"password": "[REDACTED]"}'
    """
    for field in ('password', 'token', 'api_key', 'secret', 'credential'):
        data = re.sub(rf'("{field}"\s*:\s*")[^"]*(")', r'\1[REDACTED]\2', data, flags=re.IGNORECASE)
    return data
