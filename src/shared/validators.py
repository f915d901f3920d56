"""Validation utilities for the finance tracker application."""

import json
import re
import time
import uuid
from typing import Any, Dict, List, Optional, Type, TypeVar
from datetime import date, datetime, timezone

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ValidationError

ModelT = TypeVar('ModelT', bound=BaseModel)

# Document-store object identifiers: 24 hex characters
OBJECT_ID_PATTERN = re.compile(r'^[a-fA-F0-9]{24}$')

# Fixed-width UTC format so string order equals time order
TIMESTAMP_FORMAT = '%Y-%m-%dT%H:%M:%S.%fZ'


def new_object_id() -> str:
    """Generate a 24-character hex identifier (seconds prefix + random tail)."""
    return f"{int(time.time()):08x}{uuid.uuid4().hex[:16]}"


def is_object_id(value: Any) -> bool:
    return isinstance(value, str) and bool(OBJECT_ID_PATTERN.match(value))


def validate_object_id(value: Any, field: str = "id") -> str:
    """
    Validate identifier shape.

    Args:
        value: Identifier to validate
        field: Field name reported in the error details

    Returns:
        Validated identifier

    Raises:
        ValidationError: If the identifier is not 24 hex characters
    """
    if not is_object_id(value):
        raise ValidationError(
            "Invalid request parameters",
            details=[{"path": field, "message": "Invalid identifier"}]
        )
    return value


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an ISO 8601 date or datetime into an aware UTC datetime.

    Naive values are taken as UTC.

    Raises:
        ValueError: If the value is not a recognizable date
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith('Z') or text.endswith('z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError("Invalid date")
    else:
        raise ValueError("Invalid date")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render a datetime in the stored timestamp format."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def utc_now() -> str:
    """Current time in the stored timestamp format."""
    return format_timestamp(datetime.now(timezone.utc))


def split_csv(value: Any) -> Any:
    """Turn a comma-separated query value into a list of trimmed items."""
    if isinstance(value, str):
        return [item.strip() for item in value.split(',') if item.strip()]
    return value


def parse_bool_flag(value: Any) -> Any:
    """Accept 'true'/'false' query strings for boolean flags."""
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ('true', 'false'):
            return lowered == 'true'
    return value


def format_errors(error: PydanticValidationError) -> List[Dict[str, str]]:
    """Flatten pydantic errors into path/message pairs."""
    return [
        {
            "path": ".".join(str(part) for part in issue["loc"]),
            "message": issue["msg"]
        }
        for issue in error.errors()
    ]


def validate_model(model_cls: Type[ModelT], data: Optional[Dict[str, Any]]) -> ModelT:
    """
    Validate raw input against a request model.

    Args:
        model_cls: Pydantic model class
        data: Raw input (body or query parameters)

    Returns:
        Validated model instance

    Raises:
        ValidationError: With per-field details if validation fails
    """
    try:
        return model_cls.model_validate(data or {})
    except PydanticValidationError as e:
        raise ValidationError("Invalid request", details=format_errors(e))


def parse_json_body(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Parse a JSON object from a Lambda proxy event body.

    Raises:
        ValidationError: If the body is not a JSON object
    """
    raw = event.get('body') or '{}'
    try:
        body = json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError(
            "Invalid request",
            details=[{"path": "body", "message": "Body must be valid JSON"}]
        )

    if not isinstance(body, dict):
        raise ValidationError(
            "Invalid request",
            details=[{"path": "body", "message": "Body must be a JSON object"}]
        )

    return body


def require_non_empty(body: Dict[str, Any]) -> Dict[str, Any]:
    """Reject empty update payloads."""
    if not body:
        raise ValidationError(
            "Invalid request",
            details=[{"path": "body", "message": "Request body cannot be empty"}]
        )
    return body
