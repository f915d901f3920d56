"""Response utilities for Lambda functions."""

import json
from typing import Any, Dict, List, Optional, Union
from datetime import datetime, date
from decimal import Decimal

from .exceptions import ExpenseTrackerException, NotFoundError, ValidationError

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type,X-Amz-Date,Authorization,X-Api-Key,X-Amz-Security-Token",
    "Access-Control-Allow-Methods": "GET,POST,PUT,PATCH,DELETE,OPTIONS"
}


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder for Decimal and datetime objects."""

    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        return super().default(obj)


def _headers(extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    headers = dict(DEFAULT_HEADERS)
    if extra:
        headers.update(extra)
    return headers


def success_response(
    data: Any = None,
    message: Optional[str] = None,
    status_code: int = 200,
    headers: Optional[Dict[str, str]] = None
) -> Dict[str, Any]:
    """
    Create a standardized success response.

    Args:
        data: Response data
        message: Optional success message
        status_code: HTTP status code (default: 200)
        headers: Optional additional headers

    Returns:
        Lambda proxy response dictionary
    """
    body = {
        "success": True,
        "data": data
    }

    if message:
        body["message"] = message

    return {
        "statusCode": status_code,
        "headers": _headers(headers),
        "body": json.dumps(body, cls=DecimalEncoder)
    }


def no_content_response(headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Create an empty 204 response."""
    return {
        "statusCode": 204,
        "headers": _headers(headers),
        "body": ""
    }


def error_response(
    message: str,
    status_code: int = 500,
    error_code: Optional[str] = None,
    details: Optional[Union[List[Any], Dict[str, Any]]] = None,
    headers: Optional[Dict[str, str]] = None
) -> Dict[str, Any]:
    """
    Create a standardized error response.

    Args:
        message: Error message
        status_code: HTTP status code (default: 500)
        error_code: Optional error code
        details: Optional error details
        headers: Optional additional headers

    Returns:
        Lambda proxy response dictionary
    """
    body = {
        "success": False,
        "error": {
            "message": message,
            "code": error_code or f"ERROR_{status_code}"
        }
    }

    if details:
        body["error"]["details"] = details

    return {
        "statusCode": status_code,
        "headers": _headers(headers),
        "body": json.dumps(body, cls=DecimalEncoder)
    }


def validation_error_response(
    message: str,
    details: Optional[List[Dict[str, Any]]] = None
) -> Dict[str, Any]:
    """Create a validation error response."""
    return error_response(
        message=message,
        status_code=400,
        error_code="VALIDATION_ERROR",
        details=details
    )


def not_found_response(message: str = "Resource not found") -> Dict[str, Any]:
    """Create a not found error response."""
    return error_response(
        message=message,
        status_code=404,
        error_code="NOT_FOUND"
    )


def server_error_response(message: str = "Internal server error") -> Dict[str, Any]:
    """Create a generic server error response."""
    return error_response(
        message=message,
        status_code=500,
        error_code="SERVER_ERROR"
    )


def exception_response(error: ExpenseTrackerException) -> Dict[str, Any]:
    """Map an application exception to its API response."""
    if isinstance(error, ValidationError):
        return validation_error_response(error.message, error.details)
    if isinstance(error, NotFoundError):
        return not_found_response(error.message)
    return error_response(error.message, status_code=error.status_code)
