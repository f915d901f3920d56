"""Custom exceptions for the finance tracker application."""

from typing import Any, Dict, List, Optional


class ExpenseTrackerException(Exception):
    """Base exception for all finance tracker errors."""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ValidationError(ExpenseTrackerException):
    """Raised when input validation fails."""

    def __init__(self, message: str, details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message, status_code=400)
        self.details = details or []


class NotFoundError(ExpenseTrackerException):
    """Raised when a resource is not found."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


class DatabaseError(ExpenseTrackerException):
    """Raised when database operations fail."""

    def __init__(self, message: str = "Database operation failed"):
        super().__init__(message, status_code=500)


class AggregationError(ExpenseTrackerException):
    """Raised when a summary cannot be computed."""

    def __init__(self, message: str = "Aggregation failed"):
        super().__init__(message, status_code=500)
