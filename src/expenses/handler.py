"""Lambda handler for expense operations."""

import os
import logging
from functools import lru_cache
from typing import Dict, Any
import sys

# Add parent directory to path for imports
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from shared.config import get_settings
from shared.response import (
    success_response,
    error_response,
    exception_response,
    no_content_response,
    server_error_response
)
from shared.validators import parse_json_body, require_non_empty, validate_model, validate_object_id
from shared.exceptions import ExpenseTrackerException
from expenses.models import Expense, ExpenseCreate, ExpenseFilters, ExpenseUpdate, SummaryQuery
from expenses.service import ExpenseService

# Configure logging
logger = logging.getLogger()
logger.setLevel(get_settings().log_level)


@lru_cache(maxsize=1)
def get_expense_service() -> ExpenseService:
    """Build the service once per warm container."""
    return ExpenseService.from_settings(get_settings())


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for expense operations.

    Handles:
    - GET /expenses - List expenses
    - GET /expenses/summary - Get expense summary
    - GET /expenses/{id} - Get expense details
    - POST /expenses - Create expense
    - PUT /expenses/{id} - Update expense
    - DELETE /expenses/{id} - Delete expense

    Args:
        event: Lambda event
        context: Lambda context

    Returns:
        API Gateway response
    """
    return route_request(event, get_expense_service())


def route_request(event: Dict[str, Any], expense_service: ExpenseService) -> Dict[str, Any]:
    """Dispatch one API Gateway event to the matching operation."""
    try:
        # Log request
        logger.info(f"Request: {event.get('httpMethod')} {event.get('path')}")

        http_method = event.get('httpMethod')
        path = (event.get('path') or '').rstrip('/')

        # Route request
        if path == '/expenses' and http_method == 'GET':
            return handle_list(event, expense_service)
        elif path == '/expenses' and http_method == 'POST':
            return handle_create(event, expense_service)
        elif path == '/expenses/summary' and http_method == 'GET':
            return handle_summary(event, expense_service)
        elif path.startswith('/expenses/') and http_method == 'GET':
            return handle_get(event, expense_service)
        elif path.startswith('/expenses/') and http_method == 'PUT':
            return handle_update(event, expense_service)
        elif path.startswith('/expenses/') and http_method == 'DELETE':
            return handle_delete(event, expense_service)
        else:
            return error_response("Route not found", status_code=404)

    except ExpenseTrackerException as e:
        logger.error(f"Application error: {str(e)}")
        return exception_response(e)
    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}", exc_info=True)
        return server_error_response()


def _expense_id(event: Dict[str, Any]) -> str:
    path_params = event.get('pathParameters') or {}
    return validate_object_id(path_params.get('id'), 'id')


def handle_list(event: Dict[str, Any], expense_service: ExpenseService) -> Dict[str, Any]:
    """
    Handle list expenses.

    Query parameters: walletId, userId, categories, tags, search, from, to,
    limit, sort.
    """
    filters = validate_model(ExpenseFilters, event.get('queryStringParameters'))

    expenses = expense_service.list_expenses(filters)

    return success_response(data={
        'expenses': [Expense.from_item(item).to_response() for item in expenses],
        'count': len(expenses)
    })


def handle_summary(event: Dict[str, Any], expense_service: ExpenseService) -> Dict[str, Any]:
    """
    Handle get expense summary.

    Query parameters: walletId, userId, categories, from, to.
    """
    query = validate_model(SummaryQuery, event.get('queryStringParameters'))

    summary = expense_service.get_summary(query.to_filters())

    return success_response(data=summary.to_response())


def handle_get(event: Dict[str, Any], expense_service: ExpenseService) -> Dict[str, Any]:
    """Handle get expense details."""
    expense = expense_service.get_expense(_expense_id(event))

    return success_response(data=Expense.from_item(expense).to_response())


def handle_create(event: Dict[str, Any], expense_service: ExpenseService) -> Dict[str, Any]:
    """Handle create expense."""
    payload = validate_model(ExpenseCreate, parse_json_body(event))

    expense = expense_service.create_expense(payload)

    logger.info(f"Expense created successfully: {expense['expense_id']}")

    return success_response(
        data=Expense.from_item(expense).to_response(),
        message="Expense created successfully",
        status_code=201
    )


def handle_update(event: Dict[str, Any], expense_service: ExpenseService) -> Dict[str, Any]:
    """Handle update expense."""
    expense_id = _expense_id(event)
    body = require_non_empty(parse_json_body(event))
    payload = validate_model(ExpenseUpdate, body)

    updated_expense = expense_service.update_expense(expense_id, payload)

    logger.info(f"Expense updated successfully: {expense_id}")

    return success_response(
        data=Expense.from_item(updated_expense).to_response(),
        message="Expense updated successfully"
    )


def handle_delete(event: Dict[str, Any], expense_service: ExpenseService) -> Dict[str, Any]:
    """Handle delete expense."""
    expense_id = _expense_id(event)

    expense_service.delete_expense(expense_id)

    logger.info(f"Expense deleted successfully: {expense_id}")

    return no_content_response()
