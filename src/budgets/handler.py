"""Lambda handler for budget operations."""

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
from budgets.models import Budget, BudgetCreate, BudgetQuery, BudgetUpdate
from budgets.service import BudgetService

# Configure logging
logger = logging.getLogger()
logger.setLevel(get_settings().log_level)


@lru_cache(maxsize=1)
def get_budget_service() -> BudgetService:
    return BudgetService.from_settings(get_settings())


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for budget operations.

    Handles:
    - POST /budgets - Create budget
    - GET /budgets - List budgets (optionally with usage)
    - GET /budgets/{id} - Get budget details
    - PUT /budgets/{id} - Update budget
    - DELETE /budgets/{id} - Delete budget

    Args:
        event: Lambda event
        context: Lambda context

    Returns:
        API Gateway response
    """
    return route_request(event, get_budget_service())


def route_request(event: Dict[str, Any], budget_service: BudgetService) -> Dict[str, Any]:
    """Dispatch one API Gateway event to the matching operation."""
    try:
        # Log request
        logger.info(f"Request: {event.get('httpMethod')} {event.get('path')}")

        http_method = event.get('httpMethod')
        path = (event.get('path') or '').rstrip('/')

        # Route request
        if path == '/budgets' and http_method == 'POST':
            return handle_create(event, budget_service)
        elif path == '/budgets' and http_method == 'GET':
            return handle_list(event, budget_service)
        elif path.startswith('/budgets/') and http_method == 'GET':
            return handle_get(event, budget_service)
        elif path.startswith('/budgets/') and http_method == 'PUT':
            return handle_update(event, budget_service)
        elif path.startswith('/budgets/') and http_method == 'DELETE':
            return handle_delete(event, budget_service)
        else:
            return error_response("Route not found", status_code=404)

    except ExpenseTrackerException as e:
        logger.error(f"Application error: {str(e)}")
        return exception_response(e)
    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}", exc_info=True)
        return server_error_response()


def _budget_id(event: Dict[str, Any]) -> str:
    path_params = event.get('pathParameters') or {}
    return validate_object_id(path_params.get('id'), 'id')


def handle_create(event: Dict[str, Any], budget_service: BudgetService) -> Dict[str, Any]:
    """
    Handle create budget.

    Args:
        event: Lambda event
        budget_service: Budget service

    Returns:
        API Gateway response
    """
    payload = validate_model(BudgetCreate, parse_json_body(event))

    budget = budget_service.create_budget(payload)

    logger.info(f"Budget created successfully: {budget['budget_id']}")

    return success_response(
        data=Budget.from_item(budget).to_response(),
        message="Budget created successfully",
        status_code=201
    )


def handle_list(event: Dict[str, Any], budget_service: BudgetService) -> Dict[str, Any]:
    """
    Handle list budgets.

    With includeUsage=true each entry carries spent, remaining and
    utilization alongside the budget.
    """
    query = validate_model(BudgetQuery, event.get('queryStringParameters'))

    if query.include_usage:
        usages = budget_service.list_budgets_with_usage(query)
        budgets = [usage.to_response() for usage in usages]
    else:
        budgets = [Budget.from_item(item).to_response() for item in budget_service.list_budgets(query)]

    return success_response(data={
        'budgets': budgets,
        'count': len(budgets)
    })


def handle_get(event: Dict[str, Any], budget_service: BudgetService) -> Dict[str, Any]:
    budget = budget_service.get_budget(_budget_id(event))
    return success_response(data=Budget.from_item(budget).to_response())


def handle_update(event: Dict[str, Any], budget_service: BudgetService) -> Dict[str, Any]:
    """Handle update budget."""
    budget_id = _budget_id(event)
    payload = validate_model(BudgetUpdate, require_non_empty(parse_json_body(event)))

    updated_budget = budget_service.update_budget(budget_id, payload)

    logger.info(f"Budget updated successfully: {budget_id}")

    return success_response(
        data=Budget.from_item(updated_budget).to_response(),
        message="Budget updated successfully"
    )


def handle_delete(event: Dict[str, Any], budget_service: BudgetService) -> Dict[str, Any]:
    """Handle delete budget."""
    budget_id = _budget_id(event)

    budget_service.delete_budget(budget_id)

    logger.info(f"Budget deleted successfully: {budget_id}")

    return no_content_response()
