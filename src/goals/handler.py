"""Lambda handler for savings goal operations."""

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
from goals.models import Goal, GoalAdjust, GoalCreate, GoalQuery, GoalUpdate
from goals.service import GoalService

# Configure logging
logger = logging.getLogger()
logger.setLevel(get_settings().log_level)


@lru_cache(maxsize=1)
def get_goal_service() -> GoalService:
    return GoalService.from_settings(get_settings())


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for goal operations.

    Handles:
    - GET /goals - List goals
    - POST /goals - Create goal
    - GET /goals/{id} - Get goal details
    - PUT /goals/{id} - Update goal
    - PATCH /goals/{id}/progress - Adjust saved amount
    - DELETE /goals/{id} - Delete goal

    Args:
        event: Lambda event
        context: Lambda context

    Returns:
        API Gateway response
    """
    return route_request(event, get_goal_service())


def route_request(event: Dict[str, Any], goal_service: GoalService) -> Dict[str, Any]:
    """Dispatch one API Gateway event to the matching operation."""
    try:
        logger.info(f"Request: {event.get('httpMethod')} {event.get('path')}")

        http_method = event.get('httpMethod')
        path = (event.get('path') or '').rstrip('/')

        if path == '/goals' and http_method == 'GET':
            return handle_list(event, goal_service)
        elif path == '/goals' and http_method == 'POST':
            return handle_create(event, goal_service)
        elif path.startswith('/goals/') and path.endswith('/progress') and http_method == 'PATCH':
            return handle_adjust(event, goal_service)
        elif path.startswith('/goals/') and http_method == 'GET':
            return handle_get(event, goal_service)
        elif path.startswith('/goals/') and http_method == 'PUT':
            return handle_update(event, goal_service)
        elif path.startswith('/goals/') and http_method == 'DELETE':
            return handle_delete(event, goal_service)
        else:
            return error_response("Route not found", status_code=404)

    except ExpenseTrackerException as e:
        logger.error(f"Application error: {str(e)}")
        return exception_response(e)
    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}", exc_info=True)
        return server_error_response()


def _goal_id(event: Dict[str, Any]) -> str:
    path_params = event.get('pathParameters') or {}
    return validate_object_id(path_params.get('id'), 'id')


def handle_list(event: Dict[str, Any], goal_service: GoalService) -> Dict[str, Any]:
    query = validate_model(GoalQuery, event.get('queryStringParameters'))

    goals = goal_service.list_goals(query)

    return success_response(data={
        'goals': [Goal.from_item(item).to_response() for item in goals],
        'count': len(goals)
    })


def handle_get(event: Dict[str, Any], goal_service: GoalService) -> Dict[str, Any]:
    goal = goal_service.get_goal(_goal_id(event))
    return success_response(data=Goal.from_item(goal).to_response())


def handle_create(event: Dict[str, Any], goal_service: GoalService) -> Dict[str, Any]:
    payload = validate_model(GoalCreate, parse_json_body(event))

    goal = goal_service.create_goal(payload)

    return success_response(
        data=Goal.from_item(goal).to_response(),
        message="Goal created successfully",
        status_code=201
    )


def handle_update(event: Dict[str, Any], goal_service: GoalService) -> Dict[str, Any]:
    goal_id = _goal_id(event)
    payload = validate_model(GoalUpdate, require_non_empty(parse_json_body(event)))

    goal = goal_service.update_goal(goal_id, payload)

    return success_response(
        data=Goal.from_item(goal).to_response(),
        message="Goal updated successfully"
    )


def handle_adjust(event: Dict[str, Any], goal_service: GoalService) -> Dict[str, Any]:
    goal_id = _goal_id(event)
    adjustment = validate_model(GoalAdjust, parse_json_body(event))

    goal = goal_service.adjust_progress(goal_id, adjustment.amount_delta)

    return success_response(data=Goal.from_item(goal).to_response())


def handle_delete(event: Dict[str, Any], goal_service: GoalService) -> Dict[str, Any]:
    goal_service.delete_goal(_goal_id(event))
    return no_content_response()
