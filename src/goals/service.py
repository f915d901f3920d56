"""Goal service for savings goals."""

from typing import Dict, Any, List
from decimal import Decimal
import logging
from boto3.dynamodb.conditions import Attr

from shared.config import Settings
from shared.dynamodb import DynamoDBClient, build_set_expression
from shared.validators import format_timestamp, new_object_id, utc_now
from shared.exceptions import NotFoundError, ValidationError
from expenses.filters import all_of
from goals.models import GoalCreate, GoalQuery, GoalUpdate

logger = logging.getLogger(__name__)


def is_active(goal: Dict[str, Any]) -> bool:
    """A goal is active while it has a target that has not been reached."""
    target = float(goal.get('target_amount', 0))
    return target > 0 and float(goal.get('current_amount', 0)) < target


class GoalService:
    """Service for managing savings goals."""

    def __init__(self, goals_table: DynamoDBClient):
        """
        Initialize goal service.

        Args:
            goals_table: Goals table client
        """
        self.goals_table = goals_table

    @classmethod
    def from_settings(cls, settings: Settings) -> "GoalService":
        return cls(DynamoDBClient(settings.goals_table))

    def list_goals(self, query: GoalQuery) -> List[Dict[str, Any]]:
        """
        List goals, nearest deadline first; goals without a deadline come last.

        Args:
            query: Goal filters

        Returns:
            Goals
        """
        conditions = []
        if query.wallet_id:
            conditions.append(Attr('wallet_id').eq(query.wallet_id))
        if query.user_id:
            conditions.append(Attr('user_id').eq(query.user_id))

        goals = self.goals_table.scan_all(all_of(conditions) if conditions else None)

        # Comparing two attributes is not expressible through boto3 conditions
        if query.active_only:
            goals = [goal for goal in goals if is_active(goal)]

        goals.sort(key=lambda goal: (goal.get('deadline') is None, goal.get('deadline') or ''))
        return goals

    def get_goal(self, goal_id: str) -> Dict[str, Any]:
        """
        Get goal by ID.

        Raises:
            NotFoundError: If goal not found
        """
        goal = self.goals_table.get_item({'goal_id': goal_id})

        if not goal:
            raise NotFoundError("Goal not found")

        return goal

    def create_goal(self, payload: GoalCreate) -> Dict[str, Any]:
        """Create a new goal."""
        now = utc_now()

        goal = self.goals_table.put_item({
            'goal_id': new_object_id(),
            'name': payload.name,
            'description': payload.description,
            'target_amount': payload.target_amount,
            'current_amount': payload.current_amount,
            'wallet_id': payload.wallet_id,
            'user_id': payload.user_id,
            'deadline': format_timestamp(payload.deadline) if payload.deadline else None,
            'created_at': now,
            'updated_at': now
        })

        logger.info(f"Created goal {goal['goal_id']}")
        return goal

    def update_goal(self, goal_id: str, payload: GoalUpdate) -> Dict[str, Any]:
        """
        Update goal.

        Raises:
            NotFoundError: If goal not found
        """
        updates = {
            key: value
            for key, value in payload.model_dump(exclude_unset=True).items()
            if value is not None
        }

        if 'deadline' in updates:
            updates['deadline'] = format_timestamp(updates['deadline'])

        updates['updated_at'] = utc_now()
        update_expr, expr_names, expr_values = build_set_expression(updates)

        goal = self.goals_table.update_item(
            key={'goal_id': goal_id},
            update_expression=update_expr,
            expression_values=expr_values,
            expression_names=expr_names,
            condition_expression=Attr('goal_id').exists(),
            not_found_message="Goal not found"
        )

        logger.info(f"Updated goal {goal_id}")
        return goal

    def delete_goal(self, goal_id: str) -> None:
        """
        Delete goal.

        Raises:
            NotFoundError: If goal not found
        """
        self.goals_table.delete_item(
            {'goal_id': goal_id},
            condition_expression=Attr('goal_id').exists(),
            not_found_message="Goal not found"
        )

        logger.info(f"Deleted goal {goal_id}")

    def adjust_progress(self, goal_id: str, amount_delta: float) -> Dict[str, Any]:
        """
        Add a signed amount to a goal's saved amount.

        Applied as a single atomic ADD on the stored value, so concurrent
        adjustments never overwrite each other. A withdrawal larger than the
        saved amount is rejected by the same write's condition.

        Args:
            goal_id: Goal ID
            amount_delta: Amount to add (negative to withdraw)

        Returns:
            Updated goal

        Raises:
            NotFoundError: If goal not found
            ValidationError: If the result would be negative
        """
        condition = Attr('goal_id').exists()
        if amount_delta < 0:
            condition = condition & Attr('current_amount').gte(Decimal(str(-amount_delta)))

        try:
            goal = self.goals_table.update_item(
                key={'goal_id': goal_id},
                update_expression="ADD #current_amount :delta SET #updated_at = :updated_at",
                expression_names={
                    '#current_amount': 'current_amount',
                    '#updated_at': 'updated_at'
                },
                expression_values={
                    ':delta': amount_delta,
                    ':updated_at': utc_now()
                },
                condition_expression=condition,
                not_found_message="Goal not found"
            )
        except NotFoundError:
            # The condition also fails on overdraw; tell the two apart
            if amount_delta < 0 and self.goals_table.get_item({'goal_id': goal_id}):
                raise ValidationError(
                    "Invalid request",
                    details=[{"path": "amountDelta", "message": "Current amount cannot drop below zero"}]
                )
            raise

        logger.info(f"Adjusted goal {goal_id} by {amount_delta}")
        return goal
