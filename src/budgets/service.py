"""Budget service for managing budgets and their usage."""

from typing import Dict, Any, List
import logging
from boto3.dynamodb.conditions import Attr

from shared.config import Settings
from shared.dynamodb import DynamoDBClient, build_set_expression
from shared.validators import format_timestamp, new_object_id, parse_timestamp, utc_now
from shared.exceptions import NotFoundError
from budgets.models import Budget, BudgetCreate, BudgetQuery, BudgetUpdate, BudgetUsage
from expenses.filters import all_of, build_filter_expression, is_in
from expenses.models import ExpenseFilters

logger = logging.getLogger(__name__)


def build_budget_filter(query: BudgetQuery):
    """Condition expression for the budget list filters, or None."""
    conditions = []

    if query.wallet_id:
        conditions.append(Attr('wallet_id').eq(query.wallet_id))

    if query.user_id:
        conditions.append(Attr('user_id').eq(query.user_id))

    if query.categories:
        conditions.append(is_in('category', list(query.categories)))

    if query.active_on:
        active_on = format_timestamp(query.active_on)
        conditions.append(Attr('period_start').lte(active_on))
        conditions.append(Attr('period_end').gte(active_on))

    if not conditions:
        return None

    return all_of(conditions)


class BudgetService:
    """Service for managing budgets."""

    def __init__(self, budgets_table: DynamoDBClient, expenses_table: DynamoDBClient):
        """
        Initialize budget service.

        Args:
            budgets_table: Budgets table client
            expenses_table: Expenses table client, read for usage
        """
        self.budgets_table = budgets_table
        self.expenses_table = expenses_table

    @classmethod
    def from_settings(cls, settings: Settings) -> "BudgetService":
        return cls(
            DynamoDBClient(settings.budgets_table),
            DynamoDBClient(settings.expenses_table)
        )

    def create_budget(self, payload: BudgetCreate) -> Dict[str, Any]:
        """
        Create a new budget.

        Args:
            payload: Validated budget fields

        Returns:
            Created budget
        """
        now = utc_now()

        budget = self.budgets_table.put_item({
            'budget_id': new_object_id(),
            'name': payload.name,
            'category': payload.category,
            'limit': payload.limit,
            'wallet_id': payload.wallet_id,
            'user_id': payload.user_id,
            'period_start': format_timestamp(payload.period_start),
            'period_end': format_timestamp(payload.period_end),
            'notes': payload.notes,
            'created_at': now,
            'updated_at': now
        })

        logger.info(f"Created budget {budget['budget_id']} for category {payload.category}")
        return budget

    def list_budgets(self, query: BudgetQuery) -> List[Dict[str, Any]]:
        """
        List budgets matching the query, latest period first.

        Args:
            query: Budget filters

        Returns:
            Budgets
        """
        budgets = self.budgets_table.scan_all(build_budget_filter(query))
        budgets.sort(key=lambda item: item.get('period_start', ''), reverse=True)
        return budgets

    def list_budgets_with_usage(self, query: BudgetQuery) -> List[BudgetUsage]:
        """
        List budgets together with their spending.

        Args:
            query: Budget filters

        Returns:
            Budgets with spent, remaining and utilization
        """
        usages = []

        for budget in self.list_budgets(query):
            spent = self.calculate_usage(budget)
            limit = float(budget.get('limit', 0))

            usages.append(BudgetUsage(
                budget=Budget.from_item(budget),
                spent=spent,
                remaining=max(0.0, limit - spent),
                utilization=(spent / limit) * 100 if limit > 0 else 0.0
            ))

        return usages

    def calculate_usage(self, budget: Dict[str, Any]) -> float:
        """
        Total spent against a budget.

        Sums expenses in the budget's category within its period, restricted
        to the budget's wallet and user when those are set.

        Args:
            budget: Stored budget

        Returns:
            Total spending amount
        """
        filters = ExpenseFilters(
            wallet_id=budget.get('wallet_id'),
            user_id=budget.get('user_id'),
            categories=[budget['category']],
            from_date=parse_timestamp(budget['period_start']),
            to_date=parse_timestamp(budget['period_end'])
        )

        expenses = self.expenses_table.scan_all(build_filter_expression(filters))
        return float(sum(float(expense.get('amount', 0)) for expense in expenses))

    def update_budget(self, budget_id: str, payload: BudgetUpdate) -> Dict[str, Any]:
        """
        Update budget.

        Args:
            budget_id: Budget ID
            payload: Fields to replace

        Returns:
            Updated budget

        Raises:
            NotFoundError: If budget not found
        """
        updates = {
            key: value
            for key, value in payload.model_dump(exclude_unset=True).items()
            if value is not None
        }

        for field in ('period_start', 'period_end'):
            if field in updates:
                updates[field] = format_timestamp(updates[field])

        updates['updated_at'] = utc_now()
        update_expr, expr_names, expr_values = build_set_expression(updates)

        updated_budget = self.budgets_table.update_item(
            key={'budget_id': budget_id},
            update_expression=update_expr,
            expression_values=expr_values,
            expression_names=expr_names,
            condition_expression=Attr('budget_id').exists(),
            not_found_message="Budget not found"
        )

        logger.info(f"Updated budget {budget_id}")
        return updated_budget

    def delete_budget(self, budget_id: str) -> None:
        """
        Delete budget permanently.

        Raises:
            NotFoundError: If budget not found
        """
        self.budgets_table.delete_item(
            {'budget_id': budget_id},
            condition_expression=Attr('budget_id').exists(),
            not_found_message="Budget not found"
        )

        logger.info(f"Deleted budget {budget_id}")

    def get_budget(self, budget_id: str) -> Dict[str, Any]:
        """
        Get budget by ID.

        Raises:
            NotFoundError: If budget not found
        """
        budget = self.budgets_table.get_item({'budget_id': budget_id})

        if not budget:
            raise NotFoundError("Budget not found")

        return budget
