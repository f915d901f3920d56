"""Expense service for managing expenses and their summaries."""

from typing import Dict, Any, List, Optional
from datetime import datetime, timezone
import logging
from boto3.dynamodb.conditions import Attr

from shared.config import Settings
from shared.dynamodb import DynamoDBClient, build_set_expression
from shared.validators import format_timestamp, new_object_id, utc_now
from shared.exceptions import AggregationError, DatabaseError, NotFoundError
from expenses.aggregator import summarize
from expenses.cache import SummaryCache
from expenses.filters import build_filter_expression
from expenses.models import ExpenseCreate, ExpenseFilters, ExpenseSummary, ExpenseUpdate

logger = logging.getLogger(__name__)

MAX_LIST_LIMIT = 500


def _search_text(value: Optional[str]) -> Optional[str]:
    return value.lower() if value else None


def _normalize_tags(tags: List[str]) -> List[str]:
    return [tag.strip() for tag in tags if tag and tag.strip()]


class ExpenseService:
    """Service for managing expenses."""

    def __init__(
        self,
        expenses_table: DynamoDBClient,
        summary_cache: Optional[SummaryCache] = None
    ):
        """
        Initialize expense service.

        Args:
            expenses_table: Expenses table client
            summary_cache: Optional summary cache; without one every summary is recomputed
        """
        self.expenses_table = expenses_table
        self.summary_cache = summary_cache

    @classmethod
    def from_settings(cls, settings: Settings) -> "ExpenseService":
        """Wire the service to the tables named in the settings."""
        summary_cache = None
        if settings.summary_cache_table:
            summary_cache = SummaryCache(
                DynamoDBClient(settings.summary_cache_table),
                ttl_seconds=settings.summary_cache_ttl
            )
        return cls(DynamoDBClient(settings.expenses_table), summary_cache)

    def get_expense(self, expense_id: str) -> Dict[str, Any]:
        """
        Get expense by ID.

        Args:
            expense_id: Expense ID

        Returns:
            Expense data

        Raises:
            NotFoundError: If expense not found
        """
        expense = self.expenses_table.get_item({'expense_id': expense_id})

        if not expense:
            raise NotFoundError("Expense not found")

        return expense

    def find_matching(self, filters: ExpenseFilters) -> List[Dict[str, Any]]:
        """Every expense matching the filters, in storage order."""
        return self.expenses_table.scan_all(build_filter_expression(filters))

    def list_expenses(self, filters: ExpenseFilters) -> List[Dict[str, Any]]:
        """
        List expenses matching the filters.

        Sorted by date (default newest first), ties broken by creation time
        in the same direction, and capped at 500 results.

        Args:
            filters: Filter, sort and limit criteria

        Returns:
            Matching expenses
        """
        expenses = self.find_matching(filters)

        expenses.sort(
            key=lambda item: (item.get('date', ''), item.get('created_at', '')),
            reverse=filters.sort != 'asc'
        )

        limit = min(filters.limit, MAX_LIST_LIMIT) if filters.limit else MAX_LIST_LIMIT
        return expenses[:limit]

    def create_expense(self, payload: ExpenseCreate) -> Dict[str, Any]:
        """
        Create a new expense.

        Args:
            payload: Validated expense fields

        Returns:
            Created expense
        """
        now = utc_now()
        expense_date = payload.date or datetime.now(timezone.utc)

        expense = {
            'expense_id': new_object_id(),
            'name': payload.name,
            'name_search': _search_text(payload.name),
            'amount': payload.amount,
            'category': payload.category,
            'date': format_timestamp(expense_date),
            'currency': payload.currency.upper(),
            'note': payload.note,
            'note_search': _search_text(payload.note),
            'tags': _normalize_tags(payload.tags),
            'wallet_id': payload.wallet_id,
            'user_id': payload.user_id,
            'is_recurring': payload.is_recurring,
            'receipt_url': str(payload.receipt_url) if payload.receipt_url else None,
            'created_at': now,
            'updated_at': now
        }

        expense = self.expenses_table.put_item(expense)
        logger.info(f"Created expense {expense['expense_id']}")

        self._invalidate_summaries()
        return expense

    def update_expense(self, expense_id: str, payload: ExpenseUpdate) -> Dict[str, Any]:
        """
        Update expense.

        Args:
            expense_id: Expense ID
            payload: Fields to replace

        Returns:
            Updated expense

        Raises:
            NotFoundError: If expense not found
        """
        updates = {
            key: value
            for key, value in payload.model_dump(exclude_unset=True).items()
            if value is not None
        }

        if 'date' in updates:
            updates['date'] = format_timestamp(updates['date'])
        if 'currency' in updates:
            updates['currency'] = updates['currency'].upper()
        if 'tags' in updates:
            updates['tags'] = _normalize_tags(updates['tags'])
        if 'receipt_url' in updates:
            updates['receipt_url'] = str(updates['receipt_url'])
        if 'name' in updates:
            updates['name_search'] = _search_text(updates['name'])
        if 'note' in updates:
            updates['note_search'] = _search_text(updates['note'])

        updates['updated_at'] = utc_now()

        update_expr, expr_names, expr_values = build_set_expression(updates)

        # Conditional write: a missing expense is reported instead of created
        updated_expense = self.expenses_table.update_item(
            key={'expense_id': expense_id},
            update_expression=update_expr,
            expression_values=expr_values,
            expression_names=expr_names,
            condition_expression=Attr('expense_id').exists(),
            not_found_message="Expense not found"
        )

        logger.info(f"Updated expense {expense_id}")

        self._invalidate_summaries()
        return updated_expense

    def delete_expense(self, expense_id: str) -> None:
        """
        Delete expense permanently.

        Args:
            expense_id: Expense ID

        Raises:
            NotFoundError: If expense not found
        """
        self.expenses_table.delete_item(
            {'expense_id': expense_id},
            condition_expression=Attr('expense_id').exists(),
            not_found_message="Expense not found"
        )

        logger.info(f"Deleted expense {expense_id}")

        self._invalidate_summaries()

    def get_summary(self, filters: ExpenseFilters) -> ExpenseSummary:
        """
        Get expense summary.

        Served from the cache when a fresh entry exists, otherwise
        recomputed from the matching expenses and cached.

        Args:
            filters: Summary criteria

        Returns:
            Summary statistics

        Raises:
            AggregationError: If the expenses cannot be read
        """
        if self.summary_cache:
            cached = self.summary_cache.get(filters)
            if cached is not None:
                logger.debug("Summary served from cache")
                return cached

        try:
            expenses = self.find_matching(filters)
        except DatabaseError as e:
            logger.error(f"Summary aggregation failed: {e}")
            raise AggregationError("Aggregation failed") from e

        summary = summarize(expenses, filters)

        if self.summary_cache:
            self.summary_cache.set(filters, summary)

        return summary

    def _invalidate_summaries(self) -> None:
        """Drop all cached summaries after a write."""
        if self.summary_cache:
            self.summary_cache.invalidate_all()
