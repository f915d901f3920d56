"""Translate expense filter criteria into DynamoDB condition expressions."""

from functools import reduce
from typing import List, Optional

from boto3.dynamodb.conditions import Attr, ConditionBase

from shared.validators import format_timestamp
from expenses.models import ExpenseFilters

MAX_IN_OPERANDS = 100


def any_of(conditions: List[ConditionBase]) -> ConditionBase:
    return reduce(lambda left, right: left | right, conditions)


def is_in(attribute: str, values: List[str]) -> ConditionBase:
    # DynamoDB caps IN at 100 operands
    chunks = [values[i:i + MAX_IN_OPERANDS] for i in range(0, len(values), MAX_IN_OPERANDS)]
    return any_of([Attr(attribute).is_in(chunk) for chunk in chunks])


def all_of(conditions: List[ConditionBase]) -> ConditionBase:
    return reduce(lambda left, right: left & right, conditions)


def build_filter_expression(filters: ExpenseFilters) -> Optional[ConditionBase]:
    """
    Build the predicate matching every supplied criterion.

    Criteria combine with AND; list-valued criteria match with OR inside
    their own dimension. Absent criteria add nothing, so empty filters
    produce None (match everything).

    Args:
        filters: Expense filter criteria

    Returns:
        Condition expression, or None when no criterion is set
    """
    conditions = []

    if filters.wallet_id:
        conditions.append(Attr('wallet_id').eq(filters.wallet_id))

    if filters.user_id:
        conditions.append(Attr('user_id').eq(filters.user_id))

    if filters.categories:
        conditions.append(is_in('category', list(filters.categories)))

    if filters.tags:
        # contains() on a list attribute tests membership
        conditions.append(any_of([Attr('tags').contains(tag) for tag in filters.tags]))

    if filters.search:
        needle = filters.search.lower()
        conditions.append(
            Attr('name_search').contains(needle) | Attr('note_search').contains(needle)
        )

    if filters.from_date:
        conditions.append(Attr('date').gte(format_timestamp(filters.from_date)))

    if filters.to_date:
        conditions.append(Attr('date').lte(format_timestamp(filters.to_date)))

    if not conditions:
        return None

    return all_of(conditions)
