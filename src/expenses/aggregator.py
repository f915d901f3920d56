"""Summary statistics over a set of matching expenses."""

import math
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from shared.validators import parse_timestamp
from expenses.models import (
    CategoryBreakdown,
    ExpenseFilters,
    ExpenseHighlight,
    ExpenseSummary,
    TopCategory,
    TrendPoint
)

SECONDS_PER_DAY = 24 * 60 * 60

# Anomaly rule: among the largest expenses, flag those well above their category mean
ANOMALY_POOL_SIZE = 25
ANOMALY_LIMIT = 5
ANOMALY_FACTOR = 1.5


def insertion_order(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Order expenses by creation time, then id."""
    return sorted(items, key=lambda item: (item.get('created_at', ''), item.get('expense_id', '')))


def by_amount_descending(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Largest first; equal amounts keep insertion order."""
    return sorted(insertion_order(items), key=lambda item: -float(item.get('amount', 0)))


def calculate_day_span(
    filters: ExpenseFilters,
    min_date: Optional[datetime],
    max_date: Optional[datetime]
) -> int:
    """
    Number of calendar days the summary covers.

    Uses the requested range when both bounds were given, otherwise the
    observed range. Returns 0 when neither is available.
    """
    if filters.from_date and filters.to_date:
        start, end = filters.from_date, filters.to_date
    elif min_date and max_date:
        start, end = min_date, max_date
    else:
        return 0

    diff_days = abs((end - start).total_seconds()) / SECONDS_PER_DAY
    return max(1, math.ceil(diff_days) + 1)


def _highlight(item: Dict[str, Any]) -> ExpenseHighlight:
    return ExpenseHighlight(
        id=item['expense_id'],
        name=item.get('name', ''),
        amount=float(item.get('amount', 0)),
        category=item.get('category', ''),
        date=item.get('date', '')
    )


def _category_breakdown(items: List[Dict[str, Any]], total_amount: float) -> List[CategoryBreakdown]:
    totals = defaultdict(float)
    counts = defaultdict(int)

    for item in items:
        category = item.get('category', '')
        totals[category] += float(item.get('amount', 0))
        counts[category] += 1

    breakdown = [
        CategoryBreakdown(
            category=category,
            total=total,
            count=counts[category],
            average=total / counts[category],
            percentage=(total / total_amount) * 100 if total_amount > 0 else 0.0
        )
        for category, total in totals.items()
    ]

    # Ties on total fall back to the category name
    breakdown.sort(key=lambda entry: (-entry.total, entry.category))
    return breakdown


def _daily_trend(items: List[Dict[str, Any]]) -> List[TrendPoint]:
    by_day = defaultdict(float)

    for item in items:
        day = item.get('date', '')[:10]
        if day:
            by_day[day] += float(item.get('amount', 0))

    return [TrendPoint(date=day, total=total) for day, total in sorted(by_day.items())]


def _anomalies(
    ranked: List[Dict[str, Any]],
    breakdown: List[CategoryBreakdown]
) -> List[ExpenseHighlight]:
    averages = {entry.category: entry.average for entry in breakdown}
    anomalies = []

    for item in ranked[:ANOMALY_POOL_SIZE]:
        average = averages.get(item.get('category', ''), 0)
        if not average:
            continue
        if float(item.get('amount', 0)) >= average * ANOMALY_FACTOR:
            anomalies.append(_highlight(item))
        if len(anomalies) == ANOMALY_LIMIT:
            break

    return anomalies


def summarize(items: List[Dict[str, Any]], filters: ExpenseFilters) -> ExpenseSummary:
    """
    Compute the summary for expenses that already match the filters.

    Args:
        items: Matching expense records
        filters: Criteria the records were selected with (used for the day span)

    Returns:
        Expense summary
    """
    ordered = insertion_order(items)

    total_amount = float(sum(float(item.get('amount', 0)) for item in ordered))
    total_count = len(ordered)

    dates = [item['date'] for item in ordered if item.get('date')]
    min_date = parse_timestamp(min(dates)) if dates else None
    max_date = parse_timestamp(max(dates)) if dates else None

    breakdown = _category_breakdown(ordered, total_amount)
    ranked = by_amount_descending(ordered)

    day_span = calculate_day_span(filters, min_date, max_date)

    top_category = None
    if breakdown:
        top_category = TopCategory(
            category=breakdown[0].category,
            total=breakdown[0].total,
            percentage=breakdown[0].percentage
        )

    return ExpenseSummary(
        total_amount=total_amount,
        total_count=total_count,
        average_per_day=total_amount / day_span if day_span > 0 else 0.0,
        distinct_categories=len(breakdown),
        category_breakdown=breakdown,
        trend=_daily_trend(ordered),
        top_category=top_category,
        top_expense=_highlight(ranked[0]) if ranked else None,
        anomalies=_anomalies(ranked, breakdown)
    )
