# core/aggregation.py

"""
Pure reductions of farm records into dashboard statistics.

Every function here only reads the list it is given and returns a fresh
result model, so callers may run them concurrently. Inputs are expected to be
scoped to a single farm already (see core/record_access.py).
"""

from collections import Counter, defaultdict
from typing import Any, Iterable, List, Mapping, Optional, Sequence, TypeVar

from .models import ActivityStats, DateRange, FinancialSummary, HealthStats, to_iso_date

RECENT_ACTIVITY_LIMIT = 10
RECENT_ISSUE_LIMIT = 5
ISSUE_STATUSES = ("diseased", "treated")
HEALTHY_STATUSES = ("healthy", "recovered")

T = TypeVar("T")


def _value(record: Any, name: str, default: Any = None) -> Any:
    """Reads a field from a model or a raw document alike."""
    if isinstance(record, Mapping):
        value = record.get(name, default)
    else:
        value = getattr(record, name, default)
    return default if value is None else value


def _amount(record: Any, name: str) -> float:
    return _value(record, name, 0) or 0


def _count(records: Iterable[Any], name: str, key=None) -> Counter:
    """Counts records by a field; records without it are left out."""
    counts = Counter()
    for record in records:
        value = _value(record, name)
        if value is not None:
            counts[key(value) if key else value] += 1
    return counts


def month_key(iso_date) -> str:
    """YYYY-MM bucket of an ISO date string (or date)."""
    return to_iso_date(iso_date)[:7]


def filter_by_date_range(records: Iterable[T], date_range: Optional[DateRange], field: str = "date") -> List[T]:
    """
    Keeps records whose ``field`` lies within the inclusive range.

    In-memory counterpart of ``DateRange.as_query``, which record access pushes
    down to MongoDB.
    """
    if date_range is None:
        return list(records)
    return [r for r in records if date_range.contains(to_iso_date(_value(r, field)))]


def sum_costs(expenses: Iterable[Any]) -> float:
    return sum((_amount(e, "cost") for e in expenses), 0)


def aggregate_activities(activities: Sequence[Any]) -> ActivityStats:
    """Counts activities by type and by month; keeps the first ten as recent."""
    activity_counts = _count(activities, "activity_type")
    monthly_activity = _count(activities, "date", key=month_key)

    return ActivityStats(
        total_activities=len(activities),
        activity_counts=dict(activity_counts),
        monthly_activity=dict(monthly_activity),
        recent_activities=list(activities[:RECENT_ACTIVITY_LIMIT]),
    )


def aggregate_financials(expenses: Sequence[Any], sales: Sequence[Any]) -> FinancialSummary:
    """
    Totals expenses and revenue for one farm.

    Revenue is the sum of each sale's stored ``total_amount``; it is never
    recomputed from quantity and price. The margin is reported as 0 whenever
    there is no revenue.
    """
    total_expenses = sum_costs(expenses)
    total_revenue = sum((_amount(s, "total_amount") for s in sales), 0)
    net_profit = total_revenue - total_expenses
    profit_margin = (net_profit / total_revenue) * 100 if total_revenue > 0 else 0

    expenses_by_category = defaultdict(float)
    for expense in expenses:
        category = _value(expense, "category")
        # Uncategorized costs still count toward the total.
        if category is not None:
            expenses_by_category[category] += _amount(expense, "cost")

    return FinancialSummary(
        total_expenses=total_expenses,
        total_revenue=total_revenue,
        net_profit=net_profit,
        profit_margin=profit_margin,
        expenses_by_category=dict(expenses_by_category),
        expense_count=len(expenses),
        sales_count=len(sales),
    )


def aggregate_health(records: Sequence[Any]) -> HealthStats:
    """Summarizes crop health; recovered crops count as healthy."""
    status_counts = _count(records, "status")
    crop_counts = _count(records, "crop_name")
    recent_issues = [r for r in records if _value(r, "status") in ISSUE_STATUSES][:RECENT_ISSUE_LIMIT]

    total = len(records)
    healthy_percentage = 0
    if total > 0:
        healthy = sum(status_counts.get(status, 0) for status in HEALTHY_STATUSES)
        healthy_percentage = healthy / total * 100

    return HealthStats(
        total_records=total,
        status_counts=dict(status_counts),
        crop_counts=dict(crop_counts),
        recent_issues=recent_issues,
        healthy_percentage=healthy_percentage,
    )
