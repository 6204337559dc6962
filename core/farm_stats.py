# core/farm_stats.py

from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Optional

from .aggregation import sum_costs
from .models import DateRange, FarmStatsSnapshot
from .record_access import RecordAccess

RECENT_SNAPSHOT_LIMIT = 5


def month_start(today: Optional[date] = None) -> str:
    """First day of the current calendar month as YYYY-MM-01."""
    today = today or date.today()
    return today.strftime("%Y-%m-01")


def compose_farm_stats(farm_id: str, record_access: RecordAccess,
                       today: Optional[date] = None) -> Optional[FarmStatsSnapshot]:
    """
    Builds the dashboard snapshot for one farm.

    Returns None when the farm is unknown or owned by someone else, without
    touching any of its records. The three reads run concurrently and any
    failing read fails the whole snapshot.

    Record access returns activities newest first, so the first five entries
    are the five most recent ones. The list is not re-sorted here.
    """
    if record_access.get_farm(farm_id) is None:
        return None

    this_month = DateRange(start=month_start(today))
    with ThreadPoolExecutor(max_workers=3) as pool:
        activities_future = pool.submit(record_access.list_activities, farm_id)
        expenses_future = pool.submit(record_access.list_expenses, farm_id, this_month)
        health_future = pool.submit(record_access.list_health_records, farm_id)

        activities = activities_future.result()
        expenses = expenses_future.result()
        health_records = health_future.result()

    return FarmStatsSnapshot(
        total_activities=len(activities),
        monthly_expenses=sum_costs(expenses),
        health_records=len(health_records),
        recent_activities=activities[:RECENT_SNAPSHOT_LIMIT],
    )
