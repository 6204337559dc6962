# core/record_access.py

from typing import List, Optional, Protocol

from pymongo import DESCENDING
from pymongo.database import Database

from .database import ACTIVITIES, EXPENSES, FARMS, HEALTH_RECORDS, SALES, get_database, strip_id
from .models import Activity, DateRange, Expense, Farm, HealthRecord, Sale


class RecordAccess(Protocol):
    """
    The read boundary used by the aggregation code.

    An implementation is bound to one acting user and only ever returns records
    of farms that user owns; an unknown or foreign farm yields no records.
    Lists are ordered newest first.
    """

    def get_farm(self, farm_id: str) -> Optional[Farm]: ...

    def list_activities(self, farm_id: str, date_range: Optional[DateRange] = None,
                        limit: Optional[int] = None) -> List[Activity]: ...

    def list_expenses(self, farm_id: str, date_range: Optional[DateRange] = None,
                      limit: Optional[int] = None) -> List[Expense]: ...

    def list_sales(self, farm_id: str, date_range: Optional[DateRange] = None,
                   limit: Optional[int] = None) -> List[Sale]: ...

    def list_health_records(self, farm_id: str, crop_name: Optional[str] = None,
                            limit: Optional[int] = None) -> List[HealthRecord]: ...


class MongoRecordAccess:
    """Ownership-scoped reads of farm records from MongoDB."""

    def __init__(self, user_id: str, db: Optional[Database] = None):
        self.user_id = user_id
        self.db = db if db is not None else get_database()

    def get_farm(self, farm_id: str) -> Optional[Farm]:
        data = strip_id(self.db[FARMS].find_one({"id": farm_id, "user_id": self.user_id}))
        return Farm(**data) if data else None

    def list_farms(self) -> List[Farm]:
        cursor = self.db[FARMS].find({"user_id": self.user_id}).sort("created_at", DESCENDING)
        return [Farm(**strip_id(f)) for f in cursor]

    def _owns(self, farm_id: str) -> bool:
        return self.db[FARMS].find_one({"id": farm_id, "user_id": self.user_id}, {"_id": 1}) is not None

    def _find(self, collection: str, farm_id: str, date_field: str,
              date_range: Optional[DateRange], limit: Optional[int], **filters) -> List[dict]:
        if not self._owns(farm_id):
            return []

        query = {"farm_id": farm_id, **filters}
        sort_field = "created_at"
        if date_range is not None and date_range.as_query():
            query[date_field] = date_range.as_query()
            sort_field = date_field

        cursor = self.db[collection].find(query).sort(sort_field, DESCENDING)
        if limit:
            cursor = cursor.limit(limit)
        return [strip_id(doc) for doc in cursor]

    def list_activities(self, farm_id: str, date_range: Optional[DateRange] = None,
                        limit: Optional[int] = None) -> List[Activity]:
        return [Activity(**d) for d in self._find(ACTIVITIES, farm_id, "date", date_range, limit)]

    def list_expenses(self, farm_id: str, date_range: Optional[DateRange] = None,
                      limit: Optional[int] = None) -> List[Expense]:
        return [Expense(**d) for d in self._find(EXPENSES, farm_id, "date", date_range, limit)]

    def list_sales(self, farm_id: str, date_range: Optional[DateRange] = None,
                   limit: Optional[int] = None) -> List[Sale]:
        return [Sale(**d) for d in self._find(SALES, farm_id, "sale_date", date_range, limit)]

    def list_health_records(self, farm_id: str, crop_name: Optional[str] = None,
                            limit: Optional[int] = None) -> List[HealthRecord]:
        filters = {"crop_name": crop_name} if crop_name else {}
        docs = self._find(HEALTH_RECORDS, farm_id, "recorded_date", None, limit, **filters)
        return [HealthRecord(**d) for d in docs]
