# core/activity_manager.py

from typing import List, Optional

from pymongo.database import Database

from .aggregation import aggregate_activities
from .config import settings
from .database import ACTIVITIES, get_database, strip_id
from .exceptions import FarmAccessError, RecordAccessError
from .models import Activity, ActivityMetadata, ActivityStats, DateRange
from .record_access import MongoRecordAccess

UPDATABLE_FIELDS = {"description", "crop_name", "date", "voice_note_url", "images", "metadata"}


class ActivityManager:
    """Handles all database operations for farm activity logs."""

    def __init__(self, db: Optional[Database] = None):
        self.db = db if db is not None else get_database()
        self.activities_collection = self.db[ACTIVITIES]
        self.activities_collection.create_index([("farm_id", 1), ("created_at", -1)])
        print("---ACTIVITY MANAGER: Ready---")

    def _access(self, user_id: str) -> MongoRecordAccess:
        return MongoRecordAccess(user_id, self.db)

    def _get_owned(self, user_id: str, activity_id: str) -> Activity:
        data = strip_id(self.activities_collection.find_one({"id": activity_id}))
        if not data or self._access(user_id).get_farm(data["farm_id"]) is None:
            raise RecordAccessError("Activity")
        return Activity(**data)

    def add_activity(self, user_id: str, farm_id: str, activity_type: str, crop_name: str, date,
                     description: str = "", voice_note_url: Optional[str] = None,
                     images: Optional[List[str]] = None,
                     metadata: Optional[ActivityMetadata] = None) -> Activity:
        if self._access(user_id).get_farm(farm_id) is None:
            raise FarmAccessError()

        activity = Activity(
            farm_id=farm_id,
            activity_type=activity_type,
            description=description,
            crop_name=crop_name,
            date=date,
            voice_note_url=voice_note_url,
            images=images or [],
            metadata=metadata,
        )
        self.activities_collection.insert_one(activity.model_dump())
        print(f"---ACTIVITY MANAGER: Logged {activity.activity_type} on farm {farm_id}---")
        return activity

    def update_activity(self, user_id: str, activity_id: str, **updates) -> Activity:
        activity = self._get_owned(user_id, activity_id)

        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update activity fields: {', '.join(sorted(unknown))}")

        clean_updates = {k: v for k, v in updates.items() if v is not None}
        updated = Activity(**{**activity.model_dump(), **clean_updates})
        self.activities_collection.update_one(
            {"id": activity_id},
            {"$set": updated.model_dump(include=set(clean_updates))},
        )
        print(f"---ACTIVITY MANAGER: Updated activity {activity_id}---")
        return updated

    def delete_activity(self, user_id: str, activity_id: str) -> str:
        self._get_owned(user_id, activity_id)
        self.activities_collection.delete_one({"id": activity_id})
        print(f"---ACTIVITY MANAGER: Deleted activity {activity_id}---")
        return activity_id

    def get_farm_activities(self, user_id: str, farm_id: str, limit: Optional[int] = None) -> List[Activity]:
        return self._access(user_id).list_activities(farm_id, limit=limit or settings.default_list_limit)

    def get_activities_by_date_range(self, user_id: str, farm_id: str, start_date, end_date) -> List[Activity]:
        date_range = DateRange(start=start_date, end=end_date)
        return self._access(user_id).list_activities(farm_id, date_range)

    def get_activity_stats(self, user_id: str, farm_id: str) -> Optional[ActivityStats]:
        access = self._access(user_id)
        if access.get_farm(farm_id) is None:
            return None
        return aggregate_activities(access.list_activities(farm_id))
