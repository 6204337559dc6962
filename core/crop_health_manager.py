# core/crop_health_manager.py

from typing import List, Optional

from pymongo.database import Database

from .aggregation import aggregate_health
from .config import settings
from .database import HEALTH_RECORDS, get_database, strip_id
from .exceptions import FarmAccessError, RecordAccessError
from .models import AIDiagnosis, HealthRecord, HealthStats, HealthStatus
from .record_access import MongoRecordAccess


class CropHealthManager:
    """Stores crop-health observations and their (optional) AI diagnoses."""

    def __init__(self, db: Optional[Database] = None):
        self.db = db if db is not None else get_database()
        self.records_collection = self.db[HEALTH_RECORDS]
        self.records_collection.create_index([("farm_id", 1), ("created_at", -1)])
        print("---CROP HEALTH MANAGER: Ready---")

    def _access(self, user_id: str) -> MongoRecordAccess:
        return MongoRecordAccess(user_id, self.db)

    def add_health_record(self, user_id: str, farm_id: str, crop_name: str, status: HealthStatus,
                          recorded_date, image_urls: Optional[List[str]] = None,
                          ai_diagnosis: Optional[AIDiagnosis] = None, symptoms: Optional[str] = None,
                          treatment_applied: Optional[str] = None) -> HealthRecord:
        if self._access(user_id).get_farm(farm_id) is None:
            raise FarmAccessError()

        record = HealthRecord(
            farm_id=farm_id,
            crop_name=crop_name,
            image_urls=image_urls or [],
            ai_diagnosis=ai_diagnosis,
            symptoms=symptoms,
            treatment_applied=treatment_applied,
            status=status,
            recorded_date=recorded_date,
        )
        self.records_collection.insert_one(record.model_dump())
        print(f"---CROP HEALTH MANAGER: Saved {record.status} record for {record.crop_name}---")
        return record

    def update_health_record_status(self, user_id: str, record_id: str, status: HealthStatus,
                                    treatment_applied: Optional[str] = None) -> HealthRecord:
        data = strip_id(self.records_collection.find_one({"id": record_id}))
        if not data or self._access(user_id).get_farm(data["farm_id"]) is None:
            raise RecordAccessError("Health record")

        updates = {"status": status}
        if treatment_applied is not None:
            updates["treatment_applied"] = treatment_applied

        record = HealthRecord(**{**data, **updates})
        self.records_collection.update_one({"id": record_id}, {"$set": updates})
        print(f"---CROP HEALTH MANAGER: Record {record_id} is now {status}---")
        return record

    def get_farm_health_records(self, user_id: str, farm_id: str, limit: Optional[int] = None) -> List[HealthRecord]:
        return self._access(user_id).list_health_records(farm_id, limit=limit or settings.default_health_limit)

    def get_health_records_by_crop(self, user_id: str, farm_id: str, crop_name: str) -> List[HealthRecord]:
        return self._access(user_id).list_health_records(farm_id, crop_name=crop_name)

    def get_health_stats(self, user_id: str, farm_id: str) -> Optional[HealthStats]:
        access = self._access(user_id)
        if access.get_farm(farm_id) is None:
            return None
        return aggregate_health(access.list_health_records(farm_id))
