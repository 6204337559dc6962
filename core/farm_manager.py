# core/farm_manager.py

from typing import List, Optional, Union

from pymongo.database import Database

from .database import FARMS, get_database
from .exceptions import FarmAccessError
from .farm_stats import compose_farm_stats
from .models import Farm, FarmLocation, FarmStatsSnapshot
from .record_access import MongoRecordAccess

MIN_LAND_SIZE_ACRES = 0.1


def parse_crop_list(crops: Union[str, List[str], None]) -> List[str]:
    """Accepts "rice, banana" style input as well as a ready list."""
    if not crops:
        return []
    if isinstance(crops, str):
        crops = crops.split(",")
    return [c.strip() for c in crops if c and c.strip()]


class FarmManager:
    """Handles farm setup and updates, always scoped to the owning user."""

    def __init__(self, db: Optional[Database] = None):
        self.db = db if db is not None else get_database()
        self.farms_collection = self.db[FARMS]
        self.farms_collection.create_index("id", unique=True)
        self.farms_collection.create_index("user_id")
        print("---FARM MANAGER: Ready---")

    def create_farm(self, user_id: str, farm_name: str, land_size_acres: float,
                    soil_type: Optional[str] = None, irrigation_type: Optional[str] = None,
                    primary_crops: Union[str, List[str], None] = None,
                    location: Optional[FarmLocation] = None) -> Farm:
        if land_size_acres < MIN_LAND_SIZE_ACRES:
            raise ValueError(f"Land size must be at least {MIN_LAND_SIZE_ACRES} acres")

        farm = Farm(
            user_id=user_id,
            farm_name=farm_name,
            land_size_acres=land_size_acres,
            soil_type=soil_type or None,
            irrigation_type=irrigation_type or None,
            primary_crops=parse_crop_list(primary_crops),
            location=location,
        )
        self.farms_collection.insert_one(farm.model_dump())
        print(f"---FARM MANAGER: Created farm '{farm.farm_name}' for user {user_id}---")
        return farm

    def get_user_farms(self, user_id: str) -> List[Farm]:
        return MongoRecordAccess(user_id, self.db).list_farms()

    def get_farm(self, user_id: str, farm_id: str) -> Optional[Farm]:
        return MongoRecordAccess(user_id, self.db).get_farm(farm_id)

    def update_farm(self, user_id: str, farm_id: str, **updates) -> Farm:
        """Applies the non-None fields of ``updates`` to an owned farm."""
        farm = self.get_farm(user_id, farm_id)
        if farm is None:
            raise FarmAccessError()

        clean_updates = {k: v for k, v in updates.items() if v is not None}
        if "primary_crops" in clean_updates:
            clean_updates["primary_crops"] = parse_crop_list(clean_updates["primary_crops"])

        # Validate the merged farm before anything is written.
        updated = Farm(**{**farm.model_dump(), **clean_updates})
        self.farms_collection.update_one(
            {"id": farm_id, "user_id": user_id},
            {"$set": updated.model_dump(exclude={"id", "user_id", "created_at"})},
        )
        print(f"---FARM MANAGER: Updated farm {farm_id}---")
        return updated

    def get_farm_stats(self, user_id: str, farm_id: str) -> Optional[FarmStatsSnapshot]:
        return compose_farm_stats(farm_id, MongoRecordAccess(user_id, self.db))
