# core/database.py

from typing import Optional
from pymongo import MongoClient
from pymongo.database import Database
from .config import settings

FARMS = "farms"
ACTIVITIES = "activities"
EXPENSES = "expenses"
SALES = "sales"
HEALTH_RECORDS = "crop_health_records"
PROFILES = "profiles"
CONVERSATIONS = "chat_conversations"

_client: Optional[MongoClient] = None


def get_database(db_name: Optional[str] = None) -> Database:
    """Returns the application database, sharing one client per process."""
    global _client
    if _client is None:
        _client = MongoClient(settings.final_mongo_uri)
        print("---DATABASE: Connected to MongoDB---")
    return _client[db_name or settings.mongo_db_name]


def strip_id(document: Optional[dict]) -> Optional[dict]:
    """Drops Mongo's ``_id`` so documents validate against our models."""
    if document and "_id" in document:
        del document["_id"]
    return document
