"""
Shared pytest fixtures: an in-memory MongoDB per test and the managers on top of it.
"""
import mongomock
import pytest

from core.activity_manager import ActivityManager
from core.chat_history_manager import ChatHistoryManager
from core.crop_health_manager import CropHealthManager
from core.farm_manager import FarmManager
from core.finance_manager import FinanceManager
from core.profile_manager import ProfileManager


@pytest.fixture
def db():
    """A fresh in-memory MongoDB database."""
    return mongomock.MongoClient()["farm_ledger_test"]


@pytest.fixture
def farm_manager(db):
    return FarmManager(db)


@pytest.fixture
def activity_manager(db):
    return ActivityManager(db)


@pytest.fixture
def finance_manager(db):
    return FinanceManager(db)


@pytest.fixture
def health_manager(db):
    return CropHealthManager(db)


@pytest.fixture
def chat_history_manager(db):
    return ChatHistoryManager(db)


@pytest.fixture
def profile_manager(db):
    return ProfileManager(db)


@pytest.fixture
def farm(farm_manager):
    """A farm owned by 'ravi'."""
    return farm_manager.create_farm("ravi", "Green Acres", 2.5, soil_type="laterite",
                                    primary_crops="rice, banana")


@pytest.fixture
def other_farm(farm_manager):
    """A farm owned by a different user."""
    return farm_manager.create_farm("meera", "Hill Plot", 1.0)
