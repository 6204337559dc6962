# core/profile_manager.py

from typing import Optional
from pymongo.database import Database
from passlib.context import CryptContext
from .database import PROFILES, get_database, strip_id
from .models import FarmerProfile

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

class ProfileManager:
    """Handles user creation, authentication, and profile management in MongoDB."""

    def __init__(self, db: Optional[Database] = None):
        self.db = db if db is not None else get_database()
        self.profiles_collection = self.db[PROFILES]
        self.profiles_collection.create_index("user_id", unique=True)
        print("---PROFILE MANAGER: Ready---")

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        return pwd_context.verify(plain_password, hashed_password)

    def get_password_hash(self, password: str) -> str:
        return pwd_context.hash(password)

    def get_user(self, user_id: str) -> Optional[FarmerProfile]:
        data = strip_id(self.profiles_collection.find_one({"user_id": user_id}))
        if data:
            return FarmerProfile(**data)
        return None

    def create_user(self, user_id: str, password: str, full_name: Optional[str] = None) -> FarmerProfile:
        user_id = user_id.strip()
        if not user_id or not password:
            raise ValueError("Username and password are required.")
        if self.get_user(user_id):
            raise ValueError("Username already exists.")

        hashed_password = self.get_password_hash(password)
        new_user = FarmerProfile(user_id=user_id, hashed_password=hashed_password, full_name=full_name)

        self.profiles_collection.insert_one(new_user.model_dump())

        print(f"---PROFILE MANAGER: Created new user '{user_id}'---")
        return new_user

    def authenticate_user(self, user_id: str, password: str) -> Optional[FarmerProfile]:
        user = self.get_user(user_id)
        if user and user.hashed_password and self.verify_password(password, user.hashed_password):
            return user
        return None

    def load_profile(self, user_id: str) -> FarmerProfile:
        return self.get_user(user_id) or FarmerProfile(user_id=user_id)

    def save_profile(self, profile: FarmerProfile):
        self.profiles_collection.replace_one(
            {"user_id": profile.user_id},
            profile.model_dump(),
            upsert=True
        )
        print(f"---PROFILE MANAGER: Saved profile for user {profile.user_id}---")
