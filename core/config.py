# core/config.py

from typing import Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Loads application settings from .env file."""
    mongo_uri: Optional[str] = None
    mongo_user: Optional[str] = None
    mongo_password: Optional[str] = None
    mongo_host: str = "localhost"
    mongo_port: int = 27017
    mongo_db_name: str = "farm_ledger_db"

    # AI providers; the agents fall back to canned responses when unset
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    huggingfacehub_api_token: Optional[str] = None

    # WeatherAPI.com
    weather_api_key: Optional[str] = None
    weather_api_url: str = "http://api.weatherapi.com/v1"
    http_timeout: int = 30

    default_list_limit: int = 50
    default_health_limit: int = 20

    @property
    def final_mongo_uri(self) -> str:
        """Constructs safe MongoDB URI from components (preferred) or returns the provided one."""
        if self.mongo_user and self.mongo_password:
            import urllib.parse
            user = urllib.parse.quote_plus(self.mongo_user)
            password = urllib.parse.quote_plus(self.mongo_password)
            return f"mongodb+srv://{user}:{password}@{self.mongo_host}/"

        if self.mongo_uri:
            return self.mongo_uri

        return f"mongodb://{self.mongo_host}:{self.mongo_port}/"

    class Config:
        env_file = ".env"
        extra = "ignore"

# Create a single, reusable instance of the settings
settings = Settings()
