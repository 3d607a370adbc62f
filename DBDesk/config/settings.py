# config/settings.py
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Relational store
    DATABASE_URL: str = "sqlite:///./database.sqlite"
    METADATA_TABLE: str = "_search_metadata"

    # HTTP
    API_PREFIX: str = "/api"
    CORS_ORIGINS: List[str] = ["*"]
    HOST: str = "0.0.0.0"
    PORT: int = 3001

    # Search
    SEARCH_FUZZY: float = 0.2  # fraction of term length
    SEARCH_PREFIX: bool = True
    SEARCH_NAME_BOOST: float = 2.0
    SUGGEST_LIMIT: int = 5

    LOG_LEVEL: str = "INFO"

settings = Settings()
