from pydantic_settings import BaseSettings
from pathlib import Path
from typing import Set

class Settings(BaseSettings):
    APP_NAME: str = "Directory Analytics API"
    APP_VERSION: str = "1.0.0"
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    API_KEYS: Set[str] = set()
    ADMIN_ROLE: str = "admin"
    TRACK_CLIENT_INFO: bool = True
    REQUEST_WINDOW_SECONDS: int = 3600

    class Config:
        env_file = Path(__file__).parent.parent / ".env"
        case_sensitive = True

settings = Settings()
