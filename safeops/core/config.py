import os
from pydantic_settings import BaseSettings
from typing import Dict, List, Optional


class Settings(BaseSettings):
    # REQUIRED
    DATABASE_URL: str
    SECRET_KEY: str

    # App
    APP_NAME: str = "safeops-backend"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Auth
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    ALGORITHM: str = "HS256"

    # Risk priority numbers: ordinal value per enum member, e.g.
    # RPN_SEVERITY_SCALE='{"low": 1, "medium": 2, "high": 3, "critical": 4}'
    RPN_SEVERITY_SCALE: Optional[Dict[str, int]] = None
    RPN_LIKELIHOOD_SCALE: Optional[Dict[str, int]] = None

    # Realtime: "reload" refetches the whole collection, "incremental" applies payloads
    REALTIME_STRATEGY: str = "reload"
    ERROR_HISTORY_LIMIT: int = 50

    # local dev only; deployments manage the schema themselves
    CREATE_SCHEMA_ON_START: bool = False

    class Config:
        case_sensitive = True
        # Load .env ONLY when not production
        env_file = ".env" if os.getenv("ENVIRONMENT") != "production" else None


settings = Settings()
