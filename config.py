"""
Configuration management for MedCare
"""

from typing import Dict, Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "MedCare"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENV: str = "development"

    # API
    API_PREFIX: str = "/api/v1"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    DATABASE_URL: str = "sqlite:///./medcare.db"
    DATABASE_ECHO: bool = False

    # Reminders
    REMINDERS_ENABLED: bool = True
    REMINDER_TICK_SECONDS: int = 60
    ESCALATION_DELAY_MINUTES: int = 30

    # Storage
    PROFILE_DOCUMENT_ID: str = "main"
    EXPORT_MAX_RECORDS: int = 30

    # Notifications
    NOTIFICATION_BACKEND: str = "log"  # "log" or "emailjs"
    EMAILJS_API_URL: str = "https://api.emailjs.com/api/v1.0/email/send"
    EMAILJS_SERVICE_ID: Optional[str] = None
    EMAILJS_TEMPLATE_ID: Optional[str] = None
    EMAILJS_PUBLIC_KEY: Optional[str] = None
    NOTIFICATION_TIMEOUT_SECONDS: float = 10.0

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


class TrackerConfig:
    """Behavioral constants for schedule, reports and alerts"""

    # History report periods (days back from today)
    REPORT_PERIODS: Dict[str, int] = {
        "week": 7,
        "month": 30,
        "quarter": 90,
    }
    DEFAULT_REPORT_PERIOD: str = "week"

    # Dashboard
    UPCOMING_LIMIT: int = 3

    # Adherence levels (percent)
    ADHERENCE_GOOD_THRESHOLD: int = 80
    ADHERENCE_FAIR_THRESHOLD: int = 60

    # Caregiver weekly adherence window
    CAREGIVER_WINDOW_DAYS: int = 7


# Document store collection names
class CollectionNames:
    MEDICINES = "medicines"
    INTAKES = "intakes"
    PROFILES = "profiles"


settings = get_settings()
tracker_config = TrackerConfig()
