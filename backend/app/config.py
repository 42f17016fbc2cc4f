import logging
from functools import lru_cache

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # Database settings
    database_url: str = "sqlite:///./finance_tracker.db"

    # Logging
    log_level: str = "INFO"

    # Budget alert settings
    budget_warning_threshold: float = 80.0  # percentage_used at which a warning alert fires
    budget_near_end_days: int = 3

    # Recurring template settings
    recurring_reminder_days: int = 1  # lead time for "upcoming recurring" notifications

    default_page_size: int = 100

    class Config:
        env_file = ".env"

@lru_cache()
def get_settings():
    return Settings()

def configure_logging(level: str = None):
    """Install a single stream handler on the root logger"""
    level = level or get_settings().log_level
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
