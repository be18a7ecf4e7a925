from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    # Database settings
    database_url: str = "sqlite+aiosqlite:///./together.db"
    store_backend: str = "sql"  # "sql" or "memory"
    collaborator_timeout_seconds: float = 5.0

    # Invite codes (no 0/O or 1/I so codes can be read aloud)
    invite_code_length: int = 6
    invite_code_alphabet: str = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
    invite_code_max_attempts: int = 10

    # Anniversaries
    default_reminder_days: int = 7
    upcoming_window_days: int = 30

    log_level: str = "INFO"

    class Config:
        env_file = ".env"

@lru_cache()
def get_settings():
    return Settings()
