import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_env_file() -> str | None:
    """Find .env file, preferring .env.local for local development."""
    for env_file in [".env.local", ".env"]:
        for base in [".", os.environ.get("REPO_ROOT", "")]:
            if base:
                path = Path(base) / env_file
                if path.exists():
                    return str(path)
    return None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_find_env_file(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///./local.db"

    # Identity tokens
    jwt_secret: str = "dev-secret-change-me"
    jwt_algorithm: str = "HS256"
    # Unresolvable connection identity degrades to anonymous instead of rejecting
    identity_fail_open: bool = True

    # Fan-out
    dispatch_write_timeout_seconds: float = 5.0
    dispatch_queue_size: int = 100

    # Escalation sweeper
    sweep_interval_seconds: float = 60.0

    # Client subscriber
    notifications_url: str = "ws://localhost:8000/ws/notifications"
    subscriber_reconnect_initial_seconds: float = 1.0
    subscriber_reconnect_max_seconds: float = 30.0

    # CORS
    cors_origin: str = ""


settings = Settings()
