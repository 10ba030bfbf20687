from typing import Literal

from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str  # mongodb://host:port/dbname, or memory:// for an in-process store
    host: str
    port: int
    debug: bool
    cors_origins: list[str] = []
    frontend_url: str  # URL of the frontend application, used in share links and reminder emails
    identity_secret_key: str  # Shared secret for verifying identity provider tokens
    identity_algorithm: str = "HS256"
    attachments_path: str  # Directory path for storing file attachments

    # Reminder email delivery; "none" leaves reminders pending instead of marking them sent
    email_backend: Literal["smtp", "log", "none"] = "none"
    email_from: str = "reminders@thinkboard.local"
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    smtp_timeout: float = 10.0

    reminder_scheduler_enabled: bool = True
    reminder_check_interval: float = 60.0  # Seconds between scheduler ticks
    reminder_window_minutes: int = 5  # Reminders due within this window are notified
    timezone: str = "UTC"  # Day boundaries for "today" reminders

    conflict_retries: int = 3  # Automatic retries of a note mutation after a concurrent write

    model_config = {
        "env_file": [".env"],
        "env_prefix": "THINKBOARD_",
        "extra": "ignore",
    }
