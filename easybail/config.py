"""Application configuration management."""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.debug and self.log_level.upper() != "TRACE":
            self.log_level = "DEBUG"

    # Database
    database_url: str

    # CORS
    cors_origins: str = "http://localhost:5173"

    # Application
    debug: bool = False
    log_level: str = "INFO"
    api_v1_str: str = "/api/v1"

    # Scheduler
    scheduler_autostart: bool = True
    scheduler_interval_seconds: int = 600  # 10 minutes, allows same-day execution
    scheduler_timezone: str = "Europe/Paris"
    scan_concurrency: int = 4
    executor_timeout_seconds: float = 30.0
    advance_from_previous: bool = False
    failure_history_size: int = 100

    # Time-of-day gating (disabled: execution_time is only a display hint)
    enforce_execution_time: bool = False
    execution_time_tolerance_minutes: int = 10
    default_execution_time: str = "09:00"

    # Mail relay (SMTP settings are forwarded to the relay with every message)
    mail_enabled: bool = False
    mail_relay_url: Optional[str] = None
    mail_from: str = "noreply@easybail.local"
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_secure: bool = False
    mail_timeout_seconds: float = 15.0
    outbox_max_attempts: int = 3
    default_recipient: str = "destinataire@example.com"
    landlord_name: str = "Propriétaire"

    # Retention
    audit_retention_days: int = 90

    @field_validator("scheduler_interval_seconds")
    @classmethod
    def validate_interval(cls, v: int) -> int:
        if v < 10:
            raise ValueError("scheduler_interval_seconds must be at least 10")
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def smtp_config(self) -> dict:
        """SMTP configuration in the shape expected by the mail relay."""
        return {
            "host": self.smtp_host,
            "port": self.smtp_port,
            "username": self.smtp_username,
            "password": self.smtp_password,
            "secure": self.smtp_secure,
        }


# Global settings instance
settings = Settings()
