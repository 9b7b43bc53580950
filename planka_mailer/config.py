"""
Centralized configuration using Pydantic Settings.

All environment variables are loaded and validated here.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # IMAP
    imap_host: str = "localhost"
    imap_port: int = 993
    imap_username: str = "user"
    imap_password: str = ""

    # Mailbox containers, relative to imap_root
    imap_root: str = "API"
    imap_inbox: str = "IN"
    imap_accepted: str = "OUT"
    imap_rejected: str = "REJECTED"

    # Planka
    planka_url: str = "http://localhost:3000"
    planka_api_key: str = ""
    planka_timeout: float = 30.0

    # Logging
    log_level: str = "info"
    log_json: bool = True

    # Scheduler (disabled by default, run() is the one-shot entry point)
    scheduler_enabled: bool = False
    scheduler_interval_minutes: int = 5

    def mailbox_path(self, name: str) -> str:
        """Full IMAP path of a container under the configured root."""
        if not self.imap_root:
            return name
        return f"{self.imap_root}/{name}"

    @property
    def inbox_path(self) -> str:
        return self.mailbox_path(self.imap_inbox)

    @property
    def accepted_path(self) -> str:
        return self.mailbox_path(self.imap_accepted)

    @property
    def rejected_path(self) -> str:
        return self.mailbox_path(self.imap_rejected)


# Global settings instance
settings = Settings()
