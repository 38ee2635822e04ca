"""Configuration management for the application."""

import json
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GamificationConfig(BaseSettings):
    """XP weights, thresholds and bonuses used by the skill meters."""

    xp_high: int = 5
    xp_medium: int = 3
    xp_low: int = 1
    completion_bonus: int = 50
    expert_threshold: int = 80
    on_track_threshold: int = 60
    skill_master_threshold: int = 85
    skill_master_bonus: int = 100
    multi_skilled_categories: int = 3
    multi_skilled_threshold: int = 50
    multi_skilled_bonus: int = 25
    goal_completion_xp: int = 50
    xp_per_level: int = 100

    @classmethod
    def from_file(cls, filepath: str = "config/gamification.json") -> "GamificationConfig":
        """
        Load gamification configuration from JSON file.

        Args:
            filepath: Path to the configuration file

        Returns:
            GamificationConfig instance (defaults when the file is absent)
        """
        if not Path(filepath).exists():
            return cls()
        with open(filepath, "r") as f:
            data = json.load(f)
        return cls(**data)

    def weight_for(self, rating: str | None) -> int:
        """Return the XP weight of a single rating value."""
        return {
            "high": self.xp_high,
            "medium": self.xp_medium,
            "low": self.xp_low,
        }.get(rating or "", 0)


class IdentityConfig(BaseSettings):
    """Hosted identity service client configuration."""

    timeout_seconds: int = 30
    ban_duration: str = "876000h"

    @classmethod
    def from_file(cls, filepath: str = "config/identity.json") -> "IdentityConfig":
        """
        Load identity client configuration from JSON file.

        Args:
            filepath: Path to the configuration file

        Returns:
            IdentityConfig instance (defaults when the file is absent)
        """
        if not Path(filepath).exists():
            return cls()
        with open(filepath, "r") as f:
            data = json.load(f)
        return cls(**data)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Data root: the SQLite DB and exported reports live here
    data_root: str = Field(default="~/.skill_matrix")

    # Database: auto-derived from data_root if not explicitly set
    database_url: str | None = Field(default=None)

    # Backend Server
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000)
    log_level: str = Field(default="INFO")

    # Frontend
    frontend_url: str = Field(default="http://localhost:3000")

    # Hosted identity service (privileged user management)
    identity_url: str = Field(default="http://localhost:54321")
    identity_service_key: str | None = Field(default=None)

    # Workflow tuning
    approval_due_days: int = Field(default=7)
    notification_retention_days: int = Field(default=30)
    goal_reminder_days: int = Field(default=7)

    @model_validator(mode="after")
    def derive_paths(self) -> "Settings":
        """Expand data_root and derive database_url if not explicitly set."""
        self.data_root = str(Path(self.data_root).expanduser().resolve())
        if self.database_url is None:
            self.database_url = f"sqlite:///{self.data_root}/skill_matrix.db"
        return self


# Global settings instance
settings = Settings()

# Load configurations
gamification_config = GamificationConfig.from_file()
identity_config = IdentityConfig.from_file()
