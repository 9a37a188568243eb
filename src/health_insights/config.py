"""Configuration settings for the Health Insights engine."""

from pathlib import Path
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


# __file__ = src/health_insights/config.py
# .parent.parent.parent = project root
PACKAGE_ROOT = Path(__file__).parent
PROJECT_ROOT = PACKAGE_ROOT.parent.parent


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="HEALTH_INSIGHTS_",
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage for derived state (insight cache, muscle usage, reports)
    database_path: Path | None = None

    # Insight generation
    insight_cache_ttl_hours: float = 6.0
    insight_window_days: int = 30
    parallel_detectors: bool = False
    detector_workers: int = 6

    # Recovery
    recent_training_days: int = 7
    default_workout_frequency: int = 3

    # Report sharing
    default_share_expiry_hours: float = 72.0

    log_level: str = "INFO"

    def model_post_init(self, __context) -> None:
        """Set the default database path after initialization."""
        if self.database_path is None:
            self.database_path = PROJECT_ROOT / "health_insights.db"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
