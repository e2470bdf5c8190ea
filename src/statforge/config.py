"""Configuration management for statforge using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="STATFORGE_",
        extra="ignore",
    )

    # Catalog data
    data_dir: Path = Field(
        default=Path("./data/catalog"), description="Directory holding catalog YAML files"
    )

    # Hunger
    hunger_buff_id: str = Field(
        default="hunger", description="Buff applied while the satiety meter is empty"
    )
    hunger_threshold: float = Field(
        default=0.0, description="Satiety at or below which the hunger debuff is active"
    )
    hunger_decay_per_second: float = Field(
        default=0.1, ge=0.0, description="Satiety lost per second of game time"
    )
    max_hunger: int = Field(default=100, ge=1, description="Default satiety capacity")

    # Derived stats
    base_exp_rate: float = Field(
        default=100.0, description="Baseline experience rate restored on every recompute"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="console", description="Log format (console or json)")

    @property
    def items_file(self) -> Path:
        """Get the item catalog path."""
        return self.data_dir / "items.yaml"

    @property
    def buffs_file(self) -> Path:
        """Get the buff catalog path."""
        return self.data_dir / "buffs.yaml"

    @property
    def jobs_file(self) -> Path:
        """Get the job catalog path."""
        return self.data_dir / "jobs.yaml"

    @property
    def passive_skills_file(self) -> Path:
        """Get the passive skill catalog path."""
        return self.data_dir / "passive_skills.yaml"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
