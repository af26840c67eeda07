import sys

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings pulled from environment variables."""

    # Simulation Configuration
    merge_tolerance: float = Field(
        default=sys.float_info.epsilon,
        ge=0.0,
        description="Absolute tolerance for equal heights and simultaneous events",
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (plain or json)")

    model_config = SettingsConfigDict(
        env_prefix="WATERLEVELS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        if value not in ("plain", "json"):
            raise ValueError(f"Unknown log format: {value}")
        return value


# Instantiate singleton settings object
settings = Settings()
