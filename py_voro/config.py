"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings pulled from environment variables."""

    # Block storage
    init_particle_memory: int = Field(
        default=8, gt=0, description="Initial particle capacity of each block"
    )
    max_particle_memory: int = Field(
        default=16777216,
        gt=0,
        description="Absolute ceiling on the particle capacity of a single block",
    )

    # Cell geometry
    cut_tolerance: float = Field(
        default=1e-11,
        gt=0,
        description="Distance below which a vertex counts as lying on a cutting plane",
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="plain", description="Logging format (plain or json)")

    model_config = SettingsConfigDict(
        env_prefix="PY_VORO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Instantiate singleton settings object
settings = Settings()
