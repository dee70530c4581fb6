"""Configuration management."""

from typing import Tuple

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # API
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Logging format (plain or json)")

    # Composition defaults
    default_seed: int = Field(default=42, description="Seed used when a request gives none")
    default_width: int = Field(default=1200, description="Default canvas width")
    default_height: int = Field(default=800, description="Default canvas height")
    default_padding: float = Field(default=80, description="Default safe-zone padding")
    default_cluster_count: int = Field(default=3, description="Default number of clusters")
    background_color: Tuple[int, int, int, float] = Field(
        default=(250, 248, 245, 1.0), description="Canvas background as RGBA"
    )


class CompositionParams(BaseModel):
    """Canvas geometry and cluster count for one generation pass."""

    width: float = Field(1200, ge=200, le=4000, description="Canvas width")
    height: float = Field(800, ge=200, le=4000, description="Canvas height")
    padding: float = Field(80, ge=0, description="Safe-zone padding on every side")
    cluster_count: int = Field(3, ge=1, le=6, description="Number of clusters")


settings = Settings()
