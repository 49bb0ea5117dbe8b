"""Configuration management for the capability server.

Supports a YAML configuration file and environment variable overrides.
Configuration is loaded once and cached.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseSettings):
    """Server identity and transport configuration."""
    name: str = Field(default="python-mcp-server")
    version: str = Field(default="1.0.0")
    description: str = Field(
        default="Python MCP server providing assorted utility tools"
    )
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8001)

    # Compatibility switch: reject arguments not declared in a schema
    reject_unknown_fields: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_prefix="MCP_SERVER_",
        env_file=".env",
        extra="ignore"
    )


class GeoSettings(BaseSettings):
    """Geocoding and weather upstream configuration."""
    nominatim_url: str = Field(default="https://nominatim.openstreetmap.org/search")
    open_meteo_url: str = Field(default="https://api.open-meteo.com/v1/forecast")
    # Nominatim's usage policy requires an identifying User-Agent
    user_agent: str = Field(default="MCP-Server/1.0.0")
    timeout_seconds: float = Field(default=30.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="GEO_",
        env_file=".env",
        extra="ignore"
    )


class ImageSettings(BaseSettings):
    """Image generation configuration. The token is read from HF_TOKEN."""
    token: Optional[str] = Field(default=None, description="Hugging Face API token")
    model: str = Field(default="black-forest-labs/FLUX.1-schnell")
    inference_url: str = Field(
        default="https://router.huggingface.co/hf-inference/models"
    )
    num_inference_steps: int = Field(default=4, gt=0)
    timeout_seconds: float = Field(default=120.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="HF_",
        env_file=".env",
        extra="ignore"
    )


class Settings(BaseSettings):
    """Main application settings."""
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Component settings
    server: ServerSettings = Field(default_factory=ServerSettings)
    geo: GeoSettings = Field(default_factory=GeoSettings)
    image: ImageSettings = Field(default_factory=ImageSettings)

    model_config = SettingsConfigDict(
        env_prefix="MCP_",
        env_file=".env",
        extra="ignore"
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    config_path = os.environ.get("MCP_CONFIG_PATH", "config/settings.yaml")
    return Settings.from_yaml(config_path)
