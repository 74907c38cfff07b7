"""
Base configuration settings.

Shared settings source for the aggregated Settings: environment variables
prefixed with PAGE_READER_ and an optional .env file.

Dependencies: pydantic_settings
System role: Application-wide switches
"""

from pydantic import Field
from pydantic_settings import BaseSettings as PydanticBaseSettings, SettingsConfigDict


class BaseSettings(PydanticBaseSettings):
    """Application-wide settings shared by every component."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PAGE_READER_",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(
        default="INFO",
        description="Root log level applied by configure_logging()",
    )
    semantic_search_enabled: bool = Field(
        default=True,
        description="Build the similarity search manager; False always uses keyword matching",
    )
