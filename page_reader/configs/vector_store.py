"""
Vector store configuration settings.

Chooses between the SQL-backed store and the in-process store.

Dependencies: pydantic, pydantic_settings
System role: Vector storage configuration for chunk retrieval
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class VectorStoreSettings(BaseSettings):
    """Vector store configuration (memory for tests, SQL for persistence)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="VECTOR_STORE_",
        case_sensitive=False,
        extra="ignore",
    )

    store_type: Literal["sql", "memory"] = Field(
        default="sql",
        description="Vector store type: 'memory' for ephemeral use, 'sql' for persistence",
    )
    database_url: str = Field(
        default="sqlite+aiosqlite:///./page_reader.db",
        description="Async SQLAlchemy URL for the SQL store",
    )
    echo_sql: bool = Field(default=False, description="Log SQL statements")
