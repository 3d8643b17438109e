from datetime import timedelta
from enum import Enum

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pipeline.ttl import TTLPolicy


class CacheBackend(str, Enum):
    MEMORY = "memory"
    REDIS = "redis"


class PipelineSettings(BaseSettings):
    """Configuration for the inventory request pipeline."""

    model_config = SettingsConfigDict(
        env_prefix="INVENTORY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Cache store
    CACHE_BACKEND: CacheBackend = Field(
        default=CacheBackend.MEMORY,
        description="Cache backend (memory or redis)"
    )
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis URL"
    )
    CACHE_OPERATION_TIMEOUT: float = Field(
        default=0.5,
        description="Upper bound in seconds for a single cache operation"
    )
    CACHE_KEY_INDEX: bool = Field(
        default=False,
        description="Track keys in per-prefix index sets instead of scanning for prefix removal"
    )
    CACHE_INDEX_NAMESPACE: str = Field(
        default="cache-index",
        description="Key namespace of the index sets"
    )
    CACHE_MAX_KEY_LENGTH: int = Field(
        default=1024,
        description="Keys longer than this are hashed"
    )
    MEMORY_CACHE_MAX_SIZE: int = Field(
        default=10000,
        description="Maximum entries held by the in-memory backend"
    )

    # Cache lifetimes
    TTL_DASHBOARD_SECONDS: int = Field(default=60, description="Dashboard reads")
    TTL_LIST_SECONDS: int = Field(default=120, description="Collection reads")
    TTL_SINGLE_ITEM_SECONDS: int = Field(default=300, description="Reads by identifier")
    TTL_DEFAULT_SECONDS: int = Field(default=180, description="Any other read")

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Log level")
    LOG_JSON: bool = Field(default=True, description="Render logs as JSON")

    @field_validator(
        "CACHE_OPERATION_TIMEOUT",
        "CACHE_MAX_KEY_LENGTH",
        "MEMORY_CACHE_MAX_SIZE",
        "TTL_DASHBOARD_SECONDS",
        "TTL_LIST_SECONDS",
        "TTL_SINGLE_ITEM_SECONDS",
        "TTL_DEFAULT_SECONDS",
    )
    @classmethod
    def _positive(cls, value):
        if value <= 0:
            raise ValueError("must be positive")
        return value

    def ttl_policy(self) -> TTLPolicy:
        return TTLPolicy(
            dashboard=timedelta(seconds=self.TTL_DASHBOARD_SECONDS),
            list_query=timedelta(seconds=self.TTL_LIST_SECONDS),
            single_item=timedelta(seconds=self.TTL_SINGLE_ITEM_SECONDS),
            default=timedelta(seconds=self.TTL_DEFAULT_SECONDS),
        )
