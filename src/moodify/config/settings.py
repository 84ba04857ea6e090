"""Application settings loaded from environment variables.

Hey future me - every tunable constant of the media core lives HERE, not scattered
as magic numbers in services. Nested sections map to env vars with a double underscore:

    MOODIFY_SYNC__INTERVAL_SECONDS=2.5
    MOODIFY_GRAPH__DEPTH_DECAY=0.4
    MOODIFY_OBSERVABILITY__LOG_JSON_FORMAT=true

Use get_settings() everywhere. It is cached, so tests that tweak env vars must call
get_settings.cache_clear() (or just build Settings(...) directly and inject it).
"""

from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SyncSettings(BaseModel):
    """Playback/auth poller configuration."""

    # Hey future me - 1s is what the player UI needs for a smooth progress bar.
    # Going lower hammers the backend for no visible gain.
    interval_seconds: float = Field(default=1.0, gt=0, description="Seconds between sync ticks")
    network_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Upper bound for any backend call inside a tick"
    )
    active_service: str = Field(
        default="spotify", description="Initial active service (poller + engine fallback)"
    )
    health_log_every: int = Field(
        default=60, ge=1, description="Log worker health every N ticks"
    )


class GraphSettings(BaseModel):
    """Media graph ranking configuration."""

    # Depth is capped at 2 to keep ranking latency predictable on big libraries.
    max_depth: int = Field(default=2, ge=1, le=2)
    depth_decay: float = Field(default=0.5, gt=0, lt=1)
    default_limit: int = Field(default=20, ge=1)
    edge_reinforcement: float = Field(
        default=0.5, ge=0, description="Weight added when an existing edge is inserted again"
    )


class ObservabilitySettings(BaseModel):
    """Logging configuration."""

    log_json_format: bool = False


class SpotifySettings(BaseModel):
    """Spotify adapter configuration (OAuth itself happens outside the core)."""

    scopes: list[str] = Field(
        default_factory=lambda: [
            "user-read-private",
            "user-read-email",
            "streaming",
            "user-top-read",
        ]
    )


class Settings(BaseSettings):
    """Root settings object."""

    model_config = SettingsConfigDict(
        env_prefix="MOODIFY_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    app_name: str = "moodify"
    log_level: str = "INFO"

    sync: SyncSettings = Field(default_factory=SyncSettings)
    graph: GraphSettings = Field(default_factory=GraphSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
    spotify: SpotifySettings = Field(default_factory=SpotifySettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance built from the environment
    """
    return Settings()
