"""
Standard Data Transfer Objects for the moodify media core.

Hey future me - these DTOs are the LINGUA FRANCA between all media service adapters!
Every adapter (Spotify, YouTube, ...) MUST hand back data in this format.
The engine and the poller never see raw backend JSON.

Flow: Backend response -> adapter -> DTO -> RecommendationEngine / SessionSyncStore -> UI
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from moodify.domain.exceptions import ValidationError


class ContentType(StrEnum):
    """What a MediaItem points at."""

    TRACK = "track"
    PLAYLIST = "playlist"
    VIDEO = "video"


class TimeOfDay(StrEnum):
    """Coarse time-of-day buckets used as a recommendation hint."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"

    @classmethod
    def from_datetime(cls, moment: datetime) -> "TimeOfDay":
        """Bucket a datetime by its hour (05-12 morning, 12-17 afternoon, 17-22 evening)."""
        hour = moment.hour
        if 5 <= hour < 12:
            return cls.MORNING
        if 12 <= hour < 17:
            return cls.AFTERNOON
        if 17 <= hour < 22:
            return cls.EVENING
        return cls.NIGHT


# Hey future me - MediaItem is produced FRESH for every recommendation call.
# Nothing in the core persists it, so it's frozen: share it freely across UI surfaces.
@dataclass(frozen=True)
class MediaItem:
    """
    A playable recommendation candidate from any service.

    `uri` is the deep link / playback URI ("spotify:track:123").
    """

    id: str
    title: str
    uri: str
    service_id: str
    type: ContentType = ContentType.TRACK
    artist: str | None = None
    artwork_url: str | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValidationError("MediaItem requires a non-empty id")
        if not self.service_id:
            raise ValidationError(f"MediaItem {self.id} requires a service_id")


# Hey future me - this REPLACES the old "context: any" bag! Every field has a defined
# effect, and RecommendationEngine.resolve_seeds() is the one place that interprets them:
#   seed_node_ids  -> graph nodes used directly as seeds
#   current_track  -> SONG node with the same external id (or uri) joins the seeds
#   mood           -> VIBE node with that label joins the seeds
#   time_of_day    -> VIBE node labelled with the bucket name ("night") joins the seeds
#   exclude_ids    -> node ids / external ids dropped from the ranked output
#   limit          -> max number of results (None = settings.graph.default_limit)
# Adapters receive the same object for their own backend-side recommendations.
@dataclass(frozen=True)
class RecommendationContext:
    """Typed input for recommendation requests."""

    seed_node_ids: tuple[int | str, ...] = ()
    current_track: MediaItem | None = None
    mood: str | None = None
    time_of_day: TimeOfDay | None = None
    exclude_ids: frozenset[str] = field(default_factory=frozenset)
    limit: int | None = None

    def __post_init__(self) -> None:
        if self.limit is not None and self.limit < 1:
            raise ValidationError(f"limit must be >= 1, got {self.limit}")


@dataclass(frozen=True)
class PlaybackSnapshot:
    """Live playback state as reported by a backend."""

    is_playing: bool
    progress_ms: int
    item: MediaItem | None = None
    duration_ms: int | None = None


@dataclass
class TokenResult:
    """Result of an authorization round trip.

    Hey future me - refresh_token might be None!
    Not every backend hands one out on every exchange.
    """

    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None
    scope: str | None = None


__all__ = [
    "ContentType",
    "MediaItem",
    "PlaybackSnapshot",
    "RecommendationContext",
    "TimeOfDay",
    "TokenResult",
]
