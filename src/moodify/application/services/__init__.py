"""Application services - graph, ingestion and recommendations."""

from moodify.application.services.graph_ingestion import (
    AudioFeatures,
    GraphIngestionService,
    IngestionResult,
    LibraryTrack,
    SessionSong,
)
from moodify.application.services.media_graph import (
    GenreStat,
    MediaGraph,
    PlayStats,
    TasteProfile,
)
from moodify.application.services.recommendation_engine import RecommendationEngine

__all__ = [
    "AudioFeatures",
    "GenreStat",
    "GraphIngestionService",
    "IngestionResult",
    "LibraryTrack",
    "MediaGraph",
    "PlayStats",
    "RecommendationEngine",
    "SessionSong",
    "TasteProfile",
]
