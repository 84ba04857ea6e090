"""Graph ingestion - turns listening sessions, libraries and audio features into graph data.

Hey future me - this is the ONLY writer of the media graph besides tests!

Three feeds:
1. commit_session()        - a finished vibe session (what the user actually listened to)
2. ingest_library()        - liked songs with their artist and the artist's genres
3. ingest_audio_features() - per-track audio analysis, grouped into similarity buckets

All three reuse get_or_create_node(), so running them twice never duplicates nodes.
Running them twice DOES reinforce edges (+0.5 each), which is what we want for sessions
(a repeated sequence is a stronger signal) and harmless for the library feeds.

None of the methods await anything after the log context opens, so each feed
lands in the graph as one uninterrupted batch.
"""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field

from moodify.application.services.media_graph import MediaGraph
from moodify.domain.entities.graph import EdgeType, GraphNode, NodeId, NodeType
from moodify.domain.exceptions import ValidationError
from moodify.infrastructure.observability.logger_template import log_operation

logger = logging.getLogger(__name__)

# Weight of the vibe <-> song link created by a session. Stronger than library links:
# the user picked this song for this vibe explicitly.
SESSION_VIBE_WEIGHT = 2.0
SESSION_NEXT_WEIGHT = 1.0
LIBRARY_LINK_WEIGHT = 1.0
BUCKET_SIMILAR_WEIGHT = 1.0

AUDIO_FEATURE_NAMES: tuple[str, ...] = (
    "energy",
    "valence",
    "danceability",
    "tempo",
    "acousticness",
    "instrumentalness",
)

# Tempo comes in BPM, everything else in 0..1
TEMPO_NORMALISATION_BPM = 200.0


@dataclass(frozen=True)
class SessionSong:
    """One song of a listening session."""

    title: str
    external_id: str
    artist: str | None = None
    visited: bool = True
    uri: str | None = None


@dataclass(frozen=True)
class LibraryTrack:
    """A liked/saved track with its primary artist."""

    external_id: str
    title: str
    artist_name: str | None = None
    artist_id: str | None = None
    genres: tuple[str, ...] = ()
    uri: str | None = None


@dataclass(frozen=True)
class AudioFeatures:
    """Audio analysis of one track (all values 0..1 except tempo in BPM)."""

    external_id: str
    energy: float
    valence: float
    danceability: float
    tempo: float = 0.0
    acousticness: float = 0.0
    instrumentalness: float = 0.0

    # Rejected here so a bad row can't fail ingest_audio_features() halfway through
    def __post_init__(self) -> None:
        for name in AUDIO_FEATURE_NAMES:
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ValidationError(
                    f"Audio feature {name} of {self.external_id} must be finite and >= 0, "
                    f"got {value}"
                )
            if name != "tempo" and value > 1:
                raise ValidationError(
                    f"Audio feature {name} of {self.external_id} must be <= 1, got {value}"
                )


@dataclass
class IngestionResult:
    """What an ingestion run changed."""

    songs: int = 0
    artists: int = 0
    genres: int = 0
    edges: int = 0
    skipped: int = 0
    buckets: dict[str, int] = field(default_factory=dict)
    """Songs per audio bucket key ("0-2-1"), only for audio feature runs."""


def audio_bucket(features: AudioFeatures) -> str:
    """Quantise energy/valence/danceability into one of 27 bucket keys."""

    def _bin(value: float) -> int:
        if value < 0.33:
            return 0
        if value < 0.66:
            return 1
        return 2

    return f"{_bin(features.energy)}-{_bin(features.valence)}-{_bin(features.danceability)}"


def normalise_feature(name: str, value: float) -> float:
    """Map a raw feature value to an edge weight in 0..1."""
    if name == "tempo":
        return min(1.0, value / TEMPO_NORMALISATION_BPM)
    return value


class GraphIngestionService:
    """Writes user activity into the MediaGraph."""

    def __init__(self, graph: MediaGraph, service_id: str = "spotify") -> None:
        """Initialize ingestion service.

        Args:
            graph: Graph to write into
            service_id: Backend the ingested ids belong to
        """
        self._graph = graph
        self._service_id = service_id

    def _song_node(
        self, title: str, external_id: str, artist: str | None, uri: str | None
    ) -> GraphNode:
        data: dict[str, str] = {}
        if artist:
            data["artist"] = artist
        if uri:
            data["uri"] = uri
        return self._graph.get_or_create_node(
            NodeType.SONG, title, self._service_id, external_id=external_id, data=data
        )

    # Hey future me - only VISITED songs count. The queue may hold 20 songs, but if the
    # user skipped to the end after two of them, only those two describe the vibe.
    async def commit_session(self, vibe: str, songs: Sequence[SessionSong]) -> IngestionResult:
        """Commit a finished listening session.

        Creates (or reuses) the VIBE node, links every visited song to it with
        RELATED(2.0), chains consecutive songs with NEXT(1.0) and records a play.

        Args:
            vibe: Vibe/mood name the session ran under
            songs: Session songs in play order

        Returns:
            IngestionResult (empty if nothing was visited)
        """
        result = IngestionResult()
        visited = [song for song in songs if song.visited]
        result.skipped = len(songs) - len(visited)
        if not visited:
            logger.debug("Session '%s' has no visited songs, nothing to commit", vibe)
            return result

        async with log_operation(logger, "commit_session", vibe=vibe, songs=len(visited)):
            vibe_node = self._graph.get_or_create_node(NodeType.VIBE, vibe, self._service_id)
            previous: NodeId | None = None
            for song in visited:
                node = self._song_node(song.title, song.external_id, song.artist, song.uri)
                self._graph.add_edge(vibe_node.id, node.id, EdgeType.RELATED, SESSION_VIBE_WEIGHT)
                result.edges += 1
                if previous is not None and previous != node.id:
                    self._graph.add_edge(previous, node.id, EdgeType.NEXT, SESSION_NEXT_WEIGHT)
                    result.edges += 1
                previous = node.id
                self._graph.record_play(node.id)
                result.songs += 1
            # Vibe recency feeds taste_profile().recent_vibes
            self._graph.record_play(vibe_node.id)

        return result

    async def ingest_library(self, tracks: Sequence[LibraryTrack]) -> IngestionResult:
        """Ingest liked songs: SONG -RELATED- ARTIST and SONG -HAS_GENRE-> GENRE.

        Args:
            tracks: Library tracks (genres usually come from the artist)

        Returns:
            IngestionResult with counts of touched nodes/edges
        """
        result = IngestionResult()
        artists: set[NodeId] = set()
        genres: set[NodeId] = set()

        async with log_operation(logger, "ingest_library", tracks=len(tracks)):
            for track in tracks:
                if not track.external_id or not track.title:
                    result.skipped += 1
                    continue

                song = self._song_node(track.title, track.external_id, track.artist_name, track.uri)
                result.songs += 1

                if track.artist_name:
                    artist = self._graph.get_or_create_node(
                        NodeType.ARTIST,
                        track.artist_name,
                        self._service_id,
                        external_id=track.artist_id,
                        data={"genres": list(track.genres)},
                    )
                    artists.add(artist.id)
                    self._graph.add_edge(song.id, artist.id, EdgeType.RELATED, LIBRARY_LINK_WEIGHT)
                    result.edges += 1

                for genre_name in track.genres:
                    if not genre_name:
                        continue
                    genre = self._graph.get_or_create_node(
                        NodeType.GENRE, genre_name, self._service_id
                    )
                    genres.add(genre.id)
                    self._graph.add_edge(song.id, genre.id, EdgeType.HAS_GENRE, LIBRARY_LINK_WEIGHT)
                    result.edges += 1

        result.artists = len(artists)
        result.genres = len(genres)
        logger.info(
            "Graph links: %d songs, %d artists, %d genres, %d edges",
            result.songs,
            result.artists,
            result.genres,
            result.edges,
        )
        return result

    # Listen up - tracks must already be in the graph (ingest_library first). Features for
    # unknown external ids are skipped, not created: a SONG without a title is useless.
    async def ingest_audio_features(self, features: Sequence[AudioFeatures]) -> IngestionResult:
        """Ingest audio analysis.

        Links each song to one AUDIO_FEATURE node per dimension (HAS_FEATURE, weight =
        normalised value) and chains songs of the same bucket with SIMILAR(1.0).

        Args:
            features: Audio features per track

        Returns:
            IngestionResult including songs per bucket
        """
        result = IngestionResult()
        buckets: dict[str, list[NodeId]] = {}

        async with log_operation(logger, "ingest_audio_features", tracks=len(features)):
            feature_nodes = {
                name: self._graph.get_or_create_node(
                    NodeType.AUDIO_FEATURE, name, self._service_id
                )
                for name in AUDIO_FEATURE_NAMES
            }

            for entry in features:
                song = self._graph.find_by_external_id(entry.external_id)
                if song is None or song.type != NodeType.SONG:
                    result.skipped += 1
                    continue

                buckets.setdefault(audio_bucket(entry), []).append(song.id)
                for name, feature_node in feature_nodes.items():
                    weight = normalise_feature(name, getattr(entry, name))
                    self._graph.add_edge(song.id, feature_node.id, EdgeType.HAS_FEATURE, weight)
                    result.edges += 1
                result.songs += 1

            for members in buckets.values():
                for current, following in zip(members, members[1:]):
                    if current == following:
                        continue
                    self._graph.add_edge(current, following, EdgeType.SIMILAR, BUCKET_SIMILAR_WEIGHT)
                    result.edges += 1

        result.buckets = {key: len(members) for key, members in buckets.items()}
        logger.info(
            "Audio phase: %d songs across %d buckets (%d skipped)",
            result.songs,
            len(buckets),
            result.skipped,
        )
        return result
