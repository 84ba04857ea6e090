"""Tests for media core DTOs."""

from datetime import datetime

import pytest

from moodify.domain.dtos import ContentType, MediaItem, RecommendationContext, TimeOfDay
from moodify.domain.exceptions import ValidationError


class TestMediaItem:
    """Test MediaItem validation."""

    def test_defaults_to_track(self) -> None:
        """Content type defaults to track."""
        item = MediaItem(id="1", title="Song", uri="spotify:track:1", service_id="spotify")
        assert item.type == ContentType.TRACK
        assert item.artist is None

    def test_requires_id(self) -> None:
        """Empty id is a programming error."""
        with pytest.raises(ValidationError):
            MediaItem(id="", title="Song", uri="x", service_id="spotify")

    def test_requires_service_id(self) -> None:
        """Every item must know its owning service."""
        with pytest.raises(ValidationError):
            MediaItem(id="1", title="Song", uri="x", service_id="")


class TestRecommendationContext:
    """Test RecommendationContext."""

    def test_empty_context_is_valid(self) -> None:
        """All fields are optional."""
        context = RecommendationContext()
        assert context.seed_node_ids == ()
        assert context.exclude_ids == frozenset()
        assert context.limit is None

    def test_limit_must_be_positive(self) -> None:
        """limit=0 makes no sense."""
        with pytest.raises(ValidationError):
            RecommendationContext(limit=0)


class TestTimeOfDay:
    """Test hour bucketing."""

    @pytest.mark.parametrize(
        ("hour", "expected"),
        [
            (5, TimeOfDay.MORNING),
            (11, TimeOfDay.MORNING),
            (12, TimeOfDay.AFTERNOON),
            (17, TimeOfDay.EVENING),
            (22, TimeOfDay.NIGHT),
            (3, TimeOfDay.NIGHT),
        ],
    )
    def test_from_datetime(self, hour: int, expected: TimeOfDay) -> None:
        """Hours map onto the four buckets."""
        assert TimeOfDay.from_datetime(datetime(2025, 1, 1, hour, 30)) == expected
