"""Tests for settings loading."""

import pytest
from pydantic import ValidationError

from moodify.config.settings import GraphSettings, Settings, SpotifySettings, get_settings


class TestSettings:
    """Test defaults and env overrides."""

    def test_defaults(self) -> None:
        """Documented constants are the defaults."""
        settings = Settings()
        assert settings.sync.interval_seconds == 1.0
        assert settings.sync.network_timeout_seconds == 10.0
        assert settings.graph.depth_decay == 0.5
        assert settings.graph.max_depth == 2
        assert settings.graph.edge_reinforcement == 0.5

    def test_nested_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """MOODIFY_SECTION__FIELD overrides nested values."""
        monkeypatch.setenv("MOODIFY_SYNC__INTERVAL_SECONDS", "2.5")
        monkeypatch.setenv("MOODIFY_GRAPH__DEPTH_DECAY", "0.25")
        settings = Settings()
        assert settings.sync.interval_seconds == 2.5
        assert settings.graph.depth_decay == 0.25

    def test_depth_above_two_rejected(self) -> None:
        """Ranking depth is capped at 2."""
        with pytest.raises(ValidationError):
            GraphSettings(max_depth=3)

    def test_decay_must_be_below_one(self) -> None:
        """decay=1 would never discount anything."""
        with pytest.raises(ValidationError):
            GraphSettings(depth_decay=1.0)

    def test_spotify_section_only_carries_scopes(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """OAuth client config lives with the host authorizer, not here."""
        assert set(SpotifySettings.model_fields) == {"scopes"}
        monkeypatch.setenv("MOODIFY_SPOTIFY__SCOPES", '["streaming"]')
        assert Settings().spotify.scopes == ["streaming"]

    def test_get_settings_is_cached(self) -> None:
        """get_settings() returns the same instance until cache_clear()."""
        get_settings.cache_clear()
        assert get_settings() is get_settings()
        get_settings.cache_clear()
