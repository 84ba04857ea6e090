"""Tests for SessionSyncStore.

Hey future me - most tests drive tick() directly instead of waiting for the
timer. The timer tests use a tiny interval and poll with asyncio.sleep.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from moodify.application.workers.session_sync_store import SessionState, SessionSyncStore
from moodify.config.settings import SyncSettings
from moodify.domain.dtos import MediaItem, PlaybackSnapshot, RecommendationContext
from moodify.domain.exceptions import InvalidStateException
from moodify.domain.ports.media_service import IMediaService, ServiceType
from moodify.infrastructure.plugins import ServiceRegistry


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeService(IMediaService):
    """Service whose connection and playback answers are AsyncMocks."""

    def __init__(self, service_id: str = "spotify") -> None:
        self._id = service_id
        self.is_connected = AsyncMock(return_value=True)  # type: ignore[method-assign]
        self.get_playback_state = AsyncMock(return_value=None)  # type: ignore[method-assign]
        self.connect = AsyncMock(return_value=True)  # type: ignore[method-assign]

    @property
    def service_id(self) -> str:
        return self._id

    @property
    def display_name(self) -> str:
        return self._id

    @property
    def service_type(self) -> ServiceType:
        return ServiceType.MUSIC

    async def is_connected(self) -> bool:
        return True

    async def connect(self) -> bool:
        return True

    async def disconnect(self) -> None:
        return None

    async def get_recommendations(self, context: RecommendationContext) -> list[MediaItem]:
        return []

    async def play(self, item_id: str) -> None:
        return None


@pytest.fixture
def clock() -> FakeClock:
    """Clock starting at t=100s."""
    return FakeClock(100.0)


@pytest.fixture
def service() -> FakeService:
    """Connected fake Spotify."""
    return FakeService("spotify")


@pytest.fixture
def registry(service: FakeService) -> ServiceRegistry:
    """Registry holding the fake service."""
    registry = ServiceRegistry()
    registry.register(service)
    return registry


@pytest.fixture
def settings() -> SyncSettings:
    """Slow timer (tests tick manually) and a short network timeout."""
    return SyncSettings(interval_seconds=60.0, network_timeout_seconds=0.05)


@pytest.fixture
def store(registry: ServiceRegistry, settings: SyncSettings, clock: FakeClock) -> SessionSyncStore:
    """Store wired to the fakes."""
    return SessionSyncStore(registry, settings, clock=clock)


class TestStartStop:
    """Test ref-counted start/stop."""

    @pytest.mark.asyncio
    async def test_initially_idle(self, store: SessionSyncStore) -> None:
        """No timer and no session before start()."""
        assert store.state == SessionState()
        assert store.timer_running is False
        assert store.owner_count == 0

    @pytest.mark.asyncio
    async def test_start_activates(self, store: SessionSyncStore, clock: FakeClock) -> None:
        """start() records label and start time and spawns the timer."""
        store.start("sync")
        try:
            assert store.state.is_active is True
            assert store.state.label == "sync"
            assert store.state.start_time == 100.0
            assert store.timer_running is True
        finally:
            await store.aclose()

    @pytest.mark.asyncio
    async def test_start_twice_stop_twice(self, store: SessionSyncStore) -> None:
        """One stop keeps the session alive, the second one ends it."""
        store.start("sync")
        first_task = store._task
        store.start("sync")

        assert store._task is first_task
        assert store.owner_count == 2

        store.stop()
        assert store.state.is_active is True
        assert store.timer_running is True

        store.stop()
        assert store.state.is_active is False
        assert store.state.label == ""
        assert store.state.progress_ms == 0
        assert store.state.start_time is None
        assert store.timer_running is False

        await store.aclose()
        assert first_task.cancelled()

    @pytest.mark.asyncio
    async def test_second_start_keeps_first_label(self, store: SessionSyncStore) -> None:
        """Joining a running session doesn't relabel it."""
        store.start("player")
        store.start("queue")
        assert store.state.label == "player"
        await store.aclose()

    def test_start_without_event_loop_leaves_store_idle(self, store: SessionSyncStore) -> None:
        """A start() that can't spawn its timer changes nothing."""
        with pytest.raises(RuntimeError):
            store.start("sync")

        assert store.owner_count == 0
        assert store.generation == 0
        assert store.timer_running is False
        assert store.state == SessionState()

    @pytest.mark.asyncio
    async def test_stop_without_start_raises(self, store: SessionSyncStore) -> None:
        """Owner count underflow is a programming error."""
        with pytest.raises(InvalidStateException):
            store.stop()

    @pytest.mark.asyncio
    async def test_double_stop_raises(self, store: SessionSyncStore) -> None:
        """stop() once more than start() fails loudly and leaves state idle."""
        store.start("sync")
        store.stop()
        with pytest.raises(InvalidStateException):
            store.stop()
        assert store.owner_count == 0
        await store.aclose()

    @pytest.mark.asyncio
    async def test_at_most_one_timer_for_any_sequence(self, store: SessionSyncStore) -> None:
        """Timer runs iff owners > 0, and there is never more than one."""
        operations = ["start", "start", "stop", "start", "stop", "stop", "start", "stop"]
        tasks = set()
        for op in operations:
            getattr(store, op)(*(["sync"] if op == "start" else []))
            assert store.timer_running is (store.owner_count > 0)
            if store._task is not None:
                tasks.add(store._task)
            live = [t for t in tasks if not t.done() and not t.cancelling()]
            assert len(live) <= 1
        await store.aclose()

    @pytest.mark.asyncio
    async def test_generation_bumps_on_transitions_only(self, store: SessionSyncStore) -> None:
        """Joining/leaving a running session keeps the generation."""
        store.start("sync")
        assert store.generation == 1
        store.start("sync")
        store.stop()
        assert store.generation == 1
        store.stop()
        assert store.generation == 2
        await store.aclose()

    @pytest.mark.asyncio
    async def test_subscribers_see_transitions(self, store: SessionSyncStore) -> None:
        """Listeners get every state change; unsubscribe stops delivery."""
        seen: list[bool] = []
        unsubscribe = store.subscribe(lambda state: seen.append(state.is_active))

        store.start("sync")
        store.stop()
        unsubscribe()
        store.start("sync")

        assert seen == [True, False]
        await store.aclose()

    @pytest.mark.asyncio
    async def test_failing_subscriber_does_not_break_store(self, store: SessionSyncStore) -> None:
        """A raising listener is logged, not propagated."""

        def bad(state: SessionState) -> None:
            raise RuntimeError("ui crashed")

        store.subscribe(bad)
        store.start("sync")
        assert store.state.is_active is True
        await store.aclose()


class TestTick:
    """Test a single refresh."""

    @pytest.mark.asyncio
    async def test_tick_when_idle_does_nothing(
        self, store: SessionSyncStore, service: FakeService
    ) -> None:
        """Idle store never asks the backend."""
        assert await store.tick() is False
        service.is_connected.assert_not_called()

    @pytest.mark.asyncio
    async def test_tick_uses_playback_snapshot(
        self, store: SessionSyncStore, service: FakeService
    ) -> None:
        """Live progress and item come from the backend when available."""
        playing = MediaItem(id="t1", title="Song", uri="spotify:track:t1", service_id="spotify")
        service.get_playback_state.return_value = PlaybackSnapshot(
            is_playing=True, progress_ms=42_000, item=playing
        )
        store.start("sync")

        assert await store.tick() is True

        assert store.state.progress_ms == 42_000
        assert store.state.now_playing == playing
        assert store.state.is_connected is True
        await store.aclose()

    @pytest.mark.asyncio
    async def test_tick_falls_back_to_elapsed_time(
        self, store: SessionSyncStore, clock: FakeClock
    ) -> None:
        """Without a snapshot, progress is local time since start()."""
        store.start("sync")
        clock.now += 2.5

        await store.tick()

        assert store.state.progress_ms == 2500
        await store.aclose()

    @pytest.mark.asyncio
    async def test_disconnected_service(
        self, store: SessionSyncStore, service: FakeService
    ) -> None:
        """Not connected: no playback query, is_connected False."""
        service.is_connected.return_value = False
        store.start("sync")

        await store.tick()

        assert store.state.is_connected is False
        service.get_playback_state.assert_not_called()
        await store.aclose()

    @pytest.mark.asyncio
    async def test_tick_failure_leaves_state_unchanged(
        self, store: SessionSyncStore, service: FakeService, clock: FakeClock
    ) -> None:
        """Backend errors are swallowed; the session stays active."""
        store.start("sync")
        clock.now += 1.0
        await store.tick()
        before = store.state

        service.is_connected.side_effect = ConnectionError("offline")
        clock.now += 1.0

        assert await store.tick() is False
        assert store.state == before
        assert store.timer_running is True
        assert store.get_status()["errors_total"] == 1

        service.is_connected.side_effect = None
        assert await store.tick() is True
        assert store.state.progress_ms == 2000
        await store.aclose()

    @pytest.mark.asyncio
    async def test_tick_timeout_is_noop(
        self, store: SessionSyncStore, service: FakeService
    ) -> None:
        """A hanging backend is cut off and the tick does nothing."""

        async def hang() -> bool:
            await asyncio.sleep(10)
            return True

        service.is_connected.side_effect = hang
        store.start("sync")
        before = store.state

        assert await store.tick() is False
        assert store.state == before
        await store.aclose()

    @pytest.mark.asyncio
    async def test_stale_tick_discarded_after_stop(
        self, store: SessionSyncStore, service: FakeService
    ) -> None:
        """A tick finishing after stop() can't reactivate the session."""
        gate = asyncio.Event()

        async def slow() -> bool:
            await gate.wait()
            return True

        service.is_connected.side_effect = slow
        store.start("sync")
        in_flight = asyncio.create_task(store.tick())
        await asyncio.sleep(0)

        store.stop()
        gate.set()

        assert await in_flight is False
        assert store.state.is_active is False
        assert store.state.is_connected is False
        await store.aclose()

    @pytest.mark.asyncio
    async def test_stale_tick_discarded_after_restart(
        self, store: SessionSyncStore, service: FakeService
    ) -> None:
        """A stop/start during the tick bumps the generation twice: still stale."""
        gate = asyncio.Event()

        async def slow() -> bool:
            await gate.wait()
            return True

        service.is_connected.side_effect = slow
        store.start("old")
        in_flight = asyncio.create_task(store.tick())
        await asyncio.sleep(0)

        store.stop()
        store.start("new")
        gate.set()

        assert await in_flight is False
        assert store.state.label == "new"
        assert store.state.is_connected is False
        await store.aclose()

    @pytest.mark.asyncio
    async def test_missing_service_is_absence(self, clock: FakeClock) -> None:
        """No registered service: ticks still run, nothing is connected."""
        store = SessionSyncStore(ServiceRegistry(), SyncSettings(interval_seconds=60), clock=clock)
        store.start("sync")
        clock.now += 1

        assert await store.tick() is True
        assert store.state.is_connected is False
        assert store.state.progress_ms == 1000
        await store.aclose()

    @pytest.mark.asyncio
    async def test_set_active_service(self, store: SessionSyncStore, registry: ServiceRegistry) -> None:
        """Switching service makes the next tick read from the new one."""
        youtube = FakeService("youtube")
        youtube.is_connected.return_value = False
        registry.register(youtube)
        store.start("sync")

        store.set_active_service("youtube")
        await store.tick()

        youtube.is_connected.assert_awaited_once()
        assert registry.active_service_id == "youtube"
        assert store.state.is_connected is False
        await store.aclose()


class TestTimer:
    """Test the periodic task itself."""

    @pytest.mark.asyncio
    async def test_timer_ticks_periodically(self, registry: ServiceRegistry, service: FakeService) -> None:
        """The task calls the backend on every interval."""
        store = SessionSyncStore(registry, SyncSettings(interval_seconds=0.01))
        store.start("sync")
        await asyncio.sleep(0.1)

        assert service.is_connected.await_count >= 2
        assert store.get_status()["cycles_completed"] >= 2
        await store.aclose()

    @pytest.mark.asyncio
    async def test_timer_survives_failures(self, registry: ServiceRegistry, service: FakeService) -> None:
        """Failing ticks don't kill the loop."""
        service.is_connected.side_effect = ConnectionError("offline")
        store = SessionSyncStore(registry, SyncSettings(interval_seconds=0.01))
        store.start("sync")
        await asyncio.sleep(0.1)

        assert store.timer_running is True
        assert store.get_status()["errors_total"] >= 2
        await store.aclose()

    @pytest.mark.asyncio
    async def test_pending_connect_does_not_block_ticks(self) -> None:
        """A connect() on service A waiting for the user doesn't stall ticks on B."""
        spotify = FakeService("spotify")
        youtube = FakeService("youtube")
        user_done = asyncio.Event()

        async def wait_for_user() -> bool:
            await user_done.wait()
            return True

        youtube.connect.side_effect = wait_for_user
        registry = ServiceRegistry()
        registry.register(spotify)
        registry.register(youtube)
        store = SessionSyncStore(registry, SyncSettings(interval_seconds=0.01))

        pending = asyncio.create_task(youtube.connect())
        store.start("sync")
        await asyncio.sleep(0.1)

        assert not pending.done()
        assert spotify.is_connected.await_count >= 2

        user_done.set()
        assert await pending is True
        await store.aclose()

    @pytest.mark.asyncio
    async def test_aclose_cancels_everything(self, store: SessionSyncStore) -> None:
        """aclose() stops regardless of owners and awaits the task."""
        store.start("a")
        store.start("b")
        task = store._task

        await store.aclose()

        assert store.owner_count == 0
        assert store.state.is_active is False
        assert task.done()

    @pytest.mark.asyncio
    async def test_get_status(self, store: SessionSyncStore) -> None:
        """Status exposes owners, running flag and service."""
        store.start("sync")
        status = store.get_status()
        assert status["state"] == "active"
        assert status["running"] is True
        assert status["owner_count"] == 1
        assert status["active_service"] == "spotify"
        await store.aclose()
