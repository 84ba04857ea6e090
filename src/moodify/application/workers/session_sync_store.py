"""Session Sync Store - the ONE poller for playback and connection state.

Hey future me - this exists because of the "two timers" bug! A screen used to run
its own interval next to the store's, both wrote the same progress field, and the
progress bar jumped back and forth. Now there is exactly one owner:

    UI mounts   → store.start("player")   owner_count += 1, timer spawned only if idle
    UI unmounts → store.stop()            owner_count -= 1, timer cancelled at zero

State machine: IDLE → ACTIVE → IDLE

Every tick:
1. Looks up the active service in the registry (absent = nothing to ask)
2. is_connected() + get_playback_state(), bounded by network_timeout_seconds
3. Writes progress_ms / is_connected / now_playing into the state

A failing or hanging backend NEVER stops the timer - that tick is just a no-op and
the next one tries again. No retry loop, no backoff: the next tick IS the retry.

Stale writes: `generation` is bumped on every IDLE→ACTIVE and ACTIVE→IDLE transition.
A tick captures it before its first await and throws its result away if it changed
meanwhile, so a slow tick finishing after stop() can't resurrect the session.

Consumers READ the state (property or subscribe()). Only start/tick/stop write it.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from moodify.config.settings import SyncSettings
from moodify.domain.dtos import MediaItem, PlaybackSnapshot
from moodify.domain.exceptions import InvalidStateException
from moodify.infrastructure.observability.logger_template import log_worker_health
from moodify.infrastructure.observability.logging import set_correlation_id

if TYPE_CHECKING:
    from moodify.infrastructure.plugins.registry import ServiceRegistry

logger = logging.getLogger(__name__)

WORKER_NAME = "session_sync"


@dataclass(frozen=True)
class SessionState:
    """Read-only view of the sync session.

    start_time is a value of the store's clock (monotonic seconds by default).
    """

    is_active: bool = False
    label: str = ""
    start_time: float | None = None
    progress_ms: int = 0
    is_connected: bool = False
    now_playing: MediaItem | None = None
    generation: int = 0


SessionListener = Callable[[SessionState], None]


class SessionSyncStore:
    """Single-source poller with ref-counted start/stop."""

    def __init__(
        self,
        registry: "ServiceRegistry",
        settings: SyncSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize store (no task is created until start()).

        Args:
            registry: Owns the active service id; looked up on every tick
            settings: Interval and timeout configuration
            clock: Time source in seconds (injectable for tests)
        """
        self._registry = registry
        self._settings = settings or SyncSettings()
        self._clock = clock

        self._state = SessionState()
        self._owner_count = 0
        self._generation = 0
        self._task: asyncio.Task[None] | None = None
        # Cancelled tasks still unwinding; kept so aclose() can await them
        self._retired: set[asyncio.Task[None]] = set()
        self._listeners: list[SessionListener] = []

        self._cycles_completed = 0
        self._errors_total = 0
        self._started_at: float | None = None

    # =========================================================================
    # READ SIDE
    # =========================================================================

    @property
    def state(self) -> SessionState:
        """Current session state snapshot."""
        return self._state

    @property
    def owner_count(self) -> int:
        """How many callers currently want polling to run."""
        return self._owner_count

    @property
    def generation(self) -> int:
        """Transition counter used to discard stale tick results."""
        return self._generation

    @property
    def timer_running(self) -> bool:
        """True while the periodic task exists."""
        return self._task is not None and not self._task.done()

    @property
    def active_service_id(self) -> str:
        """Service the poller reads from (owned by the registry)."""
        return self._registry.active_service_id

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Call listener with the new state after every change.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def get_status(self) -> dict[str, Any]:
        """Worker status for diagnostics screens and health logs."""
        uptime = 0.0
        if self._started_at is not None and self._state.is_active:
            uptime = self._clock() - self._started_at
        return {
            "name": "Session Sync",
            "state": "active" if self._state.is_active else "idle",
            "label": self._state.label,
            "running": self.timer_running,
            "owner_count": self._owner_count,
            "generation": self._generation,
            "active_service": self.active_service_id,
            "cycles_completed": self._cycles_completed,
            "errors_total": self._errors_total,
            "uptime_seconds": int(uptime),
            "interval_seconds": self._settings.interval_seconds,
        }

    # =========================================================================
    # WRITE SIDE
    # =========================================================================

    def start(self, label: str = "sync") -> None:
        """Request polling.

        Hey future me - only the FIRST owner's label wins. A second screen calling
        start("queue") while "player" is active just joins the running session.

        Must be called from inside the event loop (spawns an asyncio task).

        Raises:
            RuntimeError: Without a running event loop; the store stays untouched
        """
        if self._task is not None:
            self._owner_count += 1
            logger.debug(
                "Session sync already active (owners=%d), not spawning another timer",
                self._owner_count,
            )
            return

        # Spawn first: if there is no loop, nothing below has happened yet
        generation = self._generation + 1
        loop_coro = self._run(generation)
        try:
            task = asyncio.create_task(loop_coro, name=f"{WORKER_NAME}-{generation}")
        except RuntimeError:
            loop_coro.close()
            raise

        self._owner_count += 1
        self._generation = generation
        self._task = task
        now = self._clock()
        self._started_at = now
        self._cycles_completed = 0
        self._errors_total = 0
        self._state = SessionState(
            is_active=True,
            label=label,
            start_time=now,
            generation=generation,
        )
        logger.info(
            "Session sync started (label=%s, interval=%.1fs, service=%s)",
            label,
            self._settings.interval_seconds,
            self.active_service_id,
        )
        self._publish()

    def stop(self) -> None:
        """Release one polling request; the last release cancels the timer.

        Safe during an in-flight tick (its result is discarded).

        Raises:
            InvalidStateException: If called more often than start()
        """
        if self._owner_count == 0:
            raise InvalidStateException("SessionSyncStore.stop() called without matching start()")

        self._owner_count -= 1
        if self._owner_count > 0:
            logger.debug("Session sync still owned by %d caller(s)", self._owner_count)
            return

        self._generation += 1
        self._cancel_task()
        self._state = SessionState(generation=self._generation)
        logger.info(
            "Session sync stopped (cycles=%d, errors=%d)",
            self._cycles_completed,
            self._errors_total,
        )
        self._publish()

    async def aclose(self) -> None:
        """Force-stop regardless of owners and wait for the task to unwind (shutdown)."""
        if self._owner_count > 0:
            self._owner_count = 0
            self._generation += 1
            self._cancel_task()
            self._state = SessionState(generation=self._generation)
            self._publish()

        if self._retired:
            await asyncio.gather(*self._retired, return_exceptions=True)

    def set_active_service(self, service_id: str) -> None:
        """Point the poller (and the engine fallback) at another service.

        Takes effect on the next tick; an in-flight tick for the old service is discarded.
        """
        self._registry.set_active_service(service_id)

    async def tick(self) -> bool:
        """Refresh state from the active service once.

        Returns:
            True if the state was updated, False for an idle store, a failed or
            timed-out tick, or a result that became stale while awaiting
        """
        generation = self._generation
        service_id = self._registry.active_service_id
        if not self._state.is_active:
            return False

        self._cycles_completed += 1
        service = self._registry.active_service
        connected = False
        snapshot: PlaybackSnapshot | None = None

        if service is not None:
            timeout = self._settings.network_timeout_seconds
            try:
                async with asyncio.timeout(timeout):
                    connected = await service.is_connected()
                    if connected:
                        snapshot = await service.get_playback_state()
            except TimeoutError:
                self._errors_total += 1
                logger.warning(
                    "Sync tick for '%s' timed out after %.1fs, state unchanged",
                    service_id,
                    timeout,
                )
                return False
            except Exception as e:
                self._errors_total += 1
                logger.warning(
                    "Sync tick for '%s' failed, state unchanged: %s",
                    service_id,
                    e,
                    exc_info=True,
                )
                return False

        if generation != self._generation or service_id != self._registry.active_service_id:
            logger.debug(
                "Discarding stale sync tick (generation %d, now %d)",
                generation,
                self._generation,
            )
            return False

        self._apply(connected, snapshot)

        if self._cycles_completed % self._settings.health_log_every == 0:
            log_worker_health(
                logger,
                WORKER_NAME,
                self._cycles_completed,
                self._errors_total,
                self._clock() - self._started_at if self._started_at is not None else 0.0,
                extra_stats={
                    "owner_count": self._owner_count,
                    "active_service": service_id,
                },
            )
        return True

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _apply(self, connected: bool, snapshot: PlaybackSnapshot | None) -> None:
        if snapshot is not None:
            progress_ms = snapshot.progress_ms
            now_playing = snapshot.item
        else:
            # No live position from the backend: local elapsed time since start()
            start_time = self._state.start_time
            if start_time is None:
                start_time = self._clock()
            progress_ms = int((self._clock() - start_time) * 1000)
            now_playing = self._state.now_playing if connected else None

        self._state = replace(
            self._state,
            progress_ms=progress_ms,
            is_connected=connected,
            now_playing=now_playing,
        )
        self._publish()

    async def _run(self, generation: int) -> None:
        set_correlation_id()
        logger.debug("Session sync loop running (generation=%d)", generation)
        try:
            while generation == self._generation:
                await asyncio.sleep(self._settings.interval_seconds)
                if generation != self._generation:
                    break
                await self.tick()
        except asyncio.CancelledError:
            logger.debug("Session sync loop cancelled (generation=%d)", generation)
            raise

    def _cancel_task(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        self._retired.add(task)
        task.add_done_callback(self._retired.discard)

    def _publish(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as e:
                logger.warning("Session listener %r failed: %s", listener, e, exc_info=True)
