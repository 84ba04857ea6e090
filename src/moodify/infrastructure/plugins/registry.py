"""
Service Registry for moodify media service adapters.

Hey future me - this is the CENTRAL CATALOG of all media backends!
Adapters are registered here and looked up by their service_id.

Usage:
    registry = ServiceRegistry()
    registry.register(SpotifyService(vault))

    # Later...
    spotify = registry.get("spotify")
    if spotify is not None:
        items = await spotify.get_recommendations(context)

    # Or broadcast over everything
    if await registry.any_connected():
        ...

Two views, one truth:
    - imperative: get()/get_all() for background code (poller, deep links)
    - reactive:   registry.store.subscribe(listener) for UI surfaces
register() writes the dict AND publishes to the store in the same call, with no
await in between. Nobody can ever observe one view updated and the other stale.

There is NO module-level singleton. MediaCore builds one registry and hands it to
whoever needs it (engine, sync store, UI).
"""

import asyncio
import logging
from collections.abc import Callable, Mapping
from types import MappingProxyType

from moodify.domain.ports.media_service import IMediaService

logger = logging.getLogger(__name__)

RegistryListener = Callable[[Mapping[str, IMediaService]], None]


class RegistryStore:
    """
    Reactive read-only view of the registry.

    Hey future me - listeners get the FULL service map after every register(),
    not a diff. UI code just re-renders from it. A listener that raises is logged
    and skipped; it can't break registration or the other listeners.
    """

    def __init__(self) -> None:
        """Initialize empty store."""
        self._snapshot: Mapping[str, IMediaService] = MappingProxyType({})
        self._listeners: list[RegistryListener] = []

    @property
    def snapshot(self) -> Mapping[str, IMediaService]:
        """Current service map (read-only, insertion ordered)."""
        return self._snapshot

    def subscribe(self, listener: RegistryListener) -> Callable[[], None]:
        """
        Subscribe to registry changes.

        Args:
            listener: Called with the full service map after every change

        Returns:
            Callable that removes the listener (safe to call twice)
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, services: dict[str, IMediaService]) -> None:
        """Replace the snapshot and notify listeners (registry-internal)."""
        self._snapshot = MappingProxyType(dict(services))
        for listener in list(self._listeners):
            try:
                listener(self._snapshot)
            except Exception as e:
                logger.warning(
                    "Registry listener %r failed: %s", listener, e, exc_info=True
                )


class ServiceRegistry:
    """
    Central registry for media service adapters.

    Hey future me - one adapter per service_id. Registering the same id again
    OVERWRITES (hot reload, test doubles) and keeps the original position in
    get_all(). Entries are never removed during normal operation.
    """

    def __init__(
        self, store: RegistryStore | None = None, active_service_id: str = "spotify"
    ) -> None:
        """Initialize empty registry.

        Args:
            store: Reactive view to publish into (new one if None)
            active_service_id: Service the poller and the engine fallback talk to
        """
        self._services: dict[str, IMediaService] = {}
        self.store = store or RegistryStore()
        self._active_service_id = active_service_id

    def register(self, service: IMediaService) -> None:
        """
        Register (or replace) a media service adapter.

        Args:
            service: Adapter instance to register
        """
        service_id = service.service_id
        replaced = service_id in self._services
        self._services[service_id] = service
        self.store.publish(self._services)

        logger.info(
            "%s media service '%s' (%s)",
            "Replaced" if replaced else "Registered",
            service_id,
            service.service_type.value,
        )

    def get(self, service_id: str) -> IMediaService | None:
        """
        Get an adapter by id.

        Args:
            service_id: Registry key, e.g. "spotify"

        Returns:
            Adapter instance or None if not registered
        """
        return self._services.get(service_id)

    def require(self, service_id: str) -> IMediaService:
        """
        Get an adapter, raising if not found.

        Hey future me - use this only where the service MUST exist (wiring code).
        Runtime paths use get() and treat None as "no such backend".

        Raises:
            KeyError: If the service is not registered
        """
        service = self._services.get(service_id)
        if service is None:
            raise KeyError(f"No media service registered for '{service_id}'")
        return service

    def get_all(self) -> list[IMediaService]:
        """All registered adapters in insertion order."""
        return list(self._services.values())

    @property
    def service_ids(self) -> list[str]:
        """Registered service ids in insertion order."""
        return list(self._services.keys())

    def is_registered(self, service_id: str) -> bool:
        """Check if a service id is registered."""
        return service_id in self._services

    def __len__(self) -> int:
        return len(self._services)

    # =========================================================================
    # ACTIVE SERVICE
    # Hey future me - the poller AND the engine fallback read this. Nobody else keeps
    # their own copy, so switching backends in the UI switches both at once.
    # =========================================================================

    @property
    def active_service_id(self) -> str:
        """Id of the service the user is currently listening through."""
        return self._active_service_id

    def set_active_service(self, service_id: str) -> None:
        """Switch the active service (it doesn't have to be registered yet)."""
        if service_id == self._active_service_id:
            return
        logger.info("Active media service %s -> %s", self._active_service_id, service_id)
        self._active_service_id = service_id

    @property
    def active_service(self) -> IMediaService | None:
        """The active service, else the first registered one, else None."""
        service = self._services.get(self._active_service_id)
        if service is not None:
            return service
        return next(iter(self._services.values()), None)

    # =========================================================================
    # BROADCAST HELPERS
    # Hey future me - each service is its own failure domain! A crashing adapter
    # reads as "not connected" and never hides the answer of the others.
    # =========================================================================

    async def connection_states(self) -> dict[str, bool]:
        """
        Ask every adapter whether it is connected.

        Returns:
            service_id -> connected, in insertion order
        """
        services = self.get_all()
        results = await asyncio.gather(
            *(service.is_connected() for service in services), return_exceptions=True
        )

        states: dict[str, bool] = {}
        for service, result in zip(services, results, strict=True):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning(
                    "is_connected() failed for '%s': %s", service.service_id, result
                )
                states[service.service_id] = False
            else:
                states[service.service_id] = bool(result)
        return states

    async def any_connected(self) -> bool:
        """True if at least one registered adapter reports a connection."""
        states = await self.connection_states()
        return any(states.values())


__all__ = [
    "RegistryListener",
    "RegistryStore",
    "ServiceRegistry",
]
