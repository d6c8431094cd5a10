"""
Clover location id resolver.

Outbound calls that need the merchant's location id ask the module-level
`location_resolver`. Resolution order:

1. In-memory cache (lifetime of the process)
2. settings.CLOVER_LOCATION_ID (bootstrap value, never written back)
3. SystemSetting row `cloverLocationId`
4. Discovery: first Clover device that reports a location

Concurrent cold-start callers on the same event loop share one in-flight
resolution, so discovery hits Clover at most once. The in-flight task is
dropped once it settles, so a failed discovery can be retried later.
"""

import asyncio
import logging
from collections.abc import Callable

from django.conf import settings

from apps.web.core.models import SystemSetting
from apps.web.pos.adapters.clover import CloverAdapter
from apps.web.pos.exceptions import LocationDiscoveryError

logger = logging.getLogger(__name__)

LOCATION_SETTING_KEY = "cloverLocationId"


class LocationIdResolver:
    """Cached, single-flight lookup of the Clover location id."""

    def __init__(
        self, adapter_factory: Callable[[], CloverAdapter] = CloverAdapter
    ) -> None:
        self._adapter_factory = adapter_factory
        self._cached: str | None = None
        self._inflight: dict[asyncio.AbstractEventLoop, asyncio.Task[str]] = {}

    @property
    def cached(self) -> str | None:
        return self._cached

    def reset(self) -> None:
        """Forget the cached value (tests, credential rotation)."""
        self._cached = None
        self._inflight.clear()

    async def get(self) -> str:
        """
        Return the location id, resolving it on first use.

        Raises:
            LocationDiscoveryError: If no source yields a location id.
            POSError: If the discovery call to Clover fails.
        """
        if self._cached:
            return self._cached

        loop = asyncio.get_running_loop()
        task = self._inflight.get(loop)
        if task is None:
            task = loop.create_task(self._resolve())
            self._inflight[loop] = task
            task.add_done_callback(lambda _: self._inflight.pop(loop, None))

        # Shield so one cancelled caller doesn't cancel the shared lookup
        return await asyncio.shield(task)

    async def update(self, new_id: str) -> bool:
        """
        Record a location id reported by Clover (e.g. in a webhook).

        Blank or unchanged values are ignored.

        Returns:
            True if the stored value changed.
        """
        location_id = (new_id or "").strip()
        if not location_id or location_id == self._cached:
            return False

        await SystemSetting.objects.aupdate_or_create(
            key=LOCATION_SETTING_KEY,
            defaults={"value": location_id},
        )
        previous, self._cached = self._cached, location_id
        logger.info("Clover location id updated: %s -> %s", previous, location_id)
        return True

    async def _resolve(self) -> str:
        from_settings = (settings.CLOVER_LOCATION_ID or "").strip()
        if from_settings:
            self._cached = from_settings
            return from_settings

        row = await SystemSetting.objects.filter(key=LOCATION_SETTING_KEY).afirst()
        if row is not None and row.value.strip():
            self._cached = row.value.strip()
            return self._cached

        discovered = await self._discover()

        await SystemSetting.objects.aupdate_or_create(
            key=LOCATION_SETTING_KEY,
            defaults={"value": discovered},
        )
        self._cached = discovered
        logger.info("Discovered Clover location id %s", discovered)
        return discovered

    async def _discover(self) -> str:
        async with self._adapter_factory() as adapter:
            devices = await adapter.list_devices()

        # Only the primary (first) device counts
        first = devices[0] if devices else None
        location_id = first.location.id.strip() if first and first.location else ""
        if not location_id:
            raise LocationDiscoveryError(
                f"Unable to discover Clover location id: {len(devices)} device(s), "
                "first has no location"
            )
        return location_id


location_resolver = LocationIdResolver()


async def get_location_id() -> str:
    """Resolve the Clover location id (see LocationIdResolver.get)."""
    return await location_resolver.get()


async def update_location_id(new_id: str) -> bool:
    """Record a location id reported by Clover (see LocationIdResolver.update)."""
    return await location_resolver.update(new_id)
