"""Single-slot TTL cache for the normalized API description."""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from knotty_mcp.config.logging import get_logger
from knotty_mcp.parser.models import NormalizedApiDescription

logger = get_logger(__name__)

RefreshProducer = Callable[[], Awaitable[NormalizedApiDescription]]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CacheState(str, Enum):
    EMPTY = "empty"
    FRESH = "fresh"
    STALE = "stale"


class CacheRefreshError(Exception):
    """Raised when a refresh is requested but no producer is configured."""


@dataclass(frozen=True)
class CacheEntry:
    description: NormalizedApiDescription
    created_at: datetime
    expires_at: datetime


class SpecCache:
    """TTL cache holding at most one API description.

    Refreshes are coalesced: while one producer call is in flight, every
    other caller of :meth:`refresh` waits on that same call and sees its
    result or its exception. A failed refresh leaves the previous entry in
    place.
    """

    def __init__(
        self,
        ttl_seconds: float,
        refresh_producer: Optional[RefreshProducer] = None,
        clock: Optional[Clock] = None,
    ):
        """Initialize the cache.

        Args:
            ttl_seconds: Entry lifetime, also the auto-refresh period
            refresh_producer: Coroutine function producing a fresh description
            clock: Returns the current time; defaults to UTC wall clock
        """
        self.ttl_seconds = ttl_seconds
        self._refresh_producer = refresh_producer
        self._clock = clock or utc_now
        self._entry: Optional[CacheEntry] = None
        self._inflight: Optional[asyncio.Task] = None
        self._auto_refresh_task: Optional[asyncio.Task] = None

    @property
    def has_producer(self) -> bool:
        return self._refresh_producer is not None

    @property
    def is_refreshing(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    @property
    def state(self) -> CacheState:
        if self._entry is None:
            return CacheState.EMPTY
        return CacheState.STALE if self.is_expired() else CacheState.FRESH

    def get(self) -> Optional[NormalizedApiDescription]:
        """Return the cached description if it is still fresh."""
        if self._entry is None:
            return None
        if self.is_expired():
            logger.debug("Cache expired")
            return None
        return self._entry.description

    def set(self, description: NormalizedApiDescription) -> None:
        now = self._clock()
        self._entry = CacheEntry(
            description=description,
            created_at=now,
            expires_at=now + timedelta(seconds=self.ttl_seconds),
        )
        logger.info(
            "Cache updated",
            expires_at=self._entry.expires_at.isoformat(),
            endpoints=description.total_endpoints,
        )

    def is_expired(self) -> bool:
        if self._entry is None:
            return True
        return self._clock() > self._entry.expires_at

    def clear(self) -> None:
        self._entry = None
        logger.info("Cache cleared")

    async def refresh(self) -> NormalizedApiDescription:
        """Produce a fresh description and store it.

        Concurrent callers share a single producer call.

        Returns:
            The freshly produced description

        Raises:
            CacheRefreshError: If no refresh producer is configured
            Exception: Whatever the producer raised
        """
        if self._refresh_producer is None:
            raise CacheRefreshError("No refresh callback configured")

        task = self._inflight
        if task is None or task.done():
            logger.info("Refreshing cache")
            task = asyncio.get_running_loop().create_task(self._produce())
            task.add_done_callback(self._refresh_finished)
            self._inflight = task
        else:
            logger.debug("Refresh already in progress, waiting")

        # A cancelled waiter must not cancel the shared refresh
        return await asyncio.shield(task)

    async def _produce(self) -> NormalizedApiDescription:
        description = await self._refresh_producer()
        self.set(description)
        return description

    def _refresh_finished(self, task: asyncio.Task) -> None:
        if self._inflight is task:
            self._inflight = None
        if not task.cancelled() and task.exception() is not None:
            logger.debug("Cache refresh failed", error=str(task.exception()))

    async def get_or_refresh(self) -> NormalizedApiDescription:
        cached = self.get()
        if cached is not None:
            return cached
        return await self.refresh()

    def start_auto_refresh(self) -> None:
        """Start refreshing in the background every TTL period."""
        if self._auto_refresh_task is not None and not self._auto_refresh_task.done():
            return
        if self._refresh_producer is None:
            logger.warning("Cannot start auto-refresh without a refresh callback")
            return

        logger.info(
            "Starting automatic cache refresh", interval_seconds=self.ttl_seconds
        )
        self._auto_refresh_task = asyncio.get_running_loop().create_task(
            self._auto_refresh_loop()
        )

    async def stop_auto_refresh(self) -> None:
        task = self._auto_refresh_task
        if task is None:
            return
        self._auto_refresh_task = None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Stopped automatic cache refresh")

    @property
    def auto_refresh_running(self) -> bool:
        return self._auto_refresh_task is not None and not self._auto_refresh_task.done()

    async def _auto_refresh_loop(self) -> None:
        while True:
            await asyncio.sleep(self.ttl_seconds)
            try:
                await self.refresh()
            except Exception as e:
                # The stale entry stays in place until the next period
                logger.error("Auto-refresh failed", error=str(e))

    def get_metadata(self) -> Dict[str, Any]:
        """Describe the cache slot for status reporting."""
        if self._entry is None:
            return {
                "is_cached": False,
                "state": CacheState.EMPTY.value,
                "is_expired": True,
                "is_refreshing": self.is_refreshing,
            }

        now = self._clock()
        return {
            "is_cached": True,
            "state": self.state.value,
            "created_at": self._entry.created_at.isoformat(),
            "expires_at": self._entry.expires_at.isoformat(),
            "is_expired": self.is_expired(),
            "age_seconds": int((now - self._entry.created_at).total_seconds()),
            "is_refreshing": self.is_refreshing,
        }
