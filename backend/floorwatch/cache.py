from __future__ import annotations

import asyncio
import datetime
from dataclasses import dataclass
from typing import Awaitable, Callable

from loguru import logger

from floorwatch.errors import ConfigurationMissing
from floorwatch.schemas.metrics import MetricsSnapshot

Clock = Callable[[], datetime.datetime]
Refresher = Callable[[datetime.datetime], Awaitable[MetricsSnapshot]]


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


@dataclass(frozen=True)
class CacheEntry:
    snapshot: MetricsSnapshot
    produced_at: datetime.datetime


@dataclass(frozen=True)
class CacheResult:
    snapshot: MetricsSnapshot
    produced_at: datetime.datetime
    stale: bool = False


class SnapshotCache:
    """Single-slot snapshot cache with stale serve on refresh failure.

    The slot is either empty or holds one ``CacheEntry``. Concurrent misses
    are not coalesced: each runs its own refresh and the last one to finish
    wins the slot.
    """

    def __init__(self, refresher: Refresher, ttl_seconds: float, clock: Clock = utc_now) -> None:
        self._refresher = refresher
        self._ttl = datetime.timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._entry: CacheEntry | None = None

    @property
    def entry(self) -> CacheEntry | None:
        return self._entry

    def is_fresh(self, now: datetime.datetime) -> bool:
        return self._entry is not None and now - self._entry.produced_at < self._ttl

    async def get(self) -> CacheResult:
        now = self._clock()
        entry = self._entry
        if entry is not None and self.is_fresh(now):
            return CacheResult(snapshot=entry.snapshot, produced_at=entry.produced_at)
        # A started refresh always completes, even if the caller goes away.
        return await asyncio.shield(self.refresh(now))

    async def refresh(self, now: datetime.datetime | None = None) -> CacheResult:
        now = now or self._clock()
        try:
            snapshot = await self._refresher(now)
        except ConfigurationMissing:
            raise
        except Exception as exc:
            previous = self._entry
            if previous is None:
                logger.error(f"Refresh failed with an empty cache: {exc}")
                raise
            logger.warning(
                f"Refresh failed, serving snapshot from {previous.produced_at.isoformat()}: {exc}"
            )
            return CacheResult(
                snapshot=previous.snapshot, produced_at=previous.produced_at, stale=True
            )

        self._entry = CacheEntry(snapshot=snapshot, produced_at=now)
        logger.info(
            f"Cached snapshot: floor {snapshot.floor_price} {snapshot.currency} "
            f"from {snapshot.floor_price_source}"
        )
        return CacheResult(snapshot=snapshot, produced_at=now)

    def clear(self) -> None:
        self._entry = None
