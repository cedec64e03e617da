"""
MedSure Interaction Engine - Interaction Verdict Cache
"""
import asyncio
import logging
import time
from typing import Callable, Dict, Optional

from config import settings
from src.core.models import CacheEntry, InteractionVerdict

logger = logging.getLogger(__name__)


class InteractionCache:
    """
    In-memory verdict cache with time expiry and in-flight tracking.

    Entries are replaced, never merged. Concurrent resolutions of the same
    pair share one pending future registered here.
    """

    def __init__(
        self,
        ttl_seconds: float = settings.CACHE_TTL_INTERACTION,
        clock: Callable[[], float] = time.monotonic
    ):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._inflight: Dict[str, asyncio.Future] = {}

    @staticmethod
    def pair_key(name_a: str, name_b: str) -> str:
        """Order-independent key over the names exactly as given"""
        first, second = sorted((name_a, name_b))
        return f"hybrid_{first}_{second}"

    def get(self, pair_key: str) -> Optional[InteractionVerdict]:
        entry = self._entries.get(pair_key)
        if entry is None:
            return None
        if self.clock() - entry.timestamp >= self.ttl_seconds:
            del self._entries[pair_key]
            return None
        return entry.verdict

    def set(self, pair_key: str, verdict: InteractionVerdict) -> None:
        self._entries[pair_key] = CacheEntry(pair_key, verdict, self.clock())

    def inflight(self, pair_key: str) -> Optional[asyncio.Future]:
        return self._inflight.get(pair_key)

    def mark_inflight(self, pair_key: str, future: asyncio.Future) -> None:
        self._inflight[pair_key] = future

    def clear_inflight(self, pair_key: str) -> None:
        self._inflight.pop(pair_key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, pair_key: str) -> bool:
        return self.get(pair_key) is not None
