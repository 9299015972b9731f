"""In-memory TTL cache with an injectable clock."""

import time
import logging
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)


class TTLCache:
    """
    Key/value cache whose entries expire after a fixed time-to-live.

    Expiry is lazy: a stale entry is treated as a miss on lookup and
    replaced on the next set. There is no background eviction and no
    locking, so concurrent misses for one key may both recompute it.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        """
        Initialize cache.

        Args:
            ttl_seconds: Entry lifetime in seconds
            clock: Monotonic time source, replaceable in tests
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[Any, float]] = {}

    def now(self) -> float:
        return self._clock()

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the cached value, or None when absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        value, timestamp = entry
        if self.now() - timestamp >= self.ttl_seconds:
            return None
        return value

    def set(self, key: Hashable, value: Any):
        self._entries[key] = (value, self.now())

    def clear(self):
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key) is not None
