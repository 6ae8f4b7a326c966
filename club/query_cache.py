"""Client-side query cache keyed by resource tuples.

Keys are tuples such as ``('games',)``, ``('games', '42')`` or
``('recharges', 'member', '7')``.  A cached value is served while it is
younger than the staleness window passed to :meth:`QueryCache.fetch`;
otherwise the fetcher runs again.

Invalidation works on key *prefixes*: ``invalidate(('recharges',))`` marks
every key that starts with ``'recharges'`` stale.  Invalidation never
fetches by itself; the next :meth:`~QueryCache.fetch` for a stale key reads
once and the key is fresh again.
"""
import logging
import time
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple

Key = Tuple[Hashable, ...]

MINUTE = 60.0


class _Entry:
    __slots__ = ('value', 'fetched_at', 'invalidated')

    def __init__(self, value: Any, fetched_at: float) -> None:
        self.value = value
        self.fetched_at = fetched_at
        self.invalidated = False


class QueryCache:
    """Process-local cache with per-read staleness windows.

    Args:
        clock: Monotonic time source in seconds (injectable for tests).
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[Key, _Entry] = {}
        self._log = logging.getLogger('gameclub.cache')
        self.hits = 0
        self.fetches = 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def fetch(self, key: Key, fetcher: Callable[[], Any], stale_time: float = 0.0) -> Any:
        """Return the cached value for *key* or call *fetcher* and cache the result.

        A fetcher exception propagates and leaves any previous entry untouched.
        """
        key = tuple(key)
        entry = self._entries.get(key)
        if entry is not None and self._is_fresh(entry, stale_time):
            self.hits += 1
            return entry.value

        self.fetches += 1
        self._log.debug("Fetching %s", key)
        value = fetcher()
        self._entries[key] = _Entry(value, self._clock())
        return value

    def get_data(self, key: Key) -> Optional[Any]:
        """Return whatever is cached for *key* (fresh or stale), or ``None``."""
        entry = self._entries.get(tuple(key))
        return entry.value if entry is not None else None

    def set_data(self, key: Key, value: Any) -> None:
        self._entries[tuple(key)] = _Entry(value, self._clock())

    def is_stale(self, key: Key, stale_time: float = 0.0) -> bool:
        entry = self._entries.get(tuple(key))
        return entry is None or not self._is_fresh(entry, stale_time)

    def keys(self) -> List[Key]:
        return list(self._entries)

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    def invalidate(self, prefix: Key) -> int:
        """Mark every key starting with *prefix* stale.

        Returns:
            Number of entries that went from fresh to stale.  Keys that
            were already stale are not counted again.
        """
        prefix = tuple(prefix)
        marked = 0
        for key, entry in self._entries.items():
            if key[:len(prefix)] == prefix and not entry.invalidated:
                entry.invalidated = True
                marked += 1
        if marked:
            self._log.debug("Invalidated %d entr%s under %s",
                            marked, 'y' if marked == 1 else 'ies', prefix)
        return marked

    def remove(self, prefix: Key) -> int:
        """Drop every key starting with *prefix*; returns how many were removed."""
        prefix = tuple(prefix)
        doomed = [k for k in self._entries if k[:len(prefix)] == prefix]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()

    def _is_fresh(self, entry: _Entry, stale_time: float) -> bool:
        if entry.invalidated:
            return False
        return (self._clock() - entry.fetched_at) < stale_time
