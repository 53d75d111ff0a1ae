"""Cache of materialised singleton services.

Each entry is either *borrowed* (the container only holds a reference and
simply drops it on clear) or *owned* (the container created or adopted the
object and releases it exactly once on clear). An object may not be cached
under both modes at the same time.

Singleton construction goes through :meth:`SingletonCache.get_or_create`,
which serialises first resolution per key so a singleton factory or
constructor runs at most once even when several threads miss the cache
together. The map lock is only held for single map operations; the per-key
construction lock is the only lock held while user code runs.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from threading import Lock
from typing import Any

from provisio.core.interfaces import OwnershipConflictError
from provisio.core.models import CachedValue, ServiceKey

LOGGER = logging.getLogger(__name__)


def manages_own_release(value: Any) -> bool:
    """Return ``True`` if the object exposes ``close`` or context-manager exit."""
    return callable(getattr(value, "close", None)) or hasattr(
        type(value), "__exit__"
    )


def release_instance(value: Any) -> bool:
    """Release an owned object; returns ``True`` when a release hook ran."""
    close = getattr(value, "close", None)
    if callable(close):
        close()
        return True
    if hasattr(type(value), "__exit__"):
        value.__exit__(None, None, None)
        return True
    return False


class SingletonCache:
    """Thread-safe map from service key to materialised value."""

    def __init__(self, *, single_flight: bool = True) -> None:
        """Initialise cache storage."""
        self._lock = Lock()
        self._entries: dict[ServiceKey, CachedValue] = {}
        self._construction_locks: dict[ServiceKey, Lock] = {}
        self._single_flight = single_flight

    def put_instance(self, key: ServiceKey, value: Any, owns: bool) -> CachedValue:
        """Insert or replace a value with explicit ownership."""
        return self._store(key, CachedValue(value=value, owned=owns))

    def put_owned(self, key: ServiceKey, value: Any) -> CachedValue:
        """Insert or replace a value the container must release."""
        return self.put_instance(key, value, True)

    def put_borrowed(self, key: ServiceKey, value: Any) -> CachedValue:
        """Insert or replace a value the container only references."""
        return self.put_instance(key, value, False)

    def try_get(self, key: ServiceKey) -> CachedValue | None:
        """Return the cached entry for a key if present."""
        with self._lock:
            return self._entries.get(key)

    def ownership_of(self, value: Any) -> bool | None:
        """Return how an object is cached: owned, borrowed, or ``None`` if absent."""
        with self._lock:
            for entry in self._entries.values():
                if entry.value is value:
                    return entry.owned
        return None

    def get_or_create(
        self, key: ServiceKey, create: Callable[[], CachedValue]
    ) -> CachedValue:
        """Return the cached entry, materialising it at most once on a miss."""
        cached = self.try_get(key)
        if cached is not None:
            LOGGER.debug("Singleton cache hit for %s", key.display_name)
            return cached

        if not self._single_flight:
            return self._store(key, create())

        with self._construction_lock(key):
            cached = self.try_get(key)
            if cached is not None:
                return cached
            entry = create()
            LOGGER.debug(
                "Materialised singleton %s (owned=%s)", key.display_name, entry.owned
            )
            return self._store(key, entry)

    def clear(self) -> None:
        """Release owned values exactly once and drop every entry."""
        with self._lock:
            entries = list(self._entries.items())
            self._entries.clear()
            self._construction_locks.clear()

        released: set[int] = set()
        first_error: Exception | None = None
        for key, entry in reversed(entries):
            if not entry.owned or id(entry.value) in released:
                continue
            released.add(id(entry.value))
            try:
                release_instance(entry.value)
            except Exception as exc:  # pylint: disable=broad-except
                LOGGER.exception("Failed to release singleton %s", key.display_name)
                if first_error is None:
                    first_error = exc

        LOGGER.debug(
            "Cleared %d singleton(s), released %d owned", len(entries), len(released)
        )
        if first_error is not None:
            raise first_error

    def _construction_lock(self, key: ServiceKey) -> Lock:
        with self._lock:
            lock = self._construction_locks.get(key)
            if lock is None:
                lock = self._construction_locks[key] = Lock()
            return lock

    def _store(self, key: ServiceKey, entry: CachedValue) -> CachedValue:
        with self._lock:
            for other_key, other in self._entries.items():
                if (
                    other.value is entry.value
                    and other.owned != entry.owned
                    and other_key != key
                ):
                    raise OwnershipConflictError(
                        f"{key.display_name} is already cached as "
                        f"{'owned' if other.owned else 'borrowed'} "
                        f"under {other_key.display_name}"
                    )
            replaced = self._entries.get(key)
            self._entries[key] = entry
            orphaned = replaced is not None and not any(
                other.value is replaced.value for other in self._entries.values()
            )

        if orphaned and replaced is not None and replaced.owned:
            LOGGER.debug("Releasing replaced singleton %s", key.display_name)
            release_instance(replaced.value)
        return entry

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["SingletonCache", "manages_own_release", "release_instance"]
