"""Thread-safe registry of service registrations."""

from __future__ import annotations

import logging
from threading import Lock

from provisio.core.interfaces import DuplicateRegistrationError
from provisio.core.models import Registration, ServiceKey

LOGGER = logging.getLogger(__name__)


class ServiceRegistry:
    """Maps service keys to registrations; at most one registration per key."""

    def __init__(self) -> None:
        """Initialise empty registry storage."""
        self._lock = Lock()
        self._registrations: dict[ServiceKey, Registration] = {}

    def add(self, registration: Registration) -> None:
        """Insert a registration, failing if its key is already present."""
        with self._lock:
            if registration.key in self._registrations:
                raise DuplicateRegistrationError(registration.key)
            self._registrations[registration.key] = registration
        LOGGER.debug(
            "Registered %s as %s/%s",
            registration.key.display_name,
            registration.kind.value,
            registration.lifetime.value,
        )

    def try_get(self, key: ServiceKey) -> Registration | None:
        """Return the registration for a key if present."""
        with self._lock:
            return self._registrations.get(key)

    def contains(self, key: ServiceKey) -> bool:
        """Return ``True`` if the key is registered."""
        with self._lock:
            return key in self._registrations

    def registrations(self) -> tuple[Registration, ...]:
        """Return a snapshot of all registrations in insertion order."""
        with self._lock:
            return tuple(self._registrations.values())

    def clear(self) -> None:
        """Remove every registration."""
        with self._lock:
            count = len(self._registrations)
            self._registrations.clear()
        LOGGER.debug("Cleared %d registration(s)", count)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, ServiceKey) and self.contains(key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._registrations)


__all__ = ["ServiceRegistry"]
