"""Core data types describing registrations and cached services."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, get_origin


class ServiceLifetime(Enum):
    """How long a materialised service lives."""

    SINGLETON = "singleton"
    TRANSIENT = "transient"


class RegistrationKind(Enum):
    """How a registration produces its service."""

    INSTANCE = "instance"
    FACTORY = "factory"
    TYPE_MAP = "type_map"


def type_name(service_type: Any) -> str:
    """Return a readable name for a type handle."""
    if service_type is None:
        return "<nil>"
    if get_origin(service_type) is not None:
        return repr(service_type)
    return getattr(service_type, "__qualname__", None) or repr(service_type)


@dataclass(frozen=True, slots=True)
class ServiceKey:
    """Identity of a registration: a type handle plus an optional name.

    Names compare case-insensitively and an empty name is the default
    registration for the type.
    """

    service_type: Any
    name: str = field(default="")

    def __post_init__(self) -> None:
        if self.name is None:
            object.__setattr__(self, "name", "")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ServiceKey):
            return NotImplemented
        return (
            self.service_type == other.service_type
            and self.name.casefold() == other.name.casefold()
        )

    def __hash__(self) -> int:
        return hash((self.service_type, self.name.casefold()))

    @property
    def display_name(self) -> str:
        """Human readable key used in error messages and logs."""
        label = self.name if self.name.strip() else "<default>"
        return f'{type_name(self.service_type)} (Name="{label}")'


# pylint: disable=too-many-instance-attributes
@dataclass(frozen=True, slots=True)
class Registration:
    """Immutable description of how to satisfy requests for a key."""

    key: ServiceKey
    lifetime: ServiceLifetime
    kind: RegistrationKind
    implementation: type | None = None
    factory: Callable[[], Any] | None = None
    owns_instance: bool = False
    service_type_name: str = ""

    @property
    def is_singleton(self) -> bool:
        """Return ``True`` for singleton lifetime registrations."""
        return self.lifetime is ServiceLifetime.SINGLETON


@dataclass(frozen=True, slots=True)
class CachedValue:
    """A materialised singleton and whether the container must release it."""

    value: Any
    owned: bool


__all__ = [
    "CachedValue",
    "Registration",
    "RegistrationKind",
    "ServiceKey",
    "ServiceLifetime",
    "type_name",
]
