"""Protocol interfaces and error types shared across the container."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol

from .models import ServiceKey

if TYPE_CHECKING:
    from .container import ServiceContainer


class ContainerError(RuntimeError):
    """Base class for container failures."""


class DuplicateRegistrationError(ContainerError):
    """Raised when a service key is registered twice."""

    def __init__(self, key: ServiceKey) -> None:
        self.key = key
        super().__init__(f"Duplicate registration: {key.display_name}")


class ServiceNotRegistered(ContainerError):
    """Raised when a requested service has no registration."""

    def __init__(self, key: ServiceKey, message: str | None = None) -> None:
        self.key = key
        super().__init__(message or f"Service not registered: {key.display_name}")


class ServiceResolutionError(ServiceNotRegistered):
    """Raised when a registered service cannot be constructed."""

    def __init__(self, key: ServiceKey, reason: str) -> None:
        self.reason = reason
        super().__init__(key, f"Cannot resolve {key.display_name}: {reason}")


class CircularDependencyError(ServiceResolutionError):
    """Raised when resolving a service requires itself."""

    def __init__(self, chain: Sequence[ServiceKey]) -> None:
        self.chain = tuple(chain)
        rendered = " -> ".join(key.display_name for key in self.chain)
        super().__init__(self.chain[-1], f"circular dependency {rendered}")


class OwnershipConflictError(ContainerError):
    """Raised when one object would be cached as both owned and borrowed."""


class Constructor(Protocol):
    """A way of building instances of a type."""

    owner: type
    name: str

    @property
    def parameters(self) -> Sequence[Any]:
        """Return the injectable parameters in call order."""
        raise NotImplementedError


class TypeInspector(Protocol):
    """Type introspection needed by the resolver."""

    def is_interface(self, service_type: Any) -> bool:
        """Return ``True`` for protocol or abstract types."""
        raise NotImplementedError

    def is_concrete(self, service_type: Any) -> bool:
        """Return ``True`` for classes that can be instantiated."""
        raise NotImplementedError

    def constructors(self, implementation: type) -> Sequence[Constructor]:
        """Return public constructors declared directly on the type."""
        raise NotImplementedError

    def fallback_constructors(self, implementation: type) -> Sequence[Constructor]:
        """Return public zero-argument constructors, inherited ones included."""
        raise NotImplementedError

    def invoke(self, ctor: Constructor, arguments: dict[str, Any]) -> Any:
        """Invoke a constructor with resolved keyword arguments."""
        raise NotImplementedError

    def implements(self, instance: Any, interface: Any) -> bool:
        """Return ``True`` if the instance satisfies the interface."""
        raise NotImplementedError

    def is_assignable(self, instance: Any, cls: type) -> bool:
        """Return ``True`` if the instance is a ``cls`` or a subclass of it."""
        raise NotImplementedError


class ContainerModule(Protocol):
    """Groups related registrations applied to a container in one call."""

    def register_services(self, container: ServiceContainer) -> None:
        """Register services on the supplied container."""
        raise NotImplementedError


__all__ = [
    "CircularDependencyError",
    "Constructor",
    "ContainerError",
    "ContainerModule",
    "DuplicateRegistrationError",
    "OwnershipConflictError",
    "ServiceNotRegistered",
    "ServiceResolutionError",
    "TypeInspector",
]
