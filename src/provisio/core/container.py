"""Service container facade for registration and resolution."""

from __future__ import annotations

import logging
from collections.abc import Callable
from types import TracebackType
from typing import Any, TypeVar

from provisio.resolution.inspection import RuntimeTypeInspector
from provisio.resolution.registry import ServiceRegistry
from provisio.resolution.resolver import ConstructorPlan, Resolver
from provisio.resolution.singletons import SingletonCache

from .config import ContainerSettings
from .interfaces import (
    CircularDependencyError,
    ContainerModule,
    OwnershipConflictError,
    ServiceNotRegistered,
    TypeInspector,
)
from .models import (
    Registration,
    RegistrationKind,
    ServiceKey,
    ServiceLifetime,
    type_name,
)

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class ServiceContainer:
    """Dependency container with singleton and transient lifetimes.

    Registrations are keyed by service type plus an optional case-insensitive
    name. Singletons are materialised once and cached; instances the container
    owns are released (``close()`` or context-manager exit) on :meth:`clear`.

    Usage::

        container = ServiceContainer()
        container.add_type_map(Logger, ConsoleLogger, ServiceLifetime.SINGLETON)
        container.add_type_map(Service, ServiceImpl, ServiceLifetime.TRANSIENT)
        service = container.resolve(Service)
    """

    def __init__(
        self,
        settings: ContainerSettings | None = None,
        *,
        inspector: TypeInspector | None = None,
    ) -> None:
        """Initialise container storage."""
        self._settings = settings or ContainerSettings()
        self._inspector: TypeInspector = inspector or RuntimeTypeInspector()
        self._registry = ServiceRegistry()
        self._singletons = SingletonCache(single_flight=self._settings.single_flight)
        self._resolver = Resolver(
            self._registry,
            self._singletons,
            self._inspector,
            auto_register=self._settings.auto_register,
        )

    def add_singleton(
        self,
        service_type: type[T],
        instance: T,
        name: str = "",
        *,
        take_ownership: bool | None = None,
    ) -> None:
        """Register a ready-made instance as a singleton.

        Interface registrations only reference the instance. Class
        registrations take ownership by default, meaning the container
        releases the instance when it is cleared; pass
        ``take_ownership=False`` to keep ownership with the caller.
        """
        if instance is None:
            raise ValueError(
                f"add_singleton: instance for {type_name(service_type)} is None"
            )

        interface = self._inspector.is_interface(service_type)
        if interface:
            satisfied = self._inspector.implements(instance, service_type)
        else:
            satisfied = self._inspector.is_assignable(instance, service_type)
        if not satisfied:
            raise TypeError(
                f"add_singleton: {type_name(type(instance))} does not satisfy "
                f"{type_name(service_type)}"
            )

        owns = (not interface) if take_ownership is None else take_ownership
        key = ServiceKey(service_type, name)
        existing = self._singletons.ownership_of(instance)
        if existing is not None and existing != owns:
            raise OwnershipConflictError(
                f"{key.display_name}: instance is already cached with a "
                "different ownership"
            )

        self._registry.add(
            Registration(
                key=key,
                lifetime=ServiceLifetime.SINGLETON,
                kind=RegistrationKind.INSTANCE,
                implementation=type(instance),
                owns_instance=owns,
                service_type_name=type_name(service_type),
            )
        )
        self._singletons.put_instance(key, instance, owns)

    def add_factory(
        self,
        service_type: type[T],
        lifetime: ServiceLifetime,
        factory: Callable[[], T],
        name: str = "",
    ) -> None:
        """Register a zero-argument factory for the given lifetime.

        Singleton factories run at most once per key and their result is
        cached. Transient factories run on every resolution and the caller
        owns what they return.
        """
        if factory is None or not callable(factory):
            raise ValueError(
                f"add_factory: factory for {type_name(service_type)} is not callable"
            )

        self._registry.add(
            Registration(
                key=ServiceKey(service_type, name),
                lifetime=lifetime,
                kind=RegistrationKind.FACTORY,
                factory=factory,
                service_type_name=type_name(service_type),
            )
        )

    def add_type_map(
        self,
        service_type: type[T],
        implementation: type[T],
        lifetime: ServiceLifetime,
        name: str = "",
    ) -> None:
        """Map an interface to a concrete class built by constructor injection.

        Nothing is constructed at registration time.
        """
        if not self._inspector.is_interface(service_type):
            raise TypeError(
                f"add_type_map: {type_name(service_type)} must be a protocol or "
                "abstract class; use add_class_type for concrete classes"
            )
        self._add_type_registration(service_type, implementation, lifetime, name)

    def add_class_type(
        self, service_type: type[T], lifetime: ServiceLifetime, name: str = ""
    ) -> None:
        """Register a concrete class to be built by constructor injection."""
        self._add_type_registration(service_type, service_type, lifetime, name)

    def add_module(self, *modules: Any) -> None:
        """Apply one or more modules in order; modules are not retained.

        Accepts module instances, module classes (instantiated before use) or
        a single list of them. Every module is checked before any is applied.
        """
        if len(modules) == 1 and isinstance(modules[0], (list, tuple)):
            modules = tuple(modules[0])
        if not modules:
            raise ValueError("add_module: at least one module is required")

        prepared: list[ContainerModule] = []
        for index, module in enumerate(modules):
            if module is None:
                raise ValueError(f"add_module: module at position {index} is None")
            if isinstance(module, type):
                module = module()
            if not callable(getattr(module, "register_services", None)):
                raise TypeError(
                    f"add_module: {type_name(type(module))} has no register_services()"
                )
            prepared.append(module)

        for module in prepared:
            LOGGER.debug("Applying module %s", type_name(type(module)))
            module.register_services(self)

    def resolve(self, service_type: type[T], name: str = "") -> T:
        """Resolve a service, raising :class:`ServiceNotRegistered` on failure."""
        return self._resolver.resolve(ServiceKey(service_type, name))

    def try_resolve(
        self, service_type: type[T], name: str = ""
    ) -> tuple[T | None, bool]:
        """Resolve a service if possible; return ``(None, False)`` otherwise.

        Missing registrations and construction failures both return
        ``(None, False)``. :class:`CircularDependencyError` is raised instead,
        since a cycle means the registrations themselves are broken.
        """
        try:
            return self.resolve(service_type, name), True
        except CircularDependencyError:
            raise
        except ServiceNotRegistered as exc:
            LOGGER.debug("try_resolve failed: %s", exc)
            return None, False

    def is_registered(self, service_type: Any, name: str = "") -> bool:
        """Return ``True`` if a service with the given type and name is registered."""
        return self._registry.contains(ServiceKey(service_type, name))

    def find_best_constructor(self, implementation: type) -> ConstructorPlan:
        """Return the constructor resolution would use, with its arguments."""
        return self._resolver.find_best_constructor(implementation)

    def registrations(self) -> tuple[Registration, ...]:
        """Return a snapshot of current registrations."""
        return self._registry.registrations()

    def clear(self) -> None:
        """Release owned singletons and remove every registration."""
        try:
            self._singletons.clear()
        finally:
            self._registry.clear()
        LOGGER.debug("Container cleared")

    def close(self) -> None:
        """Tear the container down; equivalent to :meth:`clear`."""
        self.clear()

    def __enter__(self) -> ServiceContainer:
        """Enter context manager scope."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        """Exit context manager scope and release owned singletons."""
        self.close()

    def _add_type_registration(
        self,
        service_type: type,
        implementation: type,
        lifetime: ServiceLifetime,
        name: str,
    ) -> None:
        if not self._inspector.is_concrete(implementation):
            raise TypeError(
                f"{type_name(implementation)} is not a concrete, constructible class"
            )
        self._registry.add(
            Registration(
                key=ServiceKey(service_type, name),
                lifetime=lifetime,
                kind=RegistrationKind.TYPE_MAP,
                implementation=implementation,
                service_type_name=type_name(service_type),
            )
        )


__all__ = ["ServiceContainer"]
