"""Service resolution and constructor injection.

Resolution runs in two phases for type-mapped services:

1. *Selection* inspects the implementation's constructors without building
   anything. A constructor is eligible when every parameter is a registered
   interface, a registered or auto-constructible class, or has a default
   value. The eligible constructor with the most parameters wins; otherwise a
   zero-argument constructor (inherited ones included) is used.
2. *Materialisation* resolves the arguments of the winning constructor only
   and invokes it. A failure part way through releases the caller-owned
   values already produced for the attempt.

Each thread keeps the chain of keys it is currently resolving, so a service
that depends on itself (directly, through constructors, or through a factory
that calls back into the container) fails with
:class:`CircularDependencyError` instead of recursing without bound.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any

from provisio.core.interfaces import (
    CircularDependencyError,
    ContainerError,
    DuplicateRegistrationError,
    OwnershipConflictError,
    ServiceNotRegistered,
    ServiceResolutionError,
    TypeInspector,
)
from provisio.core.models import (
    CachedValue,
    Registration,
    RegistrationKind,
    ServiceKey,
    ServiceLifetime,
    type_name,
)

from .inspection import ConstructorInfo, InjectionParameter
from .registry import ServiceRegistry
from .singletons import SingletonCache, manages_own_release, release_instance

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ConstructorPlan:
    """The selected constructor and its resolved arguments."""

    constructor: ConstructorInfo
    arguments: dict[str, Any]

    def invoke(self) -> Any:
        """Build the instance described by the plan."""
        return self.constructor.invoke(self.arguments)


class Resolver:
    """Materialises services from registrations, caching singletons."""

    def __init__(
        self,
        registry: ServiceRegistry,
        singletons: SingletonCache,
        inspector: TypeInspector,
        *,
        auto_register: bool = True,
    ) -> None:
        """Bind the resolver to the container's shared state."""
        self._registry = registry
        self._singletons = singletons
        self._inspector = inspector
        self._auto_register = auto_register
        self._local = threading.local()

    @property
    def _chain(self) -> list[ServiceKey]:
        chain = getattr(self._local, "chain", None)
        if chain is None:
            chain = self._local.chain = []
        return chain

    def resolve(self, key: ServiceKey) -> Any:
        """Return the service for a key or raise a :class:`ContainerError`."""
        chain = self._chain
        if key in chain:
            raise CircularDependencyError((*chain, key))

        registration = self._registry.try_get(key)
        if registration is None:
            raise ServiceNotRegistered(key)

        if registration.kind is RegistrationKind.INSTANCE:
            cached = self._singletons.try_get(key)
            if cached is None:
                raise ServiceResolutionError(
                    key, "instance registration is missing from the singleton cache"
                )
            return cached.value

        interface = self._inspector.is_interface(key.service_type)
        chain.append(key)
        try:
            if registration.is_singleton:
                try:
                    entry = self._singletons.get_or_create(
                        key,
                        lambda: self._materialize_singleton(registration, interface),
                    )
                except OwnershipConflictError as exc:
                    raise ServiceResolutionError(key, str(exc)) from exc
                return entry.value
            return self._create(registration, interface)
        finally:
            chain.pop()

    def select_constructor(self, implementation: type) -> ConstructorInfo | None:
        """Pick the richest eligible constructor without constructing anything."""
        eligible = [
            ctor
            for ctor in self._inspector.constructors(implementation)
            if ctor.parameters and self._is_eligible(ctor)
        ]
        if eligible:
            # max() keeps the first of equally rich constructors
            return max(eligible, key=lambda ctor: len(ctor.parameters))

        fallbacks = self._inspector.fallback_constructors(implementation)
        return fallbacks[0] if fallbacks else None

    def find_best_constructor(self, implementation: type) -> ConstructorPlan:
        """Select a constructor for the type and resolve its arguments."""
        key = ServiceKey(implementation)
        ctor = self._require_constructor(key, implementation)
        arguments, _ = self._materialize(key, ctor)
        return ConstructorPlan(constructor=ctor, arguments=arguments)

    def construct(self, key: ServiceKey, implementation: type) -> Any:
        """Build an implementation through constructor injection."""
        ctor = self._require_constructor(key, implementation)
        arguments, transients = self._materialize(key, ctor)
        LOGGER.debug(
            "Constructing %s via %s with %d argument(s)",
            type_name(implementation),
            ctor.name,
            len(arguments),
        )
        try:
            return self._inspector.invoke(ctor, arguments)
        except ContainerError:
            _release_all(transients)
            raise
        except Exception as exc:
            _release_all(transients)
            raise ServiceResolutionError(
                key, f"{type_name(implementation)}.{ctor.name} raised {exc!r}"
            ) from exc

    def _require_constructor(
        self, key: ServiceKey, implementation: type
    ) -> ConstructorInfo:
        ctor = self.select_constructor(implementation)
        if ctor is not None:
            return ctor

        reason = f"{type_name(implementation)} has no injectable constructor"
        unresolved = sorted(
            {
                param.annotation
                for candidate in self._inspector.constructors(implementation)
                for param in candidate.parameters
                if isinstance(param.annotation, str)
            }
        )
        if unresolved:
            reason += f" (unresolved annotations: {', '.join(unresolved)})"
        raise ServiceResolutionError(key, reason)

    def _materialize_singleton(
        self, registration: Registration, interface: bool
    ) -> CachedValue:
        instance = self._create(registration, interface)
        if interface:
            owned = registration.kind is RegistrationKind.TYPE_MAP and (
                manages_own_release(instance)
            )
        else:
            owned = True
        return CachedValue(value=instance, owned=owned)

    def _create(self, registration: Registration, interface: bool) -> Any:
        key = registration.key
        if registration.kind is RegistrationKind.FACTORY:
            if registration.factory is None:
                raise ServiceResolutionError(key, "registration has no factory")
            try:
                instance = registration.factory()
            except ContainerError:
                raise
            except Exception as exc:
                raise ServiceResolutionError(key, f"factory raised {exc!r}") from exc
            if instance is None:
                raise ServiceResolutionError(key, "factory returned None")
        else:
            if registration.implementation is None:
                raise ServiceResolutionError(key, "registration has no implementation")
            instance = self.construct(key, registration.implementation)

        self._verify(key, instance, interface)
        return instance

    def _verify(self, key: ServiceKey, instance: Any, interface: bool) -> None:
        """Release and reject instances that do not satisfy the requested type."""
        if interface:
            satisfied = self._inspector.implements(instance, key.service_type)
        else:
            satisfied = self._inspector.is_assignable(instance, key.service_type)
        if satisfied:
            return

        release_instance(instance)
        raise ServiceResolutionError(
            key,
            f"{type_name(type(instance))} does not satisfy "
            f"{type_name(key.service_type)}",
        )

    def _is_eligible(self, ctor: ConstructorInfo) -> bool:
        return all(
            param.has_default or self._can_supply(param.annotation)
            for param in ctor.parameters
        )

    def _can_supply(self, service_type: Any) -> bool:
        if not isinstance(service_type, type):
            return False
        if self._registry.contains(ServiceKey(service_type)):
            return True
        if self._inspector.is_interface(service_type):
            return False
        return self._auto_register and self._inspector.is_concrete(service_type)

    def _materialize(
        self, key: ServiceKey, ctor: ConstructorInfo
    ) -> tuple[dict[str, Any], list[Any]]:
        """Resolve constructor arguments, returning them with caller-owned values."""
        arguments: dict[str, Any] = {}
        transients: list[Any] = []
        try:
            for param in ctor.parameters:
                resolved = self._resolve_parameter(param)
                if resolved is None:
                    continue
                value, transient = resolved
                arguments[param.name] = value
                if transient:
                    transients.append(value)
        except CircularDependencyError:
            _release_all(transients)
            raise
        except ContainerError as exc:
            _release_all(transients)
            raise ServiceResolutionError(
                key,
                f"cannot build arguments for "
                f"{type_name(ctor.owner)}.{ctor.name}: {exc}",
            ) from exc
        return arguments, transients

    def _resolve_parameter(self, param: InjectionParameter) -> tuple[Any, bool] | None:
        """Resolve one parameter; ``None`` means keep its default value."""
        if not self._can_supply(param.annotation):
            if param.has_default:
                return None
            raise ServiceNotRegistered(
                ServiceKey(param.annotation),
                f"parameter '{param.name}' of type "
                f"{type_name(param.annotation)} cannot be injected",
            )

        dependency = ServiceKey(param.annotation)
        if not self._registry.contains(dependency):
            self._register_implicitly(param.annotation)

        try:
            value = self.resolve(dependency)
        except CircularDependencyError:
            raise
        except ServiceNotRegistered:
            if not param.has_default:
                raise
            LOGGER.debug(
                "Using default for parameter '%s' after failed resolution", param.name
            )
            return None

        registration = self._registry.try_get(dependency)
        transient = registration is not None and not registration.is_singleton
        return value, transient

    def _register_implicitly(self, implementation: type) -> None:
        """Auto-register an unregistered concrete class as a transient self-map."""
        registration = Registration(
            key=ServiceKey(implementation),
            lifetime=ServiceLifetime.TRANSIENT,
            kind=RegistrationKind.TYPE_MAP,
            implementation=implementation,
            service_type_name=type_name(implementation),
        )
        try:
            self._registry.add(registration)
        except DuplicateRegistrationError:
            # registered concurrently by another resolver
            return
        LOGGER.info(
            "Auto-registered %s as a transient self-map", type_name(implementation)
        )


def _release_all(values: list[Any]) -> None:
    for value in reversed(values):
        release_instance(value)


__all__ = ["ConstructorPlan", "Resolver"]
