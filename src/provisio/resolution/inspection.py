"""Runtime type introspection used by the resolver.

Python classes have a single ``__init__``; additional public constructors are
classmethods marked with :func:`constructor`. Interface-like types are
``typing.Protocol`` classes and abstract base classes.
"""

from __future__ import annotations

import inspect
import logging
import types
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, Union, get_args, get_origin, get_type_hints

LOGGER = logging.getLogger(__name__)

CONSTRUCTOR_MARKER = "__provisio_constructor__"

_SKIPPED_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


def constructor(func: Callable[..., Any] | classmethod) -> classmethod:
    """Mark a classmethod as an injectable constructor.

    Usage::

        class Reporter:
            def __init__(self) -> None: ...

            @constructor
            def with_sink(cls, sink: Sink) -> Reporter: ...
    """
    target = func.__func__ if isinstance(func, classmethod) else func
    setattr(target, CONSTRUCTOR_MARKER, True)
    return func if isinstance(func, classmethod) else classmethod(func)


@dataclass(frozen=True, slots=True)
class InjectionParameter:
    """A constructor parameter and its declared type."""

    name: str
    annotation: Any
    kind: Any
    has_default: bool = False
    default: Any = None


@dataclass(frozen=True, slots=True)
class ConstructorInfo:
    """A public constructor of ``owner`` and the callable that runs it."""

    owner: type
    name: str
    parameters: tuple[InjectionParameter, ...]
    target: Callable[..., Any]

    @property
    def is_parameterless(self) -> bool:
        """Return ``True`` if the constructor can be called without arguments."""
        return all(param.has_default for param in self.parameters)

    def invoke(self, arguments: dict[str, Any]) -> Any:
        """Call the constructor, passing positional-only parameters positionally."""
        args = []
        kwargs = {}
        for param in self.parameters:
            if param.name not in arguments:
                continue
            if param.kind is inspect.Parameter.POSITIONAL_ONLY:
                args.append(arguments[param.name])
            else:
                kwargs[param.name] = arguments[param.name]
        return self.target(*args, **kwargs)


def _is_marked(member: Any) -> bool:
    return isinstance(member, classmethod) and getattr(
        member.__func__, CONSTRUCTOR_MARKER, False
    )


def _unwrap_optional(annotation: Any) -> Any:
    """Reduce ``X | None`` to ``X``; other unions are left untouched."""
    if get_origin(annotation) not in (Union, types.UnionType):
        return annotation
    members = [arg for arg in get_args(annotation) if arg is not type(None)]
    return members[0] if len(members) == 1 else annotation


def _parameters(
    func: Callable[..., Any], skip_first: bool
) -> tuple[InjectionParameter, ...]:
    """Read injectable parameters, resolving postponed annotations."""
    try:
        hints = get_type_hints(func)
    except (NameError, TypeError) as exc:
        LOGGER.warning(
            "Could not resolve type hints for %s: %s",
            getattr(func, "__qualname__", func),
            exc,
        )
        hints = {}

    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return ()

    params = list(signature.parameters.values())
    if skip_first and params:
        params = params[1:]

    collected = []
    for param in params:
        if param.kind in _SKIPPED_KINDS:
            continue
        annotation = _unwrap_optional(hints.get(param.name, param.annotation))
        has_default = param.default is not inspect.Parameter.empty
        collected.append(
            InjectionParameter(
                name=param.name,
                annotation=(
                    None if annotation is inspect.Parameter.empty else annotation
                ),
                kind=param.kind,
                has_default=has_default,
                default=param.default if has_default else None,
            )
        )
    return tuple(collected)


def _protocol_members(interface: type) -> set[str]:
    members: set[str] = set()
    for base in interface.__mro__:
        if base in (Protocol, object) or not getattr(base, "_is_protocol", False):
            continue
        members.update(
            name
            for name in (*base.__dict__, *getattr(base, "__annotations__", {}))
            if not name.startswith("_")
        )
    return members


class RuntimeTypeInspector:
    """Type inspector backed by :mod:`inspect` and :mod:`typing`."""

    def is_interface(self, service_type: Any) -> bool:
        """Return ``True`` for protocol classes and abstract classes."""
        if not isinstance(service_type, type):
            return False
        return bool(getattr(service_type, "_is_protocol", False)) or inspect.isabstract(
            service_type
        )

    def is_concrete(self, service_type: Any) -> bool:
        """Return ``True`` for user classes that can be auto-constructed."""
        if not isinstance(service_type, type) or self.is_interface(service_type):
            return False
        if service_type.__module__ == "builtins" or issubclass(service_type, Enum):
            return False
        return bool(
            self.constructors(service_type)
            or self.fallback_constructors(service_type)
        )

    def constructors(self, implementation: type) -> tuple[ConstructorInfo, ...]:
        """Return the effective ``__init__`` and constructors declared on the type."""
        found = [self._init_constructor(implementation)]
        for name, member in vars(implementation).items():
            if name.startswith("_") or not _is_marked(member):
                continue
            found.append(self._marked_constructor(implementation, name))
        return tuple(found)

    def fallback_constructors(
        self, implementation: type
    ) -> tuple[ConstructorInfo, ...]:
        """Return zero-argument constructors, including inherited ones."""
        found = []
        init = self._init_constructor(implementation)
        if init.is_parameterless:
            found.append(init)
        seen: set[str] = set()
        for base in implementation.__mro__:
            for name, member in vars(base).items():
                if name in seen or name.startswith("_") or not _is_marked(member):
                    continue
                seen.add(name)
                ctor = self._marked_constructor(implementation, name)
                if ctor.is_parameterless:
                    found.append(ctor)
        return tuple(found)

    def invoke(self, ctor: ConstructorInfo, arguments: dict[str, Any]) -> Any:
        """Invoke a constructor with resolved keyword arguments."""
        return ctor.invoke(arguments)

    def implements(self, instance: Any, interface: Any) -> bool:
        """Check nominal or structural conformance to an interface."""
        if not isinstance(interface, type):
            return False
        if interface in type(instance).__mro__:
            return True
        if not getattr(interface, "_is_protocol", False):
            return isinstance(instance, interface)
        if getattr(interface, "_is_runtime_protocol", False):
            return isinstance(instance, interface)
        return all(hasattr(instance, name) for name in _protocol_members(interface))

    def is_assignable(self, instance: Any, cls: Any) -> bool:
        """Return ``True`` if the instance is a ``cls`` or subclass instance.

        Parameterised generics such as ``list[int]`` are checked against their
        origin class.
        """
        origin = get_origin(cls) or cls
        return isinstance(origin, type) and isinstance(instance, origin)

    @staticmethod
    def _init_constructor(implementation: type) -> ConstructorInfo:
        init = implementation.__init__
        if init is object.__init__:
            params: tuple[InjectionParameter, ...] = ()
        else:
            params = _parameters(init, skip_first=True)
        return ConstructorInfo(
            owner=implementation,
            name="__init__",
            parameters=params,
            target=implementation,
        )

    @staticmethod
    def _marked_constructor(implementation: type, name: str) -> ConstructorInfo:
        bound = getattr(implementation, name)
        return ConstructorInfo(
            owner=implementation,
            name=name,
            parameters=_parameters(bound, skip_first=False),
            target=bound,
        )


__all__ = [
    "ConstructorInfo",
    "InjectionParameter",
    "RuntimeTypeInspector",
    "constructor",
]
