"""Registry, singleton cache, type inspection and the resolver."""

from .inspection import (
    ConstructorInfo,
    InjectionParameter,
    RuntimeTypeInspector,
    constructor,
)
from .registry import ServiceRegistry
from .resolver import ConstructorPlan, Resolver
from .singletons import SingletonCache, release_instance

__all__ = [
    "ConstructorInfo",
    "ConstructorPlan",
    "InjectionParameter",
    "Resolver",
    "RuntimeTypeInspector",
    "ServiceRegistry",
    "SingletonCache",
    "constructor",
    "release_instance",
]
