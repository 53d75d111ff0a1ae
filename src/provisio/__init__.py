"""Provisio: a dependency-injection container with constructor injection."""

from .core import (
    AppSettings,
    CircularDependencyError,
    ContainerError,
    ContainerModule,
    ContainerSettings,
    DuplicateRegistrationError,
    OwnershipConflictError,
    ServiceContainer,
    ServiceKey,
    ServiceLifetime,
    ServiceNotRegistered,
    ServiceResolutionError,
    configure_logging,
    load_app_settings,
)
from .resolution import ConstructorPlan, constructor

__all__ = [
    "AppSettings",
    "CircularDependencyError",
    "ConstructorPlan",
    "ContainerError",
    "ContainerModule",
    "ContainerSettings",
    "DuplicateRegistrationError",
    "OwnershipConflictError",
    "ServiceContainer",
    "ServiceKey",
    "ServiceLifetime",
    "ServiceNotRegistered",
    "ServiceResolutionError",
    "configure_logging",
    "constructor",
    "load_app_settings",
]
