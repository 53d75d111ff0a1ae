"""Core configuration, logging, data types and the service container."""

from .config import AppSettings, ContainerSettings, LoggingSettings, load_app_settings
from .container import ServiceContainer
from .interfaces import (
    CircularDependencyError,
    ContainerError,
    ContainerModule,
    DuplicateRegistrationError,
    OwnershipConflictError,
    ServiceNotRegistered,
    ServiceResolutionError,
    TypeInspector,
)
from .logging import configure_logging
from .models import (
    CachedValue,
    Registration,
    RegistrationKind,
    ServiceKey,
    ServiceLifetime,
)

__all__ = [
    "AppSettings",
    "CachedValue",
    "CircularDependencyError",
    "ContainerError",
    "ContainerModule",
    "ContainerSettings",
    "DuplicateRegistrationError",
    "LoggingSettings",
    "OwnershipConflictError",
    "Registration",
    "RegistrationKind",
    "ServiceContainer",
    "ServiceKey",
    "ServiceLifetime",
    "ServiceNotRegistered",
    "ServiceResolutionError",
    "TypeInspector",
    "configure_logging",
    "load_app_settings",
]
