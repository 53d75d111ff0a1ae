"""Tests for resolving instance and factory registrations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Protocol

import pytest

from provisio import (
    ServiceContainer,
    ServiceLifetime,
    ServiceNotRegistered,
    ServiceResolutionError,
)


class Pinger(Protocol):
    def ping(self) -> int: ...


class PingService:
    def ping(self) -> int:
        return 42


class Repository(ABC):
    @abstractmethod
    def get(self, key: str) -> str:
        raise NotImplementedError


class MemoryRepository(Repository):
    def __init__(self) -> None:
        self.closed = 0

    def get(self, key: str) -> str:
        return key.upper()

    def close(self) -> None:
        self.closed += 1


class Widget:
    def __init__(self) -> None:
        self.closed = 0

    def close(self) -> None:
        self.closed += 1


class NotAWidget:
    released = 0

    def close(self) -> None:
        NotAWidget.released += 1


def test_resolve_instance_returns_same_object() -> None:
    container = ServiceContainer()
    service = PingService()
    container.add_singleton(Pinger, service)

    assert container.resolve(Pinger) is service
    assert container.resolve(Pinger).ping() == 42


def test_resolve_class_instance_returns_same_object() -> None:
    container = ServiceContainer()
    widget = Widget()
    container.add_singleton(Widget, widget)

    assert container.resolve(Widget) is widget


def test_transient_factory_creates_each_time() -> None:
    container = ServiceContainer()
    container.add_factory(Pinger, ServiceLifetime.TRANSIENT, PingService)

    first = container.resolve(Pinger)
    second = container.resolve(Pinger)

    assert first is not second


def test_singleton_factory_caches() -> None:
    calls = []

    def build() -> PingService:
        calls.append(1)
        return PingService()

    container = ServiceContainer()
    container.add_factory(Pinger, ServiceLifetime.SINGLETON, build)

    first = container.resolve(Pinger)
    second = container.resolve(Pinger)

    assert first is second
    assert len(calls) == 1


def test_named_factories_use_their_own_registration() -> None:
    container = ServiceContainer()
    container.add_factory(Pinger, ServiceLifetime.SINGLETON, PingService, "A")
    container.add_factory(Pinger, ServiceLifetime.SINGLETON, PingService, "B")

    first = container.resolve(Pinger, "A")
    second = container.resolve(Pinger, "B")

    assert first is not second
    assert container.resolve(Pinger, "a") is first


def test_try_resolve_missing_returns_false() -> None:
    container = ServiceContainer()

    assert container.try_resolve(Pinger) == (None, False)
    assert container.try_resolve(Pinger, "named") == (None, False)


def test_resolve_missing_raises() -> None:
    container = ServiceContainer()

    with pytest.raises(ServiceNotRegistered) as excinfo:
        container.resolve(Pinger)

    assert not isinstance(excinfo.value, ServiceResolutionError)


def test_try_resolve_returns_value_and_true() -> None:
    container = ServiceContainer()
    service = PingService()
    container.add_singleton(Pinger, service)

    assert container.try_resolve(Pinger) == (service, True)


def test_abstract_base_factory_resolves() -> None:
    container = ServiceContainer()
    container.add_factory(Repository, ServiceLifetime.SINGLETON, MemoryRepository)

    repository = container.resolve(Repository)

    assert isinstance(repository, MemoryRepository)
    assert repository.get("key") == "KEY"


def test_interface_factory_singleton_is_borrowed() -> None:
    container = ServiceContainer()
    container.add_factory(Repository, ServiceLifetime.SINGLETON, MemoryRepository)
    repository = container.resolve(Repository)

    container.clear()

    assert repository.closed == 0


def test_class_factory_singleton_is_owned() -> None:
    container = ServiceContainer()
    container.add_factory(Widget, ServiceLifetime.SINGLETON, Widget)
    widget = container.resolve(Widget)
    assert container.resolve(Widget) is widget

    container.clear()
    container.close()

    assert widget.closed == 1


def test_class_factory_transient_is_caller_owned() -> None:
    container = ServiceContainer()
    container.add_factory(Widget, ServiceLifetime.TRANSIENT, Widget)
    first = container.resolve(Widget)
    second = container.resolve(Widget)

    container.clear()

    assert first is not second
    assert first.closed == 0
    assert second.closed == 0


def test_factory_returning_none_fails() -> None:
    container = ServiceContainer()
    container.add_factory(Pinger, ServiceLifetime.SINGLETON, lambda: None)

    with pytest.raises(ServiceResolutionError):
        container.resolve(Pinger)
    assert container.try_resolve(Pinger) == (None, False)


def test_factory_error_is_wrapped() -> None:
    def explode() -> PingService:
        raise RuntimeError("boom")

    container = ServiceContainer()
    container.add_factory(Pinger, ServiceLifetime.TRANSIENT, explode)

    with pytest.raises(ServiceResolutionError) as excinfo:
        container.resolve(Pinger)

    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_factory_failure_is_not_cached() -> None:
    attempts = []

    def flaky() -> PingService:
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("first call fails")
        return PingService()

    container = ServiceContainer()
    container.add_factory(Pinger, ServiceLifetime.SINGLETON, flaky)

    assert container.try_resolve(Pinger) == (None, False)
    service, ok = container.try_resolve(Pinger)

    assert ok
    assert container.resolve(Pinger) is service


def test_wrong_factory_product_is_released() -> None:
    NotAWidget.released = 0
    container = ServiceContainer()
    container.add_factory(Widget, ServiceLifetime.SINGLETON, NotAWidget)

    ok = container.try_resolve(Widget)[1]

    assert not ok
    assert NotAWidget.released == 1


def test_wrong_interface_product_is_released() -> None:
    NotAWidget.released = 0
    container = ServiceContainer()
    container.add_factory(Pinger, ServiceLifetime.TRANSIENT, NotAWidget)

    with pytest.raises(ServiceResolutionError):
        container.resolve(Pinger)

    assert NotAWidget.released == 1


def test_forwarding_singleton_factory_fails_cleanly() -> None:
    container = ServiceContainer()
    container.add_class_type(PingService, ServiceLifetime.SINGLETON)
    container.add_factory(
        Pinger, ServiceLifetime.SINGLETON, lambda: container.resolve(PingService)
    )

    with pytest.raises(ServiceResolutionError) as excinfo:
        container.resolve(Pinger)

    assert "owned" in str(excinfo.value)
    assert container.try_resolve(Pinger) == (None, False)
    assert isinstance(container.resolve(PingService), PingService)


def test_parameterised_generic_key_is_found() -> None:
    container = ServiceContainer()
    container.add_factory(list[int], ServiceLifetime.SINGLETON, lambda: [1])

    assert container.is_registered(list[int])
    assert not container.is_registered(list[str])
    assert container.resolve(list[int]) == [1]
    assert container.resolve(list[int]) is container.resolve(list[int])
    assert container.try_resolve(list[str]) == (None, False)


def test_parameterised_generic_product_is_checked() -> None:
    container = ServiceContainer()
    container.add_factory(dict[str, int], ServiceLifetime.TRANSIENT, lambda: [1])

    with pytest.raises(ServiceResolutionError) as excinfo:
        container.resolve(dict[str, int])

    assert "dict[str, int]" in str(excinfo.value)
