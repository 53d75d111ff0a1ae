"""Tests for runtime type inspection."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Protocol, runtime_checkable

import pytest

from provisio.resolution import RuntimeTypeInspector, constructor


class Sink(Protocol):
    def write(self, data: str) -> None: ...


@runtime_checkable
class Flushable(Protocol):
    def flush(self) -> None: ...


class Store(ABC):
    @abstractmethod
    def load(self) -> str:
        raise NotImplementedError


class FileStore(Store):
    def load(self) -> str:
        return "data"


class BufferSink:
    def write(self, data: str) -> None:
        self.data = data

    def flush(self) -> None:
        pass


class Reporter:
    def __init__(self, sink: Sink, prefix: str = ">", /) -> None:
        self.sink = sink
        self.prefix = prefix

    @constructor
    def with_store(cls, sink: Sink, store: Store | None) -> Reporter:
        return cls(sink)

    @classmethod
    def unmarked(cls) -> Reporter:
        raise AssertionError("unmarked classmethods are not constructors")


class ChildReporter(Reporter):
    pass


class Colour(Enum):
    RED = 1


@pytest.fixture()
def inspector() -> RuntimeTypeInspector:
    return RuntimeTypeInspector()


def test_interfaces_are_protocols_and_abstract_classes(
    inspector: RuntimeTypeInspector,
) -> None:
    assert inspector.is_interface(Sink)
    assert inspector.is_interface(Store)
    assert not inspector.is_interface(FileStore)
    assert not inspector.is_interface(BufferSink)
    assert not inspector.is_interface("Sink")


def test_concrete_classes(inspector: RuntimeTypeInspector) -> None:
    assert inspector.is_concrete(FileStore)
    assert inspector.is_concrete(Reporter)
    assert not inspector.is_concrete(Store)
    assert not inspector.is_concrete(Sink)
    assert not inspector.is_concrete(int)
    assert not inspector.is_concrete(str)
    assert not inspector.is_concrete(Colour)


def test_constructors_include_init_and_marked_methods(
    inspector: RuntimeTypeInspector,
) -> None:
    ctors = inspector.constructors(Reporter)

    assert [ctor.name for ctor in ctors] == ["__init__", "with_store"]
    init, with_store = ctors
    assert [param.name for param in init.parameters] == ["sink", "prefix"]
    assert init.parameters[0].annotation is Sink
    assert init.parameters[1].has_default
    assert with_store.parameters[1].annotation is Store


def test_marked_constructors_are_not_inherited(
    inspector: RuntimeTypeInspector,
) -> None:
    ctors = inspector.constructors(ChildReporter)

    assert [ctor.name for ctor in ctors] == ["__init__"]
    assert ctors[0].owner is ChildReporter


def test_fallback_constructors_are_parameterless(
    inspector: RuntimeTypeInspector,
) -> None:
    assert inspector.fallback_constructors(Reporter) == ()
    fallbacks = inspector.fallback_constructors(FileStore)
    assert [ctor.name for ctor in fallbacks] == ["__init__"]


def test_invoke_passes_positional_only_arguments(
    inspector: RuntimeTypeInspector,
) -> None:
    sink = BufferSink()
    init = inspector.constructors(Reporter)[0]

    reporter = inspector.invoke(init, {"sink": sink, "prefix": "#"})

    assert reporter.sink is sink
    assert reporter.prefix == "#"


def test_implements_checks_structure_and_nominal_bases(
    inspector: RuntimeTypeInspector,
) -> None:
    assert inspector.implements(BufferSink(), Sink)
    assert inspector.implements(BufferSink(), Flushable)
    assert inspector.implements(FileStore(), Store)
    assert not inspector.implements(FileStore(), Sink)
    assert not inspector.implements(BufferSink(), Store)


def test_is_assignable(inspector: RuntimeTypeInspector) -> None:
    assert inspector.is_assignable(FileStore(), Store)
    assert inspector.is_assignable(FileStore(), FileStore)
    assert not inspector.is_assignable(BufferSink(), FileStore)
