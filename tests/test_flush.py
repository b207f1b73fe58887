"""Tests for delegen.flush."""

from __future__ import annotations

import pytest

from delegen.errors import FlushError
from delegen.flush import FlushCoordinator
from delegen.registry import WriterRegistry
from delegen.stores import InMemoryStorage
from tests._fixtures.doubles import FailingStorage


def test_flush_writes_each_buffer_once_and_empties_registry(storage: InMemoryStorage) -> None:
    registry = WriterRegistry()
    registry.resolve("src/Foo.ts").write("export class Foo {}")
    registry.resolve("./src/Foo.ts").write("export interface FooProps {}")
    registry.resolve("src/index.ts").write('export * from "./Foo";')

    written = FlushCoordinator(registry, storage).flush()

    assert written == 2
    assert len(registry) == 0
    assert storage.writes == ["src/Foo.ts", "src/index.ts"]
    assert storage.files["src/Foo.ts"] == "export class Foo {}\n\nexport interface FooProps {}"
    assert storage.files["src/index.ts"] == 'export * from "./Foo";'


def test_flush_of_empty_registry_is_a_no_op(storage: InMemoryStorage) -> None:
    coordinator = FlushCoordinator(WriterRegistry(), storage)
    assert coordinator.flush() == 0
    assert coordinator.flush() == 0
    assert storage.writes == []


def test_flush_writes_empty_buffers_too(storage: InMemoryStorage) -> None:
    registry = WriterRegistry()
    registry.resolve("src/empty.ts")

    FlushCoordinator(registry, storage).flush()

    assert storage.files == {"src/empty.ts": ""}


def test_flush_fails_fast_on_first_storage_error() -> None:
    registry = WriterRegistry()
    registry.resolve("src/A.ts").write("a")
    registry.resolve("src/B.ts").write("b")
    registry.resolve("src/C.ts").write("c")
    storage = FailingStorage("src/B.ts")

    with pytest.raises(FlushError) as excinfo:
        FlushCoordinator(registry, storage).flush()

    assert excinfo.value.path == "src/B.ts"
    assert isinstance(excinfo.value.__cause__, OSError)
    assert storage.files == {"src/A.ts": "a"}
    assert len(registry) == 0
