"""Tests for delegen.stores."""

from __future__ import annotations

from pathlib import Path

from delegen.stores import FileManifest, InMemoryStorage


def test_file_manifest_writes_nested_files(tmp_path: Path) -> None:
    manifest = FileManifest(tmp_path / "out")

    manifest.write_file("src/models/Foo.ts", "export class Foo {}")
    manifest.write_file("package.json", "{}")
    manifest.write_file("src/models/Foo.ts", "export class Foo { id = 1; }")

    assert (tmp_path / "out" / "src" / "models" / "Foo.ts").read_text(encoding="utf-8") == (
        "export class Foo { id = 1; }"
    )
    assert manifest.files == ["src/models/Foo.ts", "package.json"]
    assert manifest.resolve("package.json") == tmp_path / "out" / "package.json"
    assert not list((tmp_path / "out").rglob("*.tmp"))


def test_in_memory_storage_records_writes() -> None:
    storage = InMemoryStorage()
    storage.write_file("a.ts", "a")
    storage.write_file("a.ts", "b")

    assert storage.files == {"a.ts": "b"}
    assert storage.writes == ["a.ts", "a.ts"]
