"""CLI behaviour tests."""

from __future__ import annotations

import json
import textwrap
from pathlib import Path

import pytest

from delegen.cli import _build_parser, main

PLAN = """
shapes:
  Foo:
    file: models/Foo.ts
    dependencies: [{package: uuid, version: "^9.0.0"}]
emit:
  - {shape: Foo, template: "export class Foo {}"}
  - {file: src/models/Foo.ts, template: "export interface FooProps {}"}
"""


def _write_plan(root: Path, content: str = PLAN) -> Path:
    path = root / "plan.yml"
    path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
    return path


def test_cli_accepts_verbose_before_and_after_command() -> None:
    parser = _build_parser()
    assert parser.parse_args(["--verbose", "generate", "plan.yml"]).verbose is True
    assert parser.parse_args(["generate", "plan.yml", "--verbose"]).verbose is True


def test_cli_accepts_generate_options() -> None:
    args = _build_parser().parse_args(
        ["generate", "plan.yml", "--dry-run", "--output", "out", "--dependencies-out", "deps.json"]
    )
    assert args.command == "generate"
    assert args.plan == "plan.yml"
    assert args.dry_run is True
    assert args.output == "out"
    assert args.dependencies_out == "deps.json"


def test_generate_writes_files_and_dependencies(tmp_path: Path, capsys) -> None:
    plan_path = _write_plan(tmp_path)
    out_dir = tmp_path / "out"
    deps_path = tmp_path / "deps" / "dependencies.json"

    main(["generate", str(plan_path), "--output", str(out_dir), "--dependencies-out", str(deps_path)])

    generated = out_dir / "src" / "models" / "Foo.ts"
    assert generated.read_text(encoding="utf-8") == "export class Foo {}\n\nexport interface FooProps {}"
    assert json.loads(deps_path.read_text(encoding="utf-8")) == {
        "dependencies": {"tslib": "^2.6.2", "uuid": "^9.0.0"}
    }
    assert "Wrote" in capsys.readouterr().out


def test_generate_dry_run_prints_instead_of_writing(tmp_path: Path, capsys) -> None:
    plan_path = _write_plan(tmp_path)

    main(["generate", str(plan_path), "--dry-run"])

    out = capsys.readouterr().out
    assert "--- src/models/Foo.ts" in out
    assert "export interface FooProps {}" in out
    assert not (tmp_path / "build").exists()


def test_generate_uses_config_next_to_plan(tmp_path: Path) -> None:
    plan_path = _write_plan(tmp_path)
    (tmp_path / ".delegen.yml").write_text(
        "output:\n  source_root: lib\n  directory: dist\nextensions:\n  enabled: [trace]\n",
        encoding="utf-8",
    )

    main(["generate", str(plan_path)])

    assert (tmp_path / "dist" / "lib" / "models" / "Foo.ts").exists()


def test_generate_exits_with_error_for_bad_plan(tmp_path: Path, capsys) -> None:
    plan_path = _write_plan(tmp_path, "emit:\n  - {file: ../escape.ts, template: x}\n")

    with pytest.raises(SystemExit) as excinfo:
        main(["generate", str(plan_path), "--output", str(tmp_path / "out")])

    assert excinfo.value.code == 1
    assert "delegen generate failed" in capsys.readouterr().err
    assert not (tmp_path / "out").exists()


def test_generate_reports_unwritable_dependency_report(tmp_path: Path, capsys) -> None:
    plan_path = _write_plan(tmp_path)
    deps_dir = tmp_path / "deps"
    deps_dir.mkdir()

    with pytest.raises(SystemExit) as excinfo:
        main(["generate", str(plan_path), "--output", str(tmp_path / "out"), "--dependencies-out", str(deps_dir)])

    assert excinfo.value.code == 1
    assert "Cannot write dependency report" in capsys.readouterr().err


def test_generate_reports_unknown_configured_extension(tmp_path: Path, capsys) -> None:
    plan_path = _write_plan(tmp_path)
    (tmp_path / ".delegen.yml").write_text("extensions:\n  enabled: [nonexistent]\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["generate", str(plan_path), "--dry-run"])

    assert excinfo.value.code == 1
    assert "Invalid extension configuration" in capsys.readouterr().err


def test_generate_lets_unexpected_errors_propagate(tmp_path: Path, monkeypatch) -> None:
    plan_path = _write_plan(tmp_path)

    def _broken(plan, delegator) -> int:
        raise TypeError("unexpected")

    monkeypatch.setattr("delegen.cli.execute_plan", _broken)

    with pytest.raises(TypeError, match="unexpected"):
        main(["generate", str(plan_path), "--output", str(tmp_path / "out")])
    assert not (tmp_path / "out").exists()


def test_generate_quiet_hides_progress_logs(tmp_path: Path, capsys) -> None:
    plan_path = _write_plan(tmp_path)

    main(["generate", str(plan_path), "--output", str(tmp_path / "out")])
    assert "Flushed 1 file(s)" in capsys.readouterr().err

    main(["generate", str(plan_path), "--output", str(tmp_path / "out"), "--quiet"])
    assert "Flushed" not in capsys.readouterr().err


def test_generate_log_file_tags_records_with_output_path(tmp_path: Path) -> None:
    plan_path = _write_plan(tmp_path)
    log_path = tmp_path / "logs" / "delegen.log"

    main(["generate", str(plan_path), "--dry-run", "--quiet", "--log-file", str(log_path)])

    log_text = log_path.read_text(encoding="utf-8")
    assert "[src/models/Foo.ts]: Created buffer for src/models/Foo.ts" in log_text
    assert "delegen.flush [-]: Flushed 1 file(s)" in log_text
