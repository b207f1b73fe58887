"""Tests for delegen.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from delegen.config import ConfigError, DelegatorConfig, load_config
from delegen.errors import DelegatorError
from delegen.models import DependencyRecord


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, DelegatorConfig)
    assert config.root == tmp_path.resolve()
    assert config.output.source_root == "src"
    assert config.output.directory is None
    assert config.output_dir == tmp_path.resolve() / "build" / "codegen"
    assert config.extensions.enabled is None
    assert config.baseline_dependencies is None


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".delegen.yml"
    config_file.write_text(
        """
output:
  source_root: "./packages/client/src/"
  directory: "generated"
extensions:
  enabled: [trace]
dependencies:
  baseline:
    - package: tslib
      version: "^2.6.2"
    - {package: typescript, version: "~5.2.2", type: devDependencies}
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.output.source_root == "packages/client/src"
    assert config.output_dir == (tmp_path / "generated").resolve()
    assert config.extensions.enabled == ["trace"]
    assert config.baseline_dependencies == [
        DependencyRecord("tslib", "^2.6.2"),
        DependencyRecord("typescript", "~5.2.2", dependency_type="devDependencies"),
    ]


def test_load_config_allows_disabling_prefix_and_baseline(tmp_path: Path) -> None:
    (tmp_path / ".delegen.yml").write_text(
        "output:\n  source_root: ''\nextensions:\n  enabled: []\ndependencies:\n  baseline: []\n",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.output.source_root == ""
    assert config.extensions.enabled == []
    assert config.baseline_dependencies == []


def test_load_config_accepts_empty_file(tmp_path: Path) -> None:
    (tmp_path / ".delegen.yml").write_text("\n", encoding="utf-8")
    assert load_config(tmp_path).output.source_root == "src"


@pytest.mark.parametrize(
    "content",
    [
        "- just\n- a list\n",
        "output: [unclosed\n",
        "output:\n  source_root: ../escape\n",
        "dependencies:\n  baseline:\n    - package: tslib\n",
        "dependencies:\n  baseline: tslib\n",
    ],
)
def test_load_config_rejects_malformed_content(tmp_path: Path, content: str) -> None:
    (tmp_path / ".delegen.yml").write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_config_errors_belong_to_the_delegator_error_hierarchy(tmp_path: Path) -> None:
    (tmp_path / ".delegen.yml").write_text("output: [unclosed\n", encoding="utf-8")

    with pytest.raises(DelegatorError):
        load_config(tmp_path)
    assert issubclass(ConfigError, DelegatorError)


def test_load_config_reports_unreadable_file(tmp_path: Path) -> None:
    (tmp_path / ".delegen.yml").mkdir()

    with pytest.raises(ConfigError, match="Cannot read"):
        load_config(tmp_path)
