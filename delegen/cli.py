"""CLI entrypoints for delegen commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import ConfigError, load_config
from .delegator import Delegator
from .dependencies import group_dependencies
from .errors import DelegatorError
from .extensions import discover_extensions
from .logging import configure_logging, get_logger
from .models import DependencyRecord
from .plan import execute_plan, load_plan
from .stores import FileManifest, InMemoryStorage


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="delegen",
        description="Render a generation plan into per-file output buffers and write them out.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Execute a generation plan and flush every output file.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    generate_parser.add_argument("plan", help="Path to the YAML generation plan.")
    generate_parser.add_argument(
        "--config",
        default=None,
        help="Path to .delegen.yml or its directory (defaults to the plan's directory).",
    )
    generate_parser.add_argument(
        "--output",
        default=None,
        help="Directory receiving generated files (overrides output.directory).",
    )
    generate_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print generated files instead of writing them.",
    )
    generate_parser.add_argument(
        "--dependencies-out",
        default=None,
        help="Write aggregated dependencies as JSON to this path.",
    )
    generate_parser.add_argument(
        "--log-file",
        default=None,
        help="Also write logs to this file (always at debug level).",
    )
    generate_parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only log warnings and errors to the console.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for delegen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    log_file = Path(args.log_file) if getattr(args, "log_file", None) else None
    configure_logging(
        verbose=bool(args.verbose),
        quiet=bool(getattr(args, "quiet", False)),
        log_file=log_file,
    )
    logger = get_logger("cli")

    if args.command == "generate":
        try:
            _run_generate(args)
        except DelegatorError as exc:
            logger.debug("Generation aborted", exc_info=True)
            parser.exit(1, f"delegen generate failed: {exc}\nRun with --verbose for more details.\n")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_generate(args: argparse.Namespace) -> None:
    plan_path = Path(args.plan)
    plan = load_plan(plan_path)
    config = load_config(Path(args.config) if args.config else plan.root)
    if args.output:
        config.output.directory = Path(args.output).expanduser().resolve()

    storage = InMemoryStorage() if args.dry_run else FileManifest(config.output_dir)
    try:
        extensions = discover_extensions(config.extensions.enabled)
    except (ValueError, TypeError) as exc:
        raise ConfigError(f"Invalid extension configuration: {exc}") from exc
    delegator = Delegator(config, plan, storage, extensions=extensions)

    try:
        execute_plan(plan, delegator)
        # Aggregate before flushing: flush empties the registry.
        dependencies = delegator.get_dependencies()
        delegator.flush_writers()
    except BaseException:
        delegator.reset()
        raise

    if args.dependencies_out:
        _write_dependencies(Path(args.dependencies_out), dependencies)

    if isinstance(storage, InMemoryStorage):
        for path, content in storage.files.items():
            print(f"--- {path}")
            print(content)
    else:
        for path in storage.files:
            print(f"Wrote {_relativize(storage.resolve(path))}")


def _write_dependencies(path: Path, dependencies: list[DependencyRecord]) -> None:
    payload = json.dumps(group_dependencies(dependencies), indent=2, sort_keys=True) + "\n"
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(payload, encoding="utf-8")
    except OSError as exc:
        raise DelegatorError(f"Cannot write dependency report {path}: {exc}") from exc


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
