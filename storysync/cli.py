"""CLI entrypoints for storysync commands."""

from __future__ import annotations

import argparse
import sys
from datetime import datetime
from pathlib import Path

from .config import ConfigError
from .errors import StorySyncError
from .logging import configure_logging
from .orchestrator import SyncOrchestrator, initialize_project


def _add_logging_options(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Only log warnings and errors to the console.",
    )
    parser.add_argument(
        "--log-file",
        default=argparse.SUPPRESS if suppress_default else None,
        help="Also write a DEBUG-level log to this file.",
    )


def _add_config_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-c",
        "--config",
        default=argparse.SUPPRESS if suppress_default else None,
        help="Path to storysync.yml or the directory holding it (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="storysync",
        description="Convert component story files into a component registry.",
    )
    _add_logging_options(parser)
    _add_config_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init", help="Create a storysync.yml for this project.")
    _add_logging_options(init_parser, suppress_default=True)
    init_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Project root (defaults to current directory).",
    )
    init_parser.add_argument("--force", action="store_true", help="Overwrite an existing configuration.")
    init_parser.add_argument("--storybook-path", help="Directory holding story files.")
    init_parser.add_argument("--components-path", help="Directory holding component sources.")
    init_parser.add_argument("--output-path", help="Directory the registry is written to.")

    sync_parser = subparsers.add_parser("sync", help="Generate the registry from story files.")
    _add_logging_options(sync_parser, suppress_default=True)
    _add_config_option(sync_parser, suppress_default=True)
    sync_parser.add_argument(
        "--incremental",
        action="store_true",
        help="Only process story files modified after --since.",
    )
    sync_parser.add_argument("--since", help="ISO timestamp used with --incremental.")
    sync_parser.add_argument("--no-validate", action="store_true", help="Skip validating the written registry.")
    sync_parser.add_argument("--no-examples", action="store_true", help="Skip generating usage examples.")

    export_parser = subparsers.add_parser("export", help="Export the registry without a full sync.")
    _add_logging_options(export_parser, suppress_default=True)
    _add_config_option(export_parser, suppress_default=True)
    export_parser.add_argument(
        "--format",
        choices=("registry", "individual"),
        default="registry",
        help="Write registry.json or one document per item.",
    )
    export_parser.add_argument("--include-examples", action="store_true", help="Also write usage examples.")
    export_parser.add_argument("-o", "--output", help="Output directory (defaults to output.registryPath).")

    validate_parser = subparsers.add_parser("validate", help="Check configuration and story files.")
    _add_logging_options(validate_parser, suppress_default=True)
    _add_config_option(validate_parser, suppress_default=True)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for storysync commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        quiet=bool(args.quiet),
        log_file=Path(args.log_file) if args.log_file else None,
    )

    if args.command == "init":
        try:
            config_path = initialize_project(
                Path(args.path),
                force=bool(args.force),
                storybook_path=args.storybook_path,
                components_path=args.components_path,
                output_path=args.output_path,
            )
        except ConfigError as exc:
            parser.exit(1, f"{exc}\n")
        print(f"Configuration created at {_relativize(config_path)}")
        return

    try:
        orchestrator = SyncOrchestrator.from_config(Path(args.config) if args.config else None)
    except ConfigError as exc:
        parser.exit(1, f"storysync: invalid configuration: {exc}\n")

    if args.command == "sync":
        since = None
        if args.since:
            try:
                since = datetime.fromisoformat(args.since)
            except ValueError:
                parser.exit(1, f"storysync sync: invalid --since timestamp '{args.since}'\n")
        result = orchestrator.sync(
            incremental=bool(args.incremental),
            since=since,
            validate=False if args.no_validate else None,
            generate_examples=False if args.no_examples else None,
        )
        stats = result.stats
        print(f"Files processed: {stats.files_processed}")
        print(f"Components generated: {stats.components_generated}")
        if stats.errors_count:
            print(f"Errors: {stats.errors_count}")
        if stats.warnings_count:
            print(f"Warnings: {stats.warnings_count}")
        for cycle in result.cycles:
            print(f"Circular dependency: {' -> '.join([*cycle, cycle[0]])}")
        if not result.success:
            details = "; ".join(str(error) for error in result.errors) or "no components generated"
            parser.exit(1, f"storysync sync failed: {details}\nRun with --verbose for more details.\n")
    elif args.command == "export":
        try:
            result = orchestrator.export(
                format=args.format,
                include_examples=bool(args.include_examples),
                output_path=Path(args.output) if args.output else None,
            )
        except (StorySyncError, OSError) as exc:
            parser.exit(1, f"storysync export failed: {exc}\nRun with --verbose for more details.\n")
        print(f"Exported {len(result.items)} registry items")
    elif args.command == "validate":
        report = orchestrator.validate()
        for issue in report.issues:
            location = f" ({issue.file})" if issue.file else ""
            print(f"[{issue.severity}] {issue.message}{location}")
        if not report.valid:
            parser.exit(1, "Validation failed\n")
        print("Validation passed")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
