"""CLI entrypoints for cruftscan commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .cleanup import execute_cleanup
from .config import ConfigError
from .logging import configure_logging
from .orchestrator import Orchestrator


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


def _positive_float(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected a number of seconds, got {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("time budget must be positive")
    return parsed


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cruftscan",
        description="Find backup files, stale copies and abandoned code in a source tree.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser(
        "scan",
        help="Classify every file in a repository and write a JSON report.",
    )
    _add_verbose_option(scan_parser, suppress_default=True)
    scan_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the repository root (defaults to current directory).",
    )
    scan_parser.add_argument(
        "--root",
        dest="roots",
        action="append",
        default=None,
        metavar="DIR",
        help="Directory to scan, relative to the repository (repeatable; defaults to the whole tree).",
    )
    scan_parser.add_argument(
        "--report",
        default=None,
        metavar="PATH",
        help="Where to write the JSON report (defaults to .cruftscan/report.json).",
    )
    scan_parser.add_argument(
        "--no-report",
        action="store_true",
        help="Print the summary only; do not write the JSON report.",
    )
    scan_parser.add_argument(
        "--top",
        type=int,
        default=None,
        help="Number of cleanup candidates listed in the summary.",
    )
    scan_parser.add_argument(
        "--time-budget",
        type=_positive_float,
        default=None,
        metavar="SECONDS",
        help="Stop starting new work after this many seconds; the report is marked incomplete.",
    )
    scan_parser.add_argument(
        "--cleanup",
        action="store_true",
        help="List high-confidence untracked backup/copy files for deletion.",
    )
    scan_parser.add_argument(
        "--execute",
        action="store_true",
        help="Actually delete the files listed by --cleanup (default is a dry run).",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP scan service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for cruftscan commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    if args.command == "scan":
        if args.execute and not args.cleanup:
            parser.exit(1, "--execute requires --cleanup\n")
        _run_scan(parser, args)
    elif args.command == "serve":
        from .service.app import run_service

        run_service(host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_scan(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    orchestrator = Orchestrator()
    try:
        result = orchestrator.run_scan(
            args.path,
            roots=args.roots,
            time_budget=args.time_budget,
            write_report=not args.no_report,
            report_path=args.report,
        )
    except (FileNotFoundError, NotADirectoryError, PermissionError) as exc:
        parser.exit(1, f"{exc}\n")
    except ConfigError as exc:
        parser.exit(1, f"Invalid configuration: {exc}\n")

    print(orchestrator.render_summary(result, top=args.top), end="")
    if result.report_path is not None:
        print(f"Report written to {_relativize(result.report_path)}")

    if args.cleanup:
        outcome = execute_cleanup(result.root, result.classifications, dry_run=not args.execute)
        if not outcome.planned:
            print("Nothing to clean up")
        elif outcome.dry_run:
            print(f"Would delete {len(outcome.planned)} files (dry-run, pass --execute to delete):")
            for path in outcome.planned:
                print(f"  {path}")
        else:
            print(f"Deleted {len(outcome.deleted)} of {len(outcome.planned)} files")
            for path in outcome.failed:
                print(f"  could not delete {path}")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
