"""CLI entrypoints for autoinclude commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict

from .config import AutoIncludeConfig, ConfigError, RootConfig, load_config
from .errors import DiscoveryError
from .host import RecordingHost
from .logging import configure_logging
from .models import DiscoveryResult
from .render import DSL_TEMPLATES, render_settings
from .resolver import AutoIncludeResolver


def _add_verbosity_options(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    default: object = argparse.SUPPRESS if suppress_default else False
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=default,
        help="Log every walk and classification decision.",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=default,
        help="Only log warnings and errors.",
    )


def _add_discovery_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Settings directory holding .autoinclude.yml (defaults to current directory).",
    )
    parser.add_argument(
        "--root",
        dest="roots",
        action="append",
        default=[],
        metavar="DIR",
        help="Discovery root; repeat for several. Replaces the configured roots.",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Additional exclusion pattern (gitignore syntax).",
    )
    parser.add_argument(
        "--marker",
        dest="markers",
        action="append",
        default=[],
        metavar="NAME",
        help="Marker file name; repeat for several. Replaces the configured markers.",
    )
    parser.add_argument(
        "--max-depth",
        type=_non_negative_int,
        default=None,
        help="Do not descend more than this many levels below each root.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write DEBUG logs to this file.",
    )


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from exc
    if number < 0:
        raise argparse.ArgumentTypeError("must be zero or greater")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="autoinclude",
        description="Discover build modules from directory markers and register them.",
    )
    _add_verbosity_options(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser(
        "scan",
        help="Run a discovery pass and list the modules it would include.",
    )
    _add_verbosity_options(scan_parser, suppress_default=True)
    _add_discovery_options(scan_parser)
    scan_parser.add_argument(
        "--json",
        action="store_true",
        help="Emit the discovery result as JSON.",
    )
    scan_parser.add_argument(
        "--show-rejected",
        action="store_true",
        help="Also list skipped directories with the reason.",
    )

    settings_parser = subparsers.add_parser(
        "settings",
        help="Render the include block for a settings script.",
    )
    _add_verbosity_options(settings_parser, suppress_default=True)
    _add_discovery_options(settings_parser)
    settings_parser.add_argument(
        "--dsl",
        choices=sorted(DSL_TEMPLATES),
        default="kotlin",
        help="Settings script flavour (default: kotlin).",
    )
    settings_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the include block to this file instead of stdout.",
    )

    return parser


def _apply_overrides(config: AutoIncludeConfig, args: argparse.Namespace) -> None:
    if args.roots:
        config.roots = [RootConfig(path=Path(root).expanduser().resolve()) for root in args.roots]
    if args.exclude:
        config.exclude = [*config.exclude, *args.exclude]
    if args.markers:
        config.markers = list(args.markers)
    if args.max_depth is not None:
        config.max_depth = args.max_depth


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for autoinclude commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(getattr(args, "verbose", False)),
        quiet=bool(getattr(args, "quiet", False)),
        log_file=args.log_file,
    )

    try:
        config = load_config(Path(args.path))
        _apply_overrides(config, args)
        resolver = AutoIncludeResolver.from_config(config)
        host = RecordingHost()
        result = resolver.run(config.root_specs(), host)
    except ConfigError as exc:
        parser.exit(1, f"autoinclude: invalid configuration: {exc}\n")
    except (DiscoveryError, ValueError) as exc:
        parser.exit(1, f"autoinclude {args.command} failed: {exc}\n")

    if args.command == "scan":
        if args.json:
            print(json.dumps(_result_payload(result), indent=2))
        else:
            _print_scan(result, show_rejected=bool(args.show_rejected))
    elif args.command == "settings":
        rendered = render_settings(result.accepted, config.root, dsl=args.dsl)
        if args.output is None:
            sys.stdout.write(rendered)
        else:
            try:
                args.output.write_text(rendered, encoding="utf-8")
            except OSError as exc:
                reason = exc.strerror or str(exc)
                parser.exit(
                    1, f"autoinclude settings failed: cannot write {args.output}: {reason}\n"
                )
            print(f"Wrote {len(result.accepted)} include(s) to {args.output}")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _print_scan(result: DiscoveryResult, *, show_rejected: bool) -> None:
    for module in result.accepted:
        print(f"{module.project_path} -> {module.directory}")
    if show_rejected:
        for rejection in result.rejected:
            detail = f": {rejection.detail}" if rejection.detail else ""
            print(f"skipped {rejection.path} ({rejection.reason.value}{detail})")
    print(result.summary())


def _result_payload(result: DiscoveryResult) -> Dict[str, Any]:
    return {
        "modules": [
            {
                "logical_path": module.logical_path,
                "project_path": module.project_path,
                "directory": str(module.directory),
                "root": str(module.root.path),
                "marker": module.marker,
            }
            for module in result.accepted
        ],
        "rejected": [
            {
                "path": str(rejection.path),
                "reason": rejection.reason.value,
                "detail": rejection.detail,
            }
            for rejection in result.rejected
        ],
        "summary": {
            "discovered": result.discovered,
            "accepted": len(result.accepted),
            "rejected": len(result.rejected),
        },
    }


if __name__ == "__main__":
    main(sys.argv[1:])
