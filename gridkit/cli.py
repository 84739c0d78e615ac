"""Command-line tools for inspecting gridkit table setups.

Commands:
    gridkit defaults [FEATURE ...] [--format text|json|toml|env] [-o FILE]
        Engine configuration each feature starts from once every settings
        layer is applied. ``toml`` and ``env`` export the full settings.
    gridkit sources
        Config files consulted, in precedence order, and whether they exist.
    gridkit compose --features sorting,pagination [--rows FILE] [--columns a,b]
        Grid options (and optionally toolbar items) for a table built with
        the given features.
"""

from __future__ import annotations

import argparse
import json
import os
import sys

from pathlib import Path
from typing import Any

from .composer import FEATURE_ORDER


def _feature_name(value: str) -> str:
    name = value.strip().replace("-", "_")
    if name not in FEATURE_ORDER:
        raise argparse.ArgumentTypeError(
            f"unknown feature '{value}' (choose from {', '.join(FEATURE_ORDER)})"
        )
    return name


def _feature_list(value: str) -> list[str]:
    return [_feature_name(part) for part in value.split(",") if part.strip()]


def _csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the ``gridkit`` command."""
    parser = argparse.ArgumentParser(
        prog="gridkit",
        description="Inspect gridkit feature defaults and composed table options",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    defaults_parser = subparsers.add_parser(
        "defaults",
        help="Show the configuration feature engines start from",
    )
    defaults_parser.add_argument(
        "features",
        nargs="*",
        type=_feature_name,
        metavar="FEATURE",
        help=f"Features to show (default: all). One of: {', '.join(FEATURE_ORDER)}",
    )
    defaults_parser.add_argument(
        "--format",
        choices=["text", "json", "toml", "env"],
        default="text",
        help="Output format (default: text)",
    )
    defaults_parser.add_argument(
        "--output",
        "-o",
        type=str,
        help="Output file path (default: stdout)",
    )

    subparsers.add_parser("sources", help="List configuration files and their status")

    compose_parser = subparsers.add_parser(
        "compose",
        help="Print the grid options for a table with the given features",
    )
    compose_parser.add_argument(
        "--features",
        type=_feature_list,
        default=[],
        help="Comma-separated features to enable",
    )
    compose_parser.add_argument(
        "--rows",
        type=Path,
        help="JSON file holding a list of row objects",
    )
    compose_parser.add_argument(
        "--columns",
        type=_csv,
        help="Comma-separated column fields (default: keys of the first row)",
    )
    compose_parser.add_argument(
        "--id-field",
        default="id",
        help="Row field holding the row id (default: id)",
    )
    compose_parser.add_argument(
        "--toolbar",
        action="store_true",
        help="Include the toolbar items",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the main CLI entry point.

    Returns
    -------
    int
        Exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "defaults":
        return handle_defaults(args)
    if args.command == "sources":
        return handle_sources(args)
    if args.command == "compose":
        return handle_compose(args)
    parser.print_help()
    return 0


def _write(text: str, output: str | None) -> None:
    if output:
        Path(output).write_text(text, encoding="utf-8")
        print(f"Written to {output}")
    else:
        print(text)


def feature_defaults(names: list[str] | None = None) -> dict[str, dict[str, Any]]:
    """Resolved engine configuration per feature, keyed by feature name."""
    from .models import RowIdentity
    from .session import build_feature

    identity = RowIdentity.from_field("id")
    result: dict[str, dict[str, Any]] = {}
    for name in names or FEATURE_ORDER:
        engine = build_feature(name, True, identity)
        try:
            result[name] = engine.config.model_dump(mode="json")
        finally:
            engine.close()
    return result


def format_defaults(defaults: dict[str, dict[str, Any]]) -> str:
    """Render feature defaults as an indented listing."""
    lines: list[str] = []
    for name, values in defaults.items():
        lines.append(name)
        lines.extend(f"  {key:24} = {value}" for key, value in values.items())
        lines.append("")
    return "\n".join(lines).rstrip("\n")


def handle_defaults(args: argparse.Namespace) -> int:
    """Handle the defaults command."""
    from .config import get_settings

    if args.format == "toml":
        text = get_settings().to_toml()
    elif args.format == "env":
        text = get_settings().to_env()
    else:
        defaults = feature_defaults(args.features)
        text = json.dumps(defaults, indent=2) if args.format == "json" else format_defaults(defaults)
    _write(text, args.output)
    return 0


def handle_sources(args: argparse.Namespace) -> int:  # pylint: disable=unused-argument
    """Handle the sources command."""
    from .config import config_sources

    print("Configuration sources (later ones override earlier ones):\n")
    for label, path in config_sources():
        status = "found" if path.exists() else "missing"
        print(f"  {label:32} {status:8} {path}")

    env_vars = sorted(k for k in os.environ if k.startswith("GRIDKIT_") and k != "GRIDKIT_CONFIG_FILE")
    print(f"  {'environment':32} {len(env_vars):<8} {', '.join(env_vars)}".rstrip())
    return 0


def handle_compose(args: argparse.Namespace) -> int:
    """Handle the compose command."""
    from .exceptions import GridKitException
    from .models import RowIdentity
    from .session import TableSession

    rows: list[Any] = []
    if args.rows is not None:
        try:
            rows = json.loads(args.rows.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            print(f"Error: cannot read rows from {args.rows}: {e}", file=sys.stderr)
            return 1
        if not isinstance(rows, list):
            print(f"Error: {args.rows} must hold a JSON list of rows", file=sys.stderr)
            return 1

    columns = args.columns
    if columns is None:
        columns = list(rows[0]) if rows and isinstance(rows[0], dict) else []

    specs = {name: True for name in args.features}
    try:
        with TableSession(RowIdentity.from_field(args.id_field), **specs) as session:
            table = session.compose(rows, columns)
            result: dict[str, Any] = {"gridOptions": table.grid_props}
            if args.toolbar:
                result["toolbar"] = [
                    item.model_dump(mode="json", by_alias=True, exclude_none=True)
                    for item in table.toolbar().items
                ]
    except GridKitException as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
