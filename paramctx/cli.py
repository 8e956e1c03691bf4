"""
CLI commands for paramctx.

Commands:
- paramctx annotate: Show the injected parameter names of a callable
"""

import sys
import argparse
import importlib
import json
from typing import Any, List, Optional


def load_target(target: str) -> Any:
    """
    Import ``module.path:attr.path`` and return the attribute.

    Raises:
        ValueError: If the target has no ``:`` separator
        ImportError, AttributeError: If the target cannot be loaded
    """
    if ":" not in target:
        raise ValueError(f"Expected 'module:attribute', got {target!r}")

    module_path, attr_path = target.split(":", 1)
    obj = importlib.import_module(module_path)
    for part in attr_path.split("."):
        obj = getattr(obj, part)
    return obj


def cmd_annotate(args) -> int:
    """
    Print the parameter names a callable would receive.

    Exit codes: 0 on success, 1 if the target cannot be loaded or parsed.
    """
    from .core import Context
    from .errors import SignatureParseError

    try:
        target = load_target(args.target)
    except (ValueError, ImportError, AttributeError) as e:
        print(f"❌ Cannot load {args.target}: {e}", file=sys.stderr)
        return 1

    context = Context(callback=args.callback or None)
    try:
        annotation = context.annotation(target)
    except SignatureParseError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps({
            "target": args.target,
            "names": list(annotation.names),
            "callback": annotation.callback,
            "keyword_only": sorted(annotation.keyword_only),
        }, indent=2))
        return 0

    print(f"🔍 {args.target}")
    if not annotation.names:
        print("  (no parameters)")
    for name in annotation.names:
        marker = ""
        if name == annotation.callback:
            marker = "  ← callback"
        elif name in annotation.keyword_only:
            marker = "  (keyword-only)"
        print(f"  - {name}{marker}")

    return 0


def setup_commands(subparsers):
    """
    Setup paramctx subcommands.

    Args:
        subparsers: ArgumentParser subparsers object
    """
    parser_annotate = subparsers.add_parser(
        "annotate",
        help="Show injected parameter names of a callable",
    )
    parser_annotate.add_argument(
        "target",
        help="Callable to inspect, as module.path:attribute",
    )
    parser_annotate.add_argument(
        "--callback",
        action="append",
        metavar="NAME",
        help="Callback parameter name (repeatable, default: callback)",
    )
    parser_annotate.add_argument(
        "--json",
        action="store_true",
        help="Emit JSON instead of text",
    )
    parser_annotate.set_defaults(func=cmd_annotate)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="paramctx",
        description="Inspect callables the way a paramctx Context sees them",
    )
    subparsers = parser.add_subparsers(dest="command")
    setup_commands(subparsers)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "func", None):
        parser.print_help()
        return 2

    return args.func(args)
