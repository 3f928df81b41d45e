"""CLI for mystindex - inspect how MyST documents are tokenized and indexed."""

import argparse
import json
import logging
import platform
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

from . import __version__
from .core.utils import path_to_uri
from .exceptions import MystIndexError
from .locate import folding_ranges, locate_target, token_to_dict
from .runtime import Runtime, build_runtime
from .watch import watch_project


def _open_file(rt: Runtime, path: Path):
    """Parse a file as an open document and return its snapshot."""
    uri = path_to_uri(path)
    text = path.read_text(encoding="utf-8")
    return rt.workspace.update_document(uri, text)


def cmd_tokens(args: argparse.Namespace, rt: Runtime) -> int:
    """Print the block tokens of a file."""
    snapshot = _open_file(rt, args.file)
    rows = [token_to_dict(i, t) for i, t in enumerate(snapshot.tokens)]
    if args.line is not None:
        wanted = set(snapshot.line_index[args.line])
        rows = [row for row in rows if row["index"] in wanted]

    if args.json:
        print(json.dumps(rows, indent=2, default=str))
        return 0

    for row in rows:
        span = row["span"]
        where = f"{span[0]}-{span[1]}" if span else "-"
        detail = (row.get("content") or row.get("info") or "").partition("\n")[0]
        print(f"{row['index']:>4}  {where:<9} {row['kind']:<20} {detail}".rstrip())
    return 0


def cmd_defs(args: argparse.Namespace, rt: Runtime) -> int:
    """Print the link reference definitions of a file."""
    snapshot = _open_file(rt, args.file)
    defs = list(rt.workspace.iter_definitions(snapshot.uri, distinct=not args.all))
    if args.json:
        print(json.dumps([asdict(d) for d in defs], indent=2))
        return 0
    for d in defs:
        title = f'\t"{d.title}"' if d.title else ""
        print(f"{d.key}\t{d.href}{title}")
    return 0


def cmd_folding(args: argparse.Namespace, rt: Runtime) -> int:
    """Print folding ranges (inclusive line pairs) for a file."""
    snapshot = _open_file(rt, args.file)
    ranges = folding_ranges(snapshot, rt.config.folding.tokens)
    if args.json:
        print(json.dumps([{"start": s, "end": e} for s, e in ranges], indent=2))
        return 0
    for start, end in ranges:
        print(f"{start}\t{end}")
    return 0


def cmd_targets(args: argparse.Namespace, rt: Runtime) -> int:
    """Scan the project and list targets."""
    def progress(done: int, total: int) -> None:
        if args.verbose and not args.quiet:
            print(f"\r{done}/{total}", end="", file=sys.stderr, flush=True)

    rt.workspace.analyze_project(rt.storage.iter_documents(), progress=progress)
    if args.verbose and not args.quiet:
        print(file=sys.stderr)

    if args.name:
        targets = locate_target(rt.workspace.targets, args.name)
        if not targets:
            if not args.quiet:
                print(f"Target {args.name} not found", file=sys.stderr)
            return 1
    else:
        targets = list(rt.workspace.iter_targets(distinct=not args.all))

    if args.json:
        print(json.dumps([asdict(t) for t in targets], indent=2))
        return 0
    for t in targets:
        line = "" if t.line is None else t.line
        print(f"{t.name}\t{t.uri}\t{line}")
    return 0


def cmd_watch(args: argparse.Namespace, rt: Runtime) -> int:
    """Watch project for changes."""
    return watch_project(
        rt.storage,
        rt.workspace,
        debounce_ms=args.debounce,
        quiet=args.quiet,
        json_output=args.json,
    )


def _version_string() -> str:
    return (
        f"mystindex {__version__} "
        f"(python {platform.python_version()}, platform {platform.system().lower()})"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mystidx", description="MyST document index"
    )
    parser.add_argument("--version", action="version", version=_version_string())
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: search cwd/myst.toml, root/myst.toml)",
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Project root directory (overrides config)",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Minimize output"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Debug logging"
    )
    parser.add_argument(
        "--json", action="store_true", help="Machine-readable output"
    )

    subparsers = parser.add_subparsers(dest="cmd", required=True)

    # tokens command
    parser_tokens = subparsers.add_parser("tokens", help="Print block tokens of a file")
    parser_tokens.add_argument("file", type=Path, help="Markdown file")
    parser_tokens.add_argument(
        "--line", type=int, default=None, help="Only tokens spanning this 0-based line"
    )

    # defs command
    parser_defs = subparsers.add_parser("defs", help="Print link reference definitions")
    parser_defs.add_argument("file", type=Path, help="Markdown file")
    parser_defs.add_argument(
        "--all", action="store_true", help="Include duplicate keys"
    )

    # folding command
    parser_folding = subparsers.add_parser("folding", help="Print folding ranges")
    parser_folding.add_argument("file", type=Path, help="Markdown file")

    # targets command
    parser_targets = subparsers.add_parser("targets", help="List project targets")
    parser_targets.add_argument("name", nargs="?", help="Only declarations of this name")
    parser_targets.add_argument(
        "--all", action="store_true", help="Include duplicate names"
    )

    # watch command
    parser_watch = subparsers.add_parser("watch", help="Watch project for changes")
    parser_watch.add_argument(
        "--debounce", type=int, default=150, help="Debounce window in milliseconds"
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    handlers: dict[str, Any] = {
        "tokens": cmd_tokens,
        "defs": cmd_defs,
        "folding": cmd_folding,
        "targets": cmd_targets,
        "watch": cmd_watch,
    }
    handler = handlers.get(args.cmd)
    if handler is None:
        print(f"Unknown command: {args.cmd}", file=sys.stderr)
        sys.exit(1)

    try:
        rt = build_runtime(root=args.root, config_path=args.config)
        exit_code = handler(args, rt)
    except (MystIndexError, OSError, UnicodeDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
