"""Command-line entry point for inspecting and restoring annotations.

Usage:
    hilitetag query doc.html                          # print spans as JSON
    hilitetag restore doc.html spans.json --tags tags.json [--output out.html]
    hilitetag map notes.md 10 25 --to-projection      # position mapping
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from hilitetag import setup_logging
from hilitetag.config import get_settings
from hilitetag.errors import HiliteError
from hilitetag.mapper import SourceMapper
from hilitetag.models import dump_spans, load_spans
from hilitetag.query import query_all
from hilitetag.restore import restore_spans
from hilitetag.tags import TagRegistry
from hilitetag.tree import ContentTree

console = Console()


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        console.print(f"[red]Error:[/] cannot read {path}: {exc.strerror}")
        sys.exit(1)


def _cmd_query(args: argparse.Namespace) -> None:
    tree = ContentTree(_read_text(args.document))
    spans = query_all(tree.root)
    if not spans:
        console.print("[yellow]No annotations found.[/]", highlight=False)
        return
    console.print_json(dump_spans(spans))


def _cmd_restore(args: argparse.Namespace) -> None:
    tree = ContentTree(_read_text(args.document))
    spans = load_spans(_read_text(args.spans))
    try:
        records = json.loads(_read_text(args.tags))
    except json.JSONDecodeError as exc:
        console.print(f"[red]Error:[/] {args.tags} is not valid JSON: {exc}")
        sys.exit(1)
    if not isinstance(records, list):
        console.print(f"[red]Error:[/] {args.tags} must hold a JSON array of tags")
        sys.exit(1)
    registry = TagRegistry.from_records(records)

    report = restore_spans(tree, spans, registry)

    if args.output is None:
        console.print(tree.html, markup=False, highlight=False)
    else:
        args.output.write_text(tree.html, encoding="utf-8")
        console.print(f"Wrote [bold]{args.output}[/]")
    colour = "yellow" if report.skipped else "green"
    console.print(
        f"[{colour}]Restored {report.restored} annotation(s), "
        f"skipped {report.skipped}[/]"
    )


def _cmd_map(args: argparse.Namespace) -> None:
    mapper = SourceMapper.from_markdown(
        _read_text(args.source), preset=get_settings().mapper.preset
    )
    if args.direction == "to-source":
        mapped = mapper.projection_to_source(args.start, args.end)
        text = mapper.source[mapped.start : mapped.end]
    else:
        mapped = mapper.source_to_projection(args.start, args.end)
        text = mapper.projection[mapped.start : mapped.end]

    table = Table(title=f"{args.start}..{args.end} {args.direction}")
    table.add_column("start", justify="right")
    table.add_column("end", justify="right")
    table.add_column("text")
    table.add_column("ambiguous")
    table.add_row(
        str(mapped.start),
        str(mapped.end),
        escape(repr(text)),
        "[yellow]yes[/]" if mapped.ambiguous else "no",
    )
    console.print(table)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hilitetag",
        description="Inspect, restore and map text-range annotations.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # query
    query_p = sub.add_parser("query", help="Print the spans of an annotated document")
    query_p.add_argument("document", type=Path, help="Annotated HTML file")
    query_p.set_defaults(handler=_cmd_query)

    # restore
    restore_p = sub.add_parser("restore", help="Apply stored spans to a document")
    restore_p.add_argument("document", type=Path, help="HTML file to annotate")
    restore_p.add_argument("spans", type=Path, help="JSON array of span records")
    restore_p.add_argument(
        "--tags", type=Path, required=True, help="JSON array of tag definitions"
    )
    restore_p.add_argument(
        "--output", type=Path, default=None, help="Write HTML here (default: stdout)"
    )
    restore_p.set_defaults(handler=_cmd_restore)

    # map
    map_p = sub.add_parser("map", help="Map offsets between markdown and its text")
    map_p.add_argument("source", type=Path, help="Markdown source file")
    map_p.add_argument("start", type=int, help="Range start (inclusive)")
    map_p.add_argument("end", type=int, help="Range end (exclusive)")
    direction = map_p.add_mutually_exclusive_group()
    direction.add_argument(
        "--to-source",
        dest="direction",
        action="store_const",
        const="to-source",
        help="Offsets are in the rendered text (default)",
    )
    direction.add_argument(
        "--to-projection",
        dest="direction",
        action="store_const",
        const="to-projection",
        help="Offsets are in the markdown source",
    )
    map_p.set_defaults(handler=_cmd_map, direction="to-source")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``hilitetag``."""
    args = _build_parser().parse_args(argv)

    log_config = get_settings().logging
    setup_logging(log_config.level, log_config.log_file)

    try:
        args.handler(args)
    except HiliteError as exc:
        console.print(f"[red]Error:[/] {escape(str(exc))}")
        sys.exit(1)


if __name__ == "__main__":
    main()
