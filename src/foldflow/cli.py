"""
Command-line interface.

    foldflow outline diagram.mmd
    foldflow collapse diagram.mmd --collapse services --collapse data
    foldflow collapse diagram.mmd --all --click toggleSubgraph
"""

import argparse
import logging
import sys
from typing import List, Optional

from .collapser import Collapser
from .index import StructureIndex, default_collapsed
from .models import FlowchartModel
from .parser import parse


def _read_source(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def format_outline(model: FlowchartModel) -> str:
    """Indented subgraph tree with transitive node counts."""
    if not model.is_flowchart:
        return "(not a flowchart)"

    index = StructureIndex(model)
    lines = [f"direction: {model.direction}"]
    for subgraph in model.subgraphs:
        count = index.node_count(subgraph.id)
        noun = "node" if count == 1 else "nodes"
        label = f" [{subgraph.label}]" if subgraph.label != subgraph.id else ""
        lines.append(f"{'  ' * subgraph.depth}- {subgraph.id}{label} ({count} {noun})")
    if not model.subgraphs:
        lines.append("(no subgraphs)")
    return "\n".join(lines)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="foldflow",
        description="Inspect and collapse subgraphs in Mermaid flowcharts.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    outline = commands.add_parser("outline", help="Print the subgraph tree")
    outline.add_argument("file", help="Diagram file, or '-' for stdin")

    collapse = commands.add_parser(
        "collapse", help="Print the diagram with subgraphs collapsed"
    )
    collapse.add_argument("file", help="Diagram file, or '-' for stdin")
    collapse.add_argument(
        "-c",
        "--collapse",
        action="append",
        default=[],
        metavar="ID",
        help="Subgraph id to collapse (repeatable)",
    )
    collapse.add_argument(
        "--all", action="store_true", help="Collapse every subgraph"
    )
    collapse.add_argument(
        "--click",
        metavar="CALLBACK",
        default=None,
        help="Emit 'click <id> CALLBACK' directives for placeholders",
    )
    collapse.add_argument(
        "--placeholder-class",
        metavar="CLASS",
        default=None,
        help="Append ':::CLASS' to placeholder nodes",
    )
    collapse.add_argument(
        "--trace",
        action="store_true",
        help="Print the rewrite trace to stderr",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entrypoint."""
    args = build_arg_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        source = _read_source(args.file)
    except OSError as e:
        print(f"foldflow: cannot read {args.file}: {e}", file=sys.stderr)
        return 1

    model = parse(source)

    if args.command == "outline":
        print(format_outline(model))
        return 0

    collapsed = set(args.collapse)
    if args.all:
        collapsed |= default_collapsed(model)

    collapser = Collapser(
        placeholder_class=args.placeholder_class, click_callback=args.click
    )
    print(collapser.rewrite(model, collapsed, debug=args.trace))

    trace = collapser.get_trace()
    if trace is not None:
        print(trace.dump(), file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
