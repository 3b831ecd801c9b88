"""
Collapse rewriter.

Produces a reduced flowchart source in which each outermost collapsed
subgraph is replaced by a single placeholder node. Nested content is
elided, edges crossing a collapse boundary are re-pointed at the
placeholder, and edges entirely inside one collapsed region are dropped.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set

from .extractor import node_definition_pieces, parse_edge_line
from .index import StructureIndex
from .lexer import Line, LineKind, tokenize
from .models import Edge, FlowchartModel, Subgraph
from .tracer import DROP, EMIT, PLACEHOLDER, REWRITE, RewriteTrace

logger = logging.getLogger(__name__)

PLACEHOLDER_MARKER = "▶"
PLACEHOLDER_SEPARATOR = "•"


def item_text(count: int) -> str:
    """'1 item' / 'N items'."""
    return "1 item" if count == 1 else f"{count} items"


def placeholder_line(
    subgraph: Subgraph,
    count: int,
    indent: str = "    ",
    css_class: Optional[str] = None,
) -> str:
    """
    Node line standing in for a collapsed subgraph.

    Double quotes in the label become single quotes so the label can sit
    inside the quoted node text.
    """
    label = subgraph.label.replace('"', "'")
    line = (
        f'{indent}{subgraph.id}["{PLACEHOLDER_MARKER} {label} '
        f'{PLACEHOLDER_SEPARATOR} {item_text(count)}"]'
    )
    if css_class:
        line += f":::{css_class}"
    return line


def hidden_node_index(
    model: FlowchartModel,
    collapsed: Iterable[str],
    index: Optional[StructureIndex] = None,
) -> Dict[str, str]:
    """
    Map every id inside a collapsed region to its outermost collapsed root.

    Covers direct node ids of the root, node ids of every nested subgraph
    and the nested subgraph ids themselves. Collapsed subgraphs inside an
    already collapsed ancestor add no mappings of their own.
    """
    index = index or StructureIndex(model)
    hidden: Dict[str, str] = {}

    for root in index.collapsed_roots(collapsed):
        for node_id in index.get(root).node_ids:
            hidden[node_id] = root
        for child_id in index.descendants(root):
            hidden[child_id] = root
            for node_id in index.get(child_id).node_ids:
                hidden[node_id] = root

    return hidden


class Collapser:
    """
    Rewrite flowchart source with selected subgraphs collapsed.

    Example:
        >>> model = parse(source)
        >>> collapser = Collapser(click_callback="toggleSubgraph")
        >>> print(collapser.rewrite(model, {"services"}))
    """

    def __init__(
        self,
        indent: str = "    ",
        placeholder_class: Optional[str] = None,
        click_callback: Optional[str] = None,
    ):
        """
        Initialize the collapser.

        Args:
            indent: Prefix for placeholder, rewritten edge and click lines
            placeholder_class: Optional ``:::class`` appended to placeholders
            click_callback: Callback name for ``click <id> <callback>``
                directives on placeholders; none are emitted when unset
        """
        self.indent = indent
        self.placeholder_class = placeholder_class
        self.click_callback = click_callback
        self._trace: Optional[RewriteTrace] = None

    def get_trace(self) -> Optional[RewriteTrace]:
        """Trace of the last ``rewrite(..., debug=True)`` call."""
        return self._trace

    def rewrite(
        self,
        model: FlowchartModel,
        collapsed: Iterable[str],
        debug: bool = False,
    ) -> str:
        """
        Produce diagram source with the collapsed subgraphs folded away.

        Args:
            model: Parse result for the diagram
            collapsed: Subgraph ids to collapse
            debug: Record a RewriteTrace retrievable via ``get_trace()``

        Returns:
            Rewritten source; the original text when nothing is collapsed
            or the model is not a flowchart.
        """
        collapsed_ids: Set[str] = set(collapsed)
        trace = RewriteTrace(source=model.source, collapsed=sorted(collapsed_ids))
        self._trace = trace if debug else None

        if not collapsed_ids or not model.is_flowchart:
            return model.source

        index = StructureIndex(model)
        roots = set(index.collapsed_roots(collapsed_ids))
        hidden = hidden_node_index(model, collapsed_ids, index)
        trace.roots = index.collapsed_roots(collapsed_ids)
        trace.hidden = dict(hidden)

        records = {subgraph.start_index: subgraph for subgraph in model.subgraphs}
        output: List[str] = [model.header]
        placeholders: List[str] = []

        suppress_depth = 0
        # One entry per visible open line: was it emitted?
        open_stack: List[bool] = []

        def decide(line: Line, action: str, reason: str, emitted: List[str]):
            output.extend(emitted)
            trace.add_decision(line.number, action, reason, line.text, emitted)

        for line in tokenize(model.source):
            kind = line.kind

            if kind is LineKind.HEADER:
                decide(line, DROP, "header", [])

            elif suppress_depth:
                if kind is LineKind.SUBGRAPH_OPEN:
                    suppress_depth += 1
                elif kind is LineKind.SUBGRAPH_CLOSE:
                    suppress_depth -= 1
                decide(line, DROP, "inside_collapsed", [])

            elif kind is LineKind.SUBGRAPH_OPEN:
                subgraph_id = line.subgraph_id or ""
                record = records.get(line.offset)
                parent_id = record.parent_id if record else None

                if subgraph_id in roots and record is not None:
                    count = index.node_count(subgraph_id)
                    placeholder = placeholder_line(
                        record, count, self.indent, self.placeholder_class
                    )
                    placeholders.append(subgraph_id)
                    suppress_depth = 1
                    decide(line, PLACEHOLDER, "collapsed_root", [placeholder])
                elif subgraph_id in collapsed_ids or parent_id in collapsed_ids:
                    open_stack.append(False)
                    decide(line, DROP, "covered_by_ancestor", [])
                else:
                    open_stack.append(True)
                    decide(line, EMIT, "expanded_subgraph", [line.text])

            elif kind is LineKind.SUBGRAPH_CLOSE:
                if not open_stack:
                    decide(line, EMIT, "unmatched_end", [line.text])
                elif open_stack.pop():
                    decide(line, EMIT, "expanded_subgraph", [line.text])
                else:
                    decide(line, DROP, "covered_by_ancestor", [])

            elif kind is LineKind.DIRECTIVE:
                if line.targets and all(t in hidden for t in line.targets):
                    decide(line, DROP, "hidden_target", [])
                else:
                    decide(line, EMIT, "directive", [line.text])

            elif kind is LineKind.STATEMENT:
                self._rewrite_statement(line, hidden, decide)

            else:
                decide(line, EMIT, kind.value, [line.text])

        if self.click_callback and placeholders:
            output.append("")
            for subgraph_id in placeholders:
                output.append(f"{self.indent}click {subgraph_id} {self.click_callback}")

        logger.debug(
            "Collapsed %d root(s), %d hidden id(s)", len(placeholders), len(hidden)
        )
        return "\n".join(output)

    def _rewrite_statement(self, line: Line, hidden: Dict[str, str], decide) -> None:
        """Handle an edge or node-definition line outside collapsed regions."""
        edges = parse_edge_line(line.text)

        if not edges:
            pieces = node_definition_pieces(line.text)
            if not any(node_id in hidden for node_id, _ in pieces):
                decide(line, EMIT, "statement", [line.text])
                return
            kept = [text for node_id, text in pieces if text and node_id not in hidden]
            if kept:
                decide(line, REWRITE, "hidden_node", [self.indent + " & ".join(kept)])
            else:
                decide(line, DROP, "hidden_node", [])
            return

        rewritten: List[str] = []
        seen = set()
        changed = False

        for edge in edges:
            source = hidden.get(edge.source, edge.source)
            target = hidden.get(edge.target, edge.target)

            if edge.source in hidden and edge.target in hidden and source == target:
                changed = True
                continue
            if source != edge.source or target != edge.target:
                changed = True
            if (source, target) in seen:
                changed = True
                continue
            seen.add((source, target))
            rewritten.append(self._format_edge(edge, source, target))

        if not changed:
            decide(line, EMIT, "edge", [line.text])
        elif rewritten:
            decide(line, REWRITE, "edge_rewritten", rewritten)
        else:
            decide(line, DROP, "internal_edge", [])

    def _format_edge(self, edge: Edge, source: str, target: str) -> str:
        # Endpoints that were not remapped keep their inline shape text
        source_text = edge.source_text if source == edge.source else source
        target_text = edge.target_text if target == edge.target else target
        label = f"|{edge.label}| " if edge.label else ""
        return (
            f"{self.indent}{source_text or source} {edge.style} "
            f"{label}{target_text or target}"
        )


def rewrite(
    model: FlowchartModel,
    collapsed: Iterable[str],
    indent: str = "    ",
    placeholder_class: Optional[str] = None,
    click_callback: Optional[str] = None,
) -> str:
    """
    Convenience function to collapse subgraphs in a parsed flowchart.

    Args:
        model: Parse result for the diagram
        collapsed: Subgraph ids to collapse
        indent: Prefix for generated lines
        placeholder_class: Optional ``:::class`` for placeholders
        click_callback: Callback name for placeholder click directives

    Returns:
        Rewritten diagram source
    """
    collapser = Collapser(
        indent=indent,
        placeholder_class=placeholder_class,
        click_callback=click_callback,
    )
    return collapser.rewrite(model, collapsed)
