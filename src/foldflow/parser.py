"""
Parser module for flowchart structure.

Handles parsing of diagram source into a FlowchartModel: the flow
direction, every subgraph with its hierarchy, and every edge.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from .extractor import edges_from_lines, node_ids_from_lines
from .lexer import Line, LineKind, find_header, tokenize
from .models import FlowchartModel, Subgraph

logger = logging.getLogger(__name__)


@dataclass
class _Frame:
    """An open subgraph waiting for its ``end``."""

    id: str
    label: str
    start_index: int
    depth: int
    parent_id: Optional[str]
    position: int  # index of the declaration in the token list


def direct_lines(body: List[Line]) -> List[Line]:
    """Drop nested subgraph blocks, keeping only top-level lines of a body."""
    kept: List[Line] = []
    depth = 0
    for line in body:
        if line.kind is LineKind.SUBGRAPH_OPEN:
            depth += 1
        elif line.kind is LineKind.SUBGRAPH_CLOSE and depth:
            depth -= 1
        elif depth == 0:
            kept.append(line)
    return kept


class Parser:
    """Parses flowchart source into subgraphs, edges and direction."""

    def parse(self, source: str) -> FlowchartModel:
        """
        Parse diagram source.

        Input without a graph/flowchart header is not an error: the result
        has ``is_flowchart=False`` and no subgraphs or edges.

        Args:
            source: Raw diagram text.

        Returns:
            FlowchartModel for the source.
        """
        lines = tokenize(source)
        header = find_header(lines)

        if header is None:
            logger.debug("No flowchart header found; treating input as opaque")
            return FlowchartModel(is_flowchart=False, direction="", source=source)

        return FlowchartModel(
            is_flowchart=True,
            direction=header.direction or "",
            subgraphs=self.build_subgraphs(lines),
            edges=edges_from_lines(lines),
            source=source,
            header=header.header or "",
        )

    def build_subgraphs(self, lines: List[Line]) -> List[Subgraph]:
        """
        Build the subgraph forest from classified lines.

        Uses a stack of open frames; a frame becomes a Subgraph when its
        ``end`` is reached. Extra ``end`` lines are ignored and frames still
        open at the end of input are dropped.

        Args:
            lines: Output of ``tokenize`` for the whole source.

        Returns:
            Subgraphs sorted by declaration offset.
        """
        stack: List[_Frame] = []
        subgraphs: List[Subgraph] = []

        for position, line in enumerate(lines):
            if line.kind is LineKind.SUBGRAPH_OPEN:
                stack.append(
                    _Frame(
                        id=line.subgraph_id or "",
                        label=line.label or line.subgraph_id or "",
                        start_index=line.offset,
                        depth=len(stack),
                        parent_id=stack[-1].id if stack else None,
                        position=position,
                    )
                )
                continue

            if line.kind is not LineKind.SUBGRAPH_CLOSE:
                continue

            if not stack:
                logger.debug("Ignoring unmatched 'end' on line %d", line.number)
                continue

            frame = stack.pop()
            body = direct_lines(lines[frame.position + 1 : position])
            subgraphs.append(
                Subgraph(
                    id=frame.id,
                    label=frame.label,
                    content="\n".join(body_line.text for body_line in body).strip(),
                    node_ids=node_ids_from_lines(body),
                    start_index=frame.start_index,
                    end_index=line.end_offset,
                    depth=frame.depth,
                    parent_id=frame.parent_id,
                )
            )

        if stack:
            logger.debug(
                "Dropping %d unterminated subgraph(s): %s",
                len(stack),
                ", ".join(frame.id for frame in stack),
            )

        # Inner blocks close first; restore declaration order
        subgraphs.sort(key=lambda subgraph: subgraph.start_index)
        return subgraphs


def parse(source: str) -> FlowchartModel:
    """
    Convenience function to parse flowchart source.

    Args:
        source: Raw diagram text

    Returns:
        FlowchartModel for the source
    """
    parser = Parser()
    return parser.parse(source)
