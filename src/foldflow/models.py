"""
Data models for flowchart structure.

This module contains the dataclasses produced by parsing a flowchart and
consumed by the structural index and the collapse rewriter. All of them are
treated as immutable once a parse finishes: a new source text always gets a
new model.

Classes:
    Edge: A single connection between two node identifiers.
    Subgraph: A named, collapsible grouping of nodes and nested subgraphs.
    FlowchartModel: The complete parse result for one diagram source.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Edge:
    """
    A connection parsed from an edge statement.

    Chained (``A --> B --> C``) and parallel (``A & B --> C``) statements
    yield one Edge per source/target pair, all sharing the same line.

    Attributes:
        source: Source node id as written.
        target: Target node id as written.
        style: Connector token with any inline text removed (e.g. "-->").
        label: Edge label from ``|label|`` or from text on the arrow.
        line: The original source line.
        source_text: Source endpoint as written, including any shape.
        target_text: Target endpoint as written, including any shape.
    """

    source: str
    target: str
    style: str = "-->"
    label: Optional[str] = None
    line: str = ""
    source_text: str = ""
    target_text: str = ""


@dataclass
class Subgraph:
    """
    A subgraph block found in the source.

    Attributes:
        id: Identifier, explicit or sanitized from a quoted label.
        label: Display label; defaults to the id.
        content: Text between the declaration and its ``end``, with nested
            subgraph blocks removed.
        node_ids: Direct child node ids in order of first appearance.
        start_index: Offset of the declaration line in the source.
        end_index: Offset just past the closing ``end`` line.
        depth: Nesting level, 0 for top-level subgraphs.
        parent_id: Id of the enclosing subgraph, if any.
    """

    id: str
    label: str
    content: str = ""
    node_ids: List[str] = field(default_factory=list)
    start_index: int = 0
    end_index: int = 0
    depth: int = 0
    parent_id: Optional[str] = None


@dataclass
class FlowchartModel:
    """
    Result of parsing a diagram source.

    Attributes:
        is_flowchart: Whether a graph/flowchart header was found.
        direction: Flow direction of the first header ("" if none).
        subgraphs: Subgraphs ordered by their declaration offset.
        edges: Every edge statement in the source.
        source: The original source text.
        header: Header line the rewriter emits, e.g. "flowchart TD".
    """

    is_flowchart: bool = False
    direction: str = ""
    subgraphs: List[Subgraph] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    source: str = ""
    header: str = ""

    def get_subgraph(self, subgraph_id: str) -> Optional[Subgraph]:
        """Return the first subgraph declared with this id."""
        for subgraph in self.subgraphs:
            if subgraph.id == subgraph_id:
                return subgraph
        return None

    @property
    def subgraph_ids(self) -> List[str]:
        """Distinct subgraph ids in declaration order."""
        seen: List[str] = []
        for subgraph in self.subgraphs:
            if subgraph.id not in seen:
                seen.append(subgraph.id)
        return seen
