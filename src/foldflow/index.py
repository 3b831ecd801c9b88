"""
Structural index over a parsed flowchart.

Uses networkx for:
- The subgraph forest (parent -> child edges)
- Descendant lookup for transitive node counts and hidden regions

All queries are read-only; an index can be rebuilt from a model at any time.
"""

from typing import Dict, Iterable, List, Optional, Set

import networkx as nx

from .models import FlowchartModel, Subgraph


class StructureIndex:
    """
    Read-only views over the subgraphs of one FlowchartModel.

    Graph nodes are subgraph ids. When an id is declared more than once,
    lookups by id resolve to the first declaration.
    """

    def __init__(self, model: FlowchartModel):
        self.model = model
        self.graph: nx.DiGraph = nx.DiGraph()
        self._first: Dict[str, Subgraph] = {}

        for subgraph in model.subgraphs:
            self._first.setdefault(subgraph.id, subgraph)
            self.graph.add_node(subgraph.id)

        for subgraph in model.subgraphs:
            if subgraph.parent_id is not None:
                self.graph.add_edge(subgraph.parent_id, subgraph.id)

    def get(self, subgraph_id: str) -> Optional[Subgraph]:
        return self._first.get(subgraph_id)

    def top_level(self) -> List[Subgraph]:
        """Subgraphs with depth 0."""
        return [s for s in self.model.subgraphs if s.depth == 0]

    def children(self, parent_id: str) -> List[Subgraph]:
        """Subgraphs whose immediate parent is ``parent_id``."""
        return [s for s in self.model.subgraphs if s.parent_id == parent_id]

    def descendants(self, subgraph_id: str) -> List[str]:
        """Ids of every subgraph nested below ``subgraph_id``, in declaration order."""
        if subgraph_id not in self.graph:
            return []
        below = nx.descendants(self.graph, subgraph_id)
        return [s for s in self._first if s in below]

    def node_count(self, subgraph_id: str) -> int:
        """
        Count nodes in a subgraph including all nested subgraphs.

        Returns 0 for an unknown id. A nested subgraph that reuses its
        ancestor's id shares that ancestor's graph node, so its nodes are
        not added; only the first declaration of the id is counted.
        """
        subgraph = self.get(subgraph_id)
        if subgraph is None:
            return 0
        count = len(subgraph.node_ids)
        for child_id in self.descendants(subgraph_id):
            count += len(self._first[child_id].node_ids)
        return count

    def ancestors_chain(self, subgraph_id: str) -> List[str]:
        """Ids from ``subgraph_id`` up to its top-level ancestor."""
        chain: List[str] = []
        current = self.get(subgraph_id)
        # A repeated id can name itself as parent once an unterminated
        # namesake is dropped; stop at the first repeat.
        while current is not None and current.id not in chain:
            chain.append(current.id)
            current = self.get(current.parent_id) if current.parent_id else None
        return chain

    def outermost_collapsed(
        self, subgraph_id: str, collapsed: Set[str]
    ) -> Optional[str]:
        """Outermost id in the ancestor chain (self included) that is collapsed."""
        outermost = None
        for ancestor_id in self.ancestors_chain(subgraph_id):
            if ancestor_id in collapsed:
                outermost = ancestor_id
        return outermost

    def collapsed_roots(self, collapsed: Iterable[str]) -> List[str]:
        """
        Collapsed ids not hidden inside another collapsed subgraph.

        Returned in declaration order so that rewrites are deterministic
        regardless of set iteration order.
        """
        collapsed = set(collapsed)
        return [
            subgraph_id
            for subgraph_id in self._first
            if subgraph_id in collapsed
            and self.outermost_collapsed(subgraph_id, collapsed) == subgraph_id
        ]


def list_top_level(model: FlowchartModel) -> List[Subgraph]:
    """Top-level subgraphs of a model."""
    return StructureIndex(model).top_level()


def list_children(model: FlowchartModel, parent_id: str) -> List[Subgraph]:
    """Direct child subgraphs of ``parent_id``."""
    return StructureIndex(model).children(parent_id)


def count_nodes(model: FlowchartModel, subgraph_id: str) -> int:
    """Transitive node count of a subgraph (0 if unknown)."""
    return StructureIndex(model).node_count(subgraph_id)


def default_collapsed(model: FlowchartModel) -> Set[str]:
    """Initial collapsed set for a freshly loaded diagram: every subgraph."""
    if not model.is_flowchart:
        return set()
    return set(model.subgraph_ids)
