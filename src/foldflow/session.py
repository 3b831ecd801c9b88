"""
Collapsed-state holder for an interactive diagram view.

A view parses its source once per distinct text, starts with every subgraph
collapsed and flips individual subgraphs as the user clicks placeholders or
expanded headers. The click dispatch itself belongs to the caller: whatever
receives a click passes the subgraph id to ``toggle``.
"""

from typing import List, Optional, Set

from .collapser import Collapser
from .index import StructureIndex, default_collapsed
from .models import FlowchartModel, Subgraph
from .parser import Parser


class CollapsibleDiagram:
    """
    Parsed diagram plus the caller's current collapsed set.

    Example:
        >>> diagram = CollapsibleDiagram(source)
        >>> diagram.toggle("services")
        >>> text = diagram.render_source()
    """

    def __init__(self, source: str, collapser: Optional[Collapser] = None):
        """
        Args:
            source: Diagram text
            collapser: Collapser used by ``render_source`` (default settings
                when omitted)
        """
        self.parser = Parser()
        self.collapser = collapser or Collapser()
        self.source = source
        self.model: FlowchartModel = self.parser.parse(source)
        self.collapsed: Set[str] = default_collapsed(self.model)

    def update_source(self, source: str) -> bool:
        """
        Replace the diagram text.

        Re-parses and resets the collapsed set only when the text actually
        changed.

        Returns:
            True if the source changed.
        """
        if source == self.source:
            return False
        self.source = source
        self.model = self.parser.parse(source)
        self.collapsed = default_collapsed(self.model)
        return True

    @property
    def subgraphs(self) -> List[Subgraph]:
        return self.model.subgraphs

    def top_level(self) -> List[Subgraph]:
        return StructureIndex(self.model).top_level()

    def node_count(self, subgraph_id: str) -> int:
        return StructureIndex(self.model).node_count(subgraph_id)

    def is_collapsed(self, subgraph_id: str) -> bool:
        return subgraph_id in self.collapsed

    def toggle(self, subgraph_id: str) -> bool:
        """
        Flip one subgraph between collapsed and expanded.

        Unknown ids are ignored.

        Returns:
            The new collapsed state of the subgraph.
        """
        if self.model.get_subgraph(subgraph_id) is None:
            return False
        if subgraph_id in self.collapsed:
            self.collapsed.discard(subgraph_id)
        else:
            self.collapsed.add(subgraph_id)
        return subgraph_id in self.collapsed

    def collapse(self, subgraph_id: str) -> None:
        if self.model.get_subgraph(subgraph_id) is not None:
            self.collapsed.add(subgraph_id)

    def expand(self, subgraph_id: str) -> None:
        self.collapsed.discard(subgraph_id)

    def collapse_all(self) -> None:
        self.collapsed = default_collapsed(self.model)

    def expand_all(self) -> None:
        self.collapsed = set()

    def render_source(self, click_callback: Optional[str] = None) -> str:
        """
        Diagram text for the external renderer.

        Args:
            click_callback: Per-render callback name for placeholder click
                directives; overrides the collapser's own setting.
        """
        collapser = self.collapser
        if click_callback is not None:
            collapser = Collapser(
                indent=collapser.indent,
                placeholder_class=collapser.placeholder_class,
                click_callback=click_callback,
            )
        return collapser.rewrite(self.model, self.collapsed)
