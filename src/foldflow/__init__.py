"""
FoldFlow - Collapsible subgraphs for Mermaid flowcharts

A Python library that parses flowchart source into a subgraph hierarchy and
rewrites it with selected subgraphs folded into placeholder nodes.

Example:
    >>> from foldflow import parse, rewrite
    >>> model = parse('''flowchart TD
    ... subgraph s1[Layer]
    ... A-->B
    ... end
    ... C-->A''')
    >>> print(rewrite(model, {"s1"}))
    flowchart TD
        s1["▶ Layer • 2 items"]
        C --> s1

Debug Mode Example:
    >>> collapser = Collapser()
    >>> text = collapser.rewrite(model, {"s1"}, debug=True)
    >>> print(collapser.get_trace().summary())
"""

from .collapser import Collapser, hidden_node_index, placeholder_line, rewrite
from .extractor import extract_edges, extract_node_ids, parse_edge_line
from .index import (
    StructureIndex,
    count_nodes,
    default_collapsed,
    list_children,
    list_top_level,
)
from .lexer import Line, LineKind, classify_line, tokenize
from .models import Edge, FlowchartModel, Subgraph
from .parser import Parser, parse
from .session import CollapsibleDiagram
from .tracer import LineDecision, RewriteTrace

__version__ = "0.1.0"

__all__ = [
    # Main API
    "parse",
    "rewrite",
    "list_top_level",
    "list_children",
    "count_nodes",
    "default_collapsed",
    # Parser
    "Parser",
    "FlowchartModel",
    "Subgraph",
    "Edge",
    # Lexer / extractor
    "Line",
    "LineKind",
    "classify_line",
    "tokenize",
    "extract_node_ids",
    "extract_edges",
    "parse_edge_line",
    # Structure and rewriting
    "StructureIndex",
    "Collapser",
    "hidden_node_index",
    "placeholder_line",
    "CollapsibleDiagram",
    # Debug/Tracing
    "RewriteTrace",
    "LineDecision",
]
