"""Integration tests for parse-then-collapse scenarios.

These tests run complete diagrams through parsing, structural queries and
rewriting, and check the properties that hold for any collapsed set.
"""

import itertools

import pytest

from foldflow import (
    CollapsibleDiagram,
    count_nodes,
    hidden_node_index,
    list_children,
    list_top_level,
    parse,
    rewrite,
)
from foldflow.extractor import extract_edges, node_definition_id

ARCHITECTURE = """flowchart TD
    %% Request path
    Client([Browser]) --> LB{Load Balancer}
    subgraph edge["Edge Tier"]
        LB --> WEB1[Web 1]
        LB --> WEB2[Web 2]
    end
    subgraph app[Application]
        direction LR
        WEB1 & WEB2 --> API[[API]]
        subgraph workers[Workers]
            API -- enqueue --> Q[(Queue)]
            Q --> W1 & W2
        end
        API -->|read| DB[(Primary DB)]
    end
    W1 -.-> DB
    W2 -.-> DB
    DB --> REPORT>Reports]
    classDef hot fill:#f96
    class WEB1,WEB2 hot
    style Q stroke-width:2px
    click API callback"""


class TestSingleSubgraph:
    """Collapsing one subgraph with an internal and a crossing edge."""

    def test_parse_and_collapse(self, simple_source):
        model = parse(simple_source)
        assert [(s.id, s.node_ids, s.depth) for s in model.subgraphs] == [
            ("s1", ["A", "B"], 0)
        ]
        assert rewrite(model, {"s1"}) == (
            'flowchart TD\n    s1["▶ Layer • 2 items"]\n    C --> s1'
        )


class TestNestedSubgraphs:
    """Collapsing an outer subgraph versus only its child."""

    def test_collapse_outer_hides_both(self, nested_source):
        model = parse(nested_source)
        assert rewrite(model, {"outer"}) == (
            'flowchart TB\n    outer["▶ Outer • 4 items"]\n    Z --> outer'
        )

    def test_collapse_outer_and_inner_same_as_outer(self, nested_source):
        model = parse(nested_source)
        assert rewrite(model, {"outer", "inner"}) == rewrite(model, {"outer"})

    def test_collapse_inner_inside_expanded_outer(self, nested_source):
        model = parse(nested_source)
        assert rewrite(model, {"inner"}) == "\n".join(
            [
                "flowchart TB",
                "subgraph outer[Outer]",
                "  X[x] --> Y",
                '    inner["▶ Inner • 2 items"]',
                "end",
                "    Z --> inner",
            ]
        )


class TestNonFlowchart:
    """Diagrams without a flowchart header are left alone."""

    @pytest.mark.parametrize(
        "source",
        [
            "sequenceDiagram\n    Alice->>Bob: Hello",
            "classDiagram\n    Animal <|-- Duck",
            "subgraph s\nA --> B\nend",
            "",
        ],
    )
    def test_rewrite_is_noop(self, source):
        model = parse(source)
        assert not model.is_flowchart
        assert model.subgraphs == []
        assert rewrite(model, {"s", "anything"}) == source


class TestQuotedLabel:
    """Quoted-label subgraphs derive their id from the label."""

    def test_quoted_label(self):
        model = parse('flowchart LR\nsubgraph "My Layer"\nA --> B\nend\nC --> A')
        subgraph = model.subgraphs[0]
        assert (subgraph.id, subgraph.label) == ("my_layer", "My Layer")
        output = rewrite(model, {"my_layer"})
        assert 'my_layer["▶ My Layer • 2 items"]' in output
        assert output.endswith("    C --> my_layer")


class TestArchitectureDiagram:
    """A larger diagram exercising most statement forms."""

    @pytest.fixture
    def model(self):
        return parse(ARCHITECTURE)

    def test_structure(self, model):
        assert [s.id for s in list_top_level(model)] == ["edge", "app"]
        assert [s.id for s in list_children(model, "app")] == ["workers"]
        assert model.get_subgraph("edge").label == "Edge Tier"

    def test_counts(self, model):
        assert count_nodes(model, "edge") == 3
        assert count_nodes(model, "workers") == 4
        assert count_nodes(model, "app") == 8

    def test_collapse_all(self, model):
        output = rewrite(model, {"edge", "app", "workers"})
        assert output.split("\n") == [
            "flowchart TD",
            "    %% Request path",
            "    Client([Browser]) --> edge",
            '    edge["▶ Edge Tier • 3 items"]',
            '    app["▶ Application • 8 items"]',
            "    app --> REPORT>Reports]",
            "    classDef hot fill:#f96",
            "    click API callback",
        ]

    def test_collapse_workers_only(self, model):
        lines = rewrite(model, {"workers"}).split("\n")
        assert '    workers["▶ Workers • 4 items"]' in lines
        assert "    subgraph app[Application]" in lines
        assert "        direction LR" in lines
        assert lines[lines.index("        direction LR") + 1 : lines.index(
            '    workers["▶ Workers • 4 items"]'
        )] == ["    WEB1 --> workers", "    WEB2 --> workers"]
        assert "    workers --> |read| DB[(Primary DB)]" in lines
        assert "    style Q stroke-width:2px" not in lines
        assert "    click API callback" in lines

    def test_duplicates_removed_per_line_only(self, model):
        """Test that identical rewrites from separate lines are both kept."""
        lines = rewrite(model, {"workers"}).split("\n")
        assert lines.count("    workers -.-> DB") == 2

    def test_collapse_edge_only(self, model):
        lines = rewrite(model, {"edge"}).split("\n")
        assert "    Client([Browser]) --> edge" in lines
        assert "    edge --> API[[API]]" in lines
        assert "    class WEB1,WEB2 hot" not in lines


class TestProperties:
    """Properties that hold for every collapsed set."""

    @pytest.fixture(params=["simple", "nested", "layered", "architecture"])
    def source(self, request, simple_source, nested_source, layered_source):
        return {
            "simple": simple_source,
            "nested": nested_source,
            "layered": layered_source,
            "architecture": ARCHITECTURE,
        }[request.param]

    @staticmethod
    def collapsed_sets(model):
        ids = model.subgraph_ids
        for size in range(1, len(ids) + 1):
            for combo in itertools.combinations(ids, size):
                yield set(combo)

    def test_empty_set_is_identity(self, source):
        assert rewrite(parse(source), set()) == source

    def test_deterministic(self, source):
        model = parse(source)
        for collapsed in self.collapsed_sets(model):
            assert rewrite(model, collapsed) == rewrite(model, set(collapsed))

    def test_no_hidden_node_definitions(self, source):
        model = parse(source)
        for collapsed in self.collapsed_sets(model):
            hidden = hidden_node_index(model, collapsed)
            for line in rewrite(model, collapsed).split("\n"):
                assert node_definition_id(line) not in hidden

    def test_no_edge_touches_hidden_node(self, source):
        """Test that every surviving edge points at visible ids only."""
        model = parse(source)
        for collapsed in self.collapsed_sets(model):
            hidden = hidden_node_index(model, collapsed)
            for edge in extract_edges(rewrite(model, collapsed)):
                assert edge.source not in hidden
                assert edge.target not in hidden

    def test_rewriting_output_again_is_stable(self, source):
        model = parse(source)
        for collapsed in self.collapsed_sets(model):
            once = rewrite(model, collapsed)
            assert rewrite(parse(once), collapsed) == once

    def test_session_initial_render_collapses_everything(self, source):
        model = parse(source)
        diagram = CollapsibleDiagram(source)
        assert diagram.render_source() == rewrite(model, set(model.subgraph_ids))
