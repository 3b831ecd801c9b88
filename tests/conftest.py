"""Pytest configuration and shared fixtures for FoldFlow tests."""

import pytest

from foldflow import Collapser, Parser, parse

LAYERED_SOURCE = "\n".join(
    [
        "flowchart LR",
        "    %% services and storage",
        "    subgraph frontend[Frontend]",
        "        UI[Web UI] --> GW",
        "    end",
        "    subgraph backend[Backend Services]",
        "        GW[API Gateway] --> SVC",
        "        subgraph data[Data Layer]",
        "            SVC --> DB[(Postgres)]",
        "            CACHE{{Redis}}",
        "        end",
        "    end",
        "    User((User)) --> UI",
        "    SVC -.->|reads| CACHE",
        "    style DB fill:#f9f",
    ]
)


@pytest.fixture
def parser():
    """Default Parser instance."""
    return Parser()


@pytest.fixture
def collapser():
    """Default Collapser instance."""
    return Collapser()


@pytest.fixture
def simple_source():
    """One subgraph with an internal edge and an edge crossing into it."""
    return "flowchart TD\nsubgraph s1[Layer]\nA-->B\nend\nC-->A"


@pytest.fixture
def nested_source():
    """Outer subgraph containing an inner subgraph."""
    return "\n".join(
        [
            "flowchart TB",
            "subgraph outer[Outer]",
            "  X[x] --> Y",
            "  subgraph inner[Inner]",
            "    P --> Q",
            "  end",
            "end",
            "Z --> P",
        ]
    )


@pytest.fixture
def layered_source():
    """Three-tier diagram with nesting, comments, labels and a style line."""
    return LAYERED_SOURCE


@pytest.fixture
def layered_model():
    """Parsed layered diagram."""
    return parse(LAYERED_SOURCE)
