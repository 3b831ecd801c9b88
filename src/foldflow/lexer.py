"""
Line classifier for flowchart source.

Every line of a diagram is tagged with a LineKind before any structural
work happens. Classification is stateless: the same text always yields the
same Line, so the tree builder and the collapse rewriter can both walk the
token stream without re-running their own regex scans.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

DIRECTIONS = ("TD", "TB", "BT", "LR", "RL", "DT")
DEFAULT_DIRECTION = "TD"
COMMENT_MARKER = "%%"
CLOSE_KEYWORD = "end"


class LineKind(Enum):
    """Structural role of a single source line."""

    HEADER = "header"
    COMMENT = "comment"
    SUBGRAPH_OPEN = "subgraph_open"
    SUBGRAPH_CLOSE = "subgraph_close"
    DIRECTIVE = "directive"
    BLANK = "blank"
    STATEMENT = "statement"


@dataclass(frozen=True)
class Line:
    """
    A classified line of diagram source.

    Attributes:
        number: 1-based line number.
        offset: Character offset of the line start in the full source.
        text: The raw line, without its trailing newline.
        kind: Structural role of the line.
        subgraph_id: Subgraph identifier (SUBGRAPH_OPEN only).
        label: Subgraph display label (SUBGRAPH_OPEN only).
        direction: Flow direction (HEADER only).
        header: Normalized header text, e.g. "flowchart LR" (HEADER only).
        keyword: Lowercased directive keyword (DIRECTIVE only).
        targets: Node ids a style/class directive applies to.
    """

    number: int
    offset: int
    text: str
    kind: LineKind
    subgraph_id: Optional[str] = None
    label: Optional[str] = None
    direction: Optional[str] = None
    header: Optional[str] = None
    keyword: Optional[str] = None
    targets: Tuple[str, ...] = ()

    @property
    def stripped(self) -> str:
        return self.text.strip()

    @property
    def end_offset(self) -> int:
        """Offset just past the last character of the line."""
        return self.offset + len(self.text)


# "graph" / "flowchart", optionally followed by a direction token
HEADER_PATTERN = re.compile(
    r"^(graph|flowchart)(?=\s|;|$)(?:[ \t]+([A-Za-z]+))?", re.IGNORECASE
)

# subgraph id, subgraph id[label], subgraph id [label]
SUBGRAPH_ID_PATTERN = re.compile(
    r"^subgraph\s+(\w+)(?:\s*\[([^\]]*)\])?", re.IGNORECASE
)

# subgraph "Quoted Label"
SUBGRAPH_QUOTED_PATTERN = re.compile(r'^subgraph\s+"([^"]+)"', re.IGNORECASE)

DIRECTIVE_PATTERN = re.compile(
    r"^(style|classDef|class|click|linkStyle|direction)\s+(\S*)", re.IGNORECASE
)

# Directives whose first argument names the node(s) they decorate
TARGETED_DIRECTIVES = ("style", "class")


def sanitize_label(label: str) -> str:
    """Derive a subgraph id from a quoted label: "My Layer" -> "my_layer"."""
    return re.sub(r"[^a-zA-Z0-9]", "_", label).lower()


def _unquote(label: str) -> str:
    if len(label) >= 2 and label.startswith('"') and label.endswith('"'):
        return label[1:-1]
    return label


def parse_header(text: str) -> Optional[Tuple[str, str]]:
    """
    Match a flowchart header line.

    Returns:
        (normalized header, direction) or None when the line is not a header.
        A missing or unknown direction falls back to TD.
    """
    match = HEADER_PATTERN.match(text.strip())
    if not match:
        return None
    keyword = match.group(1)
    direction = (match.group(2) or "").upper()
    if direction not in DIRECTIONS:
        direction = DEFAULT_DIRECTION
    return f"{keyword} {direction}", direction


def parse_subgraph_open(text: str) -> Optional[Tuple[str, str]]:
    """
    Match a subgraph declaration.

    The identifier form is checked before the quoted-label form.

    Returns:
        (id, label) or None when the line does not open a subgraph.
    """
    stripped = text.strip()

    match = SUBGRAPH_ID_PATTERN.match(stripped)
    if match:
        subgraph_id = match.group(1)
        label = _unquote((match.group(2) or "").strip())
        return subgraph_id, label or subgraph_id

    match = SUBGRAPH_QUOTED_PATTERN.match(stripped)
    if match:
        label = match.group(1)
        return sanitize_label(label), label

    return None


def classify_line(text: str, number: int = 1, offset: int = 0) -> Line:
    """Classify one line of source text."""
    stripped = text.strip()

    if not stripped:
        return Line(number, offset, text, LineKind.BLANK)

    if stripped.startswith(COMMENT_MARKER):
        return Line(number, offset, text, LineKind.COMMENT)

    if stripped.lower() == CLOSE_KEYWORD:
        return Line(number, offset, text, LineKind.SUBGRAPH_CLOSE)

    header = parse_header(stripped)
    if header:
        return Line(
            number,
            offset,
            text,
            LineKind.HEADER,
            header=header[0],
            direction=header[1],
        )

    opened = parse_subgraph_open(stripped)
    if opened:
        return Line(
            number,
            offset,
            text,
            LineKind.SUBGRAPH_OPEN,
            subgraph_id=opened[0],
            label=opened[1],
        )

    directive = DIRECTIVE_PATTERN.match(stripped)
    if directive:
        keyword = directive.group(1).lower()
        targets: Tuple[str, ...] = ()
        if keyword in TARGETED_DIRECTIVES:
            targets = tuple(t for t in directive.group(2).split(",") if t)
        return Line(
            number, offset, text, LineKind.DIRECTIVE, keyword=keyword, targets=targets
        )

    return Line(number, offset, text, LineKind.STATEMENT)


def tokenize(source: str) -> List[Line]:
    """
    Split source into classified lines.

    Offsets count the newline separators, so ``source[line.offset:]``
    always starts with ``line.text``.
    """
    lines: List[Line] = []
    offset = 0
    for number, text in enumerate(source.split("\n"), 1):
        lines.append(classify_line(text, number, offset))
        offset += len(text) + 1
    return lines


def find_header(lines: List[Line]) -> Optional[Line]:
    """Return the first header line; later headers carry no meaning."""
    for line in lines:
        if line.kind is LineKind.HEADER:
            return line
    return None
