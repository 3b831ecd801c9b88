"""
Node and edge extraction for flowchart statements.

Statements are scanned on a masked copy of the line in which label text
(bracketed shapes, quoted strings, ``|pipe|`` labels) is blanked out. The
masked copy has the same length as the original, so spans found on it map
directly back onto the raw text, and arrows or ampersands written inside a
label never look like structure.
"""

import re
from typing import Iterable, List, Optional, Tuple

from .lexer import Line, LineKind, tokenize
from .models import Edge

KEYWORDS = frozenset(
    {
        "subgraph",
        "end",
        "graph",
        "flowchart",
        "direction",
        "style",
        "class",
        "classdef",
        "click",
        "linkstyle",
        "td",
        "tb",
        "bt",
        "lr",
        "rl",
        "dt",
    }
)

MASK_CHAR = "\x00"
OPEN_BRACKETS = "[({"
CLOSE_BRACKETS = "])}"

# Longer and more specific connectors come first within each family.
CONNECTOR_PATTERN = re.compile(
    r"<-\.+->|<={2,}>|<-{2,}>"
    r"|(?<!\w)o-{2,}o(?!\w)|(?<!\w)x-{2,}x(?!\w)"
    r"|-\.+->|-\.+-"
    r"|={2,}>|={3,}"
    r"|-{2,}>|-{3,}"
    r"|-{2,}[ox](?!\w)"
    r"|-\.\s*[^.|\x00]+?\s*\.->|-\.\s*[^.|\x00]+?\s*\.-"
    r"|--\s*[^-|\x00]+?\s*-{2,}>|--\s*[^-|\x00]+?\s*-{3,}"
    r"|==\s*[^=|\x00]+?\s*={2,}>|==\s*[^=|\x00]+?\s*={3,}"
)

# Connectors carrying inline text, mapped to their plain form
ARROW_TEXT_FORMS = [
    (re.compile(r"^--\s*([^-\s].*?)\s*-{2,}>$"), "-->"),
    (re.compile(r"^--\s*([^-\s].*?)\s*-{3,}$"), "---"),
    (re.compile(r"^-\.\s*([^.\s].*?)\s*\.->$"), "-.->"),
    (re.compile(r"^-\.\s*([^.\s].*?)\s*\.-$"), "-.-"),
    (re.compile(r"^==\s*([^=\s].*?)\s*={2,}>$"), "==>"),
    (re.compile(r"^==\s*([^=\s].*?)\s*={3,}$"), "==="),
]

# No "^" anchors below: these are used with match(string, pos, endpos)
PIPE_LABEL_PATTERN = re.compile(r"\s*\|([^|]*)\|")
LEADING_ID_PATTERN = re.compile(r"\s*(\w+)")
SHAPED_ID_PATTERN = re.compile(r"\s*(\w+)\s*[\[({>]")
NODE_DEFINITION_PATTERN = re.compile(r"\s*(\w+)\s*(?:[\[({>]|:::|;?\s*$)")


def is_keyword(name: str) -> bool:
    """Check whether a token is a reserved flowchart keyword."""
    return name.lower() in KEYWORDS


def mask_labels(text: str) -> str:
    """
    Blank out label text, keeping outermost delimiters in place.

    ``A["x --> y"] -->|go| B`` becomes ``A[\\0\\0..] -->|\\0\\0| B``.
    Brackets nest to any depth; quotes and pipes suspend bracket matching.
    """
    out: List[str] = []
    depth = 0
    in_quote = False
    in_pipe = False

    for ch in text:
        if in_quote:
            if ch == '"':
                in_quote = False
                out.append(ch if depth == 0 else MASK_CHAR)
            else:
                out.append(MASK_CHAR)
        elif in_pipe:
            if ch == "|":
                in_pipe = False
                out.append(ch)
            else:
                out.append(MASK_CHAR)
        elif ch == '"':
            in_quote = True
            out.append(ch if depth == 0 else MASK_CHAR)
        elif ch in OPEN_BRACKETS:
            out.append(ch if depth == 0 else MASK_CHAR)
            depth += 1
        elif ch in CLOSE_BRACKETS and depth:
            depth -= 1
            out.append(ch if depth == 0 else MASK_CHAR)
        elif depth:
            out.append(MASK_CHAR)
        elif ch == "|":
            in_pipe = True
            out.append(ch)
        else:
            out.append(ch)

    return "".join(out)


def normalize_connector(token: str) -> Tuple[str, Optional[str]]:
    """
    Split a connector into its plain style and any inline text.

    Returns:
        (style, text) where text is None for connectors without text.
    """
    for pattern, style in ARROW_TEXT_FORMS:
        match = pattern.match(token)
        if match:
            return style, match.group(1)
    return token, None


def _endpoints(
    raw: str, masked: str, start: int, end: int
) -> Tuple[Optional[str], List[Tuple[str, str]]]:
    """
    Read the endpoint group between two connectors.

    Returns:
        (pipe label, [(node id, raw endpoint text), ...])
    """
    label = None
    match = PIPE_LABEL_PATTERN.match(masked, start, end)
    if match:
        label = raw[match.start(1) : match.end(1)].strip()
        start = match.end()

    endpoints: List[Tuple[str, str]] = []
    piece_start = start
    splits = [i for i in range(start, end) if masked[i] == "&"] + [end]
    for split in splits:
        id_match = LEADING_ID_PATTERN.match(masked, piece_start, split)
        if id_match:
            text = raw[piece_start:split].strip().rstrip(";").strip()
            endpoints.append((id_match.group(1), text))
        piece_start = split + 1

    return label, endpoints


def _segments(masked: str) -> Tuple[List[str], List[Tuple[int, int]]]:
    """Locate connectors; return them with the spans of the text around them."""
    connectors: List[str] = []
    spans: List[Tuple[int, int]] = []
    cursor = 0
    for match in CONNECTOR_PATTERN.finditer(masked):
        connectors.append(match.group(0))
        spans.append((cursor, match.start()))
        cursor = match.end()
    spans.append((cursor, len(masked)))
    return connectors, spans


def parse_edge_line(text: str) -> List[Edge]:
    """
    Parse one statement line into edges.

    Handles simple, chained (``A --> B --> C``) and parallel
    (``A & B --> C``) statements. Returns an empty list when the line has
    no recognized connector between two endpoints.
    """
    masked = mask_labels(text)
    connectors, spans = _segments(masked)
    if not connectors:
        return []

    edges: List[Edge] = []
    for i, connector in enumerate(connectors):
        style, arrow_text = normalize_connector(connector)
        _, sources = _endpoints(text, masked, *spans[i])
        pipe_label, targets = _endpoints(text, masked, *spans[i + 1])
        label = pipe_label or arrow_text

        for source, source_text in sources:
            for target, target_text in targets:
                edges.append(
                    Edge(
                        source=source,
                        target=target,
                        style=style,
                        label=label,
                        line=text,
                        source_text=source_text,
                        target_text=target_text,
                    )
                )

    return edges


def statement_node_ids(text: str) -> List[str]:
    """
    Node ids mentioned by one statement line, in order of appearance.

    Edge statements contribute every endpoint; other statements contribute
    ids followed by a shape opener. Keywords are never returned.
    """
    masked = mask_labels(text)
    connectors, spans = _segments(masked)
    found: List[str] = []

    if connectors and parse_edge_line(text):
        for start, end in spans:
            _, endpoints = _endpoints(text, masked, start, end)
            found.extend(node_id for node_id, _ in endpoints)
    else:
        piece_start = 0
        for split in [i for i, ch in enumerate(masked) if ch == "&"] + [len(masked)]:
            match = SHAPED_ID_PATTERN.match(masked, piece_start, split)
            if match:
                found.append(match.group(1))
            piece_start = split + 1

    return [node_id for node_id in found if not is_keyword(node_id)]


def node_definition_id(text: str) -> Optional[str]:
    """
    Id declared by a node-definition line, or None.

    Matches shaped (``A[Label]``), class-suffixed (``A:::hot``) and bare
    (``A``) declarations. Edge statements are not node definitions.
    """
    pieces = node_definition_pieces(text)
    return pieces[0][0] if pieces else None


def node_definition_pieces(text: str) -> List[Tuple[Optional[str], str]]:
    """
    Split a node-definition line on ``&`` into its declarations.

    Returns:
        [(declared id or None, raw piece text), ...]; empty for edge lines.
    """
    if parse_edge_line(text):
        return []

    masked = mask_labels(text)
    pieces: List[Tuple[Optional[str], str]] = []
    piece_start = 0
    for split in [i for i, ch in enumerate(masked) if ch == "&"] + [len(masked)]:
        match = NODE_DEFINITION_PATTERN.match(masked, piece_start, split)
        node_id = None
        if match and not is_keyword(match.group(1)):
            node_id = match.group(1)
        pieces.append((node_id, text[piece_start:split].strip()))
        piece_start = split + 1
    return pieces


def node_ids_from_lines(lines: Iterable[Line]) -> List[str]:
    """Ordered, duplicate-free node ids found on statement lines."""
    node_ids: List[str] = []
    seen = set()
    for line in lines:
        if line.kind is not LineKind.STATEMENT:
            continue
        for node_id in statement_node_ids(line.text):
            if node_id not in seen:
                seen.add(node_id)
                node_ids.append(node_id)
    return node_ids


def edges_from_lines(lines: Iterable[Line]) -> List[Edge]:
    """Edges found on statement lines; structural lines are skipped."""
    edges: List[Edge] = []
    for line in lines:
        if line.kind is LineKind.STATEMENT:
            edges.extend(parse_edge_line(line.text))
    return edges


def extract_node_ids(content: str) -> List[str]:
    """
    Extract node ids from a block of flowchart content.

    Args:
        content: Diagram text, normally with nested subgraphs removed.

    Returns:
        Node ids in order of first appearance, without duplicates.
    """
    return node_ids_from_lines(tokenize(content))


def extract_edges(content: str) -> List[Edge]:
    """
    Extract edges from a block of flowchart content.

    Comments, headers, subgraph markers and directives are skipped. Lines
    without a recognized connector are silently ignored.
    """
    return edges_from_lines(tokenize(content))
