"""
Debug tracing for the collapse rewriter.

When debug mode is enabled, the Collapser records what it decided for every
source line and why. This is primarily useful for:
1. Understanding why a line vanished from (or changed in) the output
2. Checking which subgraphs acted as collapse roots
3. Writing targeted tests against individual rewrite decisions

Usage:
    >>> collapser = Collapser()
    >>> text = collapser.rewrite(model, {"services"}, debug=True)
    >>> trace = collapser.get_trace()
    >>> print(trace.summary())
    >>> trace.dump_to_file("rewrite_trace.txt")
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

# Decision actions
EMIT = "emit"
DROP = "drop"
REWRITE = "rewrite"
PLACEHOLDER = "placeholder"


@dataclass
class LineDecision:
    """
    What the rewriter did with one source line.

    Attributes:
        number: 1-based source line number
        action: One of "emit", "drop", "rewrite", "placeholder"
        reason: Short machine-friendly reason (e.g. "internal_edge")
        original: The source line
        emitted: Output lines produced for this source line
    """

    number: int
    action: str
    reason: str
    original: str
    emitted: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        if self.action == DROP:
            return f"{self.number:>4} DROP [{self.reason}] {self.original.strip()}"
        if self.action == EMIT:
            return f"{self.number:>4} EMIT [{self.reason}] {self.original.strip()}"
        produced = " / ".join(line.strip() for line in self.emitted)
        return (
            f"{self.number:>4} {self.action.upper()} [{self.reason}] "
            f"{self.original.strip()} -> {produced}"
        )


@dataclass
class RewriteTrace:
    """
    Complete trace of one rewrite call.

    Attributes:
        source: The original diagram source
        collapsed: Collapsed ids requested by the caller (sorted)
        roots: Collapsed ids that produced a placeholder
        hidden: Hidden node index used for endpoint rewriting
        decisions: One entry per source line examined
    """

    source: str = ""
    collapsed: List[str] = field(default_factory=list)
    roots: List[str] = field(default_factory=list)
    hidden: Dict[str, str] = field(default_factory=dict)
    decisions: List[LineDecision] = field(default_factory=list)

    def add_decision(
        self,
        number: int,
        action: str,
        reason: str,
        original: str,
        emitted: Optional[List[str]] = None,
    ) -> None:
        """Record the decision for one source line."""
        self.decisions.append(
            LineDecision(number, action, reason, original, list(emitted or []))
        )

    def get_decisions(self, action: str) -> List[LineDecision]:
        """All decisions with the given action."""
        return [d for d in self.decisions if d.action == action]

    def get_decision(self, number: int) -> Optional[LineDecision]:
        """Decision for a source line number, if that line was examined."""
        for decision in self.decisions:
            if decision.number == number:
                return decision
        return None

    def summary(self) -> str:
        """
        Generate a human-readable summary of the trace.

        Returns a string with the collapse roots, hidden node count and
        decision counts by action and reason.
        """
        lines = [
            "=" * 60,
            "REWRITE TRACE SUMMARY",
            "=" * 60,
            "",
            f"Collapsed: {', '.join(self.collapsed) or '(none)'}",
            f"Roots: {', '.join(self.roots) or '(none)'}",
            f"Hidden nodes: {len(self.hidden)}",
            f"Lines examined: {len(self.decisions)}",
            "",
        ]

        reason_counts: Dict[str, int] = {}
        for d in self.decisions:
            key = f"{d.action}:{d.reason}"
            reason_counts[key] = reason_counts.get(key, 0) + 1

        lines.append("Decisions by reason:")
        for reason, count in sorted(reason_counts.items(), key=lambda x: (-x[1], x[0])):
            lines.append(f"  {reason}: {count}")

        return "\n".join(lines)

    def dump(self) -> str:
        """Summary followed by the hidden index and every line decision."""
        lines = [self.summary(), "", "HIDDEN NODE INDEX:", "-" * 40]
        for node_id, root in sorted(self.hidden.items()):
            lines.append(f"  {node_id} -> {root}")
        lines.extend(["", "LINE DECISIONS:", "-" * 40])
        lines.extend(str(d) for d in self.decisions)
        return "\n".join(lines)

    def dump_to_file(self, filename: str) -> None:
        """Write the complete trace dump to a file."""
        with open(filename, "w", encoding="utf-8") as f:
            f.write(self.dump())
