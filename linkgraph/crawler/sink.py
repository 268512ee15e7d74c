"""Thread-safe edge collection and grouped console output."""

from __future__ import annotations

import sys
import threading
from typing import Iterable, TextIO

from .types import Edge


class EdgeSink:
    """Accumulate `(source, target)` edges reported by crawl workers.

    `record_edge` may be called from any worker thread. Duplicate edges are
    kept; grouping for output deduplicates targets.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._edges: list[Edge] = []

    def record_edge(self, source: str, target: str) -> None:
        if not source or not target:
            raise ValueError("Edge source and target must be non-empty URLs")

        edge = Edge(source=source, target=target)
        with self._lock:
            self._edges.append(edge)

    def edges(self) -> list[Edge]:
        """Return snapshot copy of recorded edges in arrival order."""

        with self._lock:
            return list(self._edges)

    def grouped(self) -> list[tuple[str, list[str]]]:
        return group_edges(self.edges())

    def __len__(self) -> int:
        with self._lock:
            return len(self._edges)


def group_edges(edges: Iterable[Edge]) -> list[tuple[str, list[str]]]:
    """Group edges by source with deterministic ordering.

    Sources and targets are sorted by ordinal string comparison; repeated
    targets under one source appear once.
    """

    targets_by_source: dict[str, set[str]] = {}
    for edge in edges:
        targets_by_source.setdefault(edge.source, set()).add(edge.target)

    return [
        (source, sorted(targets_by_source[source]))
        for source in sorted(targets_by_source)
    ]


def write_grouped_output(edges: Iterable[Edge], stream: TextIO | None = None) -> int:
    """Print one `source -> target, target` line per source; return line count."""

    out = stream if stream is not None else sys.stdout
    groups = group_edges(edges)
    for source, targets in groups:
        out.write(f"{source} -> {', '.join(targets)}\n")
    out.flush()
    return len(groups)


__all__ = [
    "EdgeSink",
    "group_edges",
    "write_grouped_output",
]
