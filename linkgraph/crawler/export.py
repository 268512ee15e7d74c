"""Edge-graph exporters: JSON, HTML and CSV."""

from __future__ import annotations

import csv
import html
import io
import json
import os
import tempfile
from pathlib import Path
from typing import Iterable, Protocol

from .constants import JSON_INDENT, SUPPORTED_EXPORT_FORMATS
from .sink import group_edges
from .types import Edge


class Exporter(Protocol):
    def render(self, edges: Iterable[Edge]) -> str:
        ...


class JSONExporter:
    def render(self, edges: Iterable[Edge]) -> str:
        payload = [
            {"SourceUrl": source, "Target": targets}
            for source, targets in group_edges(edges)
        ]
        return json.dumps(payload, indent=JSON_INDENT, ensure_ascii=False)


class HTMLExporter:
    """Standalone HTML page with one table row per target.

    The source cell spans all rows of its group.
    """

    _head = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Crawl Results</title>
    <style>
        body { font-family: Arial, sans-serif; margin: 20px; }
        table { border-collapse: collapse; width: 100%; }
        th, td { border: 1px solid #ddd; padding: 8px; text-align: left; }
        th { background-color: #4CAF50; color: white; }
        tr:nth-child(even) { background-color: #f2f2f2; }
    </style>
</head>
<body>
    <h1>Crawl Results</h1>
    <table>
        <tr><th>SourceUrl</th><th>Target</th></tr>
"""

    _tail = """    </table>
</body>
</html>
"""

    def render(self, edges: Iterable[Edge]) -> str:
        rows: list[str] = []
        for source, targets in group_edges(edges):
            encoded_source = html.escape(source)
            for idx, target in enumerate(targets):
                encoded_target = html.escape(target)
                if idx == 0:
                    rows.append(
                        f'        <tr><td rowspan="{len(targets)}">{encoded_source}</td>'
                        f"<td>{encoded_target}</td></tr>\n"
                    )
                else:
                    rows.append(f"        <tr><td>{encoded_target}</td></tr>\n")
        return self._head + "".join(rows) + self._tail


class CSVExporter:
    """Writes one quoted `SourceUrl,Target` row per distinct edge."""

    _headers = ["SourceUrl", "Target"]

    def render(self, edges: Iterable[Edge]) -> str:
        buffer = io.StringIO()
        csv.writer(buffer, lineterminator="\n").writerow(self._headers)

        rows = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        for source, targets in group_edges(edges):
            for target in targets:
                rows.writerow([source, target])
        return buffer.getvalue()


EXPORTERS: dict[str, type[Exporter]] = {
    "json": JSONExporter,
    "html": HTMLExporter,
    "csv": CSVExporter,
}


def get_exporter(export_format: str) -> Exporter:
    """Return exporter instance for a format name (case-insensitive)."""

    key = (export_format or "").strip().lower()
    if key not in EXPORTERS:
        raise ValueError(
            f"Unsupported format: {export_format!r}. Supported: {', '.join(SUPPORTED_EXPORT_FORMATS)}"
        )
    return EXPORTERS[key]()


def export_edges(edges: Iterable[Edge], path: str | Path, export_format: str) -> Path:
    """Render edges in `export_format` and write them atomically to `path`."""

    exporter = get_exporter(export_format)
    content = exporter.render(edges)

    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write_text(out_path, content)
    return out_path


def _atomic_write_text(path: Path, content: str) -> None:
    tmp_fd, tmp_path = tempfile.mkstemp(
        dir=str(path.parent),
        prefix=path.name + ".",
        suffix=".tmp",
    )
    try:
        with os.fdopen(tmp_fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise


__all__ = [
    "CSVExporter",
    "EXPORTERS",
    "Exporter",
    "HTMLExporter",
    "JSONExporter",
    "export_edges",
    "get_exporter",
]
