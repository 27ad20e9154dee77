"""JSON export documents for logs and run data.

Both documents share one shape::

    {"timestamp": "<ISO-8601>", "logs" | "data": ..., "summary": {...}}
"""

import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from flakeguard.core.encoding.ndjson import dumps, entry_to_dict, format_timestamp
from flakeguard.core.exceptions import DataImportError, ExportError
from flakeguard.core.models import DataSummary, LogEntry, LogSummary


def summarize_logs(entries: Iterable[LogEntry]) -> LogSummary:
    """Count entries per level and per tag."""
    total = 0
    by_level: dict[str, int] = {}
    by_tag: dict[str, int] = {}
    for entry in entries:
        total += 1
        by_level[entry.level.label] = by_level.get(entry.level.label, 0) + 1
        if entry.tag:
            by_tag[entry.tag] = by_tag.get(entry.tag, 0) + 1
    return LogSummary(total=total, by_level=by_level, by_tag=by_tag)


def encode_log_document(entries: list[LogEntry], exported_at: float) -> dict[str, Any]:
    """Build the log export document."""
    return {
        "timestamp": format_timestamp(exported_at),
        "logs": [entry_to_dict(entry) for entry in entries],
        "summary": summarize_logs(entries).to_dict(),
    }


def encode_data_document(
    data: Mapping[str, Any], summary: DataSummary, exported_at: float
) -> dict[str, Any]:
    """Build the run data export document."""
    return {
        "timestamp": format_timestamp(exported_at),
        "data": dict(data),
        "summary": summary.to_dict(),
    }


def write_text(path: str | Path, text: str) -> Path:
    """Write text to path, creating missing parent directories.

    Raises:
        ExportError: If the destination cannot be written.
    """
    destination = Path(path)
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise ExportError(f"Cannot write {destination}: {exc}") from exc
    return destination


def write_document(path: str | Path, document: Mapping[str, Any]) -> Path:
    """Write a JSON document, pretty-printed with two-space indentation."""
    return write_text(path, dumps(document, indent=2))


def read_data_document(path: str | Path) -> dict[str, Any]:
    """Read the ``data`` object of a run data export.

    Raises:
        DataImportError: If the file is missing, unreadable or malformed.
    """
    source = Path(path)
    try:
        document = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise DataImportError(f"Cannot read data export {source}: {exc}") from exc
    if not isinstance(document, dict) or not isinstance(document.get("data"), dict):
        raise DataImportError(f"{source} has no 'data' object")
    return document["data"]
