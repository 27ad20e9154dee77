"""NDJSON encoder for log entries."""

import json
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from flakeguard.core.models import LogEntry, LogLevel


def format_timestamp(timestamp: float) -> str:
    """Render a unix timestamp as an ISO-8601 UTC string."""
    return datetime.fromtimestamp(timestamp, UTC).isoformat()


def entry_to_dict(entry: LogEntry) -> dict[str, Any]:
    """Convert a LogEntry to its JSON object form."""
    return {
        "timestamp": format_timestamp(entry.timestamp),
        "level": entry.level.label,
        "message": entry.message,
        "context": entry.context,
        "tag": entry.tag,
    }


def entry_from_dict(obj: dict[str, Any]) -> LogEntry:
    """Rebuild a LogEntry from its JSON object form.

    Accepts both ISO-8601 strings and unix seconds for the timestamp.
    """
    raw = obj["timestamp"]
    if isinstance(raw, str):
        timestamp = datetime.fromisoformat(raw).timestamp()
    else:
        timestamp = float(raw)
    return LogEntry(
        timestamp=timestamp,
        level=LogLevel.parse(obj["level"]),
        message=obj["message"],
        context=obj.get("context"),
        tag=obj.get("tag"),
    )


def dumps(value: Any, **kwargs: Any) -> str:
    """Serialize to JSON, falling back to ``str`` for unknown objects.

    Log contexts routinely carry exceptions and other non-JSON values.
    """
    return json.dumps(value, default=str, **kwargs)


def encode_logs(entries: Iterable[LogEntry]) -> str:
    """Encode log entries to newline-delimited JSON.

    Args:
        entries: An iterable of LogEntry objects.

    Returns:
        NDJSON string with one JSON object per line.
        Empty string if no entries.
    """
    lines = [dumps(entry_to_dict(entry)) for entry in entries]

    if not lines:
        return ""

    return "\n".join(lines) + "\n"
