"""Process-wide key/value store for ephemeral test-run data."""

import threading
import time
from collections.abc import Callable, Mapping
from pathlib import Path
from random import Random
from typing import Any

from flakeguard.core.encoding.export import (
    encode_data_document,
    read_data_document,
    write_document,
)
from flakeguard.core.encoding.ndjson import dumps
from flakeguard.core.generators import (
    GenerationOptions,
    Record,
    RecordGenerator,
    RecordKind,
    ScenarioKind,
)
from flakeguard.core.models import DataSummary
from flakeguard.core.validation import Schema, ValidationReport, inspect, json_type, validate


def _summarize(data: Mapping[str, Any]) -> DataSummary:
    by_type: dict[str, int] = {}
    for value in data.values():
        name = json_type(value)
        by_type[name] = by_type.get(name, 0) + 1
    return DataSummary(
        total_entries=len(data),
        entries_by_type=by_type,
        memory_usage=len(dumps(dict(data))),
    )


class DataStore:
    """Keyed store of run data with generators, validation and export.

    One value per key; the last write wins. Every operation runs under a
    single lock.

    Args:
        clock: Unix-seconds clock for generated records and export stamps.
        rng: Random source for generated unique suffixes.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        rng: Random | None = None,
    ) -> None:
        self._clock = clock
        self._data: dict[str, Any] = {}
        self._lock = threading.Lock()
        self.generator = RecordGenerator(clock=clock, rng=rng)

    def store(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def clear(self, key: str | None = None) -> None:
        """Remove one key, or every key when none is given."""
        with self._lock:
            if key is None:
                self._data.clear()
            else:
                self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._data)

    def snapshot(self) -> dict[str, Any]:
        """Return a shallow copy of the whole store."""
        with self._lock:
            return dict(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    # Generation.

    def generate(
        self, kind: RecordKind | str, options: GenerationOptions | None = None
    ) -> Record | list[Record]:
        return self.generator.generate(kind, options)

    def generate_and_store(
        self,
        kind: RecordKind | str,
        key: str | None = None,
        options: GenerationOptions | None = None,
    ) -> Record | list[Record]:
        """Generate a record and store it under key.

        The default key is ``test_<kind>_<milliseconds>``.
        """
        kind = RecordKind(kind)
        record = self.generate(kind, options)
        self.store(key or f"test_{kind.value}_{int(self._clock() * 1000)}", record)
        return record

    def scenario(
        self,
        kind: ScenarioKind | str,
        count: int = 1,
        custom_fields: Mapping[str, Any] | None = None,
    ) -> Record | list[Record]:
        return self.generator.scenario(kind, count, custom_fields)

    # Validation.

    @staticmethod
    def validate(value: Any, schema: Schema) -> list[str]:
        return validate(value, schema)

    @staticmethod
    def inspect(value: Any, schema: Schema) -> ValidationReport:
        return inspect(value, schema)

    # Reporting and persistence.

    def summarize(self) -> DataSummary:
        """Count entries per JSON type and estimate the memory footprint."""
        return _summarize(self.snapshot())

    def export(self, path: str | Path) -> Path:
        """Write one snapshot of the store, with its summary, to a JSON document.

        Raises:
            ExportError: If the destination cannot be written.
        """
        data = self.snapshot()
        document = encode_data_document(data, _summarize(data), self._clock())
        return write_document(path, document)

    def import_from(self, path: str | Path) -> int:
        """Replace the store contents with a previous export.

        Returns:
            Number of entries loaded.

        Raises:
            DataImportError: If the file cannot be read; the store is unchanged.
        """
        data = read_data_document(path)
        with self._lock:
            self._data = dict(data)
        return len(data)
