"""Append-only translation history storage.

Responsibilities:
- Persist one JSON line per computed translation record.
- Run blocking file writes off the event loop.
- Load records back for listing through the CLI.
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict, fields
import json
from pathlib import Path

from ..models.datatypes import TranslationRecord

_RECORD_FIELDS = tuple(field.name for field in fields(TranslationRecord))


class JsonlTranslationHistory:
    """Filesystem-backed append-only translation recorder."""

    def __init__(self, path: Path) -> None:
        """Initialize the history with a JSON-lines file path."""

        self.path = path

    async def record(self, record: TranslationRecord) -> None:
        """Append one record without blocking the event loop."""

        await asyncio.to_thread(self.append, record)

    def append(self, record: TranslationRecord) -> None:
        """Append one record as a single JSON line."""

        self.path.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(asdict(record), ensure_ascii=False, sort_keys=True)
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(f"{line}\n")

    def read_records(self, limit: int | None = None) -> list[TranslationRecord]:
        """Load stored records oldest first, keeping only the newest `limit` when given.

        Raises:
            ValueError: A line is not a JSON object with the expected record fields.
        """

        if not self.path.exists():
            return []
        records: list[TranslationRecord] = []
        lines = self.path.read_text(encoding="utf-8").splitlines()
        for line_number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                payload = json.loads(line)
            except json.JSONDecodeError as exc:
                raise ValueError(
                    f"History `{self.path}` line {line_number} is not valid JSON."
                ) from exc
            if not isinstance(payload, dict) or set(payload) != set(_RECORD_FIELDS):
                raise ValueError(
                    f"History `{self.path}` line {line_number} is not a translation record."
                )
            records.append(TranslationRecord(**payload))
        if limit is not None:
            return records[-limit:] if limit > 0 else []
        return records
