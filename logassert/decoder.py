"""Lager JSON-line decoder: schema-validated, tolerant of interleaved junk.

Each line is decoded on its own. Lines that are not JSON objects, or that
fail the record schema, are skipped. Content in which no line decodes at all
is reported as MalformedLogError when strict.
"""

import json
import logging
from typing import Any, Iterator

import jsonschema

from logassert.errors import MalformedLogError
from logassert.models import LogEntry, LogLevel

logger = logging.getLogger(__name__)

_LEVEL_NAMES = [level.name.lower() for level in LogLevel] + [level.name for level in LogLevel]

LAGER_RECORD_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["source", "message"],
    "properties": {
        "timestamp": {"type": ["string", "number"]},
        "source": {"type": "string"},
        "message": {"type": "string"},
        "log_level": {"type": "integer", "minimum": 0, "maximum": 3},
        "level": {"type": "string", "enum": _LEVEL_NAMES},
        "data": {"type": "object"},
    },
    "anyOf": [
        {"required": ["log_level"]},
        {"required": ["level"]},
    ],
}


def _error_text(level: LogLevel, data: dict[str, Any]) -> str | None:
    """Lager stores the error of ERROR/FATAL records under data["error"]."""
    if level < LogLevel.ERROR or "error" not in data:
        return None
    value = data["error"]
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def record_to_entry(record: dict[str, Any], raw: str = "") -> LogEntry:
    """Convert an already-validated record dict to a LogEntry."""
    if "log_level" in record:
        level = LogLevel.parse(record["log_level"])
    else:
        level = LogLevel.parse(record["level"])
    data = dict(record.get("data") or {})
    timestamp = record.get("timestamp")
    return LogEntry(
        level=level,
        source=record["source"],
        message=record["message"],
        data=data,
        error=_error_text(level, data),
        timestamp=None if timestamp is None else str(timestamp),
        raw=raw,
    )


class RecordDecoder:
    """Decodes lager-format lines into LogEntry values, validating each record."""

    def __init__(self, schema_path: str | None = None):
        if schema_path is None:
            schema = LAGER_RECORD_SCHEMA
        else:
            with open(schema_path, "r") as f:
                schema = json.load(f)

        self._validator = jsonschema.Draft202012Validator(schema)
        self._stats = {"total": 0, "decoded": 0, "skipped": 0}

    def decode_line(self, line: str) -> LogEntry | None:
        """Decode one line. Returns None for blank or undecodable lines."""
        stripped = line.strip()
        if not stripped:
            return None

        self._stats["total"] += 1
        try:
            record = json.loads(stripped)
        except (json.JSONDecodeError, TypeError):
            return self._skip(stripped, "not JSON")

        errors = list(self._validator.iter_errors(record))
        if errors:
            return self._skip(stripped, errors[0].message)

        try:
            entry = record_to_entry(record, raw=stripped)
        except (KeyError, ValueError) as e:
            return self._skip(stripped, str(e))

        self._stats["decoded"] += 1
        return entry

    def _skip(self, line: str, reason: str) -> None:
        self._stats["skipped"] += 1
        logger.debug("Skipping undecodable log line (%s): %.80s", reason, line)
        return None

    def iter_entries(self, content: bytes | str, strict: bool = True) -> Iterator[LogEntry]:
        """Lazily yield entries from a full content snapshot, in line order.

        When strict, raises MalformedLogError once the content is exhausted if
        it held non-blank lines but not a single decodable record.
        """
        if isinstance(content, (bytes, bytearray)):
            text = bytes(content).decode("utf-8", errors="replace")
        else:
            text = content

        seen_lines = 0
        decoded = 0
        # Split on "\n" only: record strings may carry U+0085 or U+2028 unescaped.
        for line in text.split("\n"):
            line = line.rstrip("\r")
            if not line.strip():
                continue
            seen_lines += 1
            entry = self.decode_line(line)
            if entry is None:
                continue
            decoded += 1
            yield entry

        if strict and seen_lines and not decoded:
            raise MalformedLogError(
                f"No structured log records found in {seen_lines} line(s) of log content"
            )

    def get_stats(self) -> dict[str, int]:
        """Return a copy of the stats dict."""
        return dict(self._stats)
