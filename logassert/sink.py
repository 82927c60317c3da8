"""In-process sink: capture stdlib logging as lager JSON lines for assertions.

    sink = TestSink().attach(logging.getLogger("svc"))
    logging.getLogger("svc").info("start", extra={"data": {"env": "prod"}})
    assert_contains_sequence(sink, info(data("env", "prod")))

TestSink is a BufferProvider, so every assertion re-reads everything logged
so far.
"""

import json
import logging
import threading

from logassert.decoder import RecordDecoder
from logassert.models import LogEntry, LogLevel


def lager_level(levelno: int) -> LogLevel:
    """Map a stdlib level number to the nearest lager level (WARNING -> INFO)."""
    if levelno >= logging.CRITICAL:
        return LogLevel.FATAL
    if levelno >= logging.ERROR:
        return LogLevel.ERROR
    if levelno >= logging.INFO:
        return LogLevel.INFO
    return LogLevel.DEBUG


class LogBuffer:
    """Thread-safe, append-only byte buffer. contents() never consumes."""

    def __init__(self):
        self._data = bytearray()
        self._lock = threading.Lock()

    def write(self, chunk: bytes | str) -> int:
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        with self._lock:
            self._data.extend(chunk)
        return len(chunk)

    def contents(self) -> bytes:
        with self._lock:
            return bytes(self._data)

    def clear(self):
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class LagerFormatter(logging.Formatter):
    """Render a LogRecord as one lager-format JSON object.

    Reads ``source``, ``data`` and ``error`` from the record's ``extra``;
    the source defaults to the logger name and the error of ERROR/CRITICAL
    records defaults to the exception in ``exc_info``.
    """

    def format(self, record: logging.LogRecord) -> str:
        source = getattr(record, "source", None) or record.name
        level = lager_level(record.levelno)
        data = dict(getattr(record, "data", None) or {})

        if level >= LogLevel.ERROR:
            err = getattr(record, "error", None)
            if err is None and record.exc_info and record.exc_info[1] is not None:
                err = record.exc_info[1]
            if err is not None:
                data["error"] = str(err)

        payload = {
            "timestamp": f"{record.created:.9f}",
            "source": source,
            "message": f"{source}.{record.getMessage()}",
            "log_level": int(level),
            "data": data,
        }
        return json.dumps(payload, default=str)


class TestSink(logging.Handler):
    """logging.Handler that buffers lager lines in memory."""

    __test__ = False

    def __init__(self, level: int = logging.DEBUG):
        super().__init__(level)
        self._buffer = LogBuffer()
        self._saved_levels: dict[str, int] = {}
        self.setFormatter(LagerFormatter())

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record)
            self._buffer.write(line + "\n")
        except Exception:
            self.handleError(record)

    def buffer(self) -> LogBuffer:
        return self._buffer

    def logs(self) -> list[LogEntry]:
        """Decode everything captured so far."""
        return list(RecordDecoder().iter_entries(self._buffer.contents(), strict=False))

    def attach(self, target: logging.Logger) -> "TestSink":
        target.addHandler(self)
        if target.level == logging.NOTSET or target.level > self.level:
            self._saved_levels.setdefault(target.name, target.level)
            target.setLevel(self.level)
        return self

    def detach(self, target: logging.Logger) -> None:
        """Remove the handler and restore any level attach() lowered."""
        target.removeHandler(self)
        if target.name in self._saved_levels:
            target.setLevel(self._saved_levels.pop(target.name))
