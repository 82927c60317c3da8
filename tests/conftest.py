"""Shared pytest fixtures: a lager-format producer writing into an in-memory buffer."""

from __future__ import annotations

import json
import time

import pytest

from logassert.models import LogLevel
from logassert.sink import LogBuffer

EXPECTED_SOURCE = "some-source"


class LagerLogger:
    """Writes records exactly the way lager's JSON writer sink does."""

    def __init__(self, component: str, sink):
        self.component = component
        self._sink = sink

    def _log(self, level: LogLevel, action: str, err=None, *data_maps: dict) -> None:
        data = {}
        for extra in data_maps:
            data.update(extra)
        if err is not None:
            data["error"] = str(err)
        record = {
            "timestamp": f"{time.time():.9f}",
            "source": self.component,
            "message": f"{self.component}.{action}",
            "log_level": int(level),
            "data": data,
        }
        self._sink.write(json.dumps(record) + "\n")

    def debug(self, action: str, *data: dict) -> None:
        self._log(LogLevel.DEBUG, action, None, *data)

    def info(self, action: str, *data: dict) -> None:
        self._log(LogLevel.INFO, action, None, *data)

    def error(self, action: str, err, *data: dict) -> None:
        self._log(LogLevel.ERROR, action, err, *data)

    def fatal(self, action: str, err, *data: dict) -> None:
        self._log(LogLevel.FATAL, action, err, *data)


@pytest.fixture()
def buffer() -> LogBuffer:
    """Return an empty LogBuffer (a ContentsProvider)."""
    return LogBuffer()


@pytest.fixture()
def logger(buffer) -> LagerLogger:
    """Return a lager-style logger writing into the buffer fixture."""
    return LagerLogger(EXPECTED_SOURCE, buffer)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep LOGASSERT_* settings from the outer environment out of the tests."""
    for key in ("LOGASSERT_STRICT", "LOGASSERT_MAX_RENDERED_ENTRIES", "LOGASSERT_SCHEMA_PATH"):
        monkeypatch.delenv(key, raising=False)
