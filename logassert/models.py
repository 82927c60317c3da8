"""Parsed log entry: frozen dataclass + lager level enum."""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class LogLevel(IntEnum):
    DEBUG = 0
    INFO = 1
    ERROR = 2
    FATAL = 3

    @classmethod
    def parse(cls, value: "int | str | LogLevel") -> "LogLevel":
        """Accept lager's numeric log_level or a level name (case-insensitive).

        Raises ValueError for anything else.
        """
        if isinstance(value, bool):
            raise ValueError(f"Invalid log level: {value!r}")
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Invalid log level: {value!r}") from None
        raise ValueError(f"Invalid log level: {value!r}")


@dataclass(frozen=True)
class LogEntry:
    level: LogLevel
    source: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    timestamp: str | None = None
    raw: str = ""

    @property
    def action(self) -> str:
        """The message without its "<source>." prefix, when present."""
        prefix = f"{self.source}."
        if self.source and self.message.startswith(prefix):
            return self.message[len(prefix):]
        return self.message

    def summary(self) -> str:
        """One-line rendering used in failure messages."""
        parts = [self.level.name, f"source={self.source!r}", f"message={self.message!r}"]
        if self.error is not None:
            parts.append(f"error={self.error!r}")
        if self.data:
            parts.append(f"data={self.data!r}")
        return " ".join(parts)
