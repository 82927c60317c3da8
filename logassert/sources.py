"""Source adapter: turns the "actual" value of an assertion into log entries.

Three capability shapes are accepted, checked in this order:

  1. BufferProvider:   buffer() returns a ContentsProvider (or raw bytes).
                      Re-read on every call, so repeated matches are idempotent.
  2. ContentsProvider: contents() returns the full snapshot, non-destructively.
  3. ByteStream:       read() consumes forward-only. Read to EOF once per
                      match; a second match on the same stream sees nothing.

Anything else is a usage error.
"""

import logging
from typing import Any, Iterator, Protocol, runtime_checkable

from logassert.config import Config, load_config
from logassert.decoder import RecordDecoder
from logassert.errors import UnsupportedSourceError
from logassert.models import LogEntry

logger = logging.getLogger(__name__)


@runtime_checkable
class ContentsProvider(Protocol):
    def contents(self) -> bytes | str: ...


@runtime_checkable
class BufferProvider(Protocol):
    def buffer(self) -> ContentsProvider | bytes: ...


@runtime_checkable
class ByteStream(Protocol):
    def read(self, size: int = -1) -> bytes | str: ...


def _has_method(actual: Any, name: str) -> bool:
    # Text streams expose a non-callable ``buffer`` attribute; only methods count.
    return callable(getattr(actual, name, None))


def _unsupported(actual: Any) -> UnsupportedSourceError:
    return UnsupportedSourceError(
        "ContainSequence must be passed a BufferProvider (buffer()), "
        "a ContentsProvider (contents()) or a readable stream (read()). "
        f"Got: {type(actual).__name__}"
    )


def _snapshot_from_contents(provider: Any) -> bytes | str:
    snapshot = provider.contents()
    if not isinstance(snapshot, (bytes, bytearray, str)):
        raise UnsupportedSourceError(
            f"contents() must return bytes or str, got {type(snapshot).__name__}"
        )
    return snapshot


def read_snapshot(actual: Any) -> tuple[str, bytes | str]:
    """Resolve *actual* to (shape_name, full_content).

    Raises UnsupportedSourceError when *actual* has none of the three shapes.
    """
    if isinstance(actual, (bytes, bytearray, str)):
        raise _unsupported(actual)

    if isinstance(actual, BufferProvider) and _has_method(actual, "buffer"):
        buffered = actual.buffer()
        if isinstance(buffered, (bytes, bytearray)):
            return "buffer", bytes(buffered)
        if isinstance(buffered, ContentsProvider) and _has_method(buffered, "contents"):
            return "buffer", _snapshot_from_contents(buffered)
        raise UnsupportedSourceError(
            f"buffer() must return a ContentsProvider or bytes, got {type(buffered).__name__}"
        )

    if isinstance(actual, ContentsProvider) and _has_method(actual, "contents"):
        return "contents", _snapshot_from_contents(actual)

    if isinstance(actual, ByteStream) and _has_method(actual, "read"):
        chunk = actual.read()
        if chunk is None:
            chunk = b""
        if not isinstance(chunk, (bytes, bytearray, str)):
            raise UnsupportedSourceError(
                f"read() must return bytes or str, got {type(chunk).__name__}"
            )
        return "stream", chunk

    raise _unsupported(actual)


def extract_entries(
    actual: Any,
    config: Config | None = None,
    decoder: RecordDecoder | None = None,
) -> Iterator[LogEntry]:
    """Return a lazy iterator over the entries held by *actual*.

    The shape check and the read happen immediately, so usage errors surface
    even when the caller never iterates. Decoding happens on iteration.
    """
    config = config or load_config()
    shape, snapshot = read_snapshot(actual)
    logger.debug("Read %d byte(s) from %s source %s", len(snapshot), shape, type(actual).__name__)

    decoder = decoder or RecordDecoder(config.schema_path)
    return decoder.iter_entries(snapshot, strict=config.strict)


class FileContents:
    """ContentsProvider over a log file on disk; re-reads the file on every call."""

    def __init__(self, path: str):
        self.path = path

    def contents(self) -> bytes:
        with open(self.path, "rb") as f:
            return f.read()

    def __repr__(self) -> str:
        return f"FileContents({self.path!r})"
