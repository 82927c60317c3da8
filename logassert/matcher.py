"""Subsequence matcher: do the expected patterns occur, in order, among the actual entries?

Greedy single pass. A cursor walks the actual entries; each pattern binds to
the first matching entry at or after the cursor, and the cursor moves past
it. Gaps are allowed, entries are never reused, and the cursor never rewinds.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Sequence

from logassert.config import Config, load_config
from logassert.decoder import RecordDecoder
from logassert.models import LogEntry
from logassert.patterns import Pattern
from logassert.sources import extract_entries

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchResult:
    """Outcome of one match attempt.

    Entries are decoded lazily, so on success *entries* and *skipped_lines*
    cover only the lines read up to the last bound entry. On failure they
    cover the whole content.
    """

    success: bool
    matched_indices: tuple[int, ...] = ()
    failed_index: int | None = None
    failed_pattern: Pattern | None = None
    cursor: int = 0
    entries: tuple[LogEntry, ...] = field(default_factory=tuple)
    message: str = ""
    skipped_lines: int = 0

    def __bool__(self) -> bool:
        return self.success


def _render_entries(entries: Sequence[LogEntry], limit: int) -> list[str]:
    if not entries:
        return ["  (no log entries)"]
    lines = [f"  [{i}] {entry.summary()}" for i, entry in enumerate(entries[:limit])]
    if len(entries) > limit:
        lines.append(f"  ... {len(entries) - limit} more entries")
    return lines


def _failure_message(
    patterns: Sequence[Pattern],
    failed_index: int,
    cursor: int,
    entries: Sequence[LogEntry],
    limit: int,
) -> str:
    pattern = patterns[failed_index]
    lines = [
        f"Expected log to contain sequence of {len(patterns)} entries, "
        f"but pattern #{failed_index} {pattern.describe()} "
        f"was not found at or after entry {cursor}",
        "Expected sequence:",
    ]
    for i, p in enumerate(patterns):
        marker = ">" if i == failed_index else " "
        lines.append(f" {marker}[{i}] {p.describe()}")
    lines.append(f"Actual entries ({len(entries)}):")
    lines.extend(_render_entries(entries, limit))
    return "\n".join(lines)


def match_entries(
    entries: Iterable[LogEntry],
    patterns: Sequence[Pattern],
    config: Config | None = None,
) -> MatchResult:
    """Run the subsequence search over already-extracted entries."""
    patterns = list(patterns)
    if not patterns:
        return MatchResult(success=True)

    config = config or load_config()
    seen: list[LogEntry] = []
    matched: list[int] = []
    iterator = iter(entries)
    cursor = 0

    for j, pattern in enumerate(patterns):
        found = None
        for entry in iterator:
            k = len(seen)
            seen.append(entry)
            if pattern.matches(entry):
                found = k
                break

        if found is None:
            # Drain the rest so the diagnostic shows everything that was logged.
            seen.extend(iterator)
            logger.debug("Pattern #%d %s not found at or after entry %d", j, pattern.describe(), cursor)
            return MatchResult(
                success=False,
                matched_indices=tuple(matched),
                failed_index=j,
                failed_pattern=pattern,
                cursor=cursor,
                entries=tuple(seen),
                message=_failure_message(patterns, j, cursor, seen, config.max_rendered_entries),
            )

        logger.debug("Pattern #%d %s matched entry %d", j, pattern.describe(), found)
        matched.append(found)
        cursor = found + 1

    return MatchResult(
        success=True,
        matched_indices=tuple(matched),
        cursor=cursor,
        entries=tuple(seen),
    )


def contains_sequence(
    actual: Any,
    patterns: Sequence[Pattern],
    config: Config | None = None,
) -> MatchResult:
    """Extract entries from *actual* and search them for *patterns*.

    Usage errors (unsupported actual, malformed content) are raised;
    a completed comparison always returns a MatchResult.
    """
    config = config or load_config()
    decoder = RecordDecoder(config.schema_path)
    entries = extract_entries(actual, config=config, decoder=decoder)
    result = match_entries(entries, patterns, config=config)

    skipped = decoder.get_stats()["skipped"]
    if not skipped:
        return result
    logger.debug("Skipped %d undecodable line(s)", skipped)
    message = result.message
    if message:
        message += f"\n({skipped} undecodable line(s) skipped)"
    return replace(result, skipped_lines=skipped, message=message)


class ContainSequence:
    """Reusable matcher object for test-framework integration.

        matcher = ContainSequence(info(), error(err))
        assert matcher.match(sink), matcher.failure_message()
    """

    def __init__(self, *patterns: Pattern, config: Config | None = None):
        self._patterns = list(patterns)
        self._config = config
        self.last_result: MatchResult | None = None

    @property
    def patterns(self) -> list[Pattern]:
        return list(self._patterns)

    def match(self, actual: Any) -> bool:
        self.last_result = contains_sequence(actual, self._patterns, config=self._config)
        return self.last_result.success

    def _describe_patterns(self) -> str:
        if not self._patterns:
            return "  (empty sequence)"
        return "\n".join(f"  [{i}] {p.describe()}" for i, p in enumerate(self._patterns))

    def failure_message(self, actual: Any = None) -> str:
        if self.last_result is None and actual is not None:
            self.match(actual)
        if self.last_result is not None and self.last_result.message:
            return self.last_result.message
        return f"Expected log to contain sequence:\n{self._describe_patterns()}"

    def negated_failure_message(self, actual: Any = None) -> str:
        if self.last_result is None and actual is not None:
            self.match(actual)
        lines = ["Expected log not to contain sequence:", self._describe_patterns()]
        if self.last_result is not None and self.last_result.matched_indices:
            bound = ", ".join(str(i) for i in self.last_result.matched_indices)
            lines.append(f"but it was found at entries {bound}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"ContainSequence({', '.join(p.describe() for p in self._patterns)})"


def assert_contains_sequence(actual: Any, *patterns: Pattern, config: Config | None = None) -> MatchResult:
    """Raise AssertionError unless *patterns* occur in order in *actual*."""
    matcher = ContainSequence(*patterns, config=config)
    if not matcher.match(actual):
        raise AssertionError(matcher.failure_message())
    return matcher.last_result


def assert_not_contains_sequence(actual: Any, *patterns: Pattern, config: Config | None = None) -> MatchResult:
    """Raise AssertionError if *patterns* occur in order in *actual*."""
    matcher = ContainSequence(*patterns, config=config)
    if matcher.match(actual):
        raise AssertionError(matcher.negated_failure_message())
    return matcher.last_result
