"""Entry patterns and the option builders that constrain them.

    info(data("event", "starting"))
    error(err, source("svc"), action("svc.start"))

Constructors fix the level; options are independent and order-insensitive.
source/message/action are last-write-wins (action writes the message field),
data merges with later keys overwriting earlier ones.
"""

from typing import Any, Callable

from logassert.errors import InvalidDataArgumentsError
from logassert.models import LogEntry, LogLevel

_MISSING = object()


def values_equal(actual: Any, expected: Any) -> bool:
    """JSON-value equality: unlike ==, true is not 1 and false is not 0."""
    if isinstance(actual, bool) or isinstance(expected, bool):
        return actual is expected
    if isinstance(actual, dict) and isinstance(expected, dict):
        return actual.keys() == expected.keys() and all(
            values_equal(actual[k], expected[k]) for k in actual
        )
    if isinstance(actual, (list, tuple)) and isinstance(expected, (list, tuple)):
        return len(actual) == len(expected) and all(
            values_equal(a, e) for a, e in zip(actual, expected)
        )
    return actual == expected


class Pattern:
    """An expected log entry. Unset fields are "don't care"."""

    def __init__(self, level: LogLevel, expected_error: BaseException | str | None = None):
        self.level = LogLevel(level)
        self.expected_error = expected_error
        self.source: str | None = None
        self.message: str | None = None
        self.data: dict[str, Any] = {}

    def with_source(self, value: str) -> "Pattern":
        self.source = value
        return self

    def with_message(self, value: str) -> "Pattern":
        self.message = value
        return self

    def with_action(self, value: str) -> "Pattern":
        return self.with_message(value)

    def with_data(self, *key_values: Any) -> "Pattern":
        self.data.update(_pairs(key_values))
        return self

    def with_error(self, err: BaseException | str | None) -> "Pattern":
        self.expected_error = err
        return self

    @property
    def error_text(self) -> str | None:
        if self.expected_error is None:
            return None
        return str(self.expected_error)

    def matches(self, entry: LogEntry) -> bool:
        """True if *entry* satisfies the level and every asserted field."""
        if entry.level != self.level:
            return False

        expected_error = self.error_text
        if expected_error is not None and entry.error != expected_error:
            return False

        if self.source is not None and entry.source != self.source:
            return False
        if self.message is not None and entry.message != self.message:
            return False

        for key, value in self.data.items():
            if entry.data.get(key, _MISSING) is _MISSING:
                return False
            if not values_equal(entry.data[key], value):
                return False
        return True

    def describe(self) -> str:
        """Level plus asserted fields, e.g. ``ERROR(error='boom', source='svc')``."""
        fields = []
        if self.error_text is not None:
            fields.append(f"error={self.error_text!r}")
        if self.source is not None:
            fields.append(f"source={self.source!r}")
        if self.message is not None:
            fields.append(f"message={self.message!r}")
        if self.data:
            fields.append(f"data={self.data!r}")
        return f"{self.level.name}({', '.join(fields)})"

    def __repr__(self) -> str:
        return f"<Pattern {self.describe()}>"


Option = Callable[[Pattern], None]


def _pairs(key_values: tuple) -> dict[str, Any]:
    if len(key_values) % 2 != 0:
        raise InvalidDataArgumentsError(
            f"data() requires key/value pairs, got {len(key_values)} argument(s): {key_values!r}"
        )
    pairs = {}
    for i in range(0, len(key_values), 2):
        key = key_values[i]
        if not isinstance(key, str):
            raise InvalidDataArgumentsError(f"data() keys must be strings, got {key!r}")
        pairs[key] = key_values[i + 1]
    return pairs


# ---------------------------------------------------------------------------
# Option builders
# ---------------------------------------------------------------------------


def source(value: str) -> Option:
    return lambda pattern: pattern.with_source(value)


def message(value: str) -> Option:
    return lambda pattern: pattern.with_message(value)


def action(value: str) -> Option:
    """Alias of message(): lager records the action as the entry message."""
    return lambda pattern: pattern.with_action(value)


def data(*key_values: Any) -> Option:
    """Expect the entry data to contain these key/value pairs (a subset check).

    Raises InvalidDataArgumentsError immediately for an odd argument count.
    """
    pairs = _pairs(key_values)
    return lambda pattern: pattern.data.update(pairs)


# ---------------------------------------------------------------------------
# Level constructors
# ---------------------------------------------------------------------------


def _build(level: LogLevel, err: BaseException | str | None, options: tuple) -> Pattern:
    pattern = Pattern(level, err)
    for option in options:
        if not callable(option):
            raise TypeError(
                f"{level.name.lower()}() options must come from source(), message(), "
                f"action() or data(), got {option!r}"
            )
        option(pattern)
    return pattern


def debug(*options: Option) -> Pattern:
    return _build(LogLevel.DEBUG, None, options)


def info(*options: Option) -> Pattern:
    return _build(LogLevel.INFO, None, options)


def error(err: BaseException | str | None, *options: Option) -> Pattern:
    """An ERROR pattern. *err* None leaves the error text unchecked."""
    return _build(LogLevel.ERROR, err, options)


def fatal(err: BaseException | str | None, *options: Option) -> Pattern:
    """A FATAL pattern. *err* None leaves the error text unchecked."""
    return _build(LogLevel.FATAL, err, options)
