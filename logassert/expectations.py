"""Expectation documents (YAML) -> patterns.

Accepted shapes:

    - level: info
      data: {event: starting}
    - level: error
      error: some-error
      source: svc

or the same list under a top-level ``sequence:`` key.
"""

import logging
from typing import Any

import yaml

from logassert.errors import ExpectationFileError, InvalidDataArgumentsError
from logassert.patterns import Pattern, action, data, debug, error, fatal, info, message, source

logger = logging.getLogger(__name__)

_CONSTRUCTORS = {"debug": debug, "info": info, "error": error, "fatal": fatal}
_KNOWN_KEYS = {"level", "source", "message", "action", "data", "error"}


def pattern_from_dict(item: Any, index: int = 0) -> Pattern:
    """Build one Pattern from an expectation mapping."""
    if not isinstance(item, dict):
        raise ExpectationFileError(f"Expectation #{index} must be a mapping, got {type(item).__name__}")

    unknown = set(item) - _KNOWN_KEYS
    if unknown:
        raise ExpectationFileError(f"Expectation #{index} has unknown keys: {', '.join(sorted(map(str, unknown)))}")

    level = str(item.get("level", "")).strip().lower()
    if level not in _CONSTRUCTORS:
        raise ExpectationFileError(
            f"Expectation #{index} needs a level of debug, info, error or fatal, got {item.get('level')!r}"
        )
    if "error" in item and level not in ("error", "fatal"):
        raise ExpectationFileError(f"Expectation #{index}: 'error' is only valid for error/fatal levels")

    options = []
    if "source" in item:
        options.append(source(str(item["source"])))
    if "message" in item:
        options.append(message(str(item["message"])))
    if "action" in item:
        options.append(action(str(item["action"])))
    if "data" in item:
        expected_data = item["data"]
        if not isinstance(expected_data, dict):
            raise ExpectationFileError(f"Expectation #{index}: 'data' must be a mapping")
        key_values = []
        for key, value in expected_data.items():
            key_values.extend([key, value])
        try:
            options.append(data(*key_values))
        except InvalidDataArgumentsError as e:
            raise ExpectationFileError(f"Expectation #{index}: {e}") from e

    if level in ("error", "fatal"):
        err = item.get("error")
        return _CONSTRUCTORS[level](None if err is None else str(err), *options)
    return _CONSTRUCTORS[level](*options)


def patterns_from_document(document: Any) -> list[Pattern]:
    """Build the pattern list from a parsed YAML document."""
    if document is None:
        return []
    if isinstance(document, dict):
        if "sequence" not in document:
            raise ExpectationFileError("Expectation document must be a list or have a 'sequence' key")
        document = document["sequence"] or []
    if not isinstance(document, list):
        raise ExpectationFileError(f"Expectation sequence must be a list, got {type(document).__name__}")
    return [pattern_from_dict(item, i) for i, item in enumerate(document)]


def load_expectations(path: str) -> list[Pattern]:
    """Read and parse an expectation file."""
    try:
        with open(path, "r") as f:
            document = yaml.safe_load(f)
    except FileNotFoundError:
        raise ExpectationFileError(f"Expectation file not found: {path}") from None
    except yaml.YAMLError as e:
        raise ExpectationFileError(f"Invalid YAML in {path}: {e}") from e

    patterns = patterns_from_document(document)
    logger.debug("Loaded %d expectation(s) from %s", len(patterns), path)
    return patterns
