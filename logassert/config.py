"""Configuration: frozen dataclass built from defaults, an optional YAML file, then env vars."""

import logging
import os
from dataclasses import dataclass

import yaml

logger = logging.getLogger(__name__)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class Config:
    strict: bool = True
    max_rendered_entries: int = 20
    schema_path: str | None = None


DEFAULTS = {
    "strict": Config.strict,
    "max_rendered_entries": Config.max_rendered_entries,
    "schema_path": Config.schema_path,
}


def _load_yaml(path: str) -> dict:
    """Read the logassert settings from a YAML file.

    Settings may live under a top-level ``logassert:`` key or at the top
    level. A missing file or invalid YAML yields an empty dict.
    """
    try:
        with open(path, "r") as f:
            loaded = yaml.safe_load(f)
    except FileNotFoundError:
        logger.debug("Config file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError:
        logger.warning("Invalid YAML in %s, using defaults", path)
        return {}

    if not isinstance(loaded, dict):
        return {}
    section = loaded.get("logassert", loaded)
    if not isinstance(section, dict):
        return {}
    return {k: v for k, v in section.items() if k in DEFAULTS}


def load_config(path: str | None = None) -> Config:
    """Build Config from defaults, the YAML file at *path*, and environment variables.

    Environment variables take precedence over the file:
    LOGASSERT_STRICT, LOGASSERT_MAX_RENDERED_ENTRIES, LOGASSERT_SCHEMA_PATH.
    """
    settings = dict(DEFAULTS)
    if path is not None:
        settings.update(_load_yaml(path))

    raw_strict = os.environ.get("LOGASSERT_STRICT")
    if raw_strict is not None:
        settings["strict"] = _parse_bool(raw_strict)
    elif isinstance(settings["strict"], str):
        settings["strict"] = _parse_bool(settings["strict"])

    settings["max_rendered_entries"] = int(
        os.environ.get("LOGASSERT_MAX_RENDERED_ENTRIES", settings["max_rendered_entries"])
    )
    settings["schema_path"] = os.environ.get("LOGASSERT_SCHEMA_PATH", settings["schema_path"])

    return Config(
        strict=bool(settings["strict"]),
        max_rendered_entries=settings["max_rendered_entries"],
        schema_path=settings["schema_path"] or None,
    )
