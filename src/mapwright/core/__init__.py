"""Core infrastructure: logging, configuration, canonical JSON, paths, DAG view."""

from mapwright.core.canonical import CANONICAL_VERSION, canonical_json, stable_hash
from mapwright.core.config import MapwrightSettings, default_settings, load_settings
from mapwright.core.dag import MappingDAG
from mapwright.core.logging import configure_logging, get_logger
from mapwright.core.paths import get_path_value, parse_path
from mapwright.core.sentinels import MISSING

__all__ = [
    "CANONICAL_VERSION",
    "MISSING",
    "MappingDAG",
    "MapwrightSettings",
    "canonical_json",
    "configure_logging",
    "default_settings",
    "get_logger",
    "get_path_value",
    "load_settings",
    "parse_path",
    "stable_hash",
]
