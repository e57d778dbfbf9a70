"""Dot-path helpers for nested telemetry payloads ("fans.FAN1.speed")."""

from collections.abc import Mapping
from typing import Any, Optional

ROOT_PATH = "ROOT"


def get_by_dot_path(obj: Any, path: Optional[str], default: Any = None) -> Any:
    """Read a nested value. An empty path or 'ROOT' returns the whole object."""
    if not path or path == ROOT_PATH:
        return obj
    current = obj
    for part in path.split("."):
        if isinstance(current, Mapping) and part in current:
            current = current[part]
        else:
            return default
    return current


def set_by_dot_path(obj: dict, path: str, value: Any) -> None:
    """Write a nested value, creating intermediate dicts as needed."""
    parts = path.split(".")
    current = obj
    for part in parts[:-1]:
        if not isinstance(current.get(part), dict):
            current[part] = {}
        current = current[part]
    current[parts[-1]] = value
