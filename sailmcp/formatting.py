"""Shared helpers for turning raw cluster dicts into report text.

Cluster objects arrive as plain camelCase dicts (the API wire form).  Field
access goes through :func:`nested_get` so a missing or oddly-typed key is a
normal ``None``, never an exception.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from sailmcp.models.resources import ResourceCondition

NAME_WIDTH = 29
UNKNOWN_AGE = "<unknown>"


def truncate(value: str, width: int = NAME_WIDTH) -> str:
    """Shorten ``value`` to ``width`` characters with a trailing ellipsis.

    Display only; structured payloads always keep the full value.
    """
    if len(value) <= width:
        return value
    return value[: width - 3] + "..."


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an RFC 3339 timestamp string (or pass a datetime through)."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def format_age(timestamp: Any, now: datetime | None = None) -> str:
    """Render the time since ``timestamp`` as ``42s``, ``5m``, ``3h`` or ``2d``."""
    created = parse_timestamp(timestamp)
    if created is None:
        return UNKNOWN_AGE
    seconds = int(((now or datetime.now(tz=UTC)) - created).total_seconds())
    seconds = max(seconds, 0)
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m"
    if seconds < 86400:
        return f"{seconds // 3600}h"
    return f"{seconds // 86400}d"


def nested_get(obj: Any, *path: str) -> Any:
    """Walk ``path`` through nested dicts, returning ``None`` on any miss."""
    current = obj
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
        if current is None:
            return None
    return current


def nested_str(obj: Any, *path: str) -> str:
    value = nested_get(obj, *path)
    return value if isinstance(value, str) else ""


def nested_int(obj: Any, *path: str) -> int:
    value = nested_get(obj, *path)
    if isinstance(value, bool):
        return 0
    return value if isinstance(value, int) else 0


def nested_dict(obj: Any, *path: str) -> dict[str, Any]:
    value = nested_get(obj, *path)
    return dict(value) if isinstance(value, dict) else {}


def nested_list(obj: Any, *path: str) -> list[Any]:
    value = nested_get(obj, *path)
    return list(value) if isinstance(value, list) else []


def parse_conditions(obj: dict[str, Any]) -> list[ResourceCondition]:
    """Extract ``status.conditions`` entries; non-dict entries are skipped."""
    conditions: list[ResourceCondition] = []
    for raw in nested_list(obj, "status", "conditions"):
        if not isinstance(raw, dict):
            continue
        conditions.append(
            ResourceCondition(
                type=nested_str(raw, "type"),
                status=nested_str(raw, "status"),
                reason=nested_str(raw, "reason"),
                message=nested_str(raw, "message"),
            )
        )
    return conditions


def format_mapping(mapping: dict[str, str]) -> str:
    """Render labels/annotations as ``map[k1:v1 k2:v2]`` (``map[]`` when empty)."""
    inner = " ".join(f"{key}:{mapping[key]}" for key in sorted(mapping))
    return f"map[{inner}]"


def to_json(payload: Any) -> str:
    """Compact JSON encoding; unencodable payloads become ``{}``."""
    try:
        return json.dumps(payload, separators=(",", ":"), default=str)
    except (TypeError, ValueError):
        return "{}"
