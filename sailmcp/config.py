"""Environment-variable configuration loader.

All settings come from ``SAILMCP_*`` variables (plus the standard
``KUBECONFIG``).  Integers are clamped into their allowed range; enumerated
values that are not recognised raise ``ValueError``.
"""

from __future__ import annotations

import os

from sailmcp.models.config import (
    DEFAULT_SYSTEM_NAMESPACES,
    KubeConfig,
    LogConfig,
    LogsConfig,
    MeshConfig,
    MetricsConfig,
    SailMCPConfig,
)

_VALID_LOG_LEVELS: frozenset[str] = frozenset({"debug", "info", "warning", "error"})
_TRUTHY: frozenset[str] = frozenset({"1", "true", "yes", "on"})


def _env_str(name: str, default: str) -> str:
    value = os.environ.get(name)
    return value.strip() if value is not None else default


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


def _env_int(name: str, default: int, minimum: int, maximum: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid integer for {name}: {raw!r}") from exc
    return max(minimum, min(maximum, value))


def _env_set(name: str, default: frozenset[str]) -> frozenset[str]:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


def _validate_log_level(level: str) -> str:
    normalised = level.lower()
    if normalised not in _VALID_LOG_LEVELS:
        raise ValueError(f"Invalid log level: {level!r} (expected one of {sorted(_VALID_LOG_LEVELS)})")
    return normalised


def load_config() -> SailMCPConfig:
    """Build a :class:`SailMCPConfig` from the current environment."""
    return SailMCPConfig(
        log=LogConfig(level=_validate_log_level(_env_str("SAILMCP_LOG_LEVEL", "info"))),
        kube=KubeConfig(
            kubeconfig=_env_str("KUBECONFIG", ""),
            request_timeout_seconds=_env_int("SAILMCP_REQUEST_TIMEOUT", 10, 1, 120),
        ),
        logs=LogsConfig(
            timeout_seconds=_env_int("SAILMCP_LOG_TIMEOUT", 30, 5, 300),
            default_tail_lines=_env_int("SAILMCP_LOG_TAIL_LINES", 50, 1, 10000),
        ),
        mesh=MeshConfig(
            system_namespaces=_env_set("SAILMCP_MESH_SYSTEM_NAMESPACES", DEFAULT_SYSTEM_NAMESPACES),
        ),
        metrics=MetricsConfig(
            enabled=_env_bool("SAILMCP_METRICS_ENABLED", False),
            port=_env_int("SAILMCP_METRICS_PORT", 9090, 1024, 65535),
        ),
    )
