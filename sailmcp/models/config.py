"""Configuration data structures, populated by :func:`sailmcp.config.load_config`."""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_SYSTEM_NAMESPACES: frozenset[str] = frozenset(
    {
        "kube-system",
        "kube-public",
        "kube-node-lease",
        "local-path-storage",
        "istio-system",
        "istio-cni",
        "sail-operator",
    }
)


@dataclass(frozen=True)
class LogConfig:
    level: str = "info"


@dataclass(frozen=True)
class KubeConfig:
    """Cluster client settings.

    An empty ``kubeconfig`` means in-cluster credentials first, then the
    default kubeconfig location.
    """

    kubeconfig: str = ""
    request_timeout_seconds: int = 10


@dataclass(frozen=True)
class LogsConfig:
    timeout_seconds: int = 30
    default_tail_lines: int = 50


@dataclass(frozen=True)
class MeshConfig:
    system_namespaces: frozenset[str] = DEFAULT_SYSTEM_NAMESPACES


@dataclass(frozen=True)
class MetricsConfig:
    enabled: bool = False
    port: int = 9090


@dataclass(frozen=True)
class SailMCPConfig:
    log: LogConfig = field(default_factory=LogConfig)
    kube: KubeConfig = field(default_factory=KubeConfig)
    logs: LogsConfig = field(default_factory=LogsConfig)
    mesh: MeshConfig = field(default_factory=MeshConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
