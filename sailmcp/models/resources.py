"""Read-only projections of cluster objects.

Each instance is built from a single fetch and discarded once the response
is rendered; nothing here is cached or carried across requests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class ComponentStatus(StrEnum):
    """Aggregate health of one Sail Operator resource kind."""

    HEALTHY = "Healthy"
    DEGRADED = "Degraded"
    UNHEALTHY = "Unhealthy"
    NOT_INSTALLED = "NotInstalled"
    ERROR = "Error"


class MeshStatus(StrEnum):
    """Derived mesh membership of a workload."""

    IN_MESH = "In Mesh"
    MESH_ISSUES = "Mesh Issues"
    NOT_IN_MESH = "Not in Mesh"


# ---------------------------------------------------------------------------
# Core resources
# ---------------------------------------------------------------------------


@dataclass
class NamespaceDetail:
    name: str
    status: str
    created_at: str
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)


@dataclass
class PodInfo:
    """Summary row for a pod.

    ``status`` is the display status derived from phase and container
    readiness; ``phase`` is copied verbatim.
    """

    name: str
    namespace: str
    status: str
    phase: str
    ready: str
    restarts: int
    age: str
    created_at: str
    node_name: str = ""
    pod_ip: str = ""
    labels: dict[str, str] = field(default_factory=dict)


@dataclass
class ServicePort:
    port: int
    protocol: str
    name: str = ""
    target_port: str = ""
    node_port: int = 0


@dataclass
class ServiceInfo:
    name: str
    namespace: str
    type: str
    created_at: str
    cluster_ip: str = ""
    external_ip: list[str] = field(default_factory=list)
    ports: list[ServicePort] = field(default_factory=list)
    labels: dict[str, str] = field(default_factory=dict)
    selector: dict[str, str] = field(default_factory=dict)


@dataclass
class DeploymentInfo:
    name: str
    namespace: str
    ready: str
    up_to_date: int
    available: int
    age: str
    created_at: str
    strategy: str = ""
    labels: dict[str, str] = field(default_factory=dict)


@dataclass
class ConfigMapInfo:
    name: str
    namespace: str
    data_count: int
    created_at: str
    keys: list[str] = field(default_factory=list)
    labels: dict[str, str] = field(default_factory=dict)


@dataclass
class EventInfo:
    type: str
    reason: str
    message: str
    count: int
    first_seen: str = ""
    last_seen: str = ""
    involved_kind: str = ""
    involved_name: str = ""
    involved_namespace: str = ""


# ---------------------------------------------------------------------------
# Sail Operator custom resources
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ResourceCondition:
    """A ``status.conditions`` entry, copied verbatim."""

    type: str
    status: str
    reason: str = ""
    message: str = ""


@dataclass
class SailOperatorResource:
    kind: str
    name: str
    namespace: str
    created_at: str
    version: str = ""
    state: str = ""
    conditions: list[ResourceCondition] = field(default_factory=list)


@dataclass
class RevisionSummary:
    total: int = 0
    ready: int = 0
    in_use: int = 0


@dataclass
class IstioStatus:
    name: str
    namespace: str
    created_at: str
    version: str = ""
    state: str = ""
    profile: str = ""
    update_strategy: str = ""
    active_revision_name: str = ""
    revisions: RevisionSummary = field(default_factory=RevisionSummary)
    conditions: list[ResourceCondition] = field(default_factory=list)


@dataclass
class HealthCheckResult:
    """Health of one resource kind, reduced over all of its instances."""

    component: str
    status: ComponentStatus
    reason: str = ""
    issues: list[str] = field(default_factory=list)
    conditions: list[ResourceCondition] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Mesh workloads
# ---------------------------------------------------------------------------


@dataclass
class WorkloadInfo:
    name: str
    namespace: str
    kind: str = "Pod"
    sidecar_injected: bool = False
    sidecar_ready: bool = False
    mesh_status: MeshStatus = MeshStatus.NOT_IN_MESH
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    issues: list[str] = field(default_factory=list)
