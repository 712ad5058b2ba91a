"""Mesh workload analysis: sidecar presence, readiness and annotation consistency."""

from __future__ import annotations

import dataclasses
from collections.abc import Collection
from typing import TYPE_CHECKING, Any

from sailmcp.errors import SailMCPError
from sailmcp.formatting import nested_dict, nested_list, nested_str, truncate
from sailmcp.models.config import DEFAULT_SYSTEM_NAMESPACES
from sailmcp.models.resources import MeshStatus, WorkloadInfo
from sailmcp.models.results import ToolResult
from sailmcp.observability.logging import get_logger

if TYPE_CHECKING:
    from sailmcp.cluster import ClusterClient

_log = get_logger("handlers.mesh")

SIDECAR_CONTAINER = "istio-proxy"
INJECT_ANNOTATION = "sidecar.istio.io/inject"
STATUS_ANNOTATION = "sidecar.istio.io/status"


def analyze_pod(obj: dict[str, Any]) -> WorkloadInfo:
    """Derive mesh membership and issues for a single pod."""
    annotations = nested_dict(obj, "metadata", "annotations")
    workload = WorkloadInfo(
        name=nested_str(obj, "metadata", "name"),
        namespace=nested_str(obj, "metadata", "namespace"),
        labels=nested_dict(obj, "metadata", "labels"),
        annotations=annotations,
    )

    injected = any(
        isinstance(c, dict) and c.get("name") == SIDECAR_CONTAINER for c in nested_list(obj, "spec", "containers")
    )
    ready = False
    if injected:
        for status in nested_list(obj, "status", "containerStatuses"):
            if isinstance(status, dict) and status.get("name") == SIDECAR_CONTAINER:
                ready = status.get("ready") is True
                if not ready:
                    workload.issues.append("Istio sidecar not ready")
                break

    inject = annotations.get(INJECT_ANNOTATION)
    if inject == "false" and injected:
        workload.issues.append("Pod has sidecar despite injection disabled")
    elif inject == "true" and not injected:
        workload.issues.append("Pod missing sidecar despite injection enabled")

    if injected:
        sidecar_status = annotations.get(STATUS_ANNOTATION)
        if not sidecar_status:
            workload.issues.append("Missing istio status annotation")
        elif SIDECAR_CONTAINER not in sidecar_status:
            workload.issues.append("Istio status annotation missing proxy information")

    if injected and ready:
        workload.mesh_status = MeshStatus.IN_MESH
    elif injected:
        workload.mesh_status = MeshStatus.MESH_ISSUES
    else:
        workload.mesh_status = MeshStatus.NOT_IN_MESH

    workload.sidecar_injected = injected
    workload.sidecar_ready = ready
    return workload


def format_workloads(workloads: list[WorkloadInfo]) -> str:
    injected = sum(1 for w in workloads if w.sidecar_injected)
    lines = [
        "=== Mesh Workloads Analysis ===",
        "",
        f"Found {len(workloads)} workloads ({injected} with sidecars, {len(workloads) - injected} without)",
        "",
        f"{'NAME':<30} {'NAMESPACE':<15} {'MESH STATUS':<12} {'SIDECAR':<8} {'READY':<10} ISSUES",
        "-" * 100,
    ]
    for w in workloads:
        if not w.sidecar_injected:
            sidecar = "❌"
        else:
            sidecar = "✅" if w.sidecar_ready else "⚠️"
        ready = "✅" if w.sidecar_ready else "❌"
        issues = f"{len(w.issues)} issues" if w.issues else "None"
        lines.append(
            f"{truncate(w.name):<30} {w.namespace:<15} {w.mesh_status.value:<12} {sidecar:<8} {ready:<10} {issues}"
        )

    with_issues = [w for w in workloads if w.issues]
    if with_issues:
        lines.append("")
        lines.append("=== Issues Found ===")
        for w in with_issues:
            lines.append("")
            lines.append(f"{w.name} ({w.namespace}):")
            lines.extend(f"  • {issue}" for issue in w.issues)
    else:
        lines.append("")
        lines.append("✅ No issues found with mesh workloads")
    return "\n".join(lines)


async def check_mesh_workloads(
    client: ClusterClient,
    namespace: str | None = None,
    label_selector: str | None = None,
    system_namespaces: Collection[str] = DEFAULT_SYSTEM_NAMESPACES,
) -> ToolResult:
    """Analyze every pod outside ``system_namespaces`` for mesh consistency."""
    try:
        items = await client.list_pods(namespace=namespace, label_selector=label_selector)
    except SailMCPError as exc:
        _log.warning("mesh_list_pods_failed", namespace=namespace, error=str(exc))
        return ToolResult.error(f"Error listing pods: {exc}")

    workloads = [
        analyze_pod(item) for item in items if nested_str(item, "metadata", "namespace") not in system_namespaces
    ]
    injected = sum(1 for w in workloads if w.sidecar_injected)

    if workloads:
        text = format_workloads(workloads)
    else:
        text = "No workloads found"
        if namespace:
            text += f" in namespace '{namespace}'"

    payload: dict[str, object] = {
        "status": "success",
        "workloads": [dataclasses.asdict(w) for w in workloads],
        "count": len(workloads),
        "with_sidecar": injected,
        "without_sidecar": len(workloads) - injected,
    }
    return ToolResult(text=text, payload=payload)
