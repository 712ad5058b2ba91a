"""Sail Operator health aggregation.

A two-level reduction, recomputed from scratch on every call:

1. Per kind: each instance is healthy when its ``Ready``, ``Reconciled`` and
   ``DependenciesHealthy`` conditions (where present) are ``True`` and its
   ``status.state`` (where present) is ``Healthy``.  All instances healthy
   gives Healthy, some gives Degraded, none gives Unhealthy.  A missing CRD
   or an empty list gives NotInstalled; any other query failure gives Error.
2. Across kinds: all kinds Healthy gives Healthy, none gives Unhealthy,
   anything in between gives Degraded.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from sailmcp.cluster.client import SAIL_OPERATOR_RESOURCES, CustomResource
from sailmcp.errors import NotFoundError, SailMCPError
from sailmcp.formatting import nested_get, nested_str, parse_conditions
from sailmcp.models.resources import ComponentStatus, HealthCheckResult, ResourceCondition
from sailmcp.models.results import ToolResult
from sailmcp.observability.logging import get_logger

if TYPE_CHECKING:
    from sailmcp.cluster import ClusterClient

_log = get_logger("handlers.health")

HEALTHY_STATE = "Healthy"

# condition type -> issue wording when the condition is not True
_CRITICAL_CONDITIONS: dict[str, str] = {
    "Ready": "is not ready",
    "Reconciled": "reconciliation failed",
    "DependenciesHealthy": "has unhealthy dependencies",
}

_STATUS_ICONS: dict[ComponentStatus, str] = {
    ComponentStatus.HEALTHY: "✅",
    ComponentStatus.DEGRADED: "⚠️",
    ComponentStatus.UNHEALTHY: "❌",
    ComponentStatus.ERROR: "❌",
    ComponentStatus.NOT_INSTALLED: "⭕",
}


def analyze_resource_health(obj: dict[str, Any]) -> tuple[bool, list[str], list[ResourceCondition]]:
    """Evaluate one instance. Returns ``(healthy, issues, conditions)``."""
    name = nested_str(obj, "metadata", "name")
    namespace = nested_str(obj, "metadata", "namespace")
    resource_id = f"{namespace}/{name}" if namespace else name

    healthy = True
    issues: list[str] = []
    conditions = parse_conditions(obj)

    for cond in conditions:
        wording = _CRITICAL_CONDITIONS.get(cond.type)
        if wording is None or cond.status == "True":
            continue
        healthy = False
        issue = f"{resource_id} {wording}"
        if cond.reason:
            issue += f" ({cond.reason})"
        issues.append(issue)

    state = nested_get(obj, "status", "state")
    if isinstance(state, str) and state != HEALTHY_STATE:
        healthy = False
        issues.append(f"{resource_id} state is {state}")

    return healthy, issues, conditions


def reduce_component(kind: str, items: Sequence[dict[str, Any]]) -> HealthCheckResult:
    """Reduce every instance of ``kind`` to a single component result."""
    if not items:
        return HealthCheckResult(
            component=kind,
            status=ComponentStatus.NOT_INSTALLED,
            reason="No resources found",
            issues=[f"No {kind} resources are installed"],
        )

    healthy_count = 0
    issues: list[str] = []
    conditions: list[ResourceCondition] = []
    for item in items:
        healthy, item_issues, item_conditions = analyze_resource_health(item)
        if healthy:
            healthy_count += 1
        issues.extend(item_issues)
        conditions.extend(item_conditions)

    total = len(items)
    if healthy_count == total:
        return HealthCheckResult(
            component=kind,
            status=ComponentStatus.HEALTHY,
            reason=f"All {total} resources healthy",
            conditions=conditions,
        )
    status = ComponentStatus.DEGRADED if healthy_count > 0 else ComponentStatus.UNHEALTHY
    return HealthCheckResult(
        component=kind,
        status=status,
        reason=f"{healthy_count}/{total} resources healthy",
        issues=issues,
        conditions=conditions,
    )


def overall_health(components: Sequence[HealthCheckResult]) -> ComponentStatus:
    healthy = sum(1 for c in components if c.status is ComponentStatus.HEALTHY)
    if healthy == len(components):
        return ComponentStatus.HEALTHY
    if healthy == 0:
        return ComponentStatus.UNHEALTHY
    return ComponentStatus.DEGRADED


async def check_component_health(
    client: ClusterClient, resource: CustomResource, namespace: str | None = None
) -> HealthCheckResult:
    try:
        items = await client.list_custom_objects(resource, namespace=namespace)
    except NotFoundError:
        return HealthCheckResult(
            component=resource.kind,
            status=ComponentStatus.NOT_INSTALLED,
            reason="CRD not installed",
            issues=[f"{resource.kind} CRD is not installed or not accessible"],
        )
    except SailMCPError as exc:
        _log.warning("component_health_query_failed", kind=resource.kind, namespace=namespace, error=str(exc))
        return HealthCheckResult(
            component=resource.kind,
            status=ComponentStatus.ERROR,
            reason="Query failed",
            issues=[f"Failed to query {resource.kind} resources: {exc}"],
        )
    return reduce_component(resource.kind, items)


def format_component(component: HealthCheckResult) -> str:
    icon = _STATUS_ICONS.get(component.status, "❓")
    line = f"{icon} {component.component}: {component.status.value}"
    if component.reason:
        line += f" - {component.reason}"
    lines = [line]
    lines.extend(f"   🔸 {issue}" for issue in component.issues)
    return "\n".join(lines)


def format_summary(components: Sequence[HealthCheckResult], overall: ComponentStatus) -> str:
    lines = ["=== Summary ==="]
    if overall is ComponentStatus.HEALTHY:
        lines.append("✅ All Sail Operator components are healthy and functioning properly.")
    elif overall is ComponentStatus.DEGRADED:
        lines.append("⚠️  Some Sail Operator components have issues that need attention.")
        lines.append("")
        lines.append("Components with issues:")
        for comp in components:
            if comp.status is ComponentStatus.HEALTHY:
                continue
            line = f"  • {comp.component}: {comp.reason}"
            if comp.issues:
                line += f" - {comp.issues[0]}"
            lines.append(line)
    else:
        lines.append("❌ Sail Operator components are experiencing significant issues.")
        lines.append("")
        lines.append("Critical issues found:")
        for comp in components:
            if comp.status in (ComponentStatus.UNHEALTHY, ComponentStatus.ERROR):
                lines.append(f"  • {comp.component}: {comp.reason}")
                lines.extend(f"    - {issue}" for issue in comp.issues)
    return "\n".join(lines)


async def check_sailoperator_health(
    client: ClusterClient,
    namespace: str | None = None,
    resources: Sequence[CustomResource] = SAIL_OPERATOR_RESOURCES,
) -> ToolResult:
    """Check every Sail Operator kind in turn and reduce to an overall status."""
    components = [await check_component_health(client, resource, namespace) for resource in resources]
    overall = overall_health(components)
    healthy = sum(1 for c in components if c.status is ComponentStatus.HEALTHY)
    summary = format_summary(components, overall)

    lines = [
        "=== Sail Operator Health Check ===",
        "",
        f"Overall Health: {overall.value} ({healthy}/{len(components)} components healthy)",
        "",
    ]
    lines.extend(format_component(c) for c in components)
    lines.append("")
    lines.append(summary)

    _log.info("health_check_completed", overall=overall.value, healthy=healthy, total=len(components))
    payload: dict[str, object] = {
        "status": "success",
        "overall_health": overall.value,
        "components": [dataclasses.asdict(c) for c in components],
        "summary": summary,
    }
    return ToolResult(text="\n".join(lines), payload=payload)
