"""Listing reports for core resources: pods, services, deployments, configmaps, events.

Each report is a ``Found N <kind>:`` header followed by a fixed-width table,
plus a payload of the form ``{"status": "success", "<kind>": [...], "count": N}``.
Filtering is done by the API server through the label selector; nothing is
filtered here except the event type/reason/age filters the API cannot express.
"""

from __future__ import annotations

import dataclasses
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from sailmcp.errors import SailMCPError
from sailmcp.formatting import (
    format_age,
    nested_dict,
    nested_get,
    nested_int,
    nested_list,
    nested_str,
    parse_timestamp,
    truncate,
)
from sailmcp.models.resources import (
    ConfigMapInfo,
    DeploymentInfo,
    EventInfo,
    PodInfo,
    ServiceInfo,
    ServicePort,
)
from sailmcp.models.results import ToolResult
from sailmcp.observability.logging import get_logger

if TYPE_CHECKING:
    from sailmcp.cluster import ClusterClient

_log = get_logger("handlers.resources")

# Pod phase -> display status, for pods that are not fully ready and running
_PHASE_DISPLAY: dict[str, str] = {
    "Pending": "Pending",
    "Failed": "Failed",
    "Succeeded": "Completed",
}


def _none_found(kind: str, namespace: str | None, label_selector: str | None) -> str:
    text = f"No {kind} found"
    if namespace:
        text += f" in namespace '{namespace}'"
    if label_selector:
        text += f" with label selector '{label_selector}'"
    return text


def _payload(kind: str, rows: list[Any]) -> dict[str, object]:
    return {"status": "success", kind: [dataclasses.asdict(row) for row in rows], "count": len(rows)}


# ---------------------------------------------------------------------------
# Pods
# ---------------------------------------------------------------------------


def pod_info(obj: dict[str, Any], now: datetime | None = None) -> PodInfo:
    statuses = [s for s in nested_list(obj, "status", "containerStatuses") if isinstance(s, dict)]
    ready = sum(1 for s in statuses if s.get("ready") is True)
    restarts = sum(nested_int(s, "restartCount") for s in statuses)
    phase = nested_str(obj, "status", "phase")

    if phase == "Running" and ready == len(statuses):
        status = "Running"
    else:
        status = _PHASE_DISPLAY.get(phase, phase)

    created = nested_str(obj, "metadata", "creationTimestamp")
    return PodInfo(
        name=nested_str(obj, "metadata", "name"),
        namespace=nested_str(obj, "metadata", "namespace"),
        status=status,
        phase=phase,
        ready=f"{ready}/{len(statuses)}",
        restarts=restarts,
        age=format_age(created, now),
        created_at=created,
        node_name=nested_str(obj, "spec", "nodeName"),
        pod_ip=nested_str(obj, "status", "podIP"),
        labels=nested_dict(obj, "metadata", "labels"),
    )


def format_pod_table(pods: list[PodInfo]) -> str:
    lines = [
        f"Found {len(pods)} pods:",
        "",
        f"{'NAME':<30} {'NAMESPACE':<15} {'STATUS':<10} {'READY':<8} {'RESTARTS':<10} {'AGE':<10} NODE",
        "-" * 100,
    ]
    for pod in pods:
        lines.append(
            f"{truncate(pod.name):<30} {pod.namespace:<15} {pod.status:<10} {pod.ready:<8} "
            f"{pod.restarts:<10} {pod.age:<10} {pod.node_name}"
        )
    return "\n".join(lines)


async def list_pods(
    client: ClusterClient,
    namespace: str | None = None,
    label_selector: str | None = None,
) -> ToolResult:
    try:
        items = await client.list_pods(namespace=namespace, label_selector=label_selector)
    except SailMCPError as exc:
        _log.warning("list_pods_failed", namespace=namespace, error=str(exc))
        return ToolResult.error(f"Error listing pods: {exc}")

    pods = [pod_info(item) for item in items]
    text = format_pod_table(pods) if pods else _none_found("pods", namespace, label_selector)
    return ToolResult(text=text, payload=_payload("pods", pods))


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


def service_info(obj: dict[str, Any]) -> ServiceInfo:
    external: list[str] = []
    for ingress in nested_list(obj, "status", "loadBalancer", "ingress"):
        if not isinstance(ingress, dict):
            continue
        if ingress.get("ip"):
            external.append(str(ingress["ip"]))
        if ingress.get("hostname"):
            external.append(str(ingress["hostname"]))

    ports: list[ServicePort] = []
    for raw in nested_list(obj, "spec", "ports"):
        if not isinstance(raw, dict):
            continue
        target = raw.get("targetPort")
        ports.append(
            ServicePort(
                name=nested_str(raw, "name"),
                port=nested_int(raw, "port"),
                protocol=nested_str(raw, "protocol") or "TCP",
                target_port="" if target is None else str(target),
                node_port=nested_int(raw, "nodePort"),
            )
        )

    return ServiceInfo(
        name=nested_str(obj, "metadata", "name"),
        namespace=nested_str(obj, "metadata", "namespace"),
        type=nested_str(obj, "spec", "type"),
        created_at=nested_str(obj, "metadata", "creationTimestamp"),
        cluster_ip=nested_str(obj, "spec", "clusterIP"),
        external_ip=external,
        ports=ports,
        labels=nested_dict(obj, "metadata", "labels"),
        selector=nested_dict(obj, "spec", "selector"),
    )


def format_service_table(services: list[ServiceInfo]) -> str:
    lines = [
        f"Found {len(services)} services:",
        "",
        f"{'NAME':<30} {'NAMESPACE':<15} {'TYPE':<12} {'CLUSTER-IP':<15} {'EXTERNAL-IP':<20} PORTS",
        "-" * 110,
    ]
    for svc in services:
        external = ",".join(svc.external_ip) if svc.external_ip else "<none>"
        ports = ",".join(f"{p.port}/{p.protocol}" for p in svc.ports)
        lines.append(
            f"{truncate(svc.name):<30} {svc.namespace:<15} {svc.type:<12} {svc.cluster_ip:<15} "
            f"{truncate(external, 19):<20} {ports}"
        )
    return "\n".join(lines)


async def list_services(
    client: ClusterClient,
    namespace: str | None = None,
    label_selector: str | None = None,
) -> ToolResult:
    try:
        items = await client.list_services(namespace=namespace, label_selector=label_selector)
    except SailMCPError as exc:
        _log.warning("list_services_failed", namespace=namespace, error=str(exc))
        return ToolResult.error(f"Error listing services: {exc}")

    services = [service_info(item) for item in items]
    text = format_service_table(services) if services else _none_found("services", namespace, label_selector)
    return ToolResult(text=text, payload=_payload("services", services))


# ---------------------------------------------------------------------------
# Deployments
# ---------------------------------------------------------------------------


def deployment_info(obj: dict[str, Any], now: datetime | None = None) -> DeploymentInfo:
    created = nested_str(obj, "metadata", "creationTimestamp")
    return DeploymentInfo(
        name=nested_str(obj, "metadata", "name"),
        namespace=nested_str(obj, "metadata", "namespace"),
        ready=f"{nested_int(obj, 'status', 'readyReplicas')}/{nested_int(obj, 'status', 'replicas')}",
        up_to_date=nested_int(obj, "status", "updatedReplicas"),
        available=nested_int(obj, "status", "availableReplicas"),
        age=format_age(created, now),
        created_at=created,
        strategy=nested_str(obj, "spec", "strategy", "type"),
        labels=nested_dict(obj, "metadata", "labels"),
    )


def format_deployment_table(deployments: list[DeploymentInfo]) -> str:
    lines = [
        f"Found {len(deployments)} deployments:",
        "",
        f"{'NAME':<30} {'NAMESPACE':<15} {'READY':<8} {'UP-TO-DATE':<10} {'AVAILABLE':<10} AGE",
        "-" * 90,
    ]
    for dep in deployments:
        lines.append(
            f"{truncate(dep.name):<30} {dep.namespace:<15} {dep.ready:<8} {dep.up_to_date:<10} "
            f"{dep.available:<10} {dep.age}"
        )
    return "\n".join(lines)


async def list_deployments(
    client: ClusterClient,
    namespace: str | None = None,
    label_selector: str | None = None,
) -> ToolResult:
    try:
        items = await client.list_deployments(namespace=namespace, label_selector=label_selector)
    except SailMCPError as exc:
        _log.warning("list_deployments_failed", namespace=namespace, error=str(exc))
        return ToolResult.error(f"Error listing deployments: {exc}")

    deployments = [deployment_info(item) for item in items]
    text = (
        format_deployment_table(deployments)
        if deployments
        else _none_found("deployments", namespace, label_selector)
    )
    return ToolResult(text=text, payload=_payload("deployments", deployments))


# ---------------------------------------------------------------------------
# ConfigMaps
# ---------------------------------------------------------------------------


def configmap_info(obj: dict[str, Any]) -> ConfigMapInfo:
    data = nested_dict(obj, "data")
    return ConfigMapInfo(
        name=nested_str(obj, "metadata", "name"),
        namespace=nested_str(obj, "metadata", "namespace"),
        data_count=len(data),
        created_at=nested_str(obj, "metadata", "creationTimestamp"),
        keys=sorted(data),
        labels=nested_dict(obj, "metadata", "labels"),
    )


def format_configmap_table(configmaps: list[ConfigMapInfo]) -> str:
    lines = [
        f"Found {len(configmaps)} configmaps:",
        "",
        f"{'NAME':<30} {'NAMESPACE':<15} {'DATA':<5} KEYS",
        "-" * 80,
    ]
    for cm in configmaps:
        keys = truncate(",".join(cm.keys), 40)
        lines.append(f"{truncate(cm.name):<30} {cm.namespace:<15} {cm.data_count:<5} {keys}")
    return "\n".join(lines)


async def list_configmaps(
    client: ClusterClient,
    namespace: str | None = None,
    label_selector: str | None = None,
) -> ToolResult:
    try:
        items = await client.list_config_maps(namespace=namespace, label_selector=label_selector)
    except SailMCPError as exc:
        _log.warning("list_configmaps_failed", namespace=namespace, error=str(exc))
        return ToolResult.error(f"Error listing configmaps: {exc}")

    configmaps = [configmap_info(item) for item in items]
    text = (
        format_configmap_table(configmaps) if configmaps else _none_found("configmaps", namespace, label_selector)
    )
    return ToolResult(text=text, payload=_payload("configmaps", configmaps))


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


def build_event_field_selector(
    field_selector: str | None = None,
    involved_kind: str | None = None,
    involved_name: str | None = None,
    involved_namespace: str | None = None,
) -> str:
    """Append ``regarding.*`` terms for the involved object to a raw selector."""
    terms = [field_selector] if field_selector else []
    for key, value in (
        ("regarding.kind", involved_kind),
        ("regarding.name", involved_name),
        ("regarding.namespace", involved_namespace),
    ):
        if value:
            terms.append(f"{key}={value}")
    return ",".join(terms)


def _rfc3339(value: Any) -> str:
    parsed = parse_timestamp(value)
    return parsed.strftime("%Y-%m-%dT%H:%M:%SZ") if parsed else ""


def event_info(obj: dict[str, Any]) -> EventInfo:
    first = nested_get(obj, "deprecatedFirstTimestamp")
    last = nested_get(obj, "deprecatedLastTimestamp") or nested_get(obj, "eventTime")
    return EventInfo(
        type=nested_str(obj, "type"),
        reason=nested_str(obj, "reason"),
        message=nested_str(obj, "note"),
        count=nested_int(obj, "deprecatedCount"),
        first_seen=_rfc3339(first),
        last_seen=_rfc3339(last),
        involved_kind=nested_str(obj, "regarding", "kind"),
        involved_name=nested_str(obj, "regarding", "name"),
        involved_namespace=nested_str(obj, "regarding", "namespace"),
    )


def format_event_table(events: list[EventInfo]) -> str:
    lines = [
        f"Found {len(events)} events:",
        "",
        f"{'TYPE':<8} {'REASON':<16} {'INVOLVED':<30} {'COUNT':<12} MESSAGE",
        "-" * 100,
    ]
    for ev in events:
        involved = ev.involved_kind
        if ev.involved_namespace:
            involved += "/" + ev.involved_namespace
        involved += "/" + ev.involved_name
        message = truncate(ev.message, 50)
        lines.append(f"{ev.type:<8} {ev.reason:<16} {truncate(involved):<30} {ev.count:<12} {message}")
    return "\n".join(lines)


async def list_events(
    client: ClusterClient,
    namespace: str | None = None,
    field_selector: str | None = None,
    involved_kind: str | None = None,
    involved_name: str | None = None,
    involved_namespace: str | None = None,
    type: str | None = None,  # noqa: A002
    reason: str | None = None,
    since_seconds: int | None = None,
    limit: int | None = None,
    now: datetime | None = None,
) -> ToolResult:
    """List events, narrowed server-side by field selector and client-side by type/reason/age."""
    selector = build_event_field_selector(field_selector, involved_kind, involved_name, involved_namespace)
    try:
        items = await client.list_events(namespace=namespace, field_selector=selector or None, limit=limit)
    except SailMCPError as exc:
        _log.warning("list_events_failed", namespace=namespace, field_selector=selector, error=str(exc))
        return ToolResult.error(f"Error listing events: {exc}")

    cutoff = None
    if since_seconds and since_seconds > 0:
        cutoff = (now or datetime.now(tz=UTC)) - timedelta(seconds=since_seconds)

    events: list[EventInfo] = []
    for item in items:
        info = event_info(item)
        if type and info.type != type:
            continue
        if reason and info.reason != reason:
            continue
        if cutoff is not None:
            seen = parse_timestamp(info.last_seen)
            if seen is None or seen < cutoff:
                continue
        events.append(info)

    text = format_event_table(events) if events else "No events found"
    return ToolResult(text=text, payload=_payload("events", events))
