"""Listing of Sail Operator custom resources (Istio, IstioRevision, IstioCNI, ZTunnel)."""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Any

from sailmcp.cluster.client import SAIL_OPERATOR_RESOURCES, CustomResource
from sailmcp.errors import InvalidParameterError, NotFoundError, SailMCPError
from sailmcp.formatting import nested_str, parse_conditions
from sailmcp.models.resources import ResourceCondition, SailOperatorResource
from sailmcp.models.results import ToolResult
from sailmcp.observability.logging import get_logger

if TYPE_CHECKING:
    from sailmcp.cluster import ClusterClient

_log = get_logger("handlers.sailoperator")

RESOURCE_TYPES: dict[str, CustomResource] = {r.kind.lower(): r for r in SAIL_OPERATOR_RESOURCES}
ALL_RESOURCES = "all"


def resolve_resource_types(resource: str | None) -> list[CustomResource]:
    """Map a resource filter (case-insensitive kind name, ``all`` or empty) to kinds."""
    if not resource or resource.lower() == ALL_RESOURCES:
        return list(SAIL_OPERATOR_RESOURCES)
    try:
        return [RESOURCE_TYPES[resource.lower()]]
    except KeyError:
        available = ", ".join(RESOURCE_TYPES)
        raise InvalidParameterError(f"Unknown resource type: {resource}. Available types: {available}") from None


def sail_operator_resource(obj: dict[str, Any], kind: str) -> SailOperatorResource:
    return SailOperatorResource(
        kind=nested_str(obj, "kind") or kind,
        name=nested_str(obj, "metadata", "name"),
        namespace=nested_str(obj, "metadata", "namespace"),
        created_at=nested_str(obj, "metadata", "creationTimestamp"),
        version=nested_str(obj, "spec", "version"),
        state=nested_str(obj, "status", "state"),
        conditions=parse_conditions(obj),
    )


def _condition_suffix(label: str, cond: ResourceCondition | None) -> str:
    if cond is None:
        return ""
    text = f" - {label}: {cond.status}"
    if cond.reason:
        text += f" ({cond.reason})"
    return text


def format_resource_line(res: SailOperatorResource) -> str:
    line = f"• {res.name}"
    if res.namespace:
        line += f" (namespace: {res.namespace})"
    if res.version:
        line += f" - Version: {res.version}"
    if res.state:
        line += f" - State: {res.state}"
    by_type = {c.type: c for c in res.conditions}
    line += _condition_suffix("Ready", by_type.get("Ready"))
    line += _condition_suffix("Reconciled", by_type.get("Reconciled"))
    return line


async def list_sailoperator_resources(
    client: ClusterClient,
    namespace: str | None = None,
    resource: str | None = None,
) -> ToolResult:
    """List instances of one or all Sail Operator kinds, grouped by kind.

    Kinds whose CRD is not installed (404) are skipped silently; any other
    query failure aborts the listing.
    """
    try:
        kinds = resolve_resource_types(resource)
    except InvalidParameterError as exc:
        return ToolResult.error(str(exc))

    resources: list[SailOperatorResource] = []
    for kind in kinds:
        try:
            items = await client.list_custom_objects(kind, namespace=namespace)
        except NotFoundError:
            _log.debug("crd_not_installed", kind=kind.kind)
            continue
        except SailMCPError as exc:
            _log.warning("list_custom_resources_failed", kind=kind.kind, namespace=namespace, error=str(exc))
            return ToolResult.error(f"Error listing {kind.kind.lower()} resources: {exc}")
        resources.extend(sail_operator_resource(item, kind.kind) for item in items)

    payload: dict[str, object] = {
        "status": "success",
        "resources": [dataclasses.asdict(r) for r in resources],
        "count": len(resources),
    }

    if not resources:
        text = "No Sail Operator resources found"
        if namespace:
            text += f" in namespace '{namespace}'"
        if resource and resource.lower() != ALL_RESOURCES:
            text += f" of type '{resource}'"
        return ToolResult(text=text, payload=payload)

    grouped: dict[str, list[SailOperatorResource]] = {}
    for res in resources:
        grouped.setdefault(res.kind, []).append(res)

    lines = [f"Found {len(resources)} Sail Operator resources:", ""]
    for kind_name, group in grouped.items():
        lines.append(f"=== {kind_name} ===")
        lines.extend(format_resource_line(res) for res in group)
        lines.append("")
    return ToolResult(text="\n".join(lines), payload=payload)
