"""Istio installation status reports."""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Any

from sailmcp.cluster.client import ISTIO
from sailmcp.errors import NotFoundError, SailMCPError
from sailmcp.formatting import nested_int, nested_str, parse_conditions
from sailmcp.models.resources import IstioStatus, RevisionSummary
from sailmcp.models.results import ToolResult
from sailmcp.observability.logging import get_logger

if TYPE_CHECKING:
    from sailmcp.cluster import ClusterClient

_log = get_logger("handlers.istio")


def parse_istio_status(obj: dict[str, Any]) -> IstioStatus:
    """Project an unstructured Istio resource; absent fields stay empty."""
    return IstioStatus(
        name=nested_str(obj, "metadata", "name"),
        namespace=nested_str(obj, "metadata", "namespace"),
        created_at=nested_str(obj, "metadata", "creationTimestamp"),
        version=nested_str(obj, "spec", "version"),
        profile=nested_str(obj, "spec", "profile"),
        update_strategy=nested_str(obj, "spec", "updateStrategy", "type"),
        state=nested_str(obj, "status", "state"),
        active_revision_name=nested_str(obj, "status", "activeRevisionName"),
        revisions=RevisionSummary(
            total=nested_int(obj, "status", "revisions", "total"),
            ready=nested_int(obj, "status", "revisions", "ready"),
            in_use=nested_int(obj, "status", "revisions", "inUse"),
        ),
        conditions=parse_conditions(obj),
    )


def format_detailed_status(istio: IstioStatus) -> str:
    lines = [
        f"=== Istio: {istio.name} ===",
        f"Namespace: {istio.namespace}",
        f"Version: {istio.version}",
        f"State: {istio.state}",
    ]
    if istio.profile:
        lines.append(f"Profile: {istio.profile}")
    if istio.update_strategy:
        lines.append(f"Update Strategy: {istio.update_strategy}")
    if istio.active_revision_name:
        lines.append(f"Active Revision: {istio.active_revision_name}")
    if istio.revisions.total > 0:
        rev = istio.revisions
        lines.append(f"Revisions: {rev.total} total, {rev.ready} ready, {rev.in_use} in use")

    if istio.conditions:
        lines.append("")
        lines.append("Conditions:")
        for cond in istio.conditions:
            line = f"  • {cond.type}: {cond.status}"
            if cond.reason:
                line += f" ({cond.reason})"
            if cond.message:
                line += f" - {cond.message}"
            lines.append(line)

    lines.append("")
    lines.append(f"Created: {istio.created_at}")
    return "\n".join(lines)


def format_summary_status(istio: IstioStatus) -> str:
    line = f"• {istio.name} (namespace: {istio.namespace}) - Version: {istio.version}, State: {istio.state}"
    for cond in istio.conditions:
        if cond.type == "Ready":
            line += f" - Ready: {cond.status}"
            break
    return line


def _location(namespace: str | None) -> str:
    return f"namespace '{namespace}'" if namespace else "the cluster"


async def get_istio_status(
    client: ClusterClient,
    name: str | None = None,
    namespace: str | None = None,
) -> ToolResult:
    """Report one named Istio resource, or every Istio resource when ``name`` is empty."""
    try:
        if name:
            istios = [parse_istio_status(await client.get_custom_object(ISTIO, name, namespace=namespace))]
        else:
            istios = [parse_istio_status(item) for item in await client.list_custom_objects(ISTIO, namespace=namespace)]
    except NotFoundError:
        if name:
            return ToolResult.error(f"Istio resource '{name}' not found in {_location(namespace)}")
        return ToolResult.error("Istio CRD not found. Sail Operator may not be installed.")
    except SailMCPError as exc:
        _log.warning("istio_status_failed", name=name, namespace=namespace, error=str(exc))
        if name:
            return ToolResult.error(f"Error getting Istio resource '{name}': {exc}")
        return ToolResult.error(f"Error listing Istio resources: {exc}")

    if not istios:
        text = "No Istio installations found"
        if namespace:
            text += f" in namespace '{namespace}'"
    elif len(istios) == 1:
        text = format_detailed_status(istios[0])
    else:
        text = f"Found {len(istios)} Istio installations:\n\n" + "\n".join(format_summary_status(i) for i in istios)

    payload: dict[str, object] = {"status": "success", "istios": [dataclasses.asdict(i) for i in istios]}
    return ToolResult(text=text, payload=payload)
