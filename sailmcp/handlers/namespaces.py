"""Namespace listing and detail reports."""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Any

from sailmcp.errors import NotFoundError, SailMCPError
from sailmcp.formatting import format_mapping, nested_dict, nested_str
from sailmcp.models.resources import NamespaceDetail
from sailmcp.models.results import ToolResult
from sailmcp.observability.logging import get_logger

if TYPE_CHECKING:
    from sailmcp.cluster import ClusterClient

_log = get_logger("handlers.namespaces")


def namespace_detail(obj: dict[str, Any]) -> NamespaceDetail:
    return NamespaceDetail(
        name=nested_str(obj, "metadata", "name"),
        status=nested_str(obj, "status", "phase"),
        created_at=nested_str(obj, "metadata", "creationTimestamp"),
        labels=nested_dict(obj, "metadata", "labels"),
        annotations=nested_dict(obj, "metadata", "annotations"),
    )


async def list_namespaces(client: ClusterClient) -> ToolResult:
    try:
        items = await client.list_namespaces()
    except SailMCPError as exc:
        _log.warning("list_namespaces_failed", error=str(exc))
        return ToolResult.error(f"Error listing namespaces: {exc}")

    names = [nested_str(item, "metadata", "name") for item in items]
    text = f"Found {len(names)} namespaces: {', '.join(names)}" if names else "Found 0 namespaces"
    return ToolResult(text=text, payload={"status": "success", "namespaces": names, "count": len(names)})


async def get_namespace_details(client: ClusterClient, namespace: str | None = None) -> ToolResult:
    """Describe one namespace, or every namespace when ``namespace`` is empty."""
    try:
        if namespace:
            details = [namespace_detail(await client.read_namespace(namespace))]
        else:
            details = [namespace_detail(item) for item in await client.list_namespaces()]
    except NotFoundError:
        return ToolResult.error(f"Namespace '{namespace}' not found")
    except SailMCPError as exc:
        _log.warning("namespace_details_failed", namespace=namespace, error=str(exc))
        if namespace:
            return ToolResult.error(f"Error getting namespace {namespace}: {exc}")
        return ToolResult.error(f"Error listing namespaces: {exc}")

    if len(details) == 1:
        ns = details[0]
        text = (
            f"Namespace: {ns.name}\n"
            f"Status: {ns.status}\n"
            f"Created: {ns.created_at}\n"
            f"Labels: {format_mapping(ns.labels)}\n"
            f"Annotations: {format_mapping(ns.annotations)}"
        )
    else:
        lines = [f"Found {len(details)} namespaces with details:"]
        for ns in details:
            lines.append("")
            lines.append(f"• {ns.name} (Status: {ns.status}, Created: {ns.created_at})")
            lines.append(f"  Labels: {format_mapping(ns.labels)}")
            lines.append(f"  Annotations: {format_mapping(ns.annotations)}")
        text = "\n".join(lines)

    payload: dict[str, object] = {
        "status": "success",
        "namespaces": [dataclasses.asdict(ns) for ns in details],
    }
    return ToolResult(text=text, payload=payload)
