"""Cluster connectivity check."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sailmcp.errors import SailMCPError
from sailmcp.formatting import nested_str
from sailmcp.models.results import ToolResult
from sailmcp.observability.logging import get_logger

if TYPE_CHECKING:
    from sailmcp.cluster import ClusterClient

_log = get_logger("handlers.cluster")


async def test_connection(client: ClusterClient) -> ToolResult:
    """Fetch the API server version to prove credentials and reachability."""
    try:
        info = await client.server_version()
    except SailMCPError as exc:
        _log.warning("connection_test_failed", error=str(exc))
        return ToolResult.error(f"Error connecting to Kubernetes: {exc}")

    git_version = nested_str(info, "gitVersion")
    major, minor = nested_str(info, "major"), nested_str(info, "minor")
    kubernetes_version = f"{major}.{minor}" if major or minor else git_version
    payload: dict[str, object] = {
        "status": "connected",
        "kubernetes_version": kubernetes_version,
        "server_version": git_version,
        "platform": nested_str(info, "platform"),
    }
    text = (
        "Successfully connected to Kubernetes cluster.\n"
        f"Version: {kubernetes_version}\n"
        f"Server: {git_version}"
    )
    return ToolResult(text=text, payload=payload)
