"""MCP stdio server for SailMCP.

Exposes read-only Kubernetes and Sail Operator introspection as MCP tools.
Every tool returns a human-readable text part; tools with structured data
add a second text part holding the same data as compact JSON.

Transport: stdio (read from stdin, write to stdout).

Usage::

    from sailmcp.mcp.server import MCPServer

    server = MCPServer(client=cluster_client, config=config)
    await server.start()  # blocks until stdin is closed
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool
from pydantic import BaseModel, ValidationError

from sailmcp import __version__
from sailmcp.formatting import to_json
from sailmcp.handlers import cluster, health, istio, logs, mesh, namespaces, resources, sailoperator
from sailmcp.mcp.schemas import (
    GetIstioStatusArgs,
    GetPodLogsArgs,
    ListEventsArgs,
    ListResourcesArgs,
    ListSailOperatorResourcesArgs,
    NamespaceArgs,
    NoArgs,
    input_schema,
)
from sailmcp.models.config import SailMCPConfig
from sailmcp.models.results import ToolResult
from sailmcp.observability.logging import get_logger
from sailmcp.observability.metrics import tool_call_duration_seconds, tool_calls_total

_log = get_logger("mcp.server")

_SERVER_NAME = "sailmcp"

ToolHandler = Callable[[Any], Awaitable[ToolResult]]


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    args_model: type[BaseModel]
    handler: ToolHandler


class MCPServer:
    """MCP stdio server wrapping a cluster client.

    Args:
        client: ClusterClient (or any object with the same read methods).
        config: Loaded configuration; supplies log timeouts and the mesh
                system-namespace exclusion set.
    """

    def __init__(self, client: Any, config: SailMCPConfig | None = None) -> None:
        self._client = client
        self._config = config or SailMCPConfig()
        self._tools: dict[str, ToolSpec] = {spec.name: spec for spec in self._build_tools()}
        self._server = Server(_SERVER_NAME)
        self._register_handlers()

    # ------------------------------------------------------------------
    # Tool table
    # ------------------------------------------------------------------

    def _build_tools(self) -> list[ToolSpec]:
        client = self._client
        cfg = self._config
        return [
            ToolSpec(
                "test_k8s_connection",
                "Test connectivity to the Kubernetes cluster",
                NoArgs,
                lambda a: cluster.test_connection(client),
            ),
            ToolSpec(
                "list_namespaces",
                "List all namespaces in the Kubernetes cluster",
                NoArgs,
                lambda a: namespaces.list_namespaces(client),
            ),
            ToolSpec(
                "get_namespace_details",
                "Get detailed information about namespaces (all or specific namespace)",
                NamespaceArgs,
                lambda a: namespaces.get_namespace_details(client, a.namespace),
            ),
            ToolSpec(
                "list_pods",
                "List pods in the cluster with optional namespace and label filtering",
                ListResourcesArgs,
                lambda a: resources.list_pods(client, a.namespace, a.label_selector),
            ),
            ToolSpec(
                "list_services",
                "List services in the cluster with optional namespace and label filtering",
                ListResourcesArgs,
                lambda a: resources.list_services(client, a.namespace, a.label_selector),
            ),
            ToolSpec(
                "list_deployments",
                "List deployments in the cluster with optional namespace and label filtering",
                ListResourcesArgs,
                lambda a: resources.list_deployments(client, a.namespace, a.label_selector),
            ),
            ToolSpec(
                "list_configmaps",
                "List configmaps in the cluster with optional namespace and label filtering",
                ListResourcesArgs,
                lambda a: resources.list_configmaps(client, a.namespace, a.label_selector),
            ),
            ToolSpec(
                "list_events",
                "List recent Kubernetes events with optional selectors",
                ListEventsArgs,
                lambda a: resources.list_events(
                    client,
                    namespace=a.namespace,
                    field_selector=a.field_selector,
                    involved_kind=a.involved_kind,
                    involved_name=a.involved_name,
                    involved_namespace=a.involved_namespace,
                    type=a.type,
                    reason=a.reason,
                    since_seconds=a.since_seconds,
                    limit=a.limit,
                ),
            ),
            ToolSpec(
                "get_pod_logs",
                "Get logs from a specific pod and optionally a specific container",
                GetPodLogsArgs,
                lambda a: logs.get_pod_logs(
                    client,
                    a.namespace,
                    a.pod_name,
                    container=a.container,
                    lines=a.lines or cfg.logs.default_tail_lines,
                    follow=a.follow,
                    previous=a.previous,
                    since_seconds=a.since_seconds,
                    timeout=cfg.logs.timeout_seconds,
                ),
            ),
            ToolSpec(
                "check_mesh_workloads",
                "Check the status of workloads in the Istio mesh including sidecar injection status",
                ListResourcesArgs,
                lambda a: mesh.check_mesh_workloads(
                    client,
                    a.namespace,
                    a.label_selector,
                    system_namespaces=cfg.mesh.system_namespaces,
                ),
            ),
            ToolSpec(
                "list_sailoperator_resources",
                "List Sail Operator CRD resources (Istio, IstioRevision, IstioCNI, ZTunnel)",
                ListSailOperatorResourcesArgs,
                lambda a: sailoperator.list_sailoperator_resources(client, a.namespace, a.resource),
            ),
            ToolSpec(
                "get_istio_status",
                "Get detailed status information about Istio installations",
                GetIstioStatusArgs,
                lambda a: istio.get_istio_status(client, a.name, a.namespace),
            ),
            ToolSpec(
                "check_sailoperator_health",
                "Perform comprehensive health checks on Sail Operator managed resources",
                NamespaceArgs,
                lambda a: health.check_sailoperator_health(client, a.namespace),
            ),
        ]

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools)

    def list_tools(self) -> list[Tool]:
        return [
            Tool(name=spec.name, description=spec.description, inputSchema=input_schema(spec.args_model))
            for spec in self._tools.values()
        ]

    # ------------------------------------------------------------------
    # MCP wiring
    # ------------------------------------------------------------------

    def _register_handlers(self) -> None:
        """Wire list-tools and call-tool handlers onto the MCP Server."""

        @self._server.list_tools()  # type: ignore[no-untyped-call, untyped-decorator]
        async def _list_tools() -> list[Tool]:
            return self.list_tools()

        @self._server.call_tool()  # type: ignore[untyped-decorator]
        async def _call_tool(
            name: str,
            arguments: dict[str, Any] | None,
        ) -> list[TextContent]:
            return await self.call_tool(name, arguments)

    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
        """Validate arguments, run the tool and render its result as content parts."""
        spec = self._tools.get(name)
        if spec is None:
            tool_calls_total.labels(tool="unknown", outcome="unknown_tool").inc()
            return [TextContent(type="text", text=f"Error: unknown tool: {name}")]

        try:
            args = spec.args_model.model_validate(arguments or {})
        except ValidationError as exc:
            tool_calls_total.labels(tool=name, outcome="invalid_arguments").inc()
            return [TextContent(type="text", text=f"Error: invalid arguments for {name}: {_validation_summary(exc)}")]

        started = time.monotonic()
        try:
            result = await spec.handler(args)
        except Exception as exc:
            tool_calls_total.labels(tool=name, outcome="internal_error").inc()
            _log.error("tool_call_failed", tool=name, error=str(exc), exc_info=True)
            return [TextContent(type="text", text=f"INTERNAL_ERROR: {name} failed: {exc}")]
        finally:
            tool_call_duration_seconds.labels(tool=name).observe(time.monotonic() - started)

        tool_calls_total.labels(tool=name, outcome="error" if result.is_error else "ok").inc()
        _log.debug("tool_call_completed", tool=name, is_error=result.is_error)
        return render_result(result)

    async def start(self) -> None:
        """Run the MCP server until stdin is closed."""
        _log.info("mcp_server_starting", version=__version__, tools=len(self._tools))
        init_options = InitializationOptions(
            server_name=_SERVER_NAME,
            server_version=__version__,
            capabilities=self._server.get_capabilities(
                notification_options=NotificationOptions(),
                experimental_capabilities={},
            ),
        )
        async with stdio_server() as (read_stream, write_stream):
            await self._server.run(read_stream, write_stream, init_options)

        _log.info("mcp_server_stopped")


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------


def render_result(result: ToolResult) -> list[TextContent]:
    """Text part first, then the JSON payload part when there is one."""
    parts = [TextContent(type="text", text=result.text)]
    if result.payload is not None and not result.is_error:
        parts.append(TextContent(type="text", text=to_json(result.payload)))
    return parts


def _validation_summary(exc: ValidationError) -> str:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ())) or "arguments"
        problems.append(f"{location}: {err.get('msg', 'invalid value')}")
    return "; ".join(problems)
