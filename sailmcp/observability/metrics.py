"""Prometheus metrics for SailMCP.

The exposition endpoint is optional (``SAILMCP_METRICS_ENABLED``); the
collectors are always registered so handlers can record unconditionally.
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram, start_http_server

# Tool call metrics
tool_calls_total = Counter(
    "sailmcp_tool_calls_total",
    "Total MCP tool calls",
    ["tool", "outcome"],
)

tool_call_duration_seconds = Histogram(
    "sailmcp_tool_call_duration_seconds",
    "MCP tool call duration in seconds",
    ["tool"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

# Cluster client metrics
cluster_requests_total = Counter(
    "sailmcp_cluster_requests_total",
    "Total Kubernetes API requests issued",
    ["operation", "outcome"],
)


def start_metrics_server(port: int) -> None:
    """Expose the default registry on ``0.0.0.0:<port>/metrics``."""
    start_http_server(port)
