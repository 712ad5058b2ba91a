"""Pod log retrieval.

The MCP transport is request/response: a tool call produces exactly one
result, so ``follow`` cannot deliver anything incrementally there and is
rejected up front.  The CLI, which owns a terminal, streams follow output
itself via :func:`iter_pod_log_lines`.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

from sailmcp.errors import InvalidParameterError, LogStreamError, NotFoundError, SailMCPError
from sailmcp.models.results import ToolResult
from sailmcp.observability.logging import get_logger

if TYPE_CHECKING:
    from sailmcp.cluster import ClusterClient

_log = get_logger("handlers.logs")

DEFAULT_TAIL_LINES = 50
DEFAULT_TIMEOUT_S = 30.0


def validate_log_request(namespace: str | None, pod_name: str | None) -> None:
    if not namespace:
        raise InvalidParameterError("namespace parameter is required")
    if not pod_name:
        raise InvalidParameterError("pod_name parameter is required")


def iter_pod_log_lines(
    client: ClusterClient,
    namespace: str,
    pod_name: str,
    container: str | None = None,
    lines: int | None = None,
    previous: bool = False,
    since_seconds: int | None = None,
    follow: bool = False,
) -> AsyncIterator[str]:
    """Raw line stream for callers that can deliver lines as they arrive."""
    validate_log_request(namespace, pod_name)
    return client.stream_pod_log(
        namespace,
        pod_name,
        container=container,
        tail_lines=lines if lines and lines > 0 else DEFAULT_TAIL_LINES,
        previous=previous,
        since_seconds=since_seconds if since_seconds and since_seconds > 0 else None,
        follow=follow,
    )


def _describe(pod_name: str, namespace: str, container: str | None) -> str:
    text = f"pod '{pod_name}' in namespace '{namespace}'"
    if container:
        text += f" (container: {container})"
    return text


async def get_pod_logs(
    client: ClusterClient,
    namespace: str | None,
    pod_name: str | None,
    container: str | None = None,
    lines: int | None = None,
    follow: bool = False,
    previous: bool = False,
    since_seconds: int | None = None,
    timeout: float = DEFAULT_TIMEOUT_S,
) -> ToolResult:
    """Buffer the tail of a pod's log and return it as one text block."""
    try:
        validate_log_request(namespace, pod_name)
        if follow:
            raise InvalidParameterError(
                "follow mode is not supported over a request/response transport; "
                "omit 'follow' to fetch the most recent lines"
            )
    except InvalidParameterError as exc:
        return ToolResult.error(f"Error: {exc}")

    assert namespace is not None and pod_name is not None
    target = _describe(pod_name, namespace, container)

    buffered: list[str] = []
    try:
        async with asyncio.timeout(timeout):
            async for line in iter_pod_log_lines(
                client,
                namespace,
                pod_name,
                container=container,
                lines=lines,
                previous=previous,
                since_seconds=since_seconds,
            ):
                buffered.append(line)
    except TimeoutError:
        _log.warning("pod_log_timeout", namespace=namespace, pod=pod_name, timeout=timeout)
        return ToolResult.error(f"Error reading logs for {target}: timed out after {timeout:g}s")
    except LogStreamError as exc:
        _log.warning("pod_log_read_failed", namespace=namespace, pod=pod_name, error=str(exc))
        return ToolResult.error(f"Error reading logs for {target}: {exc}")
    except NotFoundError as exc:
        return ToolResult.error(f"Error getting logs for {target}: {exc}")
    except SailMCPError as exc:
        _log.warning("pod_log_query_failed", namespace=namespace, pod=pod_name, error=str(exc))
        return ToolResult.error(f"Error getting logs for {target}: {exc}")

    if not buffered:
        return ToolResult(text=f"No logs found for {target}", payload={"status": "success", "logs": ""})

    header = f"=== Logs for {target} ===\nShowing last {len(buffered)} lines:\n\n"
    logs = "\n".join(buffered)
    return ToolResult(text=header + logs, payload={"status": "success", "logs": logs})
