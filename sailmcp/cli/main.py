"""SailMCP command-line interface.

Commands:
    sailmcp [serve]                               Run the MCP stdio server (default).
    sailmcp pods [-n NS] [-l SELECTOR] [--json]   List pods.
    sailmcp logs POD [-n NS] [--follow] ...       Print (or stream) pod logs.
    sailmcp health [-n NS] [--json]               Sail Operator health check.
    sailmcp status [NAME] [-n NS] [--json]        Istio installation status.
    sailmcp version                               Print version and exit.

Every command except ``serve`` and ``version`` talks to the cluster directly
with the same credentials resolution as the server (``--kubeconfig`` /
``KUBECONFIG``, in-cluster service account, ``~/.kube/config``).
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import TypeVar

import click

from sailmcp import __version__
from sailmcp.cluster import ClusterClient
from sailmcp.config import load_config
from sailmcp.errors import ClientInitError, SailMCPError
from sailmcp.handlers import health, istio, logs, resources
from sailmcp.models.config import SailMCPConfig
from sailmcp.models.results import ToolResult
from sailmcp.observability.logging import setup_logging

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Colour helpers
# ---------------------------------------------------------------------------

_HEALTH_COLORS: dict[str, str] = {
    "Healthy": "green",
    "Degraded": "yellow",
    "Unhealthy": "red",
    "Error": "red",
    "NotInstalled": "bright_black",
}

_OVERALL_PREFIX = "Overall Health: "


def _styled_health(status: str) -> str:
    value = str(status)
    return click.style(value, fg=_HEALTH_COLORS.get(value, "white"), bold=True)


# ---------------------------------------------------------------------------
# Cluster helpers
# ---------------------------------------------------------------------------


def _config(ctx: click.Context) -> SailMCPConfig:
    """Load configuration once per invocation and configure logging from it."""
    config: SailMCPConfig | None = ctx.obj.get("config")
    if config is None:
        try:
            config = load_config()
        except ValueError as exc:
            raise click.ClickException(f"Invalid configuration: {exc}") from exc
        setup_logging(config.log.level)
        ctx.obj["config"] = config
    return config


def _run_with_client(ctx: click.Context, operation: Callable[[ClusterClient], Awaitable[T]]) -> T:
    """Connect, run ``operation`` against the client, always close.

    Raises click.ClickException when no usable credentials are found.
    """
    config = _config(ctx)
    kubeconfig: str | None = ctx.obj.get("kubeconfig") or config.kube.kubeconfig or None

    async def _runner() -> T:
        client = await ClusterClient.connect(
            kubeconfig=kubeconfig,
            request_timeout=float(config.kube.request_timeout_seconds),
        )
        try:
            return await operation(client)
        finally:
            await client.close()

    try:
        return asyncio.run(_runner())
    except ClientInitError as exc:
        raise click.ClickException(str(exc)) from exc


def _emit(result: ToolResult, output_json: bool = False) -> None:
    """Print a result; error results exit non-zero."""
    if result.is_error:
        raise click.ClickException(result.text)
    if output_json and result.payload is not None:
        click.echo(json.dumps(result.payload, indent=2, default=str))
        return
    click.echo(result.text)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group(invoke_without_command=True)
@click.option(
    "--kubeconfig",
    default=None,
    envvar="KUBECONFIG",
    metavar="PATH",
    help="Path to a kubeconfig file.  Defaults to in-cluster credentials, then ~/.kube/config.",
)
@click.pass_context
def cli(ctx: click.Context, kubeconfig: str | None) -> None:
    """SailMCP - read-only Kubernetes and Istio Sail Operator introspection."""
    ctx.ensure_object(dict)
    ctx.obj["kubeconfig"] = kubeconfig
    if ctx.invoked_subcommand is None:
        ctx.invoke(cmd_serve)


# ---------------------------------------------------------------------------
# sailmcp version
# ---------------------------------------------------------------------------


@cli.command("version")
def cmd_version() -> None:
    """Print the SailMCP version and exit."""
    click.echo(f"sailmcp {__version__}")


# ---------------------------------------------------------------------------
# sailmcp serve
# ---------------------------------------------------------------------------


@cli.command("serve")
@click.pass_context
def cmd_serve(ctx: click.Context) -> None:
    """Run the MCP server over stdio until stdin is closed."""
    from sailmcp.app import main as app_main

    asyncio.run(app_main(kubeconfig=ctx.obj.get("kubeconfig")))


# ---------------------------------------------------------------------------
# sailmcp pods
# ---------------------------------------------------------------------------


@cli.command("pods")
@click.option("--namespace", "-n", default=None, metavar="NS", help="Namespace.  Omit for all namespaces.")
@click.option("--selector", "-l", "label_selector", default=None, metavar="SELECTOR", help="Label selector.")
@click.option("--json", "output_json", is_flag=True, default=False, help="Print the JSON payload.")
@click.pass_context
def cmd_pods(ctx: click.Context, namespace: str | None, label_selector: str | None, output_json: bool) -> None:
    """List pods with status, readiness, restarts and age."""
    result = _run_with_client(ctx, lambda client: resources.list_pods(client, namespace, label_selector))
    _emit(result, output_json)


# ---------------------------------------------------------------------------
# sailmcp logs
# ---------------------------------------------------------------------------


@cli.command("logs")
@click.argument("pod")
@click.option("--namespace", "-n", default="default", show_default=True, metavar="NS", help="Pod namespace.")
@click.option("--container", "-c", default=None, help="Container name.")
@click.option("--lines", default=None, type=click.IntRange(min=1), help="Trailing lines to fetch.  [default: 50]")
@click.option("--previous", is_flag=True, default=False, help="Logs of the previous container instance.")
@click.option("--since-seconds", default=None, type=click.IntRange(min=1), help="Only lines newer than N seconds.")
@click.option("--follow", "-f", is_flag=True, default=False, help="Stream new lines until interrupted.")
@click.pass_context
def cmd_logs(
    ctx: click.Context,
    pod: str,
    namespace: str,
    container: str | None,
    lines: int | None,
    previous: bool,
    since_seconds: int | None,
    follow: bool,
) -> None:
    """Print logs of POD.

    With --follow, lines are written as they arrive and no timeout applies.

    Example:

        sailmcp logs istiod-7d4b9c7f9-x2k4q -n istio-system --follow
    """
    config = _config(ctx)
    tail = lines or config.logs.default_tail_lines

    if follow:

        async def _stream(client: ClusterClient) -> None:
            stream = logs.iter_pod_log_lines(
                client,
                namespace,
                pod,
                container=container,
                lines=tail,
                previous=previous,
                since_seconds=since_seconds,
                follow=True,
            )
            async for line in stream:
                click.echo(line)

        try:
            _run_with_client(ctx, _stream)
        except SailMCPError as exc:
            raise click.ClickException(str(exc)) from exc
        return

    result = _run_with_client(
        ctx,
        lambda client: logs.get_pod_logs(
            client,
            namespace,
            pod,
            container=container,
            lines=tail,
            previous=previous,
            since_seconds=since_seconds,
            timeout=float(config.logs.timeout_seconds),
        ),
    )
    _emit(result)


# ---------------------------------------------------------------------------
# sailmcp health
# ---------------------------------------------------------------------------


@cli.command("health")
@click.option("--namespace", "-n", default=None, metavar="NS", help="Namespace.  Omit for all namespaces.")
@click.option("--json", "output_json", is_flag=True, default=False, help="Print the JSON payload.")
@click.pass_context
def cmd_health(ctx: click.Context, namespace: str | None, output_json: bool) -> None:
    """Check the health of Sail Operator managed resources."""
    result = _run_with_client(ctx, lambda client: health.check_sailoperator_health(client, namespace))
    if output_json or result.is_error:
        _emit(result, output_json)
        return
    for line in result.text.splitlines():
        if line.startswith(_OVERALL_PREFIX):
            status, _, rest = line[len(_OVERALL_PREFIX) :].partition(" ")
            line = click.style(_OVERALL_PREFIX, bold=True) + _styled_health(status) + (f" {rest}" if rest else "")
        click.echo(line)


# ---------------------------------------------------------------------------
# sailmcp status
# ---------------------------------------------------------------------------


@cli.command("status")
@click.argument("name", default="default", required=False)
@click.option("--namespace", "-n", default=None, metavar="NS", help="Namespace of the Istio resource.")
@click.option("--json", "output_json", is_flag=True, default=False, help="Print the JSON payload.")
@click.pass_context
def cmd_status(ctx: click.Context, name: str, namespace: str | None, output_json: bool) -> None:
    """Show the status of the Istio installation NAME."""
    result = _run_with_client(ctx, lambda client: istio.get_istio_status(client, name, namespace))
    _emit(result, output_json)


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    cli()
