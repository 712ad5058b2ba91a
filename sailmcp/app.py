"""Application bootstrap for SailMCP.

Wires all components in dependency order and manages the asyncio lifecycle.
Startup order: config → logging → K8s client → metrics endpoint → MCP

Shutdown is graceful: components are stopped in reverse startup order.
Each component's stop error is caught and logged independently so that a
single failure does not prevent the rest from shutting down cleanly.
"""

from __future__ import annotations

import asyncio
import dataclasses
import signal
from typing import TYPE_CHECKING

from sailmcp.config import load_config
from sailmcp.models.config import SailMCPConfig
from sailmcp.observability.logging import get_logger, setup_logging

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from sailmcp.cluster import ClusterClient
    from sailmcp.mcp import MCPServer

_SHUTDOWN_GRACE_SECONDS = 15


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class SailMCPApp:
    """Application root.  Owns every component and coordinates their lifecycle.

    Calling ``stop()`` on an app that was never started (or already
    stopped) is safe.

    Args:
        kubeconfig: Explicit kubeconfig path; overrides ``KUBECONFIG``.
    """

    def __init__(self, kubeconfig: str | None = None) -> None:
        self.config: SailMCPConfig | None = None
        self._kubeconfig_override = kubeconfig

        self._k8s_client: ClusterClient | None = None
        self._mcp_server: MCPServer | None = None
        self._mcp_task: asyncio.Task[None] | None = None

        self._running = False
        self._log: FilteringBoundLogger | None = None

    @property
    def running(self) -> bool:
        """True while started and the MCP session is still open."""
        if not self._running:
            return False
        return self._mcp_task is None or not self._mcp_task.done()

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start all components in dependency order.

        Raises _ComponentError if a mandatory component cannot start.
        The caller (main()) re-raises this as a non-zero exit.
        """
        # --- 1. Configuration -------------------------------------------
        config = load_config()
        if self._kubeconfig_override:
            config = dataclasses.replace(
                config,
                kube=dataclasses.replace(config.kube, kubeconfig=self._kubeconfig_override),
            )
        self.config = config

        # --- 2. Logging -------------------------------------------------
        setup_logging(config.log.level)
        self._log = get_logger("app")
        self._log.info("sailmcp_starting", version=_sailmcp_version())

        # --- 3. Kubernetes client ----------------------------------------
        await self._start_k8s_client()

        # --- 4. Metrics endpoint (optional) ------------------------------
        self._start_metrics()

        # --- 5. MCP server -----------------------------------------------
        self._start_mcp()

        self._running = True
        self._log.info("sailmcp_started")

    # ------------------------------------------------------------------
    # Component startup helpers
    # ------------------------------------------------------------------

    async def _start_k8s_client(self) -> None:
        """Build the cluster client from an explicit kubeconfig, in-cluster config or the default kubeconfig."""
        assert self._log is not None
        assert self.config is not None
        self._log.debug("starting_k8s_client")
        from sailmcp.cluster import ClusterClient

        try:
            self._k8s_client = await ClusterClient.connect(
                kubeconfig=self.config.kube.kubeconfig or None,
                request_timeout=float(self.config.kube.request_timeout_seconds),
            )
        except Exception as exc:
            raise _ComponentError("k8s_client", exc) from exc

    def _start_metrics(self) -> None:
        """Expose Prometheus metrics when enabled.  Non-fatal."""
        assert self._log is not None
        assert self.config is not None
        if not self.config.metrics.enabled:
            self._log.debug("metrics_endpoint_disabled")
            return
        try:
            from sailmcp.observability.metrics import start_metrics_server

            start_metrics_server(self.config.metrics.port)
            self._log.info("metrics_endpoint_started", port=self.config.metrics.port)
        except Exception as exc:
            self._log.warning("metrics_endpoint_failed", port=self.config.metrics.port, error=str(exc))

    def _start_mcp(self) -> None:
        """Start the MCP stdio server as a background task."""
        assert self._log is not None
        assert self.config is not None
        assert self._k8s_client is not None
        from sailmcp.mcp import MCPServer

        self._mcp_server = MCPServer(client=self._k8s_client, config=self.config)
        self._mcp_task = asyncio.create_task(self._mcp_server.start(), name="mcp-server")

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Stop components in reverse startup order."""
        if not self._running and self._k8s_client is None and self._mcp_task is None:
            return

        log = self._log or get_logger("app")
        log.info("sailmcp_shutting_down")
        self._running = False

        if self._mcp_task is not None:
            if not self._mcp_task.done():
                self._mcp_task.cancel()
            results = await asyncio.gather(self._mcp_task, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception) and not isinstance(result, asyncio.CancelledError):
                    log.error("mcp_server_exited_with_error", error=str(result))
            self._mcp_task = None
        self._mcp_server = None

        await self._stop_k8s_client()
        log.info("sailmcp_stopped")

    async def _stop_k8s_client(self) -> None:
        """Close the kubernetes-asyncio ApiClient connection pool."""
        if self._k8s_client is None:
            return
        log = self._log or get_logger("app")
        try:
            await asyncio.wait_for(self._k8s_client.close(), timeout=_SHUTDOWN_GRACE_SECONDS)
        except TimeoutError:
            log.warning("component_stop_timed_out", component="k8s_client", timeout=_SHUTDOWN_GRACE_SECONDS)
        except Exception as exc:
            log.error("component_stop_failed", component="k8s_client", error=str(exc))
        self._k8s_client = None


def _sailmcp_version() -> str:
    from sailmcp import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main(kubeconfig: str | None = None) -> None:
    """Create the app, register OS signals, run until stdin closes or a signal arrives."""
    app = SailMCPApp(kubeconfig=kubeconfig)
    loop = asyncio.get_running_loop()
    stop_requested = asyncio.Event()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, stop_requested.set)

    try:
        await app.start()
        while app.running and not stop_requested.is_set():
            try:
                await asyncio.wait_for(stop_requested.wait(), timeout=1.0)
            except TimeoutError:
                continue
    except _ComponentError as exc:
        log = get_logger("app")
        log.critical("fatal_startup_error", component=exc.component, error=str(exc.cause))
        raise SystemExit(1) from exc
    finally:
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(sig)
        await app.stop()
