"""Async Kubernetes client wrapping kubernetes-asyncio.

All reads return the API wire form (camelCase dicts) regardless of whether
the underlying call is typed (CoreV1Api, AppsV1Api, ...) or dynamic
(CustomObjectsApi), so callers handle one shape only.

Library exceptions are translated into the :mod:`sailmcp.errors` taxonomy:

- ``ApiException`` 404             -> :class:`NotFoundError`
- other ``ApiException``           -> :class:`QueryFailedError`
- aiohttp client errors, timeouts  -> :class:`QueryFailedError`
- broken or oversized log stream   -> :class:`LogStreamError`

Usage::

    client = await ClusterClient.connect(kubeconfig=None)
    pods = await client.list_pods(namespace="default")
    await client.close()
"""

from __future__ import annotations

import contextlib
from collections.abc import AsyncIterator, Iterator
from dataclasses import dataclass
from typing import Any

import aiohttp
import aiohttp.http_exceptions
from kubernetes_asyncio import client as k8s_client
from kubernetes_asyncio import config as k8s_config
from kubernetes_asyncio.client.exceptions import ApiException

from sailmcp.errors import ClientInitError, LogStreamError, NotFoundError, QueryFailedError
from sailmcp.observability.logging import get_logger
from sailmcp.observability.metrics import cluster_requests_total

_log = get_logger("cluster.client")

_DEFAULT_REQUEST_TIMEOUT_S: float = 10.0


@dataclass(frozen=True)
class CustomResource:
    """Group/version/plural coordinates of a custom resource kind."""

    kind: str
    group: str
    version: str
    plural: str


ISTIO = CustomResource("Istio", "sailoperator.io", "v1", "istios")
ISTIO_REVISION = CustomResource("IstioRevision", "sailoperator.io", "v1", "istiorevisions")
ISTIO_CNI = CustomResource("IstioCNI", "sailoperator.io", "v1", "istiocnis")
ZTUNNEL = CustomResource("ZTunnel", "sailoperator.io", "v1alpha1", "ztunnels")

# Checked in this order by health aggregation and resource listing.
SAIL_OPERATOR_RESOURCES: tuple[CustomResource, ...] = (ISTIO, ISTIO_REVISION, ISTIO_CNI, ZTUNNEL)


def _api_message(exc: ApiException) -> str:
    reason = exc.reason or "Unknown"
    return f"({exc.status}) Reason: {reason}"


@contextlib.contextmanager
def _translate_errors(operation: str, target: str = "") -> Iterator[None]:
    """Map library exceptions raised inside the block onto the error taxonomy.

    ``operation`` labels the request metric; ``target`` only enriches messages.
    """
    what = f"{operation} {target}" if target else operation
    try:
        yield
    except ApiException as exc:
        cluster_requests_total.labels(operation=operation, outcome=str(exc.status)).inc()
        if exc.status == 404:
            raise NotFoundError(f"{what}: not found {_api_message(exc)}") from exc
        raise QueryFailedError(f"{what}: {_api_message(exc)}", status=exc.status) from exc
    except TimeoutError as exc:
        cluster_requests_total.labels(operation=operation, outcome="timeout").inc()
        raise QueryFailedError(f"{what}: request timed out") from exc
    except aiohttp.ClientError as exc:
        cluster_requests_total.labels(operation=operation, outcome="connection_error").inc()
        raise QueryFailedError(f"{what}: {exc}") from exc
    else:
        cluster_requests_total.labels(operation=operation, outcome="ok").inc()


def _selector_kwargs(
    label_selector: str | None = None,
    field_selector: str | None = None,
    limit: int | None = None,
) -> dict[str, Any]:
    kwargs: dict[str, Any] = {}
    if label_selector:
        kwargs["label_selector"] = label_selector
    if field_selector:
        kwargs["field_selector"] = field_selector
    if limit:
        kwargs["limit"] = limit
    return kwargs


class ClusterClient:
    """Read-only facade over the kubernetes-asyncio API groups SailMCP uses.

    The instance is the only long-lived shared resource in the process; it
    holds no mutable state besides the connection pool.
    """

    def __init__(self, api_client: Any, request_timeout: float = _DEFAULT_REQUEST_TIMEOUT_S) -> None:
        self._api_client = api_client
        self._timeout = request_timeout
        self._core_v1 = k8s_client.CoreV1Api(api_client)
        self._apps_v1 = k8s_client.AppsV1Api(api_client)
        self._events_v1 = k8s_client.EventsV1Api(api_client)
        self._custom = k8s_client.CustomObjectsApi(api_client)
        self._version = k8s_client.VersionApi(api_client)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    async def connect(
        cls,
        kubeconfig: str | None = None,
        request_timeout: float = _DEFAULT_REQUEST_TIMEOUT_S,
    ) -> ClusterClient:
        """Load credentials and build a client.

        An explicit ``kubeconfig`` path wins.  Otherwise the in-cluster
        service account is tried, then the default kubeconfig location
        (``KUBECONFIG`` or ``~/.kube/config``).

        Raises:
            ClientInitError: no usable credentials were found.
        """
        try:
            if kubeconfig:
                await k8s_config.load_kube_config(config_file=kubeconfig)
                _log.info("k8s_client_configured", mode="kubeconfig", path=kubeconfig)
            else:
                try:
                    # load_incluster_config() is synchronous in kubernetes-asyncio
                    k8s_config.load_incluster_config()  # type: ignore[no-untyped-call]
                    _log.info("k8s_client_configured", mode="in-cluster")
                except k8s_config.ConfigException:
                    await k8s_config.load_kube_config()
                    _log.info("k8s_client_configured", mode="kubeconfig", path="default")
        except Exception as exc:
            raise ClientInitError(f"failed to load Kubernetes credentials: {exc}") from exc

        return cls(k8s_client.ApiClient(), request_timeout=request_timeout)

    async def close(self) -> None:
        """Close the underlying connection pool."""
        await self._api_client.close()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _to_dict(self, obj: Any) -> Any:
        return self._api_client.sanitize_for_serialization(obj)

    def _items(self, response: Any) -> list[dict[str, Any]]:
        data = self._to_dict(response)
        items = data.get("items") if isinstance(data, dict) else None
        return list(items) if isinstance(items, list) else []

    # ------------------------------------------------------------------
    # Cluster
    # ------------------------------------------------------------------

    async def server_version(self) -> dict[str, Any]:
        with _translate_errors("get server version"):
            info = await self._version.get_code(_request_timeout=self._timeout)
        return dict(self._to_dict(info))

    # ------------------------------------------------------------------
    # Namespaces
    # ------------------------------------------------------------------

    async def list_namespaces(self) -> list[dict[str, Any]]:
        with _translate_errors("list namespaces"):
            resp = await self._core_v1.list_namespace(_request_timeout=self._timeout)
        return self._items(resp)

    async def read_namespace(self, name: str) -> dict[str, Any]:
        with _translate_errors("get namespace", repr(name)):
            resp = await self._core_v1.read_namespace(name, _request_timeout=self._timeout)
        return dict(self._to_dict(resp))

    # ------------------------------------------------------------------
    # Workload resources
    # ------------------------------------------------------------------

    async def list_pods(self, namespace: str | None = None, label_selector: str | None = None) -> list[dict[str, Any]]:
        kwargs = _selector_kwargs(label_selector=label_selector)
        with _translate_errors("list pods"):
            if namespace:
                resp = await self._core_v1.list_namespaced_pod(namespace, _request_timeout=self._timeout, **kwargs)
            else:
                resp = await self._core_v1.list_pod_for_all_namespaces(_request_timeout=self._timeout, **kwargs)
        return self._items(resp)

    async def list_services(
        self, namespace: str | None = None, label_selector: str | None = None
    ) -> list[dict[str, Any]]:
        kwargs = _selector_kwargs(label_selector=label_selector)
        with _translate_errors("list services"):
            if namespace:
                resp = await self._core_v1.list_namespaced_service(namespace, _request_timeout=self._timeout, **kwargs)
            else:
                resp = await self._core_v1.list_service_for_all_namespaces(_request_timeout=self._timeout, **kwargs)
        return self._items(resp)

    async def list_deployments(
        self, namespace: str | None = None, label_selector: str | None = None
    ) -> list[dict[str, Any]]:
        kwargs = _selector_kwargs(label_selector=label_selector)
        with _translate_errors("list deployments"):
            if namespace:
                resp = await self._apps_v1.list_namespaced_deployment(
                    namespace, _request_timeout=self._timeout, **kwargs
                )
            else:
                resp = await self._apps_v1.list_deployment_for_all_namespaces(_request_timeout=self._timeout, **kwargs)
        return self._items(resp)

    async def list_config_maps(
        self, namespace: str | None = None, label_selector: str | None = None
    ) -> list[dict[str, Any]]:
        kwargs = _selector_kwargs(label_selector=label_selector)
        with _translate_errors("list configmaps"):
            if namespace:
                resp = await self._core_v1.list_namespaced_config_map(
                    namespace, _request_timeout=self._timeout, **kwargs
                )
            else:
                resp = await self._core_v1.list_config_map_for_all_namespaces(_request_timeout=self._timeout, **kwargs)
        return self._items(resp)

    async def list_events(
        self,
        namespace: str | None = None,
        field_selector: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """List ``events.k8s.io/v1`` events."""
        kwargs = _selector_kwargs(field_selector=field_selector, limit=limit)
        with _translate_errors("list events"):
            if namespace:
                resp = await self._events_v1.list_namespaced_event(namespace, _request_timeout=self._timeout, **kwargs)
            else:
                resp = await self._events_v1.list_event_for_all_namespaces(_request_timeout=self._timeout, **kwargs)
        return self._items(resp)

    # ------------------------------------------------------------------
    # Logs
    # ------------------------------------------------------------------

    async def stream_pod_log(
        self,
        namespace: str,
        name: str,
        container: str | None = None,
        tail_lines: int | None = None,
        previous: bool = False,
        since_seconds: int | None = None,
        follow: bool = False,
    ) -> AsyncIterator[str]:
        """Yield log lines (without trailing newlines) as they arrive.

        No request timeout is applied here; callers bound the wait
        themselves (``asyncio.timeout``) unless they deliberately follow.

        Raises:
            NotFoundError: the pod or container does not exist.
            QueryFailedError: the API refused to open the stream.
            LogStreamError: the stream broke while being read.
        """
        kwargs: dict[str, Any] = {"previous": previous, "follow": follow}
        if container:
            kwargs["container"] = container
        if tail_lines:
            kwargs["tail_lines"] = tail_lines
        if since_seconds:
            kwargs["since_seconds"] = since_seconds

        with _translate_errors("get pod logs", f"{name!r} in namespace {namespace!r}"):
            resp = await self._core_v1.read_namespaced_pod_log(name, namespace, _preload_content=False, **kwargs)

        try:
            async for raw in resp.content:
                yield raw.decode("utf-8", errors="replace").rstrip("\r\n")
        except (aiohttp.ClientError, aiohttp.http_exceptions.HttpProcessingError, ValueError) as exc:
            # LineTooLong (or "Chunk too big" on older aiohttp) when one line overflows the read buffer.
            raise LogStreamError(f"error reading logs for pod {name!r} in namespace {namespace!r}: {exc}") from exc
        finally:
            resp.release()

    # ------------------------------------------------------------------
    # Custom resources
    # ------------------------------------------------------------------

    async def list_custom_objects(self, resource: CustomResource, namespace: str | None = None) -> list[dict[str, Any]]:
        with _translate_errors(f"list {resource.plural}"):
            if namespace:
                resp = await self._custom.list_namespaced_custom_object(
                    resource.group,
                    resource.version,
                    namespace,
                    resource.plural,
                    _request_timeout=self._timeout,
                )
            else:
                resp = await self._custom.list_cluster_custom_object(
                    resource.group,
                    resource.version,
                    resource.plural,
                    _request_timeout=self._timeout,
                )
        items = resp.get("items") if isinstance(resp, dict) else None
        return list(items) if isinstance(items, list) else []

    async def get_custom_object(
        self, resource: CustomResource, name: str, namespace: str | None = None
    ) -> dict[str, Any]:
        with _translate_errors(f"get {resource.plural}", repr(name)):
            if namespace:
                resp = await self._custom.get_namespaced_custom_object(
                    resource.group,
                    resource.version,
                    namespace,
                    resource.plural,
                    name,
                    _request_timeout=self._timeout,
                )
            else:
                resp = await self._custom.get_cluster_custom_object(
                    resource.group,
                    resource.version,
                    resource.plural,
                    name,
                    _request_timeout=self._timeout,
                )
        return dict(resp) if isinstance(resp, dict) else {}
