"""Unit tests for sailmcp.handlers.namespaces and sailmcp.handlers.cluster."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from sailmcp.errors import NotFoundError, QueryFailedError
from sailmcp.handlers import cluster, namespaces


def _ns(name: str, **labels: str) -> dict[str, Any]:
    return {
        "metadata": {
            "name": name,
            "creationTimestamp": "2026-01-10T08:00:00Z",
            "labels": labels,
            "annotations": {"owner": "platform"},
        },
        "status": {"phase": "Active"},
    }


# ---------------------------------------------------------------------------
# Connectivity
# ---------------------------------------------------------------------------


class TestConnectionCheck:
    @pytest.mark.asyncio
    async def test_reports_versions(self) -> None:
        client = MagicMock()
        client.server_version = AsyncMock(
            return_value={"major": "1", "minor": "30", "gitVersion": "v1.30.2", "platform": "linux/amd64"}
        )

        result = await cluster.test_connection(client)

        assert result.is_error is False
        assert result.text == "Successfully connected to Kubernetes cluster.\nVersion: 1.30\nServer: v1.30.2"
        assert result.payload == {
            "status": "connected",
            "kubernetes_version": "1.30",
            "server_version": "v1.30.2",
            "platform": "linux/amd64",
        }

    @pytest.mark.asyncio
    async def test_failure_is_error_text(self) -> None:
        client = MagicMock()
        client.server_version = AsyncMock(side_effect=QueryFailedError("get server version: connection refused"))

        result = await cluster.test_connection(client)

        assert result.is_error is True
        assert result.text.startswith("Error connecting to Kubernetes:")


# ---------------------------------------------------------------------------
# list_namespaces
# ---------------------------------------------------------------------------


class TestListNamespaces:
    @pytest.mark.asyncio
    async def test_names_and_count(self) -> None:
        client = MagicMock()
        client.list_namespaces = AsyncMock(return_value=[_ns("default"), _ns("istio-system")])

        result = await namespaces.list_namespaces(client)

        assert result.text == "Found 2 namespaces: default, istio-system"
        assert result.payload == {"status": "success", "namespaces": ["default", "istio-system"], "count": 2}

    @pytest.mark.asyncio
    async def test_failure(self) -> None:
        client = MagicMock()
        client.list_namespaces = AsyncMock(side_effect=QueryFailedError("list namespaces: (401) Reason: Unauthorized"))

        result = await namespaces.list_namespaces(client)

        assert result.is_error is True
        assert "Unauthorized" in result.text


# ---------------------------------------------------------------------------
# get_namespace_details
# ---------------------------------------------------------------------------


class TestNamespaceDetails:
    @pytest.mark.asyncio
    async def test_no_name_returns_all(self) -> None:
        client = MagicMock()
        client.list_namespaces = AsyncMock(return_value=[_ns("default"), _ns("bookinfo", **{"istio-injection": "enabled"})])
        client.read_namespace = AsyncMock()

        result = await namespaces.get_namespace_details(client)

        client.read_namespace.assert_not_awaited()
        assert result.text.startswith("Found 2 namespaces with details:")
        assert "map[istio-injection:enabled]" in result.text
        assert result.payload is not None
        assert len(result.payload["namespaces"]) == 2  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_empty_string_returns_all(self) -> None:
        client = MagicMock()
        client.list_namespaces = AsyncMock(return_value=[_ns("a"), _ns("b"), _ns("c")])

        result = await namespaces.get_namespace_details(client, namespace="")

        assert result.text.startswith("Found 3 namespaces with details:")

    @pytest.mark.asyncio
    async def test_named_returns_exactly_one(self) -> None:
        client = MagicMock()
        client.read_namespace = AsyncMock(return_value=_ns("bookinfo", team="mesh"))

        result = await namespaces.get_namespace_details(client, namespace="bookinfo")

        client.read_namespace.assert_awaited_once_with("bookinfo")
        assert result.text.splitlines() == [
            "Namespace: bookinfo",
            "Status: Active",
            "Created: 2026-01-10T08:00:00Z",
            "Labels: map[team:mesh]",
            "Annotations: map[owner:platform]",
        ]
        assert result.payload is not None
        assert result.payload["namespaces"][0]["labels"] == {"team": "mesh"}  # type: ignore[index]

    @pytest.mark.asyncio
    async def test_named_missing_is_not_found_report(self) -> None:
        client = MagicMock()
        client.read_namespace = AsyncMock(side_effect=NotFoundError("get namespace 'ghost': not found"))

        result = await namespaces.get_namespace_details(client, namespace="ghost")

        assert result.is_error is True
        assert result.text == "Namespace 'ghost' not found"

    @pytest.mark.asyncio
    async def test_named_query_failure(self) -> None:
        client = MagicMock()
        client.read_namespace = AsyncMock(side_effect=QueryFailedError("(403) Reason: Forbidden", status=403))

        result = await namespaces.get_namespace_details(client, namespace="kube-system")

        assert result.is_error is True
        assert result.text.startswith("Error getting namespace kube-system:")
