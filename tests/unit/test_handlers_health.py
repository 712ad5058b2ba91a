"""Unit tests for sailmcp.handlers.health: two-level Sail Operator health reduction."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from sailmcp.cluster.client import ISTIO, ISTIO_CNI, ISTIO_REVISION, ZTUNNEL, CustomResource
from sailmcp.errors import NotFoundError, QueryFailedError
from sailmcp.handlers.health import (
    analyze_resource_health,
    check_component_health,
    check_sailoperator_health,
    overall_health,
    reduce_component,
)
from sailmcp.models.resources import ComponentStatus, HealthCheckResult

# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def _make_resource(
    name: str = "default",
    *,
    ready: str | None = "True",
    reconciled: str | None = "True",
    deps: str | None = "True",
    state: str | None = "Healthy",
    reason: str = "",
) -> dict[str, Any]:
    conditions = []
    for type_, status in (("Ready", ready), ("Reconciled", reconciled), ("DependenciesHealthy", deps)):
        if status is not None:
            conditions.append({"type": type_, "status": status, "reason": reason if status != "True" else ""})
    status_block: dict[str, Any] = {"conditions": conditions}
    if state is not None:
        status_block["state"] = state
    return {"metadata": {"name": name}, "status": status_block}


def _healthy(name: str = "default") -> dict[str, Any]:
    return _make_resource(name)


def _unhealthy(name: str = "broken") -> dict[str, Any]:
    return _make_resource(name, ready="False", state="ReconcileError", reason="IstiodNotReady")


def _make_client(by_plural: dict[str, Any]) -> MagicMock:
    async def _list(resource: CustomResource, namespace: str | None = None) -> list[dict[str, Any]]:
        value = by_plural.get(resource.plural, [])
        if isinstance(value, Exception):
            raise value
        return value

    client = MagicMock()
    client.list_custom_objects = AsyncMock(side_effect=_list)
    return client


# ---------------------------------------------------------------------------
# Per-instance evaluation
# ---------------------------------------------------------------------------


class TestAnalyzeResourceHealth:
    def test_all_conditions_true(self) -> None:
        healthy, issues, conditions = analyze_resource_health(_healthy())
        assert healthy is True
        assert issues == []
        assert len(conditions) == 3

    def test_missing_conditions_count_as_healthy(self) -> None:
        healthy, issues, _ = analyze_resource_health(
            _make_resource(ready=None, reconciled=None, deps=None, state="Healthy")
        )
        assert healthy is True
        assert issues == []

    def test_not_ready_issue_includes_reason(self) -> None:
        healthy, issues, _ = analyze_resource_health(_make_resource(ready="False", reason="IstiodNotReady"))
        assert healthy is False
        assert issues == ["default is not ready (IstiodNotReady)"]

    def test_reconcile_and_dependency_wording(self) -> None:
        _, issues, _ = analyze_resource_health(_make_resource(reconciled="False", deps="Unknown"))
        assert "default reconciliation failed" in issues
        assert "default has unhealthy dependencies" in issues

    def test_non_healthy_state(self) -> None:
        healthy, issues, _ = analyze_resource_health(_make_resource(state="Pending"))
        assert healthy is False
        assert issues == ["default state is Pending"]

    def test_namespaced_resource_id(self) -> None:
        obj = _make_resource(ready="False")
        obj["metadata"]["namespace"] = "istio-system"
        _, issues, _ = analyze_resource_health(obj)
        assert issues[0].startswith("istio-system/default ")


# ---------------------------------------------------------------------------
# Per-kind reduction
# ---------------------------------------------------------------------------


class TestReduceComponent:
    @pytest.mark.parametrize(
        ("healthy_count", "total", "expected"),
        [
            (3, 3, ComponentStatus.HEALTHY),
            (2, 3, ComponentStatus.DEGRADED),
            (1, 3, ComponentStatus.DEGRADED),
            (0, 3, ComponentStatus.UNHEALTHY),
            (1, 1, ComponentStatus.HEALTHY),
            (0, 1, ComponentStatus.UNHEALTHY),
        ],
    )
    def test_ratio(self, healthy_count: int, total: int, expected: ComponentStatus) -> None:
        items = [_healthy(f"h{i}") for i in range(healthy_count)]
        items += [_unhealthy(f"u{i}") for i in range(total - healthy_count)]

        result = reduce_component("Istio", items)

        assert result.status is expected

    def test_healthy_reason(self) -> None:
        assert reduce_component("Istio", [_healthy(), _healthy("b")]).reason == "All 2 resources healthy"

    def test_degraded_reason_and_issues(self) -> None:
        result = reduce_component("Istio", [_healthy(), _unhealthy()])
        assert result.reason == "1/2 resources healthy"
        assert "broken is not ready (IstiodNotReady)" in result.issues

    def test_empty_is_not_installed(self) -> None:
        result = reduce_component("ZTunnel", [])
        assert result.status is ComponentStatus.NOT_INSTALLED
        assert result.reason == "No resources found"


# ---------------------------------------------------------------------------
# Overall reduction
# ---------------------------------------------------------------------------


def _component(status: ComponentStatus) -> HealthCheckResult:
    return HealthCheckResult(component="x", status=status)


class TestOverallHealth:
    def test_all_healthy(self) -> None:
        assert overall_health([_component(ComponentStatus.HEALTHY)] * 4) is ComponentStatus.HEALTHY

    def test_none_healthy(self) -> None:
        components = [
            _component(ComponentStatus.NOT_INSTALLED),
            _component(ComponentStatus.ERROR),
            _component(ComponentStatus.UNHEALTHY),
            _component(ComponentStatus.DEGRADED),
        ]
        assert overall_health(components) is ComponentStatus.UNHEALTHY

    def test_some_healthy(self) -> None:
        components = [_component(ComponentStatus.HEALTHY)] * 3 + [_component(ComponentStatus.NOT_INSTALLED)]
        assert overall_health(components) is ComponentStatus.DEGRADED


# ---------------------------------------------------------------------------
# Cluster-facing checks
# ---------------------------------------------------------------------------


class TestCheckComponentHealth:
    @pytest.mark.asyncio
    async def test_missing_crd_is_not_installed(self) -> None:
        client = _make_client({"ztunnels": NotFoundError("list ztunnels: not found")})

        result = await check_component_health(client, ZTUNNEL)

        assert result.status is ComponentStatus.NOT_INSTALLED
        assert result.reason == "CRD not installed"

    @pytest.mark.asyncio
    async def test_other_failure_is_error(self) -> None:
        client = _make_client({"istios": QueryFailedError("list istios: (403) Reason: Forbidden", status=403)})

        result = await check_component_health(client, ISTIO)

        assert result.status is ComponentStatus.ERROR
        assert result.reason == "Query failed"
        assert "Forbidden" in result.issues[0]


class TestCheckSailOperatorHealth:
    @pytest.mark.asyncio
    async def test_all_kinds_healthy(self) -> None:
        client = _make_client(
            {
                "istios": [_healthy()],
                "istiorevisions": [_healthy("default-v1-24")],
                "istiocnis": [_healthy()],
                "ztunnels": [_healthy()],
            }
        )

        result = await check_sailoperator_health(client)

        assert result.is_error is False
        assert result.payload is not None
        assert result.payload["overall_health"] == "Healthy"
        assert "Overall Health: Healthy (4/4 components healthy)" in result.text
        assert "✅ All Sail Operator components are healthy and functioning properly." in result.text

    @pytest.mark.asyncio
    async def test_kinds_checked_in_order(self) -> None:
        client = _make_client({})

        await check_sailoperator_health(client, namespace="istio-system")

        kinds = [call.args[0] for call in client.list_custom_objects.await_args_list]
        assert kinds == [ISTIO, ISTIO_REVISION, ISTIO_CNI, ZTUNNEL]
        assert all(call.kwargs["namespace"] == "istio-system" for call in client.list_custom_objects.await_args_list)

    @pytest.mark.asyncio
    async def test_degraded_when_some_kinds_missing(self) -> None:
        client = _make_client(
            {
                "istios": [_healthy()],
                "istiorevisions": [_healthy()],
                "istiocnis": [_unhealthy()],
                "ztunnels": NotFoundError("list ztunnels: not found"),
            }
        )

        result = await check_sailoperator_health(client)

        assert result.payload is not None
        assert result.payload["overall_health"] == "Degraded"
        components = {c["component"]: c["status"] for c in result.payload["components"]}  # type: ignore[union-attr]
        assert components == {
            "Istio": "Healthy",
            "IstioRevision": "Healthy",
            "IstioCNI": "Unhealthy",
            "ZTunnel": "NotInstalled",
        }
        assert "Components with issues:" in result.text
        assert "   🔸 broken is not ready (IstiodNotReady)" in result.text

    @pytest.mark.asyncio
    async def test_nothing_installed_is_unhealthy_not_error(self) -> None:
        client = _make_client({})

        result = await check_sailoperator_health(client)

        assert result.is_error is False
        assert result.payload is not None
        assert result.payload["overall_health"] == "Unhealthy"
        assert "Overall Health: Unhealthy (0/4 components healthy)" in result.text
