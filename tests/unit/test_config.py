"""Tests for sailmcp.config: environment variable loading and validation.

Covers:
  - Default values when no SAILMCP_* env vars are set
  - Each config field read from its corresponding env var
  - Numeric clamping (min/max bounds for int fields)
  - Invalid values raise ValueError for validated fields
  - Boolean parsing for various truthy/falsy strings
"""

from __future__ import annotations

import pytest

from sailmcp.config import load_config
from sailmcp.models.config import DEFAULT_SYSTEM_NAMESPACES, SailMCPConfig

_ALL_VARS = (
    "SAILMCP_LOG_LEVEL",
    "KUBECONFIG",
    "SAILMCP_REQUEST_TIMEOUT",
    "SAILMCP_LOG_TIMEOUT",
    "SAILMCP_LOG_TAIL_LINES",
    "SAILMCP_MESH_SYSTEM_NAMESPACES",
    "SAILMCP_METRICS_ENABLED",
    "SAILMCP_METRICS_PORT",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ALL_VARS:
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


class TestConfigDefaults:
    def test_returns_sailmcp_config_type(self) -> None:
        assert isinstance(load_config(), SailMCPConfig)

    def test_log_level_defaults_to_info(self) -> None:
        assert load_config().log.level == "info"

    def test_kubeconfig_empty_by_default(self) -> None:
        assert load_config().kube.kubeconfig == ""

    def test_request_timeout_default(self) -> None:
        assert load_config().kube.request_timeout_seconds == 10

    def test_log_timeout_default(self) -> None:
        assert load_config().logs.timeout_seconds == 30

    def test_log_tail_lines_default(self) -> None:
        assert load_config().logs.default_tail_lines == 50

    def test_system_namespaces_default(self) -> None:
        namespaces = load_config().mesh.system_namespaces
        assert namespaces == DEFAULT_SYSTEM_NAMESPACES
        assert "kube-system" in namespaces
        assert "istio-system" in namespaces

    def test_metrics_disabled_by_default(self) -> None:
        config = load_config()
        assert config.metrics.enabled is False
        assert config.metrics.port == 9090


# ---------------------------------------------------------------------------
# Env var overrides
# ---------------------------------------------------------------------------


class TestConfigFromEnv:
    def test_log_level_lowercased(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SAILMCP_LOG_LEVEL", "DEBUG")
        assert load_config().log.level == "debug"

    def test_kubeconfig_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBECONFIG", "/tmp/kind.yaml")
        assert load_config().kube.kubeconfig == "/tmp/kind.yaml"

    def test_request_timeout_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SAILMCP_REQUEST_TIMEOUT", "25")
        assert load_config().kube.request_timeout_seconds == 25

    def test_log_tail_lines_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SAILMCP_LOG_TAIL_LINES", "200")
        assert load_config().logs.default_tail_lines == 200

    def test_system_namespaces_comma_list(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SAILMCP_MESH_SYSTEM_NAMESPACES", "kube-system, infra ,,monitoring")
        assert load_config().mesh.system_namespaces == frozenset({"kube-system", "infra", "monitoring"})

    def test_system_namespaces_empty_string_disables_exclusion(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SAILMCP_MESH_SYSTEM_NAMESPACES", "")
        assert load_config().mesh.system_namespaces == frozenset()

    def test_metrics_port_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SAILMCP_METRICS_PORT", "9100")
        assert load_config().metrics.port == 9100


# ---------------------------------------------------------------------------
# Clamping
# ---------------------------------------------------------------------------


class TestConfigClamping:
    @pytest.mark.parametrize(
        ("var", "raw", "expected"),
        [
            ("SAILMCP_REQUEST_TIMEOUT", "0", 1),
            ("SAILMCP_REQUEST_TIMEOUT", "999", 120),
            ("SAILMCP_LOG_TIMEOUT", "1", 5),
            ("SAILMCP_LOG_TIMEOUT", "10000", 300),
            ("SAILMCP_LOG_TAIL_LINES", "-5", 1),
            ("SAILMCP_LOG_TAIL_LINES", "50000", 10000),
            ("SAILMCP_METRICS_PORT", "80", 1024),
            ("SAILMCP_METRICS_PORT", "70000", 65535),
        ],
    )
    def test_int_values_clamped(self, monkeypatch: pytest.MonkeyPatch, var: str, raw: str, expected: int) -> None:
        monkeypatch.setenv(var, raw)
        config = load_config()
        actual = {
            "SAILMCP_REQUEST_TIMEOUT": config.kube.request_timeout_seconds,
            "SAILMCP_LOG_TIMEOUT": config.logs.timeout_seconds,
            "SAILMCP_LOG_TAIL_LINES": config.logs.default_tail_lines,
            "SAILMCP_METRICS_PORT": config.metrics.port,
        }[var]
        assert actual == expected


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestConfigValidation:
    def test_invalid_log_level_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SAILMCP_LOG_LEVEL", "verbose")
        with pytest.raises(ValueError, match="Invalid log level"):
            load_config()

    def test_non_integer_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SAILMCP_LOG_TIMEOUT", "thirty")
        with pytest.raises(ValueError, match="SAILMCP_LOG_TIMEOUT"):
            load_config()

    def test_blank_integer_uses_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SAILMCP_REQUEST_TIMEOUT", "  ")
        assert load_config().kube.request_timeout_seconds == 10


# ---------------------------------------------------------------------------
# Booleans
# ---------------------------------------------------------------------------


class TestConfigBooleans:
    @pytest.mark.parametrize("raw", ["1", "true", "TRUE", "yes", "on"])
    def test_truthy_values(self, monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
        monkeypatch.setenv("SAILMCP_METRICS_ENABLED", raw)
        assert load_config().metrics.enabled is True

    @pytest.mark.parametrize("raw", ["0", "false", "no", "off", "maybe"])
    def test_falsy_values(self, monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
        monkeypatch.setenv("SAILMCP_METRICS_ENABLED", raw)
        assert load_config().metrics.enabled is False
