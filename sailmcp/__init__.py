"""SailMCP - read-only Kubernetes and Istio Sail Operator introspection over MCP."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("sailmcp")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
