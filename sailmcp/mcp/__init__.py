"""MCP stdio server exposing SailMCP's read-only tools."""

from sailmcp.mcp.server import MCPServer

__all__ = ["MCPServer"]
