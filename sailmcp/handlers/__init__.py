"""Operation handlers.

Each handler takes a :class:`~sailmcp.cluster.ClusterClient` plus keyword
parameters and returns a :class:`~sailmcp.models.results.ToolResult`.
Cluster errors are caught here and rendered as text; handlers never raise
:class:`~sailmcp.errors.SailMCPError` to their caller.
"""
