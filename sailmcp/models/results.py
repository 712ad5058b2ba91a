"""Operation result container."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ToolResult:
    """Outcome of a single operation.

    Attributes:
        text:     Human-readable report, always present.
        payload:  Structured copy of the same data; the MCP server sends it
                  as a second JSON text part.  ``None`` for text-only results.
        is_error: True when the operation failed and ``text`` describes why.
    """

    text: str
    payload: dict[str, object] | None = None
    is_error: bool = False

    @classmethod
    def error(cls, text: str) -> ToolResult:
        return cls(text=text, is_error=True)
