"""Pydantic argument models for the MCP tools.

Each model doubles as the tool's ``inputSchema`` (via ``model_json_schema``)
and as the validator for incoming ``call_tool`` arguments.  All models use
Pydantic v2 syntax.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _ToolArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")


class NoArgs(_ToolArgs):
    """Tools that take no parameters."""


class NamespaceArgs(_ToolArgs):
    namespace: str | None = Field(
        default=None,
        description="Namespace to inspect.  Omit for all namespaces.",
    )


class ListResourcesArgs(NamespaceArgs):
    label_selector: str | None = Field(
        default=None,
        description="Label selector passed verbatim to the API server, e.g. 'app=istiod'.",
    )


class ListEventsArgs(NamespaceArgs):
    field_selector: str | None = Field(default=None, description="Raw field selector, e.g. 'regarding.kind=Pod'.")
    involved_kind: str | None = Field(default=None, description="Kind of the object the events refer to.")
    involved_name: str | None = Field(default=None, description="Name of the object the events refer to.")
    involved_namespace: str | None = Field(default=None, description="Namespace of the object the events refer to.")
    type: Literal["Normal", "Warning"] | None = Field(default=None, description="Event type filter.")
    reason: str | None = Field(default=None, description="Event reason filter, e.g. 'BackOff'.")
    since_seconds: int | None = Field(default=None, ge=1, description="Only events last seen within this window.")
    limit: int | None = Field(default=None, ge=1, description="Maximum number of events requested from the API.")


class GetPodLogsArgs(_ToolArgs):
    namespace: str = Field(..., description="Namespace of the pod.")
    pod_name: str = Field(..., description="Name of the pod.")
    container: str | None = Field(default=None, description="Container name.  Defaults to the only container.")
    lines: int | None = Field(default=None, ge=1, description="Number of trailing lines to return (default 50).")
    follow: bool = Field(
        default=False,
        description="Not supported over this transport; setting it returns an error.",
    )
    previous: bool = Field(default=False, description="Return logs of the previous container instance.")
    since_seconds: int | None = Field(default=None, ge=1, description="Only lines newer than this many seconds.")


class ListSailOperatorResourcesArgs(NamespaceArgs):
    resource: Literal["istio", "istiorevision", "istiocni", "ztunnel", "all"] | None = Field(
        default=None,
        description="Resource kind to list.  Omit or 'all' for every kind.",
    )

    @field_validator("resource", mode="before")
    @classmethod
    def _lowercase(cls, value: object) -> object:
        return value.lower() if isinstance(value, str) else value


class GetIstioStatusArgs(NamespaceArgs):
    name: str | None = Field(default=None, description="Istio resource name.  Omit for all installations.")


def input_schema(model: type[BaseModel]) -> dict[str, object]:
    """JSON schema for ``model`` in the shape MCP expects for ``inputSchema``."""
    schema = model.model_json_schema()
    schema.setdefault("properties", {})
    schema["type"] = "object"
    return schema
