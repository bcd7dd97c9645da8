"""Anomalies derived from a cluster snapshot."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ResourceKind(str, Enum):
    """Kind of resource an anomaly refers to."""

    NODE = "Node"
    POD = "Pod"
    EVENT = "Event"


class AnomalyKind(str, Enum):
    """Supported anomaly types."""

    NODE_NOT_READY = "NodeNotReady"
    POD_NOT_READY = "PodNotReady"
    CONTAINER_RESTARTED = "ContainerRestarted"
    NOTABLE_EVENT = "NotableEvent"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"


class Anomaly(BaseModel):
    """A single finding about one resource."""

    model_config = ConfigDict(frozen=True)

    resource_kind: ResourceKind
    resource: str = Field(..., description="Resource identity, e.g. node name or namespace/pod")
    kind: AnomalyKind
    severity: Severity = Severity.WARNING
    count: int = Field(
        default=0,
        ge=0,
        description="Not-ready condition tally, restart count or event occurrence count",
    )
    detail: str = Field(default="", description="Human-readable description")
    container: str | None = None
