"""Immutable snapshots of Kubernetes cluster state."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class _Snapshot(BaseModel):
    """Frozen model; instances are re-validated when passed through model_validate."""

    model_config = ConfigDict(frozen=True, revalidate_instances="always")


class NodeCondition(_Snapshot):
    """Node condition (Ready, MemoryPressure, ...)."""

    type: str
    status: str
    reason: str | None = None
    message: str | None = None
    last_transition: datetime | None = None


class NodeSnapshot(_Snapshot):
    """A node and its conditions in the order the API reported them."""

    name: str
    conditions: tuple[NodeCondition, ...] = ()

    @property
    def identity(self) -> str:
        return self.name


class ContainerStatus(_Snapshot):
    """Readiness and restart state of one container."""

    name: str
    ready: bool
    restart_count: int = Field(default=0, ge=0)
    last_termination_reason: str | None = None


class PodSnapshot(_Snapshot):
    """A pod and its container statuses."""

    name: str
    namespace: str
    container_statuses: tuple[ContainerStatus, ...] = ()

    @property
    def identity(self) -> str:
        return f"{self.namespace}/{self.name}"


class ObjectReference(_Snapshot):
    """The object an event is about."""

    kind: str | None = None
    name: str | None = None
    namespace: str | None = None

    def __str__(self) -> str:
        ref = f"{self.kind or ''}/{self.name or ''}"
        return f"{self.namespace}/{ref}" if self.namespace else ref


class EventRecord(_Snapshot):
    """Cluster event."""

    involved_object: ObjectReference
    message: str
    reason: str = ""
    type: str = "Normal"  # Normal | Warning
    count: int = Field(default=1, ge=0)
    first_timestamp: datetime | None = None

    @property
    def identity(self) -> str:
        return str(self.involved_object)


class ClusterSnapshot(_Snapshot):
    """Nodes, pods and events fetched during one scan.

    The three lists come from separate requests, so they describe roughly
    the same instant but are not mutually consistent.
    """

    namespace: str | None = Field(default=None, description="None means all namespaces")
    nodes: tuple[NodeSnapshot, ...] = ()
    pods: tuple[PodSnapshot, ...] = ()
    events: tuple[EventRecord, ...] = ()
    collected_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
