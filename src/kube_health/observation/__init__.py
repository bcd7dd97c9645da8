"""Observation layer: read-only snapshots of Kubernetes cluster state."""

from kube_health.observation.collector import ClusterCollector, ClusterSource
from kube_health.observation.models import (
    ClusterSnapshot,
    ContainerStatus,
    EventRecord,
    NodeCondition,
    NodeSnapshot,
    ObjectReference,
    PodSnapshot,
)

__all__ = [
    "ClusterCollector",
    "ClusterSnapshot",
    "ClusterSource",
    "ContainerStatus",
    "EventRecord",
    "NodeCondition",
    "NodeSnapshot",
    "ObjectReference",
    "PodSnapshot",
]
