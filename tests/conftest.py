"""
Shared fixtures: snapshot factories and an in-memory cluster source.
"""
from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone

import pytest

from kube_health.observation.models import (
    ContainerStatus,
    EventRecord,
    NodeCondition,
    NodeSnapshot,
    ObjectReference,
    PodSnapshot,
)

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_node(name="node-1", conditions=()):
    return NodeSnapshot(
        name=name,
        conditions=tuple(NodeCondition(type=t, status=s) for t, s in conditions),
    )


def make_pod(name="web-0", namespace="default", containers=()):
    """containers: iterable of (ready, restart_count) or ContainerStatus."""
    statuses = []
    for i, c in enumerate(containers):
        if isinstance(c, ContainerStatus):
            statuses.append(c)
        else:
            ready, restarts = c
            statuses.append(ContainerStatus(name=f"c{i + 1}", ready=ready, restart_count=restarts))
    return PodSnapshot(name=name, namespace=namespace, container_statuses=tuple(statuses))


def make_event(i=0, message=None, type_="Normal", count=1):
    return EventRecord(
        involved_object=ObjectReference(kind="Pod", name=f"pod-{i}", namespace="default"),
        message=message or f"event {i}",
        reason="Scheduled",
        type=type_,
        count=count,
        first_timestamp=T0 + timedelta(minutes=i),
    )


class FakeSource:
    """In-memory ClusterSource; records calls and can raise per resource."""

    def __init__(self, nodes=(), pods=(), events=(), errors=None, delays=None):
        self.nodes = tuple(nodes)
        self.pods = tuple(pods)
        self.events = tuple(events)
        self.errors = errors or {}
        self.delays = delays or {}
        self.calls = []

    def _serve(self, resource, value, **kwargs):
        self.calls.append((resource, kwargs))
        if resource in self.delays:
            time.sleep(self.delays[resource])
        if resource in self.errors:
            raise self.errors[resource]
        return value

    def list_nodes(self, timeout=None):
        return self._serve("nodes", self.nodes, timeout=timeout)

    def list_pods(self, namespace=None, timeout=None):
        return self._serve("pods", self.pods, namespace=namespace, timeout=timeout)

    def list_events(self, namespace=None, timeout=None):
        return self._serve("events", self.events, namespace=namespace, timeout=timeout)


@pytest.fixture
def fake_source():
    """Factory for FakeSource instances."""
    return FakeSource
