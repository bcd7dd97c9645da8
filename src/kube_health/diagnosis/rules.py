"""Anomaly rules evaluated against a cluster snapshot.

Every rule is a pure function of one resource list of the snapshot and
returns zero or more anomalies. Most rules look at each entity on its own and
are wrapped with ``for_each``. ``evaluate`` validates the snapshot, runs the
registered rules over the matching resource lists and hands the result to the
report builder.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Iterable, Mapping, Sequence, TypeVar

from pydantic import BaseModel, ValidationError

from kube_health.diagnosis.models import Anomaly, AnomalyKind, ResourceKind, Severity
from kube_health.errors import MalformedSnapshot
from kube_health.observation.models import (
    ClusterSnapshot,
    EventRecord,
    NodeSnapshot,
    PodSnapshot,
)
from kube_health.reporting.builder import build_report
from kube_health.reporting.models import Report

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

DEFAULT_RECENT_EVENTS = 5


def node_readiness(node: NodeSnapshot) -> list[Anomaly]:
    """Flag a node whose Ready condition is not True.

    A node that reports no Ready condition at all is not flagged.
    """
    not_ready = sum(1 for c in node.conditions if c.type == "Ready" and c.status != "True")
    if not not_ready:
        return []
    return [
        Anomaly(
            resource_kind=ResourceKind.NODE,
            resource=node.identity,
            kind=AnomalyKind.NODE_NOT_READY,
            count=not_ready,
            detail=f"Node {node.name} is not ready: {not_ready} conditions are not ready",
        )
    ]


def pod_container_readiness(pod: PodSnapshot) -> list[Anomaly]:
    """One anomaly per container that is not ready."""
    return [
        Anomaly(
            resource_kind=ResourceKind.POD,
            resource=pod.identity,
            kind=AnomalyKind.POD_NOT_READY,
            container=cs.name,
            count=cs.restart_count,
            detail=(
                f"Pod {pod.identity} is not ready: container {cs.name} "
                f"(restart count {cs.restart_count})"
            ),
        )
        for cs in pod.container_statuses
        if not cs.ready
    ]


def pod_container_restarts(pod: PodSnapshot) -> list[Anomaly]:
    """One anomaly per container that has restarted, ready or not."""
    anomalies = []
    for cs in pod.container_statuses:
        if cs.restart_count <= 0:
            continue
        detail = f"Pod {pod.identity} container {cs.name} was restarted {cs.restart_count} times"
        if cs.last_termination_reason:
            detail += f" (last termination: {cs.last_termination_reason})"
        anomalies.append(
            Anomaly(
                resource_kind=ResourceKind.POD,
                resource=pod.identity,
                kind=AnomalyKind.CONTAINER_RESTARTED,
                container=cs.name,
                count=cs.restart_count,
                detail=detail,
            )
        )
    return anomalies


def notable_event(event: EventRecord) -> list[Anomaly]:
    """Report an event as-is; Warning events get warning severity."""
    seen = event.first_timestamp.isoformat() if event.first_timestamp else "<unknown>"
    reason = f" {event.reason}" if event.reason else ""
    return [
        Anomaly(
            resource_kind=ResourceKind.EVENT,
            resource=event.identity,
            kind=AnomalyKind.NOTABLE_EVENT,
            severity=Severity.WARNING if event.type == "Warning" else Severity.INFO,
            count=event.count,
            detail=f"{seen}{reason} {event.identity}: {event.message}",
        )
    ]


def select_recent_events(events: Sequence[EventRecord], limit: int = DEFAULT_RECENT_EVENTS) -> list[EventRecord]:
    """
    Return the last ``limit`` events in the order the API listed them.

    No sorting is applied, so these are the trailing list entries rather than
    the most recent events by timestamp. Shorter lists are returned whole.
    """
    if limit <= 0:
        return []
    return list(events[-limit:])


def recent_event_anomalies(events: Sequence[EventRecord], limit: int = DEFAULT_RECENT_EVENTS) -> list[Anomaly]:
    """Report the trailing ``limit`` events of the list."""
    return [a for event in select_recent_events(events, limit) for a in notable_event(event)]


def for_each(check: Callable[[Any], list[Anomaly]]) -> Callable[[Sequence[Any]], list[Anomaly]]:
    """Lift a per-entity check into a check over a whole resource list."""

    def run(entities: Sequence[Any]) -> list[Anomaly]:
        return [a for entity in entities for a in check(entity)]

    return run


@dataclass(frozen=True)
class Rule:
    """A named check over the full entity list of one resource kind."""

    name: str
    resource: ResourceKind
    check: Callable[[Sequence[Any]], list[Anomaly]]


def default_rules(recent_events: int = DEFAULT_RECENT_EVENTS) -> tuple[Rule, ...]:
    """Built-in rules in report order."""
    return (
        Rule("NodeReadiness", ResourceKind.NODE, for_each(node_readiness)),
        Rule("RecentEvents", ResourceKind.EVENT, partial(recent_event_anomalies, limit=recent_events)),
        Rule("PodContainerReadiness", ResourceKind.POD, for_each(pod_container_readiness)),
        Rule("PodContainerRestarts", ResourceKind.POD, for_each(pod_container_restarts)),
    )


DEFAULT_RULES: tuple[Rule, ...] = default_rules()


def get_rule(name: str, recent_events: int = DEFAULT_RECENT_EVENTS) -> Rule:
    """Look up a built-in rule by name."""
    for rule in default_rules(recent_events):
        if rule.name == name:
            return rule
    raise KeyError(f"unknown rule: {name}")


def _field(entity: Any, key: str) -> Any:
    if isinstance(entity, Mapping):
        return entity.get(key)
    return getattr(entity, key, None)


def _identity_hint(entity: Any) -> str | None:
    name, namespace = _field(entity, "name"), _field(entity, "namespace")
    if not name:
        # events carry their identity on the involved object
        obj = _field(entity, "involved_object")
        if obj is None:
            return None
        kind, name, namespace = _field(obj, "kind"), _field(obj, "name"), _field(obj, "namespace")
        if not (kind and name):
            return None
        name = f"{kind}/{name}"
    return f"{namespace}/{name}" if namespace else str(name)


def _validated(model: type[M], entities: Iterable[Any] | None, resource: ResourceKind) -> list[M]:
    """Validate each entity against its snapshot model."""
    out: list[M] = []
    for i, entity in enumerate(entities or ()):
        try:
            out.append(model.model_validate(entity, from_attributes=True))
        except ValidationError as e:
            ident = _identity_hint(entity) or f"#{i}"
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise MalformedSnapshot(
                f"malformed {resource.value} {ident}: invalid or missing {fields}",
                resource=resource.value,
                cause=e,
            ) from e
    return out


def scan_anomalies(
    snapshot: ClusterSnapshot,
    rules: Sequence[Rule] | None = None,
    recent_events: int = DEFAULT_RECENT_EVENTS,
) -> list[Anomaly]:
    """Run rules over the snapshot and return anomalies in encounter order.

    ``recent_events`` sizes the built-in RecentEvents rule and is ignored when
    explicit ``rules`` are given; those see every listed event.
    """
    entities: dict[ResourceKind, list[Any]] = {
        ResourceKind.NODE: _validated(NodeSnapshot, getattr(snapshot, "nodes", None), ResourceKind.NODE),
        ResourceKind.POD: _validated(PodSnapshot, getattr(snapshot, "pods", None), ResourceKind.POD),
        ResourceKind.EVENT: _validated(EventRecord, getattr(snapshot, "events", None), ResourceKind.EVENT),
    }

    anomalies: list[Anomaly] = []
    for rule in default_rules(recent_events) if rules is None else rules:
        found = rule.check(entities[rule.resource])
        logger.debug("Rule %s: %d anomalies", rule.name, len(found))
        anomalies.extend(found)
    return anomalies


def evaluate(
    snapshot: ClusterSnapshot,
    rules: Sequence[Rule] | None = None,
    recent_events: int = DEFAULT_RECENT_EVENTS,
) -> Report:
    """Evaluate all rules against the snapshot and build a report."""
    return build_report(scan_anomalies(snapshot, rules=rules, recent_events=recent_events))
