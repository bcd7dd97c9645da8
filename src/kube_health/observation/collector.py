"""Read nodes, pods and events from a Kubernetes cluster as immutable snapshots."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import partial
from typing import Any, Callable, Protocol, Sequence, TypeVar

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from pydantic import ValidationError
from urllib3.exceptions import HTTPError, MaxRetryError, NewConnectionError
from urllib3.exceptions import TimeoutError as Urllib3TimeoutError

from kube_health.errors import (
    ClusterHealthError,
    ClusterUnreachable,
    ResourceListError,
    ScanTimeout,
    Unauthorized,
)
from kube_health.observation.models import (
    ContainerStatus,
    EventRecord,
    NodeCondition,
    NodeSnapshot,
    ObjectReference,
    PodSnapshot,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

UNAUTHORIZED_STATUSES = (401, 403)


class ClusterSource(Protocol):
    """The three read-only list operations a scan needs."""

    def list_nodes(self, timeout: float | None = None) -> Sequence[NodeSnapshot]: ...

    def list_pods(
        self, namespace: str | None = None, timeout: float | None = None
    ) -> Sequence[PodSnapshot]: ...

    def list_events(
        self, namespace: str | None = None, timeout: float | None = None
    ) -> Sequence[EventRecord]: ...


def _load_kube_config(kubeconfig_path: str | None, context: str | None) -> client.Configuration:
    """Load kubeconfig-based configuration, or in-cluster config when no path is given."""
    if not kubeconfig_path:
        try:
            config.load_incluster_config()
            return client.Configuration.get_default_copy()
        except config.ConfigException:
            pass
    kwargs: dict[str, Any] = {}
    if kubeconfig_path:
        kwargs["config_file"] = str(kubeconfig_path)
    if context:
        kwargs["context"] = context
    try:
        config.load_kube_config(**kwargs)
    except (config.ConfigException, OSError) as e:
        raise Unauthorized(f"could not load cluster credentials: {e}", cause=e) from e
    return client.Configuration.get_default_copy()


def _utc(ts: datetime | None) -> datetime | None:
    if ts is None:
        return None
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def _build_node_snapshot(node: Any) -> NodeSnapshot:
    """Build NodeSnapshot from V1Node."""
    conditions = []
    for c in getattr(node.status, "conditions", None) or []:
        conditions.append(
            NodeCondition(
                type=c.type,
                status=c.status,
                reason=getattr(c, "reason", None),
                message=getattr(c, "message", None),
                last_transition=_utc(getattr(c, "last_transition_time", None)),
            )
        )
    return NodeSnapshot(name=node.metadata.name, conditions=tuple(conditions))


def _last_termination_reason(container_status: Any) -> str | None:
    last = getattr(container_status, "last_state", None)
    terminated = getattr(last, "terminated", None) if last else None
    return getattr(terminated, "reason", None) if terminated else None


def _build_pod_snapshot(pod: Any) -> PodSnapshot:
    """Build PodSnapshot from V1Pod."""
    statuses = []
    for cs in getattr(pod.status, "container_statuses", None) or []:
        statuses.append(
            ContainerStatus(
                name=cs.name,
                ready=bool(cs.ready),
                restart_count=cs.restart_count or 0,
                last_termination_reason=_last_termination_reason(cs),
            )
        )
    return PodSnapshot(
        name=pod.metadata.name,
        namespace=pod.metadata.namespace or "default",
        container_statuses=tuple(statuses),
    )


def _build_event_record(ev: Any) -> EventRecord:
    """Build EventRecord from CoreV1Event."""
    obj = ev.involved_object
    return EventRecord(
        involved_object=ObjectReference(
            kind=getattr(obj, "kind", None),
            name=getattr(obj, "name", None),
            namespace=getattr(obj, "namespace", None),
        ),
        message=ev.message or "",
        reason=ev.reason or "",
        type=ev.type or "Normal",
        count=ev.count or 1,
        first_timestamp=_utc(ev.first_timestamp),
    )


def _translate_error(
    exc: BaseException, resource: str, timeout: float | None
) -> ClusterHealthError:
    """Map a client exception onto the scan error taxonomy."""
    if isinstance(exc, ApiException):
        if exc.status in UNAUTHORIZED_STATUSES:
            return Unauthorized(
                f"not authorized to list {resource}: {exc.status} {exc.reason}",
                resource=resource,
                cause=exc,
            )
        if not exc.status:
            return ClusterUnreachable(
                f"cluster unreachable while listing {resource}: {exc.reason}",
                resource=resource,
                cause=exc,
            )
        return ResourceListError(
            f"failed to list {resource}: {exc.status} {exc.reason}",
            resource=resource,
            cause=exc,
        )
    reason = exc.reason if isinstance(exc, MaxRetryError) else exc
    # NewConnectionError subclasses ConnectTimeoutError but means the connection was refused
    timed_out = isinstance(reason, Urllib3TimeoutError) and not isinstance(reason, NewConnectionError)
    if timeout is not None and timed_out:
        return ScanTimeout(
            f"listing {resource} exceeded {timeout:.1f}s",
            resource=resource,
            cause=exc,
        )
    return ClusterUnreachable(
        f"cluster unreachable while listing {resource}: {reason}",
        resource=resource,
        cause=exc,
    )


class ClusterCollector:
    """Lists nodes, pods and events through the CoreV1 API.

    Each call issues a single list request and returns the complete list the
    server sent back. Continuation tokens are not followed.
    """

    def __init__(self, core: client.CoreV1Api) -> None:
        self._core = core

    @classmethod
    def from_config(
        cls,
        kubeconfig: str | None = None,
        context: str | None = None,
    ) -> ClusterCollector:
        """Build a collector from in-cluster config or a kubeconfig file."""
        cfg = _load_kube_config(kubeconfig, context)
        # urllib3 retries connection errors 3 times by default
        cfg.retries = 0
        return cls(client.CoreV1Api(client.ApiClient(cfg)))

    def list_nodes(self, timeout: float | None = None) -> tuple[NodeSnapshot, ...]:
        return self._list("nodes", self._core.list_node, _build_node_snapshot, timeout)

    def list_pods(
        self, namespace: str | None = None, timeout: float | None = None
    ) -> tuple[PodSnapshot, ...]:
        if namespace:
            call = partial(self._core.list_namespaced_pod, namespace=namespace)
        else:
            call = self._core.list_pod_for_all_namespaces
        return self._list("pods", call, _build_pod_snapshot, timeout)

    def list_events(
        self, namespace: str | None = None, timeout: float | None = None
    ) -> tuple[EventRecord, ...]:
        if namespace:
            call = partial(self._core.list_namespaced_event, namespace=namespace)
        else:
            call = self._core.list_event_for_all_namespaces
        return self._list("events", call, _build_event_record, timeout)

    def _list(
        self,
        resource: str,
        call: Callable[..., Any],
        build: Callable[[Any], T],
        timeout: float | None,
    ) -> tuple[T, ...]:
        kwargs: dict[str, Any] = {}
        if timeout is not None:
            kwargs["_request_timeout"] = timeout
        try:
            result = call(**kwargs)
        except (ApiException, HTTPError) as e:
            logger.debug("Failed to list %s: %s", resource, e)
            raise _translate_error(e, resource, timeout) from e

        try:
            items = tuple(build(item) for item in result.items or [])
        except (AttributeError, ValidationError) as e:
            logger.debug("Malformed %s list: %s", resource, e)
            raise ResourceListError(
                f"malformed {resource} list: {e}", resource=resource, cause=e
            ) from e
        logger.debug("Listed %d %s", len(items), resource)
        return items
