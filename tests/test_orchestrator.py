import pytest

from conftest import make_event, make_node, make_pod

from kube_health.diagnosis.models import AnomalyKind
from kube_health.errors import (
    ClusterUnreachable,
    MalformedSnapshot,
    ResourceListError,
    ScanTimeout,
    Unauthorized,
)
from kube_health.observation.models import NodeSnapshot
from kube_health.scanner import run_scan


def _cluster(fake_source, **kwargs):
    return fake_source(
        nodes=[make_node(conditions=[("Ready", "False")]), make_node("node-2", [("Ready", "True")])],
        pods=[make_pod(containers=[(True, 0), (False, 2)])],
        events=[make_event(i) for i in range(7)],
        **kwargs,
    )


@pytest.mark.parametrize("concurrent", [True, False])
def test_full_scan(fake_source, concurrent):
    source = _cluster(fake_source)
    result = run_scan(source, concurrent=concurrent)

    assert result.report.counts == {
        AnomalyKind.NODE_NOT_READY: 1,
        AnomalyKind.NOTABLE_EVENT: 5,
        AnomalyKind.POD_NOT_READY: 1,
        AnomalyKind.CONTAINER_RESTARTED: 1,
    }
    assert len(result.snapshot.nodes) == 2
    assert len(result.snapshot.events) == 7
    assert sorted(resource for resource, _ in source.calls) == ["events", "nodes", "pods"]


def test_namespace_and_timeout_are_forwarded(fake_source):
    source = _cluster(fake_source)
    run_scan(source, namespace="shop", timeout=10.0, concurrent=False)

    calls = dict(source.calls)
    assert calls["pods"]["namespace"] == "shop"
    assert calls["events"]["namespace"] == "shop"
    assert 0 < calls["nodes"]["timeout"] <= 10.0


def test_no_timeout_means_no_request_timeout(fake_source):
    source = _cluster(fake_source)
    run_scan(source)
    assert all(kwargs["timeout"] is None for _, kwargs in source.calls)


@pytest.mark.parametrize("concurrent", [True, False])
@pytest.mark.parametrize(
    "error",
    [
        ClusterUnreachable("connection refused", resource="pods"),
        Unauthorized("token expired", resource="pods"),
        ResourceListError("500 Internal Server Error", resource="pods"),
    ],
)
def test_fetch_failure_aborts_scan(fake_source, concurrent, error):
    source = _cluster(fake_source, errors={"pods": error})
    with pytest.raises(type(error)) as excinfo:
        run_scan(source, concurrent=concurrent)
    assert excinfo.value is error


def test_sequential_failure_stops_later_fetches(fake_source):
    source = _cluster(fake_source, errors={"nodes": ClusterUnreachable("down", resource="nodes")})
    with pytest.raises(ClusterUnreachable):
        run_scan(source, concurrent=False)
    assert [resource for resource, _ in source.calls] == ["nodes"]


def test_concurrent_deadline_raises_scan_timeout(fake_source):
    source = _cluster(fake_source, delays={"events": 0.5})
    with pytest.raises(ScanTimeout) as excinfo:
        run_scan(source, timeout=0.05)
    assert excinfo.value.resource == "events"


def test_sequential_deadline_raises_scan_timeout(fake_source):
    source = _cluster(fake_source, delays={"nodes": 0.1})
    with pytest.raises(ScanTimeout) as excinfo:
        run_scan(source, timeout=0.05, concurrent=False)
    assert excinfo.value.resource == "nodes"
    assert [resource for resource, _ in source.calls] == ["nodes"]


def test_malformed_entity_from_source(fake_source):
    source = fake_source(nodes=[NodeSnapshot.model_construct(conditions=())])
    with pytest.raises(MalformedSnapshot):
        run_scan(source)


def test_recent_events_setting(fake_source):
    source = _cluster(fake_source)
    report = run_scan(source, recent_events=0).report
    assert report.group(AnomalyKind.NOTABLE_EVENT) is None


def test_sequential_deadline_covers_last_fetch(fake_source):
    source = _cluster(fake_source, delays={"events": 0.3})
    with pytest.raises(ScanTimeout) as excinfo:
        run_scan(source, timeout=0.05, concurrent=False)
    assert excinfo.value.resource == "events"
    assert [resource for resource, _ in source.calls] == ["nodes", "pods", "events"]
