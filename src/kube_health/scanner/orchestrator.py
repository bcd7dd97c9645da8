"""Orchestrator: fetch snapshot → evaluate rules → build report."""

from __future__ import annotations

import logging
import time
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Sequence

from kube_health.diagnosis.rules import DEFAULT_RECENT_EVENTS, Rule, evaluate
from kube_health.errors import ScanTimeout
from kube_health.observation import ClusterSnapshot, ClusterSource
from kube_health.reporting import Report

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """Result of a single scan."""

    snapshot: ClusterSnapshot
    report: Report
    elapsed: float = 0.0


class _Deadline:
    def __init__(self, timeout: float | None) -> None:
        self.timeout = timeout
        self._expires = time.monotonic() + timeout if timeout is not None else None

    def remaining(self) -> float | None:
        if self._expires is None:
            return None
        return max(0.0, self._expires - time.monotonic())

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def check(self, resource: str) -> float | None:
        if self.expired():
            raise ScanTimeout(f"scan exceeded {self.timeout:.1f}s before listing {resource}", resource=resource)
        return self.remaining()


def _fetchers(source: ClusterSource, namespace: str | None) -> dict[str, Callable[[float | None], Sequence[Any]]]:
    return {
        "nodes": lambda t: source.list_nodes(timeout=t),
        "pods": lambda t: source.list_pods(namespace=namespace, timeout=t),
        "events": lambda t: source.list_events(namespace=namespace, timeout=t),
    }


def _fetch_sequential(
    fetchers: dict[str, Callable[[float | None], Sequence[Any]]], deadline: _Deadline
) -> dict[str, Sequence[Any]]:
    results: dict[str, Sequence[Any]] = {}
    for resource, fetch in fetchers.items():
        results[resource] = fetch(deadline.check(resource))
        if deadline.expired():
            raise ScanTimeout(f"scan exceeded {deadline.timeout:.1f}s while listing {resource}", resource=resource)
    return results


def _fetch_concurrent(
    fetchers: dict[str, Callable[[float | None], Sequence[Any]]], deadline: _Deadline
) -> dict[str, Sequence[Any]]:
    """Run all fetches in parallel and wait for every one of them.

    The first failure cancels whatever is still pending and is re-raised as-is.
    """
    executor = ThreadPoolExecutor(max_workers=len(fetchers), thread_name_prefix="kube_health_fetch")
    try:
        remaining = deadline.remaining()
        futures: dict[Future, str] = {
            executor.submit(fetch, remaining): resource for resource, fetch in fetchers.items()
        }
        done, pending = wait(futures, timeout=remaining, return_when=FIRST_EXCEPTION)
        for future in futures:
            if future in done and future.exception() is not None:
                for p in pending:
                    p.cancel()
                raise future.exception()
        if pending:
            for p in pending:
                p.cancel()
            waiting = ", ".join(sorted(futures[p] for p in pending))
            raise ScanTimeout(f"scan exceeded {deadline.timeout:.1f}s waiting for {waiting}", resource=waiting)
        return {futures[f]: f.result() for f in done}
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def run_scan(
    source: ClusterSource,
    namespace: str | None = None,
    recent_events: int = DEFAULT_RECENT_EVENTS,
    timeout: float | None = None,
    concurrent: bool = True,
    rules: Sequence[Rule] | None = None,
) -> ScanResult:
    """
    Fetch nodes, pods and events from the source, then evaluate the rules.

    Any fetch error aborts the scan; no partial report is produced.
    """
    started = time.monotonic()
    deadline = _Deadline(timeout)
    fetchers = _fetchers(source, namespace)

    fetched = _fetch_concurrent(fetchers, deadline) if concurrent else _fetch_sequential(fetchers, deadline)
    logger.debug(
        "Fetched %d nodes, %d pods, %d events in %.2fs",
        len(fetched["nodes"]),
        len(fetched["pods"]),
        len(fetched["events"]),
        time.monotonic() - started,
    )

    # Entities are validated by the rules engine, which reports malformed ones
    snapshot = ClusterSnapshot.model_construct(
        namespace=namespace,
        nodes=tuple(fetched["nodes"]),
        pods=tuple(fetched["pods"]),
        events=tuple(fetched["events"]),
        collected_at=datetime.now(timezone.utc),
    )
    report = evaluate(snapshot, rules=rules, recent_events=recent_events)
    return ScanResult(snapshot=snapshot, report=report, elapsed=time.monotonic() - started)
