"""Group anomalies into a Report."""

from __future__ import annotations

from typing import Iterable

from kube_health.diagnosis.models import Anomaly, AnomalyKind
from kube_health.reporting.models import AnomalyGroup, Report


def build_report(anomalies: Iterable[Anomaly] | None) -> Report:
    """
    Group anomalies by kind.

    Groups appear in the order their first anomaly was seen and each group
    keeps insertion order. Nothing is filtered or sorted.
    """
    grouped: dict[AnomalyKind, list[Anomaly]] = {}
    for anomaly in anomalies or ():
        grouped.setdefault(anomaly.kind, []).append(anomaly)
    return Report(
        groups=tuple(AnomalyGroup(kind=kind, anomalies=tuple(items)) for kind, items in grouped.items())
    )
