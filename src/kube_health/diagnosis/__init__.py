"""Diagnosis layer: rule-based anomaly detection over cluster snapshots.

The rules engine lives in ``kube_health.diagnosis.rules``; it depends on the
reporting layer, which in turn depends on the models exported here.
"""

from kube_health.diagnosis.models import Anomaly, AnomalyKind, ResourceKind, Severity

__all__ = [
    "Anomaly",
    "AnomalyKind",
    "ResourceKind",
    "Severity",
]
