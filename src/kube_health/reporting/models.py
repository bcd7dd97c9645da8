"""Structured scan report, independent of how it is rendered."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from kube_health.diagnosis.models import Anomaly, AnomalyKind


class AnomalyGroup(BaseModel):
    """All anomalies of one kind, in the order they were found."""

    model_config = ConfigDict(frozen=True)

    kind: AnomalyKind
    anomalies: tuple[Anomaly, ...] = ()

    @property
    def count(self) -> int:
        return len(self.anomalies)


class Report(BaseModel):
    """Anomalies grouped by kind."""

    model_config = ConfigDict(frozen=True)

    groups: tuple[AnomalyGroup, ...] = ()

    @property
    def total(self) -> int:
        return sum(g.count for g in self.groups)

    @property
    def counts(self) -> dict[AnomalyKind, int]:
        return {g.kind: g.count for g in self.groups}

    @property
    def is_empty(self) -> bool:
        return not self.groups

    def group(self, kind: AnomalyKind) -> AnomalyGroup | None:
        for g in self.groups:
            if g.kind == kind:
                return g
        return None

    def anomalies(self) -> list[Anomaly]:
        """All anomalies, group by group."""
        return [a for g in self.groups for a in g.anomalies]
