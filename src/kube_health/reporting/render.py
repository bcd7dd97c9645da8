"""Render a Report as console text or JSON."""

from __future__ import annotations

import json
from typing import Any, Literal

from rich.console import Console
from rich.markup import escape

from kube_health.diagnosis.models import AnomalyKind, Severity
from kube_health.reporting.models import Report

OutputFormat = Literal["text", "json"]

GROUP_TITLES = {
    AnomalyKind.NODE_NOT_READY: "Nodes not ready",
    AnomalyKind.NOTABLE_EVENT: "Recent events",
    AnomalyKind.POD_NOT_READY: "Pods not ready",
    AnomalyKind.CONTAINER_RESTARTED: "Restarted containers",
}

REPORT_NO_ANOMALIES = "No anomalies found: all nodes and containers are ready and nothing has restarted."
REPORT_SUMMARY = "{total} anomalies ({breakdown})"

_SEVERITY_STYLE = {
    Severity.WARNING: "yellow",
    Severity.INFO: "dim",
}


def render_text(report: Report, console: Console | None = None) -> None:
    """Print one line per anomaly, grouped by kind."""
    c = console or Console()
    if report.is_empty:
        c.print(f"[green]{REPORT_NO_ANOMALIES}[/green]")
        return
    for group in report.groups:
        c.print(f"[bold]{GROUP_TITLES.get(group.kind, group.kind.value)}[/bold] ({group.count})")
        for a in group.anomalies:
            style = _SEVERITY_STYLE.get(a.severity, "")
            line = escape(a.detail)
            c.print(f"  [{style}]{line}[/{style}]" if style else f"  {line}", emoji=False, soft_wrap=True)
        c.print()
    breakdown = ", ".join(f"{kind.value}={n}" for kind, n in report.counts.items())
    c.print(REPORT_SUMMARY.format(total=report.total, breakdown=breakdown))


def report_to_dict(report: Report) -> dict[str, Any]:
    return {
        "total": report.total,
        "counts": {kind.value: n for kind, n in report.counts.items()},
        "groups": [
            {
                "kind": g.kind.value,
                "count": g.count,
                "anomalies": [a.model_dump(mode="json") for a in g.anomalies],
            }
            for g in report.groups
        ],
    }


def render_json(report: Report) -> str:
    return json.dumps(report_to_dict(report), indent=2)


def print_report(report: Report, fmt: OutputFormat = "text", console: Console | None = None) -> None:
    """Print report to console in the requested format."""
    c = console or Console()
    if fmt == "json":
        c.print(render_json(report), markup=False, highlight=False, emoji=False, soft_wrap=True)
        return
    render_text(report, c)
