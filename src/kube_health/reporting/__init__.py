"""Reporting layer: group anomalies and render them."""

from kube_health.reporting.builder import build_report
from kube_health.reporting.models import AnomalyGroup, Report
from kube_health.reporting.render import print_report, render_json, render_text

__all__ = [
    "AnomalyGroup",
    "Report",
    "build_report",
    "print_report",
    "render_json",
    "render_text",
]
