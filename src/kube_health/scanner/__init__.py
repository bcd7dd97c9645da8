"""Scanner: fetch a cluster snapshot and turn it into a report."""

from kube_health.scanner.orchestrator import ScanResult, run_scan

__all__ = [
    "ScanResult",
    "run_scan",
]
