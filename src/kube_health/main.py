"""CLI entrypoint for kube-health."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from rich.console import Console
from rich.logging import RichHandler

from kube_health import __version__
from kube_health.config import get_settings
from kube_health.errors import ClusterHealthError
from kube_health.observation import ClusterCollector
from kube_health.reporting import print_report
from kube_health.scanner import run_scan


def _non_negative_int(value: str) -> int:
    n = int(value)
    if n < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or greater: {value}")
    return n


def _non_negative_float(value: str) -> float:
    n = float(value)
    if n < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or greater: {value}")
    return n


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Report unready nodes, unready or restarted containers and recent events in a Kubernetes cluster.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--kubeconfig",
        type=Path,
        default=None,
        help="Path to kubeconfig (default: KUBECONFIG env or ~/.kube/config)",
    )
    parser.add_argument(
        "--context",
        default=None,
        help="Kubernetes context to use",
    )
    parser.add_argument(
        "--namespace",
        "-n",
        default=None,
        help="Namespace for pods and events (default: all namespaces)",
    )
    parser.add_argument(
        "--events",
        type=_non_negative_int,
        default=None,
        help="Number of trailing events to report (default: 5)",
    )
    parser.add_argument(
        "--timeout",
        type=_non_negative_float,
        default=None,
        help="Deadline for the whole scan in seconds, 0 for none (default: 30)",
    )
    parser.add_argument(
        "--sequential",
        action="store_true",
        help="Fetch nodes, pods and events one after another",
    )
    parser.add_argument(
        "--format",
        choices=["text", "json"],
        default=None,
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """Entrypoint for kube-health CLI."""
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, console=Console(stderr=True))],
    )
    logger = logging.getLogger("kube_health")
    logger.setLevel(logging.DEBUG if args.verbose else logging.WARNING)
    if not args.verbose:
        logging.getLogger("urllib3").setLevel(logging.ERROR)

    try:
        settings = get_settings()
        if args.kubeconfig:
            settings.kubeconfig = args.kubeconfig
        if args.context:
            settings.context = args.context
        if args.namespace:
            settings.namespace = args.namespace
        if args.events is not None:
            settings.recent_events = args.events
        if args.timeout is not None:
            settings.scan_timeout = args.timeout
        if args.sequential:
            settings.concurrent = False
        if args.format:
            settings.output_format = args.format

        source = ClusterCollector.from_config(
            kubeconfig=str(settings.kubeconfig) if settings.kubeconfig else None,
            context=settings.context,
        )
        result = run_scan(
            source,
            namespace=settings.namespace,
            recent_events=settings.recent_events,
            timeout=settings.scan_timeout,
            concurrent=settings.concurrent,
        )
        logger.debug("Scan finished in %.2fs", result.elapsed)
        print_report(result.report, settings.output_format, Console())
        return 0
    except ClusterHealthError as e:
        logger.debug("Scan failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logging.exception("Scan failed")
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
