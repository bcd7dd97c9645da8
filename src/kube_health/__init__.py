"""kube-health: point-in-time Kubernetes cluster health report."""

__version__ = "0.1.0"
