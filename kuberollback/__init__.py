"""kuberollback: revision history and rollback for Kubernetes workloads."""

__version__ = "0.1.0"
