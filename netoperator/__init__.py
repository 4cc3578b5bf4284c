"""Cluster network configuration checks and OVN-Kubernetes rollout decisions."""

__version__ = "0.1.0"
__all__ = ["changes", "manifests", "ovn", "rollout", "spec", "versions"]