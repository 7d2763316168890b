"""Snapshot namespaced Kubernetes resources to JSON files and restore them."""

__version__ = "0.1.0"
