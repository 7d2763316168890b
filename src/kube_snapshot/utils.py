"""Utility functions for manifest traversal and snapshot file names."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from .constants import SNAPSHOT_SUFFIX, K8sFields
from .types import K8sObject


class ManifestTraverser:
    """Utility for traversing Kubernetes manifest structures."""

    @staticmethod
    def get_metadata(manifest: K8sObject) -> Dict[str, Any]:
        """Extract metadata from a manifest."""
        metadata = manifest.get(K8sFields.METADATA)
        return metadata if isinstance(metadata, dict) else {}

    @staticmethod
    def ensure_metadata(manifest: K8sObject) -> Dict[str, Any]:
        """Return the metadata dict, creating it when missing or malformed."""
        metadata = manifest.get(K8sFields.METADATA)
        if not isinstance(metadata, dict):
            metadata = {}
            manifest[K8sFields.METADATA] = metadata
        return metadata

    @staticmethod
    def get_manifest_name(manifest: K8sObject) -> str:
        """Extract name from manifest metadata."""
        metadata = ManifestTraverser.get_metadata(manifest)
        name = metadata.get(K8sFields.NAME)
        return str(name) if isinstance(name, str) else ""

    @staticmethod
    def get_spec(manifest: K8sObject) -> Dict[str, Any]:
        """Extract spec from a manifest."""
        spec = manifest.get(K8sFields.SPEC)
        return spec if isinstance(spec, dict) else {}


def snapshot_file_name(prefix: str, name: str) -> str:
    """File name for one snapshot, e.g. ``pod-web-0.json``."""
    return f"{prefix}{name}{SNAPSHOT_SUFFIX}"


def snapshot_path(backup_dir: Path, prefix: str, name: str) -> Path:
    return Path(backup_dir) / snapshot_file_name(prefix, name)
