"""Generic exporter that writes live objects of one kind into a backup directory."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Union

from .constants import SNAPSHOT_INDENT
from .kinds import ResourceKind, policy_for
from .types import (
    ClusterClientProtocol,
    ExportIOError,
    K8sObject,
    K8sObjectList,
    KindExportResult,
    KubectlError,
    StorageProtocol,
)
from .utils import ManifestTraverser, snapshot_path


def serialize_snapshot(manifest: K8sObject) -> bytes:
    """Pretty-print one object the way backup files store it."""
    return json.dumps(manifest, indent=SNAPSHOT_INDENT, ensure_ascii=False).encode("utf-8")


class ResourceExporter:
    """Exports one resource kind at a time, driven by the kind policy table."""

    def __init__(self, cluster: ClusterClientProtocol, storage: StorageProtocol):
        self.cluster = cluster
        self.storage = storage
        self.logger = logging.getLogger(__name__)

    def export_kind(
        self,
        kind: Union[ResourceKind, str],
        namespace: str,
        backup_dir: Union[Path, str],
    ) -> KindExportResult:
        """
        Export every live object of ``kind`` in ``namespace``.

        Args:
            kind: Resource kind to export
            namespace: Namespace to read from
            backup_dir: Existing directory that receives the snapshot files

        Returns:
            Names of written and skipped files

        Raises:
            UnknownKindError: If the kind has no policy
            ExportIOError: If listing, serializing or writing fails. Files
                written before the failure are left in place.
        """
        policy = policy_for(kind)
        backup_dir = Path(backup_dir)
        result = KindExportResult(kind=policy.kind.value, written=[], skipped=[])

        if not self.storage.is_dir(backup_dir):
            raise ExportIOError(f"Backup directory does not exist: {backup_dir}", kind=policy.kind.value)

        live_objects = self._list_live_objects(policy.resource_type, namespace, policy.kind.value)
        self.logger.debug("Found %d %s objects in namespace %s", len(live_objects), policy.kind, namespace)

        for live_object in live_objects:
            name = ManifestTraverser.get_manifest_name(live_object)
            if not name:
                self.logger.warning("Skipping %s without a name", policy.kind)
                continue

            if name in policy.excluded_names:
                self.logger.debug("Not capturing cluster-managed %s %s", policy.kind, name)
                continue

            path = snapshot_path(backup_dir, policy.file_prefix, name)

            if policy.skip_existing_files and self.storage.exists(path):
                self.logger.debug("Keeping existing snapshot %s", path.name)
                result["skipped"].append(path.name)
                continue

            manifest = policy.normalize_for_export(live_object)

            try:
                payload = serialize_snapshot(manifest)
            except (TypeError, ValueError) as e:
                raise ExportIOError(f"Failed to serialize {policy.kind} {name}: {e}", kind=policy.kind.value) from e

            try:
                self.storage.write_file(path, payload)
            except OSError as e:
                raise ExportIOError(f"Failed to write {path}: {e}", kind=policy.kind.value) from e

            result["written"].append(path.name)

        self.logger.info(
            "Exported %s: %d written, %d kept",
            policy.kind,
            len(result["written"]),
            len(result["skipped"]),
        )
        return result

    def _list_live_objects(self, resource_type: str, namespace: str, kind: str) -> K8sObjectList:
        try:
            return self.cluster.list_resources(resource_type, namespace)
        except KubectlError as e:
            raise ExportIOError(f"Failed to list {resource_type} in {namespace}: {e}", kind=kind) from e
