"""Generic importer that re-creates one kind's snapshots in a target namespace."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional, Set, Union

from .kinds import ConflictCheck, Discovery, KindPolicy, ResourceKind, policy_for
from .types import (
    ClusterClientProtocol,
    ConflictCheckError,
    CreateError,
    ImportIOError,
    K8sObject,
    KindImportResult,
    KubectlError,
    ResourceAlreadyExistsError,
    StorageProtocol,
)
from .utils import ManifestTraverser


class ResourceImporter:
    """Restores one resource kind at a time, driven by the kind policy table.

    Restores are idempotent: an object whose name is already taken in the
    target namespace is skipped, never updated.
    """

    def __init__(self, cluster: ClusterClientProtocol, storage: StorageProtocol):
        self.cluster = cluster
        self.storage = storage
        self.logger = logging.getLogger(__name__)

    def import_kind(
        self,
        kind: Union[ResourceKind, str],
        backup_dir: Union[Path, str],
        namespace: str,
    ) -> KindImportResult:
        """
        Create every snapshot of ``kind`` found in ``backup_dir`` in ``namespace``.

        Args:
            kind: Resource kind to import
            backup_dir: Backup directory to read from
            namespace: Target namespace

        Returns:
            Names of created and skipped objects

        Raises:
            UnknownKindError: If the kind has no policy
            ImportIOError: If a snapshot cannot be read or parsed
            ConflictCheckError: If the existence check fails
            CreateError: If the cluster rejects a create
        """
        policy = policy_for(kind)
        backup_dir = Path(backup_dir)
        result = KindImportResult(kind=policy.kind.value, created=[], skipped=[])

        existing_names: Optional[Set[str]] = None

        for path in self._discover_files(policy, backup_dir):
            manifest = self._load_snapshot(policy, path)
            manifest = policy.normalize_for_import(manifest, namespace)
            name = ManifestTraverser.get_manifest_name(manifest)

            if policy.conflict_check is ConflictCheck.LIST_SCAN:
                if existing_names is None:
                    existing_names = self._list_existing_names(policy, namespace)
                exists = name in existing_names
            else:
                exists = self._get_existing(policy, name, namespace)

            if exists:
                self.logger.debug("%s %s already exists in %s, skipping", policy.kind, name, namespace)
                result["skipped"].append(name)
                continue

            if self._create(policy, manifest, name, namespace):
                result["created"].append(name)
            else:
                result["skipped"].append(name)

        self.logger.info(
            "Imported %s into %s: %d created, %d skipped",
            policy.kind,
            namespace,
            len(result["created"]),
            len(result["skipped"]),
        )
        return result

    def _discover_files(self, policy: KindPolicy, backup_dir: Path) -> List[Path]:
        """Snapshot files of one kind, sorted by name."""
        try:
            if policy.discovery is Discovery.GLOB:
                return self.storage.glob(backup_dir, policy.glob_pattern)

            return [
                entry
                for entry in self.storage.list_dir(backup_dir)
                if entry.name.startswith(policy.file_prefix) and not self.storage.is_dir(entry)
            ]
        except OSError as e:
            raise ImportIOError(
                f"Failed to read backup directory {backup_dir}: {e}",
                kind=policy.kind.value,
                path=str(backup_dir),
            ) from e

    def _load_snapshot(self, policy: KindPolicy, path: Path) -> K8sObject:
        try:
            raw = self.storage.read_file(path)
        except OSError as e:
            raise ImportIOError(f"Failed to read {path}: {e}", kind=policy.kind.value, path=str(path)) from e

        try:
            manifest = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ImportIOError(f"Malformed snapshot {path}: {e}", kind=policy.kind.value, path=str(path)) from e

        if not isinstance(manifest, dict):
            raise ImportIOError(f"Snapshot {path} is not a JSON object", kind=policy.kind.value, path=str(path))

        if not ManifestTraverser.get_manifest_name(manifest):
            raise ImportIOError(f"Snapshot {path} has no metadata.name", kind=policy.kind.value, path=str(path))

        return manifest

    def _list_existing_names(self, policy: KindPolicy, namespace: str) -> Set[str]:
        try:
            existing = self.cluster.list_resources(policy.resource_type, namespace)
        except KubectlError as e:
            raise ConflictCheckError(
                f"Failed to list {policy.resource_type} in {namespace}: {e}",
                kind=policy.kind.value,
            ) from e
        return {ManifestTraverser.get_manifest_name(item) for item in existing}

    def _get_existing(self, policy: KindPolicy, name: str, namespace: str) -> bool:
        try:
            return self.cluster.get_resource(policy.resource_type, name, namespace) is not None
        except KubectlError as e:
            raise ConflictCheckError(
                f"Failed to look up {policy.kind} {name} in {namespace}: {e}",
                kind=policy.kind.value,
            ) from e

    def _create(self, policy: KindPolicy, manifest: K8sObject, name: str, namespace: str) -> bool:
        """Create the object; False if another writer created it first."""
        try:
            self.cluster.create_resource(policy.resource_type, manifest, namespace)
        except ResourceAlreadyExistsError:
            self.logger.warning("%s %s was created concurrently in %s, skipping", policy.kind, name, namespace)
            return False
        except KubectlError as e:
            raise CreateError(
                f"Failed to create {policy.kind} {name} in {namespace}: {e}",
                kind=policy.kind.value,
                name=name,
            ) from e

        self.logger.debug("Created %s %s in %s", policy.kind, name, namespace)
        return True
