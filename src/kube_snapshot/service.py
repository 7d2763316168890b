"""Application-level operations: register, back up, restore."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol, Union

from .orchestrator import SnapshotOrchestrator
from .registry import ApplicationRecord, BackupRecord, SnapshotRegistry
from .storage import LocalBackupStorage
from .types import (
    ClusterClientProtocol,
    ExportIOError,
    NamespaceNotFoundError,
    ProgressCallback,
    RestoreReport,
)


class NamespacedClusterProtocol(ClusterClientProtocol, Protocol):
    """Cluster client that can also tell whether a namespace exists."""

    def namespace_exists(self, namespace: str) -> bool:
        ...


class SnapshotService:
    """Ties the registry, the backup storage and the orchestrator together."""

    def __init__(
        self,
        cluster: NamespacedClusterProtocol,
        registry: SnapshotRegistry,
        backup_root: Union[Path, str],
        storage: Optional[LocalBackupStorage] = None,
        progress: Optional[ProgressCallback] = None,
    ):
        self.cluster = cluster
        self.registry = registry
        self.backup_root = Path(backup_root)
        self.storage = storage or LocalBackupStorage()
        self.orchestrator = SnapshotOrchestrator(cluster, self.storage, progress=progress)
        self.logger = logging.getLogger(__name__)

    def register_application(self, name: str, namespace: str) -> ApplicationRecord:
        return self.registry.register_application(name, namespace)

    def perform_backup(self, app_id: str) -> BackupRecord:
        """
        Back up an application's namespace into a fresh backup directory.

        The backup is recorded only once every kind was exported.

        Raises:
            RegistryError: If the application is unknown
            SnapshotError: If the backup fails
        """
        app = self.registry.get_application(app_id)
        backup_id = self.registry.next_backup_id()
        backup_dir = self.create_backup_dir(self.backup_root / backup_id)

        self.logger.info("Starting %s of %s (namespace %s)", backup_id, app.app_id, app.namespace)
        self.orchestrator.run_backup(app.namespace, backup_dir)

        return self.registry.record_backup(backup_id, app.app_id, backup_dir)

    def create_backup_dir(self, path: Union[Path, str]) -> Path:
        """
        Create a backup directory and any missing parents.

        Raises:
            ExportIOError: If the directory cannot be created
        """
        try:
            return self.storage.ensure_dir(Path(path))
        except OSError as e:
            raise ExportIOError(f"Failed to create backup directory {path}: {e}") from e

    def restore_backup(self, backup_id: str, namespace: str) -> RestoreReport:
        """
        Restore a recorded backup into ``namespace``.

        Raises:
            RegistryError: If the backup is unknown
            NamespaceNotFoundError: If the target namespace does not exist
            SnapshotError: If the restore fails
        """
        backup = self.registry.get_backup(backup_id)
        return self.restore_directory(backup.backup_dir, namespace)

    def restore_directory(self, backup_dir: Union[Path, str], namespace: str) -> RestoreReport:
        """Restore any backup directory into an existing namespace."""
        if not self.cluster.namespace_exists(namespace):
            raise NamespaceNotFoundError(f"Namespace does not exist: {namespace}")

        return self.orchestrator.run_restore(backup_dir, namespace)
