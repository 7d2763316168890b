"""Registry of applications and the backups taken of them."""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from .constants import APP_ID_PREFIX, BACKUP_ID_PREFIX
from .types import DuplicateApplicationError, RegistryError


@dataclass
class ApplicationRecord:
    """A namespace registered for backups under a friendly name."""

    app_id: str
    name: str
    namespace: str


@dataclass
class BackupRecord:
    """One completed backup of an application."""

    backup_id: str
    app_id: str
    backup_dir: str
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())


class SnapshotRegistry:
    """
    Maps application ids to namespaces and backup ids to applications.

    Pass ``path`` to persist the registry as JSON; every change is written
    back immediately. Without a path the registry lives only in memory.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else None
        self.logger = logging.getLogger(__name__)
        self.applications: Dict[str, ApplicationRecord] = {}
        self.backups: Dict[str, BackupRecord] = {}
        self._app_counter = 0
        self._backup_counter = 0

        if self.path is not None and self.path.exists():
            self._load()

    def register_application(self, name: str, namespace: str) -> ApplicationRecord:
        """
        Register an application.

        Raises:
            DuplicateApplicationError: If (name, namespace) is already registered
        """
        existing = self.find_application(name, namespace)
        if existing is not None:
            raise DuplicateApplicationError(
                f"Application with same name and namespace already exists: {existing.app_id}",
                existing_app_id=existing.app_id,
            )

        self._app_counter += 1
        record = ApplicationRecord(app_id=f"{APP_ID_PREFIX}{self._app_counter}", name=name, namespace=namespace)
        self.applications[record.app_id] = record
        self._save()

        self.logger.info("Registered application %s (%s/%s)", record.app_id, namespace, name)
        return record

    def find_application(self, name: str, namespace: str) -> Optional[ApplicationRecord]:
        for record in self.applications.values():
            if record.name == name and record.namespace == namespace:
                return record
        return None

    def get_application(self, app_id: str) -> ApplicationRecord:
        try:
            return self.applications[app_id]
        except KeyError:
            raise RegistryError(f"Invalid app_id: {app_id}") from None

    def next_backup_id(self) -> str:
        """Reserve the id of the next backup."""
        self._backup_counter += 1
        self._save()
        return f"{BACKUP_ID_PREFIX}{self._backup_counter}"

    def record_backup(self, backup_id: str, app_id: str, backup_dir: Path) -> BackupRecord:
        self.get_application(app_id)
        record = BackupRecord(backup_id=backup_id, app_id=app_id, backup_dir=str(backup_dir))
        self.backups[backup_id] = record
        self._save()
        return record

    def get_backup(self, backup_id: str) -> BackupRecord:
        try:
            return self.backups[backup_id]
        except KeyError:
            raise RegistryError(f"Invalid backup_id: {backup_id}") from None

    def list_applications(self) -> List[ApplicationRecord]:
        return sorted(self.applications.values(), key=lambda record: _id_number(record.app_id))

    def list_backups(self, app_id: Optional[str] = None) -> List[BackupRecord]:
        backups = [record for record in self.backups.values() if app_id is None or record.app_id == app_id]
        return sorted(backups, key=lambda record: _id_number(record.backup_id))

    def _load(self) -> None:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            self.applications = {
                app_id: ApplicationRecord(**entry) for app_id, entry in data.get("applications", {}).items()
            }
            self.backups = {
                backup_id: BackupRecord(**entry) for backup_id, entry in data.get("backups", {}).items()
            }
            self._app_counter = int(data.get("app_counter", 0))
            self._backup_counter = int(data.get("backup_counter", 0))
        except (OSError, ValueError, TypeError, AttributeError) as e:
            raise RegistryError(f"Failed to load registry {self.path}: {e}") from e

        self.logger.debug(
            "Loaded registry %s: %d applications, %d backups",
            self.path,
            len(self.applications),
            len(self.backups),
        )

    def _save(self) -> None:
        if self.path is None:
            return

        data = {
            "app_counter": self._app_counter,
            "backup_counter": self._backup_counter,
            "applications": {app_id: asdict(record) for app_id, record in self.applications.items()},
            "backups": {backup_id: asdict(record) for backup_id, record in self.backups.items()},
        }

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            raise RegistryError(f"Failed to save registry {self.path}: {e}") from e


def _id_number(identifier: str) -> int:
    suffix = identifier.rsplit("_", 1)[-1]
    return int(suffix) if suffix.isdigit() else 0
