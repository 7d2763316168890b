"""Type definitions for Kubernetes resources, collaborators and errors."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence, TypedDict

# Basic Kubernetes types
K8sObject = Dict[str, Any]
K8sObjectList = List[K8sObject]


# Protocol for the live cluster
class ClusterClientProtocol(Protocol):
    """Capabilities the engine needs from the cluster API."""

    def list_resources(self, resource_type: str, namespace: str) -> K8sObjectList:
        """List all objects of a type in a namespace."""
        ...

    def get_resource(self, resource_type: str, name: str, namespace: str) -> Optional[K8sObject]:
        """Get one object, or None if it does not exist."""
        ...

    def create_resource(self, resource_type: str, manifest: K8sObject, namespace: str) -> K8sObject:
        """Create an object; raises ResourceAlreadyExistsError on a name clash."""
        ...


# Protocol for durable storage
class StorageProtocol(Protocol):
    """Capabilities the engine needs from backup storage."""

    def write_file(self, path: Path, data: bytes) -> None:
        ...

    def read_file(self, path: Path) -> bytes:
        ...

    def glob(self, directory: Path, pattern: str) -> List[Path]:
        ...

    def list_dir(self, directory: Path) -> List[Path]:
        ...

    def exists(self, path: Path) -> bool:
        ...

    def is_dir(self, path: Path) -> bool:
        ...


# Progress tracking types
class ProgressCallback(Protocol):
    """Callback for progress updates."""

    def update(self, current: int, total: int, message: str = "") -> None:
        """Update progress."""
        ...

    def finish(self, message: str = "Complete") -> None:
        """Finish progress display."""
        ...


class KindExportResult(TypedDict):
    """Outcome of exporting one kind."""
    kind: str
    written: List[str]
    skipped: List[str]


class KindImportResult(TypedDict):
    """Outcome of importing one kind."""
    kind: str
    created: List[str]
    skipped: List[str]


class BackupReport(TypedDict):
    """Outcome of a full backup run."""
    namespace: str
    backup_dir: str
    kinds: List[KindExportResult]
    written_count: int


class RestoreReport(TypedDict):
    """Outcome of a full restore run."""
    namespace: str
    backup_dir: str
    kinds: List[KindImportResult]
    created_count: int


# Error types
class SnapshotError(Exception):
    """Base exception for snapshot and restore operations."""

    def __init__(self, message: str, kind: Optional[str] = None):
        super().__init__(message)
        self.kind = kind


class UnknownKindError(SnapshotError):
    """Resource kind has no policy entry."""


class ExportIOError(SnapshotError):
    """Listing live objects or writing a snapshot failed."""


class ImportIOError(SnapshotError):
    """A snapshot file could not be read or parsed."""

    def __init__(self, message: str, kind: Optional[str] = None, path: Optional[str] = None):
        super().__init__(message, kind)
        self.path = path


class ConflictCheckError(SnapshotError):
    """Checking the target namespace for an existing object failed."""


class CreateError(SnapshotError):
    """The cluster rejected the creation of a restored object."""

    def __init__(self, message: str, kind: Optional[str] = None, name: Optional[str] = None):
        super().__init__(message, kind)
        self.name = name


class KubectlError(SnapshotError):
    """Error from kubectl operations."""

    def __init__(self, message: str, command: Optional[Sequence[str]] = None):
        super().__init__(message)
        self.command = list(command) if command is not None else None


class ResourceAlreadyExistsError(KubectlError):
    """kubectl refused to create an object because the name is taken."""


class RegistryError(SnapshotError):
    """Unknown application or backup id, or unreadable registry file."""


class DuplicateApplicationError(RegistryError):
    """An application with the same name and namespace is already registered."""

    def __init__(self, message: str, existing_app_id: str):
        super().__init__(message)
        self.existing_app_id = existing_app_id


class NamespaceNotFoundError(SnapshotError):
    """Restore target namespace does not exist."""


class ConfigError(SnapshotError):
    """Configuration file could not be loaded."""

