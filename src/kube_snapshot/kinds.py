"""Per-kind snapshot policy table.

Every piece of kind-specific behaviour lives in ``POLICIES``: how a snapshot
file is named and discovered, how an object is normalized on export and on
import, and how a restore decides whether the object already exists. The
exporter and importer read this table and nothing else, so supporting another
kind means adding one entry here.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional, Union

from .constants import ROOT_CA_CONFIG_MAP, K8sFields, ResourceTypes
from .manifest_cleaner import clean_for_export, prepare_for_import, prepare_service_for_import
from .types import K8sObject, UnknownKindError

ExportNormalizer = Callable[[K8sObject], K8sObject]
ImportNormalizer = Callable[[K8sObject, str], K8sObject]


class ResourceKind(str, Enum):
    """Resource kinds covered by a backup. Values are the file name tags."""

    PERSISTENT_VOLUME_CLAIM = "pvc"
    POD = "pod"
    REPLICA_SET = "replicaset"
    DEPLOYMENT = "deployment"
    CONFIG_MAP = "configmap"
    SERVICE = "service"
    STATEFUL_SET = "statefulset"
    SERVICE_ACCOUNT = "serviceaccount"
    SECRET = "secret"

    def __str__(self) -> str:
        return self.value


class Discovery(str, Enum):
    """How the importer finds a kind's files in a backup directory."""

    GLOB = "glob"  # <prefix>*.json
    SCAN = "scan"  # every non-directory entry starting with <prefix>


class ConflictCheck(str, Enum):
    """How the importer detects an object already present in the target."""

    LIST_SCAN = "list-scan"
    DIRECT_GET = "direct-get"


@dataclass(frozen=True)
class KindPolicy:
    """Snapshot policy for one resource kind."""

    kind: ResourceKind
    resource_type: str
    api_version: str
    kind_name: str
    discovery: Discovery
    conflict_check: ConflictCheck
    import_normalize: ImportNormalizer
    export_normalize: Optional[ExportNormalizer] = None
    skip_existing_files: bool = False
    excluded_names: FrozenSet[str] = field(default_factory=frozenset)
    restore_rank: int = 100

    @property
    def file_prefix(self) -> str:
        return f"{self.kind.value}-"

    @property
    def glob_pattern(self) -> str:
        return f"{self.file_prefix}*.json"

    def normalize_for_export(self, manifest: K8sObject) -> K8sObject:
        if self.export_normalize is None:
            return manifest
        return self.export_normalize(manifest)

    def normalize_for_import(self, manifest: K8sObject, namespace: str) -> K8sObject:
        prepared = self.import_normalize(manifest, namespace)
        prepared.setdefault(K8sFields.API_VERSION, self.api_version)
        prepared.setdefault(K8sFields.KIND, self.kind_name)
        return prepared


# Ranks order restores so that objects referenced by others are created first.
POLICIES: Dict[ResourceKind, KindPolicy] = {
    policy.kind: policy
    for policy in (
        KindPolicy(
            kind=ResourceKind.SERVICE_ACCOUNT,
            resource_type=ResourceTypes.SERVICE_ACCOUNTS,
            api_version="v1",
            kind_name="ServiceAccount",
            discovery=Discovery.SCAN,
            conflict_check=ConflictCheck.DIRECT_GET,
            import_normalize=prepare_for_import,
            restore_rank=10,
        ),
        KindPolicy(
            kind=ResourceKind.SECRET,
            resource_type=ResourceTypes.SECRETS,
            api_version="v1",
            kind_name="Secret",
            discovery=Discovery.SCAN,
            conflict_check=ConflictCheck.DIRECT_GET,
            import_normalize=prepare_for_import,
            restore_rank=20,
        ),
        KindPolicy(
            kind=ResourceKind.CONFIG_MAP,
            resource_type=ResourceTypes.CONFIG_MAPS,
            api_version="v1",
            kind_name="ConfigMap",
            discovery=Discovery.GLOB,
            conflict_check=ConflictCheck.LIST_SCAN,
            import_normalize=prepare_for_import,
            export_normalize=clean_for_export,
            skip_existing_files=True,
            excluded_names=frozenset({ROOT_CA_CONFIG_MAP}),
            restore_rank=30,
        ),
        KindPolicy(
            kind=ResourceKind.PERSISTENT_VOLUME_CLAIM,
            resource_type=ResourceTypes.PERSISTENT_VOLUME_CLAIMS,
            api_version="v1",
            kind_name="PersistentVolumeClaim",
            discovery=Discovery.GLOB,
            conflict_check=ConflictCheck.LIST_SCAN,
            import_normalize=prepare_for_import,
            restore_rank=40,
        ),
        KindPolicy(
            kind=ResourceKind.SERVICE,
            resource_type=ResourceTypes.SERVICES,
            api_version="v1",
            kind_name="Service",
            discovery=Discovery.SCAN,
            conflict_check=ConflictCheck.DIRECT_GET,
            import_normalize=prepare_service_for_import,
            export_normalize=clean_for_export,
            skip_existing_files=True,
            restore_rank=50,
        ),
        KindPolicy(
            kind=ResourceKind.STATEFUL_SET,
            resource_type=ResourceTypes.STATEFUL_SETS,
            api_version="apps/v1",
            kind_name="StatefulSet",
            discovery=Discovery.GLOB,
            conflict_check=ConflictCheck.LIST_SCAN,
            import_normalize=prepare_for_import,
            export_normalize=clean_for_export,
            skip_existing_files=True,
            restore_rank=60,
        ),
        KindPolicy(
            kind=ResourceKind.DEPLOYMENT,
            resource_type=ResourceTypes.DEPLOYMENTS,
            api_version="apps/v1",
            kind_name="Deployment",
            discovery=Discovery.GLOB,
            conflict_check=ConflictCheck.LIST_SCAN,
            import_normalize=prepare_for_import,
            restore_rank=70,
        ),
        KindPolicy(
            kind=ResourceKind.REPLICA_SET,
            resource_type=ResourceTypes.REPLICA_SETS,
            api_version="apps/v1",
            kind_name="ReplicaSet",
            discovery=Discovery.GLOB,
            conflict_check=ConflictCheck.LIST_SCAN,
            import_normalize=prepare_for_import,
            restore_rank=80,
        ),
        KindPolicy(
            kind=ResourceKind.POD,
            resource_type=ResourceTypes.PODS,
            api_version="v1",
            kind_name="Pod",
            discovery=Discovery.GLOB,
            conflict_check=ConflictCheck.LIST_SCAN,
            import_normalize=prepare_for_import,
            restore_rank=90,
        ),
    )
}


def policy_for(kind: Union[ResourceKind, str]) -> KindPolicy:
    """
    Look up the policy for a kind.

    Args:
        kind: A ResourceKind or its file name tag (e.g. ``"configmap"``)

    Returns:
        The kind's policy

    Raises:
        UnknownKindError: If the kind is not one of the supported kinds
    """
    try:
        resource_kind = ResourceKind(kind)
    except ValueError:
        raise UnknownKindError(f"Unsupported resource kind: {kind}", kind=str(kind)) from None
    return POLICIES[resource_kind]


def all_policies() -> List[KindPolicy]:
    """All policies in restore order."""
    return sorted(POLICIES.values(), key=lambda policy: policy.restore_rank)
