"""Constants for Kubernetes field names, backup layout and configuration values."""
from __future__ import annotations

from typing import Final, Sequence


# Kubernetes API field names
class K8sFields:
    """Standard Kubernetes resource field names."""

    # Top-level fields
    API_VERSION: Final[str] = "apiVersion"
    KIND: Final[str] = "kind"
    METADATA: Final[str] = "metadata"
    SPEC: Final[str] = "spec"
    ITEMS: Final[str] = "items"

    # Metadata fields
    NAME: Final[str] = "name"
    NAMESPACE: Final[str] = "namespace"
    RESOURCE_VERSION: Final[str] = "resourceVersion"

    # Service fields
    CLUSTER_IP: Final[str] = "clusterIP"
    CLUSTER_IPS: Final[str] = "clusterIPs"


# kubectl resource types
class ResourceTypes:
    """Plural resource names understood by kubectl."""

    PERSISTENT_VOLUME_CLAIMS: Final[str] = "persistentvolumeclaims"
    PODS: Final[str] = "pods"
    REPLICA_SETS: Final[str] = "replicasets"
    DEPLOYMENTS: Final[str] = "deployments"
    CONFIG_MAPS: Final[str] = "configmaps"
    SERVICES: Final[str] = "services"
    STATEFUL_SETS: Final[str] = "statefulsets"
    SERVICE_ACCOUNTS: Final[str] = "serviceaccounts"
    SECRETS: Final[str] = "secrets"
    NAMESPACES: Final[str] = "namespaces"


# Fields cleared before a snapshot is written (config-map, stateful-set, service)
EXPORT_METADATA_FIELDS_TO_CLEAR: Final[Sequence[str]] = (
    K8sFields.NAMESPACE,
    K8sFields.RESOURCE_VERSION,
)

# Fields the target cluster must allocate itself when a service is restored
SERVICE_ADDRESS_FIELDS: Final[Sequence[str]] = (
    K8sFields.CLUSTER_IP,
    K8sFields.CLUSTER_IPS,
)

# Cluster-managed config map published into every namespace
ROOT_CA_CONFIG_MAP: Final[str] = "kube-root-ca.crt"

# Backup file layout
SNAPSHOT_SUFFIX: Final[str] = ".json"
SNAPSHOT_INDENT: Final[int] = 2

# Registry id prefixes
APP_ID_PREFIX: Final[str] = "app_"
BACKUP_ID_PREFIX: Final[str] = "backup_"

# Default values
DEFAULT_NAMESPACE: Final[str] = "default"
DEFAULT_BACKUP_ROOT: Final[str] = "./backups"
REGISTRY_FILE_NAME: Final[str] = "registry.json"

# Retry configuration
DEFAULT_RETRY_COUNT: Final[int] = 3
DEFAULT_TIMEOUT_SECONDS: Final[int] = 30
DEFAULT_RETRY_BACKOFF_BASE: Final[float] = 2.0
DEFAULT_RETRY_BACKOFF_MAX: Final[float] = 60.0

# kubectl error fragments
NOT_FOUND_MARKERS: Final[Sequence[str]] = ("notfound", "not found")
ALREADY_EXISTS_MARKERS: Final[Sequence[str]] = ("alreadyexists", "already exists")
NON_RETRYABLE_MARKERS: Final[Sequence[str]] = (
    "not found",
    "already exists",
    "forbidden",
    "unauthorized",
    "invalid",
    "malformed",
    "syntax error",
    "bad request",
)
