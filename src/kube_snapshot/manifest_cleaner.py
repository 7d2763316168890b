"""Manifest normalization applied on the way into and out of a backup."""
from __future__ import annotations

import logging
from copy import deepcopy
from typing import Any, Dict

from .constants import EXPORT_METADATA_FIELDS_TO_CLEAR, SERVICE_ADDRESS_FIELDS, K8sFields
from .types import K8sObject
from .utils import ManifestTraverser

logger = logging.getLogger(__name__)


def clean_for_export(manifest: K8sObject) -> K8sObject:
    """
    Drop the namespace and revision identity before a snapshot is written.

    Only config maps, stateful sets and services go through this; the other
    kinds are captured exactly as the cluster returned them.

    Args:
        manifest: Live object as listed from the cluster

    Returns:
        Copy of the manifest without namespace and resourceVersion
    """
    cleaned = deepcopy(manifest)
    metadata = cleaned.get(K8sFields.METADATA)
    if isinstance(metadata, dict):
        cleaned[K8sFields.METADATA] = clean_metadata(metadata)
    return cleaned


def clean_metadata(metadata: Dict[str, Any]) -> Dict[str, Any]:
    """Remove the fields the source cluster owns from object metadata."""
    cleaned = dict(metadata)
    for field in EXPORT_METADATA_FIELDS_TO_CLEAR:
        cleaned.pop(field, None)
    return cleaned


def prepare_for_import(manifest: K8sObject, namespace: str) -> K8sObject:
    """
    Rewrite a snapshot so it can be created in ``namespace``.

    The revision identity is always removed and the namespace always
    overwritten, whatever the snapshot recorded at export time.
    """
    prepared = deepcopy(manifest)
    metadata = ManifestTraverser.ensure_metadata(prepared)
    metadata.pop(K8sFields.RESOURCE_VERSION, None)
    metadata[K8sFields.NAMESPACE] = namespace
    return prepared


def prepare_service_for_import(manifest: K8sObject, namespace: str) -> K8sObject:
    """Service import: also release the cluster-assigned addresses."""
    prepared = prepare_for_import(manifest, namespace)
    spec = ManifestTraverser.get_spec(prepared)
    for field in SERVICE_ADDRESS_FIELDS:
        spec.pop(field, None)
    logger.debug(
        "Cleared cluster addresses of service %s",
        ManifestTraverser.get_manifest_name(prepared),
    )
    return prepared
