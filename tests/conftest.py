from copy import deepcopy
from typing import Dict, List, Optional, Set, Tuple

import pytest

from kube_snapshot.storage import LocalBackupStorage
from kube_snapshot.types import K8sObject, K8sObjectList, KubectlError, ResourceAlreadyExistsError


class FakeCluster:
    """In-memory stand-in for the kubectl client."""

    def __init__(self):
        self.store: Dict[Tuple[str, str], Dict[str, K8sObject]] = {}
        self.namespaces: Set[str] = set()
        self.created: List[Tuple[str, str, K8sObject]] = []
        self.list_calls: List[Tuple[str, str]] = []
        self.get_calls: List[Tuple[str, str, str]] = []
        self.fail_list: Set[str] = set()
        self.fail_get: Set[str] = set()
        self.reject_create: Set[str] = set()
        self.created_elsewhere: Set[str] = set()

    def add(self, resource_type: str, namespace: str, manifest: K8sObject) -> None:
        self.namespaces.add(namespace)
        self.store.setdefault((resource_type, namespace), {})[manifest["metadata"]["name"]] = deepcopy(manifest)

    def names(self, resource_type: str, namespace: str) -> List[str]:
        return sorted(self.store.get((resource_type, namespace), {}))

    def object(self, resource_type: str, namespace: str, name: str) -> K8sObject:
        return self.store[(resource_type, namespace)][name]

    def list_resources(self, resource_type: str, namespace: str) -> K8sObjectList:
        self.list_calls.append((resource_type, namespace))
        if resource_type in self.fail_list:
            raise KubectlError(f"kubectl failed: cannot list {resource_type}")
        objects = self.store.get((resource_type, namespace), {})
        return [deepcopy(objects[name]) for name in sorted(objects)]

    def get_resource(self, resource_type: str, name: str, namespace: str) -> Optional[K8sObject]:
        self.get_calls.append((resource_type, name, namespace))
        if resource_type in self.fail_get:
            raise KubectlError(f"kubectl failed: forbidden to get {resource_type}")
        found = self.store.get((resource_type, namespace), {}).get(name)
        return deepcopy(found) if found is not None else None

    def create_resource(self, resource_type: str, manifest: K8sObject, namespace: str) -> K8sObject:
        name = manifest["metadata"]["name"]
        if name in self.reject_create:
            raise KubectlError(f"kubectl failed: {resource_type} \"{name}\" is invalid")
        if name in self.created_elsewhere:
            self.created_elsewhere.discard(name)
            self.add(resource_type, namespace, manifest)
            raise ResourceAlreadyExistsError(f"kubectl failed: {resource_type} \"{name}\" already exists")
        if name in self.store.get((resource_type, namespace), {}):
            raise ResourceAlreadyExistsError(f"kubectl failed: {resource_type} \"{name}\" already exists")
        self.created.append((resource_type, namespace, deepcopy(manifest)))
        self.add(resource_type, namespace, manifest)
        return deepcopy(manifest)

    def namespace_exists(self, namespace: str) -> bool:
        return namespace in self.namespaces


def make_object(kind: str, name: str, namespace: str = "source", resource_version: str = "4711", **extra) -> K8sObject:
    api_version = "apps/v1" if kind in {"Deployment", "ReplicaSet", "StatefulSet"} else "v1"
    manifest = {
        "apiVersion": api_version,
        "kind": kind,
        "metadata": {
            "name": name,
            "namespace": namespace,
            "resourceVersion": resource_version,
            "uid": f"uid-{name}",
            "labels": {"app": name},
        },
    }
    manifest.update(extra)
    return manifest


@pytest.fixture
def cluster():
    fake = FakeCluster()
    fake.namespaces.update({"source", "demo"})
    return fake


@pytest.fixture
def storage():
    return LocalBackupStorage()


@pytest.fixture
def backup_dir(tmp_path):
    directory = tmp_path / "backups" / "b1"
    directory.mkdir(parents=True)
    return directory
