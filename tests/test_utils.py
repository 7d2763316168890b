from pathlib import Path

from kube_snapshot.manifest_cleaner import clean_metadata, prepare_for_import
from kube_snapshot.utils import ManifestTraverser, snapshot_file_name, snapshot_path


def test_snapshot_file_name():
    assert snapshot_file_name("pod-", "web-0") == "pod-web-0.json"
    assert snapshot_file_name("pvc-", "data") == "pvc-data.json"
    assert snapshot_path(Path("/tmp/b1"), "secret-", "tls") == Path("/tmp/b1/secret-tls.json")


def test_manifest_traverser():
    manifest = {"metadata": {"name": "web", "namespace": "demo"}, "spec": {"replicas": 1}}
    assert ManifestTraverser.get_manifest_name(manifest) == "web"
    assert ManifestTraverser.get_spec(manifest) == {"replicas": 1}

    assert ManifestTraverser.get_manifest_name({}) == ""
    assert ManifestTraverser.get_manifest_name({"metadata": "broken"}) == ""
    assert ManifestTraverser.get_spec({"spec": None}) == {}


def test_ensure_metadata_repairs_manifest():
    manifest = {"metadata": None}
    ManifestTraverser.ensure_metadata(manifest)["name"] = "x"
    assert manifest == {"metadata": {"name": "x"}}


def test_clean_metadata_keeps_other_fields():
    metadata = {"name": "a", "namespace": "b", "resourceVersion": "1", "labels": {"x": "y"}}
    assert clean_metadata(metadata) == {"name": "a", "labels": {"x": "y"}}
    assert metadata["namespace"] == "b"


def test_prepare_for_import_without_metadata():
    prepared = prepare_for_import({"kind": "Pod"}, "demo")
    assert prepared == {"kind": "Pod", "metadata": {"namespace": "demo"}}
