"""Tests for the kubectl client, with subprocess.run replaced."""
import json
import subprocess

import pytest

from kube_snapshot import kubectl as kubectl_module
from kube_snapshot.kubectl import KubectlClient
from kube_snapshot.types import KubectlError, ResourceAlreadyExistsError


class FakeRun:
    """Replays queued results for subprocess.run and records the calls."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    def __call__(self, cmd, **kwargs):
        self.calls.append((cmd, kwargs))
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return subprocess.CompletedProcess(cmd, 0, stdout=result, stderr="")


def failure(cmd, stderr):
    return subprocess.CalledProcessError(1, cmd, output="", stderr=stderr)


@pytest.fixture
def no_sleep(monkeypatch):
    delays = []
    monkeypatch.setattr(kubectl_module.time, "sleep", delays.append)
    return delays


def install(monkeypatch, *results):
    fake = FakeRun(*results)
    monkeypatch.setattr(kubectl_module.subprocess, "run", fake)
    return fake


def test_list_resources_sorts_by_name(monkeypatch):
    items = [{"metadata": {"name": "b"}}, {"metadata": {"name": "a"}}]
    fake = install(monkeypatch, json.dumps({"items": items}))

    result = KubectlClient(kubeconfig="/tmp/kc", context="prod").list_resources("pods", "demo")

    assert [item["metadata"]["name"] for item in result] == ["a", "b"]
    cmd, kwargs = fake.calls[0]
    assert cmd == ["kubectl", "--kubeconfig", "/tmp/kc", "--context", "prod", "get", "pods", "-n", "demo", "-o", "json"]
    assert kwargs["timeout"] == 30
    assert kwargs["check"] is True


def test_get_resource_not_found_returns_none(monkeypatch):
    install(monkeypatch, failure(["kubectl"], 'Error from server (NotFound): secrets "tls" not found'))

    assert KubectlClient().get_resource("secrets", "tls", "demo") is None


def test_get_resource_other_errors_propagate(monkeypatch):
    fake = install(monkeypatch, failure(["kubectl"], "Error from server (Forbidden): secrets is forbidden"))

    with pytest.raises(KubectlError, match="forbidden"):
        KubectlClient().get_resource("secrets", "tls", "demo")

    assert len(fake.calls) == 1


def test_create_sends_manifest_on_stdin(monkeypatch):
    manifest = {"apiVersion": "v1", "kind": "Pod", "metadata": {"name": "p1", "namespace": "demo"}}
    fake = install(monkeypatch, json.dumps(manifest))

    created = KubectlClient().create_resource("pods", manifest, "demo")

    assert created == manifest
    cmd, kwargs = fake.calls[0]
    assert cmd == ["kubectl", "create", "-n", "demo", "-f", "-", "-o", "json"]
    assert json.loads(kwargs["input"]) == manifest


def test_create_already_exists(monkeypatch):
    install(monkeypatch, failure(["kubectl"], 'Error from server (AlreadyExists): pods "p1" already exists'))

    with pytest.raises(ResourceAlreadyExistsError):
        KubectlClient().create_resource("pods", {"metadata": {"name": "p1"}}, "demo")


def test_transient_failure_is_retried(monkeypatch, no_sleep):
    fake = install(
        monkeypatch,
        failure(["kubectl"], "Unable to connect to the server: connection refused"),
        json.dumps({"items": []}),
    )

    assert KubectlClient(max_retries=2).list_resources("pods", "demo") == []
    assert len(fake.calls) == 2
    assert len(no_sleep) == 1


def test_retries_exhausted(monkeypatch, no_sleep):
    fake = install(
        monkeypatch,
        subprocess.TimeoutExpired(["kubectl"], 5),
        subprocess.TimeoutExpired(["kubectl"], 5),
    )

    with pytest.raises(KubectlError, match="timed out"):
        KubectlClient(timeout=5, max_retries=1).list_resources("pods", "demo")

    assert len(fake.calls) == 2


def test_missing_kubectl_binary(monkeypatch):
    install(monkeypatch, FileNotFoundError("kubectl"))

    with pytest.raises(KubectlError, match="Unable to run kubectl"):
        KubectlClient().list_resources("pods", "demo")


def test_invalid_json_output(monkeypatch):
    install(monkeypatch, "not json")

    with pytest.raises(KubectlError, match="Failed to parse"):
        KubectlClient().list_resources("pods", "demo")


def test_namespace_exists(monkeypatch):
    fake = install(
        monkeypatch,
        "namespace/demo\n",
        failure(["kubectl"], 'Error from server (NotFound): namespaces "gone" not found'),
    )
    client = KubectlClient()

    assert client.namespace_exists("demo") is True
    assert client.namespace_exists("gone") is False
    assert fake.calls[0][0] == ["kubectl", "get", "namespaces", "demo", "-o", "name"]


def test_backoff_is_capped():
    client = KubectlClient(backoff_base=10.0, backoff_max=4.0)
    assert client._calculate_backoff_delay(5) == 4.0


def test_create_is_not_retried(monkeypatch, no_sleep):
    fake = install(
        monkeypatch,
        subprocess.TimeoutExpired(["kubectl"], 30),
        failure(["kubectl"], 'Error from server (AlreadyExists): pods "p1" already exists'),
    )

    with pytest.raises(KubectlError, match="timed out") as excinfo:
        KubectlClient(max_retries=3).create_resource("pods", {"metadata": {"name": "p1"}}, "demo")

    assert not isinstance(excinfo.value, ResourceAlreadyExistsError)
    assert len(fake.calls) == 1
    assert no_sleep == []
