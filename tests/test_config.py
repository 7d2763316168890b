import argparse
from pathlib import Path

import pytest

from kube_snapshot.config import (
    ConfigLoader,
    ConfigValidator,
    SnapshotConfig,
    is_valid_k8s_name,
    load_config_from_args,
)
from kube_snapshot.types import ConfigError


def test_defaults():
    config = SnapshotConfig()
    assert config.backup_root == "./backups"
    assert config.registry_path == Path("./backups") / "registry.json"
    assert config.max_retries == 3
    assert ConfigValidator().validate_config(config) == []


def test_explicit_registry_file():
    config = SnapshotConfig(registry_file="/var/lib/snapshots.json")
    assert config.registry_path == Path("/var/lib/snapshots.json")


def test_load_yaml_config(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("backup-root: /srv/backups\ntimeout: 60\ncontext: staging\nunknown_key: 1\n")

    config = ConfigLoader().load_config(config_file=str(config_file))

    assert config.backup_root == "/srv/backups"
    assert config.timeout == 60
    assert config.context == "staging"
    assert not hasattr(config, "unknown_key")


def test_search_paths_first_match_wins(tmp_path):
    second = tmp_path / "second.yaml"
    second.write_text("max_retries: 5\n")
    base = SnapshotConfig(config_file_paths=[str(tmp_path / "missing.yaml"), str(second)])

    config = ConfigLoader().load_config(base_config=base)

    assert config.max_retries == 5


def test_empty_config_file(tmp_path):
    config_file = tmp_path / "empty.yaml"
    config_file.write_text("")

    config = ConfigLoader().load_config(config_file=str(config_file))

    assert config.backup_root == "./backups"


@pytest.mark.parametrize("content", ["backup_root: [unclosed\n", "- just\n- a list\n"])
def test_invalid_config_file(tmp_path, content):
    config_file = tmp_path / "bad.yaml"
    config_file.write_text(content)

    with pytest.raises(ConfigError):
        ConfigLoader().load_config(config_file=str(config_file))


def test_missing_explicit_config_file(tmp_path):
    with pytest.raises(ConfigError):
        ConfigLoader().load_config(config_file=str(tmp_path / "nope.yaml"))


def test_validator_messages(tmp_path):
    config = SnapshotConfig(
        backup_root="",
        kubeconfig=str(tmp_path / "missing-kubeconfig"),
        timeout=0,
        max_retries=-1,
        backoff_base=1.0,
    )

    errors = ConfigValidator().validate_config(config)

    assert "backup_root is required" in errors
    assert "Timeout must be a positive integer" in errors
    assert "Max retries cannot be negative" in errors
    assert "Backoff base must be greater than 1.0" in errors
    assert any("Kubeconfig file not found" in error for error in errors)


def test_namespace_validation():
    validator = ConfigValidator()
    assert validator.validate_namespace("demo") == []
    assert validator.validate_namespace("") == ["Namespace is required"]
    assert validator.validate_namespace("Demo_NS")

    assert is_valid_k8s_name("team-a-1")
    assert not is_valid_k8s_name("-leading")
    assert not is_valid_k8s_name("a" * 64)


def test_args_overlay_config():
    base = SnapshotConfig(backup_root="/srv/backups", timeout=45)
    args = argparse.Namespace(
        backup_root=None,
        registry_file="/tmp/reg.json",
        kubeconfig=None,
        context="prod",
        timeout=None,
        max_retries=0,
        verbose=True,
        no_progress=True,
        silent_progress=False,
    )

    config = load_config_from_args(args, base)

    assert config.backup_root == "/srv/backups"
    assert config.timeout == 45
    assert config.registry_file == "/tmp/reg.json"
    assert config.context == "prod"
    assert config.max_retries == 0
    assert config.verbose is True
    assert config.progress_enabled is False
    assert config.silent_progress is False


def test_backoff_settings_must_be_numbers(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text('backoff_base: "2"\nbackoff_max: "5"\n')
    config = ConfigLoader().load_config(config_file=str(config_file))

    errors = ConfigValidator().validate_config(config)

    assert "Backoff base must be greater than 1.0" in errors
    assert "Backoff max must be positive" in errors
