"""Configuration management for kube-snapshot."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .constants import (
    DEFAULT_BACKUP_ROOT,
    DEFAULT_RETRY_BACKOFF_BASE,
    DEFAULT_RETRY_BACKOFF_MAX,
    DEFAULT_RETRY_COUNT,
    DEFAULT_TIMEOUT_SECONDS,
    REGISTRY_FILE_NAME,
)
from .types import ConfigError

_K8S_NAME_PATTERN = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")


@dataclass
class SnapshotConfig:
    """Settings shared by every command."""

    # Storage
    backup_root: str = DEFAULT_BACKUP_ROOT
    registry_file: Optional[str] = None

    # kubectl settings
    kubeconfig: Optional[str] = None
    context: Optional[str] = None

    # Reliability
    timeout: int = DEFAULT_TIMEOUT_SECONDS
    max_retries: int = DEFAULT_RETRY_COUNT
    backoff_base: float = DEFAULT_RETRY_BACKOFF_BASE
    backoff_max: float = DEFAULT_RETRY_BACKOFF_MAX

    # Progress and logging
    verbose: bool = False
    progress_enabled: bool = True
    silent_progress: bool = False

    # Paths (Linux-focused)
    config_file_paths: List[str] = field(default_factory=lambda: [
        "./.kube-snapshot.yaml",
        "~/.config/kube-snapshot/config.yaml",
        "/etc/kube-snapshot/config.yaml",
    ])

    @property
    def registry_path(self) -> Path:
        if self.registry_file:
            return Path(self.registry_file).expanduser()
        return Path(self.backup_root).expanduser() / REGISTRY_FILE_NAME


class ConfigLoader:
    """Loads configuration from YAML files."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def load_config(
        self,
        config_file: Optional[str] = None,
        base_config: Optional[SnapshotConfig] = None,
    ) -> SnapshotConfig:
        """
        Load configuration from a file.

        An explicit ``config_file`` must exist and parse; the default search
        paths are tried in order and the first existing one wins.

        Raises:
            ConfigError: If the explicit config file is missing or invalid
        """
        config = base_config or SnapshotConfig()

        if config_file:
            path = Path(config_file).expanduser()
            if not path.exists():
                raise ConfigError(f"Config file not found: {config_file}")
            return self._merge_config_data(config, self._parse_config_file(path))

        for path_str in config.config_file_paths:
            path = Path(path_str).expanduser()
            if path.exists():
                return self._merge_config_data(config, self._parse_config_file(path))

        return config

    def _parse_config_file(self, path: Path) -> Dict[str, Any]:
        """Parse a YAML configuration file."""
        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to parse config file {path}: {e}") from e

        if data is None:
            return {}

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} does not contain a mapping")

        self.logger.info("Loaded configuration from: %s", path)
        return data

    def _merge_config_data(self, config: SnapshotConfig, config_data: Dict[str, Any]) -> SnapshotConfig:
        """Merge known keys from file data into the config."""
        known = {f.name for f in fields(SnapshotConfig)}

        for key, value in config_data.items():
            attr = key.replace("-", "_")
            if attr not in known:
                self.logger.warning("Ignoring unknown configuration key: %s", key)
                continue
            setattr(config, attr, value)

        self.logger.debug("Merged configuration data successfully")
        return config


class ConfigValidator:
    """Validates configuration settings."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def validate_config(self, config: SnapshotConfig) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation error messages
        """
        errors = []

        if not config.backup_root:
            errors.append("backup_root is required")

        if config.kubeconfig:
            kubeconfig_path = Path(config.kubeconfig).expanduser()
            if not kubeconfig_path.exists():
                errors.append(f"Kubeconfig file not found: {config.kubeconfig}")

        if not isinstance(config.timeout, int) or config.timeout <= 0:
            errors.append("Timeout must be a positive integer")

        if not isinstance(config.max_retries, int) or config.max_retries < 0:
            errors.append("Max retries cannot be negative")

        if not isinstance(config.backoff_base, (int, float)) or config.backoff_base <= 1.0:
            errors.append("Backoff base must be greater than 1.0")

        if not isinstance(config.backoff_max, (int, float)) or config.backoff_max <= 0:
            errors.append("Backoff max must be positive")

        if errors:
            self.logger.warning("Configuration validation failed: %s", "; ".join(errors))

        return errors

    def validate_namespace(self, namespace: str) -> List[str]:
        if not namespace:
            return ["Namespace is required"]
        if not is_valid_k8s_name(namespace):
            return [f"Namespace must be a valid Kubernetes namespace name: {namespace}"]
        return []


def is_valid_k8s_name(name: str) -> bool:
    """Check if a name is a valid DNS-1123 label."""
    return bool(_K8S_NAME_PATTERN.match(name)) and len(name) <= 63


def load_config_from_args(args, base_config: Optional[SnapshotConfig] = None) -> SnapshotConfig:
    """Overlay argparse arguments onto a loaded configuration."""
    config = base_config or SnapshotConfig()

    for attr in ("backup_root", "registry_file", "kubeconfig", "context", "timeout", "max_retries"):
        value = getattr(args, attr, None)
        if value is not None:
            setattr(config, attr, value)

    config.verbose = getattr(args, "verbose", False)
    if getattr(args, "no_progress", False):
        config.progress_enabled = False
    if getattr(args, "silent_progress", False):
        config.silent_progress = True

    return config
