"""kubectl-backed cluster client with retry logic and error handling."""
from __future__ import annotations

import json
import logging
import random
import shlex
import subprocess
import time
from typing import List, Optional, Sequence

from .constants import (
    ALREADY_EXISTS_MARKERS,
    DEFAULT_NAMESPACE,
    DEFAULT_RETRY_BACKOFF_BASE,
    DEFAULT_RETRY_BACKOFF_MAX,
    DEFAULT_RETRY_COUNT,
    DEFAULT_TIMEOUT_SECONDS,
    NON_RETRYABLE_MARKERS,
    NOT_FOUND_MARKERS,
    K8sFields,
    ResourceTypes,
)
from .types import K8sObject, K8sObjectList, KubectlError, ResourceAlreadyExistsError


class KubectlClient:
    """Cluster client that shells out to kubectl."""

    def __init__(
        self,
        kubeconfig: Optional[str] = None,
        context: Optional[str] = None,
        timeout: int = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_RETRY_COUNT,
        backoff_base: float = DEFAULT_RETRY_BACKOFF_BASE,
        backoff_max: float = DEFAULT_RETRY_BACKOFF_MAX,
    ):
        self.kubeconfig = kubeconfig
        self.context = context
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.logger = logging.getLogger(__name__)
        self._base_cmd = self._build_base_command()

    def _build_base_command(self) -> List[str]:
        """Build the base kubectl command with global options."""
        cmd = ["kubectl"]

        if self.kubeconfig:
            cmd.extend(["--kubeconfig", self.kubeconfig])

        if self.context:
            cmd.extend(["--context", self.context])

        return cmd

    def list_resources(self, resource_type: str, namespace: str = DEFAULT_NAMESPACE) -> K8sObjectList:
        """
        List resources of a given type.

        Args:
            resource_type: Kubernetes resource type (e.g., 'deployments', 'services')
            namespace: Namespace to query

        Returns:
            List of Kubernetes resource objects, sorted by name

        Raises:
            KubectlError: If kubectl command fails
        """
        cmd = [*self._base_cmd, "get", resource_type, "-n", namespace, "-o", "json"]
        data = self._parse_object(self._run_command(cmd), cmd)

        items = data.get(K8sFields.ITEMS, [])
        if not isinstance(items, list):
            raise KubectlError(f"Expected 'items' to be a list, got {type(items)}", cmd)

        # Sort by name for consistent ordering
        items.sort(key=self._get_resource_name)
        return items

    def get_resource(
        self,
        resource_type: str,
        name: str,
        namespace: str = DEFAULT_NAMESPACE,
    ) -> Optional[K8sObject]:
        """
        Get a specific resource by name.

        Returns:
            Resource object or None if not found

        Raises:
            KubectlError: If kubectl command fails (except for not found)
        """
        cmd = [*self._base_cmd, "get", resource_type, name, "-n", namespace, "-o", "json"]

        try:
            output = self._run_command(cmd)
        except KubectlError as e:
            if self._matches(str(e), NOT_FOUND_MARKERS):
                return None
            raise

        return self._parse_object(output, cmd)

    def create_resource(
        self,
        resource_type: str,
        manifest: K8sObject,
        namespace: str = DEFAULT_NAMESPACE,
    ) -> K8sObject:
        """
        Create a resource from a manifest.

        Never retried: a create that timed out may still have succeeded.

        Args:
            resource_type: Kubernetes resource type, used for logging
            manifest: Full object manifest
            namespace: Namespace to create the object in

        Returns:
            The object as stored by the API server

        Raises:
            ResourceAlreadyExistsError: If an object with the same name exists
            KubectlError: For any other rejection
        """
        cmd = [*self._base_cmd, "create", "-n", namespace, "-f", "-", "-o", "json"]
        self.logger.debug("Creating %s in namespace %s", resource_type, namespace)

        try:
            output = self._run_command(cmd, retries=0, input_data=json.dumps(manifest))
        except KubectlError as e:
            if self._matches(str(e), ALREADY_EXISTS_MARKERS):
                raise ResourceAlreadyExistsError(str(e), cmd) from e
            raise

        return self._parse_object(output, cmd)

    def namespace_exists(self, namespace: str) -> bool:
        """Check whether a namespace exists."""
        cmd = [*self._base_cmd, "get", ResourceTypes.NAMESPACES, namespace, "-o", "name"]
        try:
            self._run_command(cmd, retries=0)
        except KubectlError as e:
            if self._matches(str(e), NOT_FOUND_MARKERS):
                return False
            raise
        return True

    def _run_command(
        self,
        cmd: Sequence[str],
        retries: Optional[int] = None,
        input_data: Optional[str] = None,
    ) -> str:
        """
        Run a kubectl command with retry logic.

        Args:
            cmd: Command to execute
            retries: Number of retries (uses instance default if None)
            input_data: Text passed to kubectl on stdin

        Returns:
            Command stdout

        Raises:
            KubectlError: If command fails after all retries
        """
        if retries is None:
            retries = self.max_retries

        self.logger.debug("Running command: %s", shlex.join(cmd))

        last_exception = None

        for attempt in range(retries + 1):
            try:
                result = subprocess.run(
                    cmd,
                    check=True,
                    capture_output=True,
                    text=True,
                    input=input_data,
                    timeout=self.timeout,
                )

                if attempt > 0:
                    self.logger.info("Command succeeded after %d retries", attempt)

                return result.stdout

            except subprocess.TimeoutExpired:
                last_exception = KubectlError(
                    f"Command timed out after {self.timeout} seconds",
                    cmd,
                )

            except subprocess.CalledProcessError as e:
                error_msg = (e.stderr or "").strip() or (e.stdout or "").strip() or str(e)
                last_exception = KubectlError(f"kubectl failed: {error_msg}", cmd)

                # Don't retry certain types of errors
                if self._matches(error_msg, NON_RETRYABLE_MARKERS):
                    break

            except OSError as e:
                # kubectl missing from PATH or not executable
                last_exception = KubectlError(f"Unable to run kubectl: {e}", cmd)
                break

            # Wait before retrying (except on last attempt)
            if attempt < retries:
                delay = self._calculate_backoff_delay(attempt)
                self.logger.debug("Retrying in %.2f seconds (attempt %d/%d)", delay, attempt + 1, retries)
                time.sleep(delay)

        self.logger.debug("Command failed after %d attempts: %s", attempt + 1, last_exception)
        raise last_exception

    def _calculate_backoff_delay(self, attempt: int) -> float:
        """Calculate exponential backoff delay with jitter."""
        base_delay = self.backoff_base ** attempt
        jitter = random.uniform(0.8, 1.2)
        return min(base_delay * jitter, self.backoff_max)

    @staticmethod
    def _matches(message: str, markers: Sequence[str]) -> bool:
        lowered = message.lower()
        return any(marker in lowered for marker in markers)

    @staticmethod
    def _parse_object(output: str, cmd: Sequence[str]) -> K8sObject:
        try:
            data = json.loads(output)
        except json.JSONDecodeError as e:
            raise KubectlError(f"Failed to parse kubectl output as JSON: {e}", cmd) from e

        if not isinstance(data, dict):
            raise KubectlError(f"Expected JSON object, got {type(data)}", cmd)

        return data

    @staticmethod
    def _get_resource_name(resource: K8sObject) -> str:
        """Extract name from a Kubernetes resource."""
        metadata = resource.get(K8sFields.METADATA)
        if isinstance(metadata, dict):
            name = metadata.get(K8sFields.NAME)
            if isinstance(name, str):
                return name
        return ""
