"""Resource appliers that push rendered add-ons to a live cluster.

The orchestration engine never talks to the API server itself. Add-ons hand
their rendered documents or chart values to the applier bound to the
ClusterHandle, which returns a ResourceHandle describing what was created.
Every applier operation must be idempotent per (name, namespace).
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import yaml

from blueprints.utils.async_subprocess import run_async
from blueprints.utils.errors import ApplyError, HelmCommandError, KubectlCommandError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceHandle:
    """Opaque reference to cluster objects created by a deploy operation.

    Attributes:
        kind: "manifest" for applied documents, "helm-release" for charts
        name: Deployment or release name
        namespace: Target namespace
        resources: Object references reported by the cluster (e.g. "deployment.apps/x")
        revision: Helm release revision, when known
    """

    kind: str
    name: str
    namespace: str
    resources: tuple[str, ...] = ()
    revision: int | None = None

    def __str__(self) -> str:
        return f"{self.kind}/{self.namespace}/{self.name}"


@runtime_checkable
class ResourceApplier(Protocol):
    """Narrow interface to the live cluster used by add-ons."""

    async def apply(
        self, name: str, namespace: str, documents: list[dict[str, Any]]
    ) -> ResourceHandle:
        """Apply documents to the cluster (create or update)."""
        ...

    async def install_chart(
        self,
        release: str,
        chart: str,
        namespace: str,
        values: dict[str, Any] | None = None,
        version: str | None = None,
        repository: str | None = None,
        create_namespace: bool = True,
    ) -> ResourceHandle:
        """Install or upgrade a Helm release."""
        ...

    async def wait_ready(self, resource: str, namespace: str, timeout: int = 120) -> bool:
        """Wait until a workload (e.g. "deployment/name") reports available."""
        ...


class CommandLineApplier:
    """ResourceApplier backed by the kubectl and helm CLIs.

    ``kubectl apply`` and ``helm upgrade --install`` are both idempotent, so
    re-running a deployment against the same cluster updates in place.
    """

    def __init__(
        self,
        kubeconfig_path: Path | None = None,
        kubectl_timeout: int = 60,
        helm_timeout: int = 300,
    ):
        """Initialize applier.

        Args:
            kubeconfig_path: Path to the cluster kubeconfig (None uses the ambient config)
            kubectl_timeout: Timeout for kubectl commands in seconds
            helm_timeout: Timeout for helm install commands in seconds
        """
        self.kubeconfig_path = kubeconfig_path
        self.kubectl_timeout = kubectl_timeout
        self.helm_timeout = helm_timeout

    def _env(self) -> dict[str, str]:
        env = os.environ.copy()
        if self.kubeconfig_path:
            env["KUBECONFIG"] = str(self.kubeconfig_path)
        return env

    async def _run_kubectl(
        self, args: list[str], input_text: str | None = None, timeout: int | None = None
    ):
        """Run kubectl command with kubeconfig.

        Raises:
            KubectlCommandError: If kubectl is missing or times out
        """
        cmd = ["kubectl"] + args
        timeout = timeout or self.kubectl_timeout
        try:
            return await run_async(cmd, env=self._env(), timeout=timeout, input_text=input_text)
        except TimeoutError as e:
            raise KubectlCommandError(f"kubectl command timed out after {timeout} seconds") from e
        except FileNotFoundError as e:
            raise KubectlCommandError(
                "kubectl CLI not found. Please install kubectl: "
                "https://kubernetes.io/docs/tasks/tools/install-kubectl/"
            ) from e

    async def _run_helm(self, args: list[str], timeout: int | None = None):
        """Run helm command with kubeconfig.

        Raises:
            HelmCommandError: If helm is missing, times out or exits non-zero
        """
        cmd = ["helm"] + args
        timeout = timeout or self.helm_timeout
        try:
            result = await run_async(cmd, env=self._env(), timeout=timeout)
        except TimeoutError as e:
            raise HelmCommandError(f"Helm command timed out after {timeout} seconds") from e
        except FileNotFoundError as e:
            raise HelmCommandError(
                "helm CLI not found. Please install helm: https://helm.sh/docs/intro/install/"
            ) from e

        if result.returncode != 0:
            error_msg = result.stderr or result.stdout
            raise HelmCommandError(f"Helm command failed: {error_msg}")
        return result

    async def apply(
        self, name: str, namespace: str, documents: list[dict[str, Any]]
    ) -> ResourceHandle:
        """Apply documents with ``kubectl apply -f -``.

        Raises:
            ApplyError: If there is nothing to apply
            KubectlCommandError: If kubectl rejects the documents
        """
        if not documents:
            raise ApplyError(f"No documents to apply for '{name}'")

        manifest = yaml.safe_dump_all(documents, sort_keys=False)
        result = await self._run_kubectl(
            ["apply", "--namespace", namespace, "-f", "-"], input_text=manifest
        )
        if result.returncode != 0:
            error_msg = result.stderr or result.stdout
            raise KubectlCommandError(f"Failed to apply '{name}' to namespace '{namespace}': {error_msg}")

        resources = tuple(line.strip() for line in result.stdout.splitlines() if line.strip())
        logger.info(f"Applied '{name}' to namespace '{namespace}': {len(resources)} resources")
        return ResourceHandle(kind="manifest", name=name, namespace=namespace, resources=resources)

    async def install_chart(
        self,
        release: str,
        chart: str,
        namespace: str,
        values: dict[str, Any] | None = None,
        version: str | None = None,
        repository: str | None = None,
        create_namespace: bool = True,
    ) -> ResourceHandle:
        """Install or upgrade a Helm release with ``helm upgrade --install``.

        Nested values are written to a temporary values file rather than
        flattened into ``--set`` pairs.
        """
        cmd_args = ["upgrade", "--install", release, chart, "--namespace", namespace]
        if create_namespace:
            cmd_args.append("--create-namespace")
        if repository:
            cmd_args.extend(["--repo", repository])
        if version:
            cmd_args.extend(["--version", version])

        values_file = None
        try:
            if values:
                with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
                    yaml.safe_dump(values, f, sort_keys=False)
                    values_file = f.name
                cmd_args.extend(["--values", values_file])

            logger.info(f"Installing Helm chart {chart} as release '{release}' in '{namespace}'")
            await self._run_helm(cmd_args)
        finally:
            if values_file:
                Path(values_file).unlink(missing_ok=True)

        revision = await self._release_revision(release, namespace)
        return ResourceHandle(
            kind="helm-release",
            name=release,
            namespace=namespace,
            resources=(f"release/{release}",),
            revision=revision,
        )

    async def _release_revision(self, release: str, namespace: str) -> int | None:
        try:
            result = await self._run_helm(
                ["status", release, "--namespace", namespace, "-o", "json"],
                timeout=self.kubectl_timeout,
            )
            status = yaml.safe_load(result.stdout) or {}
            return status.get("version")
        except (HelmCommandError, yaml.YAMLError) as e:
            logger.debug(f"Could not read revision for release '{release}': {e}")
            return None

    async def wait_ready(self, resource: str, namespace: str, timeout: int = 120) -> bool:
        """Wait for a workload to become available with ``kubectl wait``."""
        result = await self._run_kubectl(
            [
                "wait",
                "--namespace",
                namespace,
                "--for=condition=available",
                resource,
                f"--timeout={timeout}s",
            ],
            timeout=timeout + 10,
        )
        if result.returncode != 0:
            logger.warning(f"Wait for {resource} failed: {result.stderr}")
            return False
        return True
