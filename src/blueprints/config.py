"""Configuration management for cluster blueprints.

This module handles configuration loading from environment variables and .env files,
and per-add-on option overrides from a YAML file.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from blueprints.cluster.applier import CommandLineApplier
from blueprints.cluster.handle import ClusterHandle
from blueprints.utils.errors import (
    ConfigFileNotFoundError,
    ConfigurationError,
    InvalidConfigError,
)
from blueprints.utils.validation import validate_cluster_name

_LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'") from e


def _float_env(name: str, default: float | None) -> float | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number of seconds, got '{raw}'") from e


@dataclass
class BlueprintsConfig:
    """Cluster blueprints configuration.

    Loads configuration from environment variables; explicit constructor
    arguments are used as defaults when a variable is unset.
    """

    # Target cluster
    cluster_name: str | None = None
    cluster_endpoint: str | None = None
    region: str | None = None
    kubeconfig: str | None = None

    # Orchestration
    max_concurrency: int = 4
    deploy_timeout: float | None = None

    # CLI timeouts (seconds)
    helm_timeout: int = 300
    kubectl_timeout: int = 60

    log_level: str = "info"

    def __post_init__(self):
        """Load configuration from environment variables after initialization."""
        # Load .env file if present
        load_dotenv()

        self.cluster_name = os.getenv("BLUEPRINTS_CLUSTER_NAME", self.cluster_name)
        self.cluster_endpoint = os.getenv("BLUEPRINTS_CLUSTER_ENDPOINT", self.cluster_endpoint)
        self.region = os.getenv("AWS_REGION", self.region)
        self.kubeconfig = os.getenv("KUBECONFIG", self.kubeconfig)

        self.max_concurrency = _int_env("BLUEPRINTS_MAX_CONCURRENCY", self.max_concurrency)
        self.deploy_timeout = _float_env("BLUEPRINTS_DEPLOY_TIMEOUT", self.deploy_timeout)
        self.helm_timeout = _int_env("BLUEPRINTS_HELM_TIMEOUT", self.helm_timeout)
        self.kubectl_timeout = _int_env("BLUEPRINTS_KUBECTL_TIMEOUT", self.kubectl_timeout)
        self.log_level = os.getenv("LOG_LEVEL", self.log_level).lower()

    def validate(self) -> None:
        """Validate configuration.

        Raises:
            ConfigurationError: If a setting is missing or out of range.
        """
        if not self.cluster_name:
            raise ConfigurationError(
                "Cluster name is required. Set BLUEPRINTS_CLUSTER_NAME or pass --cluster."
            )
        try:
            validate_cluster_name(self.cluster_name)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        if self.max_concurrency < 1:
            raise ConfigurationError("BLUEPRINTS_MAX_CONCURRENCY must be at least 1")
        if self.deploy_timeout is not None and self.deploy_timeout <= 0:
            raise ConfigurationError("BLUEPRINTS_DEPLOY_TIMEOUT must be positive")
        if self.helm_timeout <= 0 or self.kubectl_timeout <= 0:
            raise ConfigurationError("CLI timeouts must be positive")
        if self.log_level not in _LOG_LEVELS:
            raise ConfigurationError(
                f"Invalid log level: {self.log_level}. Must be one of: {', '.join(_LOG_LEVELS)}"
            )

    def get_kubeconfig_path(self) -> Path | None:
        """Get kubeconfig file path, if one is configured."""
        return Path(self.kubeconfig).expanduser() if self.kubeconfig else None

    def cluster_handle(self, values: dict[str, Any] | None = None) -> ClusterHandle:
        """Build a ClusterHandle bound to a kubectl/helm applier.

        Args:
            values: Values seeded into the ``cluster`` scope of the values bag

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        self.validate()
        kubeconfig_path = self.get_kubeconfig_path()
        applier = CommandLineApplier(
            kubeconfig_path=kubeconfig_path,
            kubectl_timeout=self.kubectl_timeout,
            helm_timeout=self.helm_timeout,
        )
        return ClusterHandle.create(
            name=self.cluster_name,  # type: ignore[arg-type]
            endpoint=self.cluster_endpoint,
            region=self.region,
            kubeconfig_path=kubeconfig_path,
            applier=applier,
            values=values,
        )


def load_addon_configs(filepath: Path) -> dict[str, dict[str, Any]]:
    """Load per-add-on option overrides from a YAML file.

    The file maps add-on names (or aliases) to option mappings:

        karpenter:
          version: 0.5.3
          default_provisioner_specs:
            node.kubernetes.io/instance-type: [m5.large]

    Args:
        filepath: Path to the YAML file

    Returns:
        Option overrides keyed by add-on name

    Raises:
        ConfigFileNotFoundError: If the file does not exist
        InvalidConfigError: If the file is not valid YAML or has the wrong shape
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise ConfigFileNotFoundError(f"Add-on configuration file not found: {filepath}")

    try:
        content = filepath.read_text(encoding="utf-8")
    except OSError as e:
        raise InvalidConfigError(f"Error reading configuration file {filepath}: {e}") from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise InvalidConfigError(f"Invalid YAML in configuration file {filepath}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidConfigError(f"{filepath} must map add-on names to option mappings")

    configs: dict[str, dict[str, Any]] = {}
    for name, options in data.items():
        if options is None:
            options = {}
        if not isinstance(options, dict):
            raise InvalidConfigError(f"Options for add-on '{name}' in {filepath} must be a mapping")
        configs[str(name).lower()] = options
    return configs
