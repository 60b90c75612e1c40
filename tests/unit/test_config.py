"""Unit tests for configuration management."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from blueprints.cluster.applier import CommandLineApplier
from blueprints.config import BlueprintsConfig, load_addon_configs
from blueprints.utils.errors import (
    ConfigFileNotFoundError,
    ConfigurationError,
    InvalidConfigError,
)


class TestBlueprintsConfig:
    """Test BlueprintsConfig class."""

    def test_default_configuration(self):
        """Test default configuration values."""
        with patch.dict(os.environ, {}, clear=True):
            config = BlueprintsConfig()

            assert config.cluster_name is None
            assert config.max_concurrency == 4
            assert config.deploy_timeout is None
            assert config.helm_timeout == 300
            assert config.kubectl_timeout == 60
            assert config.log_level == "info"

    def test_environment_variable_loading(self):
        """Test loading configuration from environment."""
        env = {
            "BLUEPRINTS_CLUSTER_NAME": "dev",
            "BLUEPRINTS_CLUSTER_ENDPOINT": "https://dev.example.com",
            "AWS_REGION": "us-east-2",
            "KUBECONFIG": "/tmp/kubeconfig",
            "BLUEPRINTS_MAX_CONCURRENCY": "2",
            "BLUEPRINTS_DEPLOY_TIMEOUT": "90.5",
            "BLUEPRINTS_HELM_TIMEOUT": "600",
            "LOG_LEVEL": "DEBUG",
        }

        with patch.dict(os.environ, env, clear=True):
            config = BlueprintsConfig()

            assert config.cluster_name == "dev"
            assert config.cluster_endpoint == "https://dev.example.com"
            assert config.region == "us-east-2"
            assert config.kubeconfig == "/tmp/kubeconfig"
            assert config.max_concurrency == 2
            assert config.deploy_timeout == 90.5
            assert config.helm_timeout == 600
            assert config.log_level == "debug"

    def test_invalid_integer_environment_variable(self):
        """Test non-numeric concurrency."""
        with patch.dict(os.environ, {"BLUEPRINTS_MAX_CONCURRENCY": "many"}, clear=True):
            with pytest.raises(ConfigurationError, match="must be an integer"):
                BlueprintsConfig()

    def test_validation_success(self):
        """Test validation passes with a cluster name."""
        config = BlueprintsConfig(cluster_name="dev")
        config.validate()

    def test_validation_missing_cluster_name(self):
        """Test validation requires a cluster name."""
        with pytest.raises(ConfigurationError, match="Cluster name is required"):
            BlueprintsConfig().validate()

    def test_validation_invalid_cluster_name(self):
        """Test validation rejects invalid cluster names."""
        with pytest.raises(ConfigurationError, match="lowercase"):
            BlueprintsConfig(cluster_name="Dev_Cluster").validate()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"max_concurrency": 0},
            {"deploy_timeout": 0},
            {"helm_timeout": -1},
            {"log_level": "verbose"},
        ],
    )
    def test_validation_out_of_range(self, overrides):
        """Test validation rejects out of range settings."""
        with pytest.raises(ConfigurationError):
            BlueprintsConfig(cluster_name="dev", **overrides).validate()

    def test_cluster_handle(self):
        """Test building a cluster handle bound to the CLI applier."""
        config = BlueprintsConfig(
            cluster_name="dev",
            cluster_endpoint="https://dev.example.com",
            region="eu-central-1",
            kubeconfig="/tmp/kubeconfig",
            kubectl_timeout=30,
        )

        handle = config.cluster_handle(values={"karpenter_instance_profile": "profile"})

        assert handle.name == "dev"
        assert handle.endpoint == "https://dev.example.com"
        assert handle.region == "eu-central-1"
        assert handle.kubeconfig_path == Path("/tmp/kubeconfig")
        assert isinstance(handle.applier, CommandLineApplier)
        assert handle.applier.kubectl_timeout == 30
        assert handle.lookup("cluster", "karpenter_instance_profile") == "profile"

    def test_cluster_handle_invalid(self):
        """Test an invalid config never produces a handle."""
        with pytest.raises(ConfigurationError):
            BlueprintsConfig().cluster_handle()


class TestLoadAddonConfigs:
    """Test per-add-on option files."""

    def test_load(self, tmp_path):
        """Test loading a valid file."""
        path = tmp_path / "addons.yaml"
        path.write_text(
            "Karpenter:\n"
            "  default_provisioner_specs:\n"
            "    node.kubernetes.io/instance-type: [m5.large]\n"
            "ingress:\n"
        )

        configs = load_addon_configs(path)

        assert configs == {
            "karpenter": {"default_provisioner_specs": {"node.kubernetes.io/instance-type": ["m5.large"]}},
            "ingress": {},
        }

    def test_empty_file(self, tmp_path):
        """Test an empty file means no overrides."""
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_addon_configs(path) == {}

    def test_missing_file(self, tmp_path):
        """Test a missing file."""
        with pytest.raises(ConfigFileNotFoundError):
            load_addon_configs(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        """Test malformed YAML."""
        path = tmp_path / "bad.yaml"
        path.write_text("karpenter: [unclosed\n")

        with pytest.raises(InvalidConfigError, match="Invalid YAML"):
            load_addon_configs(path)

    @pytest.mark.parametrize("content", ["- karpenter\n", "karpenter: 3\n"])
    def test_wrong_shape(self, tmp_path, content):
        """Test files that do not map names to option mappings."""
        path = tmp_path / "shape.yaml"
        path.write_text(content)

        with pytest.raises(InvalidConfigError):
            load_addon_configs(path)
