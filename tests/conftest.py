"""Pytest fixtures for testing cluster blueprints."""

import pytest

from blueprints.cluster.handle import ClusterHandle
from tests.mocks import FakeApplier

# Environment variables read by BlueprintsConfig
_CONFIG_ENV = (
    "BLUEPRINTS_CLUSTER_NAME",
    "BLUEPRINTS_CLUSTER_ENDPOINT",
    "AWS_REGION",
    "KUBECONFIG",
    "BLUEPRINTS_MAX_CONCURRENCY",
    "BLUEPRINTS_DEPLOY_TIMEOUT",
    "BLUEPRINTS_HELM_TIMEOUT",
    "BLUEPRINTS_KUBECTL_TIMEOUT",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment and .env file out of config tests."""
    for name in _CONFIG_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("blueprints.config.load_dotenv", lambda *args, **kwargs: False)


@pytest.fixture
def fake_applier() -> FakeApplier:
    """Create an in-memory applier.

    Returns:
        FakeApplier whose workloads always report ready
    """
    return FakeApplier()


@pytest.fixture
def cluster(fake_applier: FakeApplier) -> ClusterHandle:
    """Create a cluster handle bound to the fake applier.

    Returns:
        ClusterHandle with endpoint and region set
    """
    return ClusterHandle.create(
        name="test-cluster",
        endpoint="https://test-cluster.example.com",
        region="us-west-2",
        applier=fake_applier,
    )
