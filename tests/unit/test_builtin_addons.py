"""Tests for the built-in add-ons."""

import pytest

from blueprints.cluster.addons.adot import AdotCollectorAddon
from blueprints.cluster.addons.cert_manager import CertManagerAddon
from blueprints.cluster.addons.cloudwatch_adot import CloudWatchAdotAddon
from blueprints.cluster.addons.cluster_autoscaler import ClusterAutoscalerAddon
from blueprints.cluster.addons.ingress_nginx import IngressNginxAddon
from blueprints.cluster.addons.karpenter import KarpenterAddon
from blueprints.cluster.addons.options import DeploymentMode
from blueprints.cluster.handle import CLUSTER_SCOPE, ClusterHandle
from blueprints.utils.errors import DeployError, HelmCommandError, InvalidConfigError


class TestIngressNginxAddon:
    """Test NGINX Ingress addon."""

    def test_defaults(self):
        """Test addon initialization."""
        addon = IngressNginxAddon()

        assert addon.addon_name == "ingress-nginx"
        assert addon.options.namespace == "kube-system"
        assert addon.options.version == "4.13.2"
        assert addon.options.repository == "https://kubernetes.github.io/ingress-nginx"

    def test_custom_config(self):
        """Test addon with custom configuration."""
        addon = IngressNginxAddon(
            {"version": "4.12.0", "namespace": "custom-ns", "values": {"custom.key": "value"}}
        )

        assert addon.options.version == "4.12.0"
        assert addon.options.namespace == "custom-ns"
        assert addon.options.values == {"custom.key": "value"}

    @pytest.mark.asyncio
    async def test_deploy(self, cluster, fake_applier):
        """Test chart values, readiness wait and published ingress class."""
        handle = await IngressNginxAddon().deploy(cluster.for_addon("ingress-nginx"))

        release = fake_applier.release("kube-system", "ingress-nginx")
        assert release["values"]["controller"]["ingressClassResource"]["name"] == "nginx"
        assert release["values"]["controller"]["updateStrategy"]["type"] == "RollingUpdate"
        assert ("wait_ready", "kube-system", "deployment/ingress-nginx-controller") in fake_applier.calls
        assert cluster.lookup("ingress-nginx", "ingress_class") == "nginx"
        assert handle.name == "ingress-nginx"

    @pytest.mark.asyncio
    async def test_deploy_not_ready(self, cluster, fake_applier):
        """Test controller never becoming available."""
        fake_applier.ready = False

        with pytest.raises(DeployError, match="Timeout waiting for ingress-nginx"):
            await IngressNginxAddon().deploy(cluster.for_addon("ingress-nginx"))

    @pytest.mark.asyncio
    async def test_deploy_helm_failure(self, cluster, fake_applier):
        """Test helm failures propagate as deploy errors."""
        fake_applier.fail_on.add("ingress-nginx")

        with pytest.raises(HelmCommandError):
            await IngressNginxAddon().deploy(cluster.for_addon("ingress-nginx"))


class TestCertManagerAndAdot:
    """Test cert-manager and the ADOT operator."""

    def test_relationships(self):
        """Test ADOT depends on cert-manager."""
        assert CertManagerAddon().descriptor().depends_on == frozenset()
        assert AdotCollectorAddon().descriptor().depends_on == frozenset({"cert-manager"})

    @pytest.mark.asyncio
    async def test_cert_manager_installs_crds(self, cluster, fake_applier):
        """Test CRDs are enabled and the webhook is awaited."""
        await CertManagerAddon().deploy(cluster.for_addon("cert-manager"))

        release = fake_applier.release("cert-manager", "blueprints-addon-cert-manager")
        assert release["values"] == {"crds": {"enabled": True}}
        assert release["repository"] == "https://charts.jetstack.io"
        assert ("wait_ready", "cert-manager", "deployment/cert-manager-webhook") in fake_applier.calls

    @pytest.mark.asyncio
    async def test_adot_uses_cert_manager(self, cluster, fake_applier):
        """Test operator webhooks get certificates from cert-manager."""
        await AdotCollectorAddon().deploy(cluster.for_addon("adot"))

        release = fake_applier.release("opentelemetry-operator-system", "blueprints-addon-adot")
        assert release["chart"] == "opentelemetry-operator"
        assert release["values"]["admissionWebhooks"]["certManager"]["enabled"] is True


class TestCloudWatchAdotAddon:
    """Test the CloudWatch collector addon."""

    def test_defaults(self):
        """Test documented defaults."""
        addon = CloudWatchAdotAddon()

        assert addon.options.deployment_mode is DeploymentMode.DEPLOYMENT
        assert addon.options.namespace == "default"
        assert addon.options.name == "adot-collector-cloudwatch"
        assert addon.descriptor().depends_on == frozenset({"adot"})

    def test_deployment_mode_override(self):
        """Test deployment mode is parsed from its string value."""
        addon = CloudWatchAdotAddon({"deployment_mode": "daemonset"})

        assert addon.options.deployment_mode is DeploymentMode.DAEMONSET

    def test_invalid_deployment_mode(self):
        """Test unsupported deployment modes are rejected."""
        with pytest.raises(InvalidConfigError):
            CloudWatchAdotAddon({"deployment_mode": "cronjob"})

    @pytest.mark.asyncio
    async def test_deploy_applies_rendered_manifest(self, cluster, fake_applier):
        """Test the collector manifest is rendered and applied."""
        addon = CloudWatchAdotAddon({"deployment_mode": "statefulset", "namespace": "monitoring"})

        handle = await addon.deploy(cluster.for_addon("cloudwatch-adot"))

        manifest = fake_applier.manifest("monitoring", "adot-collector-cloudwatch")
        kinds = [doc["kind"] for doc in manifest["documents"]]
        assert kinds == ["ServiceAccount", "OpenTelemetryCollector"]
        collector = manifest["documents"][1]
        assert collector["spec"]["mode"] == "statefulset"
        assert "region: us-west-2" in collector["spec"]["config"]
        assert handle.resources == (
            "serviceaccount/adot-collector-cloudwatch",
            "opentelemetrycollector/adot-collector-cloudwatch",
        )
        assert cluster.lookup("cloudwatch-adot", "collector") == "adot-collector-cloudwatch"

    @pytest.mark.asyncio
    async def test_deploy_requires_region(self, fake_applier):
        """Test the region is a prerequisite."""
        cluster = ClusterHandle.create(name="dev", applier=fake_applier)

        with pytest.raises(DeployError, match="Prerequisites check failed"):
            await CloudWatchAdotAddon().deploy(cluster.for_addon("cloudwatch-adot"))

        assert fake_applier.objects == {}


class TestKarpenterAddon:
    """Test the Karpenter addon."""

    def test_defaults(self):
        """Test documented defaults."""
        addon = KarpenterAddon()

        assert addon.options.namespace == "karpenter"
        assert addon.options.release == "ssp-addon-karpenter"
        assert addon.options.version == "0.5.3"
        assert addon.options.repository == "https://charts.karpenter.sh"

    def test_conflicts_with_cluster_autoscaler(self):
        """Test the declared conflict."""
        descriptor = KarpenterAddon().descriptor()

        assert descriptor.conflicts_with == frozenset({"cluster-autoscaler"})
        assert ClusterAutoscalerAddon().descriptor().conflicts_with == frozenset()

    @pytest.mark.asyncio
    async def test_deploy_chart_only(self, cluster, fake_applier):
        """Test chart values without a default provisioner."""
        await KarpenterAddon().deploy(cluster.for_addon("karpenter"))

        release = fake_applier.release("karpenter", "ssp-addon-karpenter")
        assert release["values"] == {
            "serviceAccount": {"create": False},
            "controller": {
                "clusterEndpoint": "https://test-cluster.example.com",
                "clusterName": "test-cluster",
            },
        }
        assert not any(key[0] == "manifest" for key in fake_applier.objects)

    @pytest.mark.asyncio
    async def test_deploy_default_provisioner(self, fake_applier):
        """Test the provisioner is applied after the chart."""
        cluster = ClusterHandle.create(
            name="dev",
            endpoint="https://dev.example.com",
            applier=fake_applier,
            values={"karpenter_instance_profile": "custom-profile"},
        )
        addon = KarpenterAddon(
            {"default_provisioner_specs": {"node.kubernetes.io/instance-type": ["m5.large"]}}
        )

        handle = await addon.deploy(cluster.for_addon("karpenter"))

        assert [call[0] for call in fake_applier.calls] == ["install_chart", "apply"]
        provisioner = fake_applier.manifest("karpenter", "default-provisioner")["documents"][0]
        assert provisioner["kind"] == "Provisioner"
        assert provisioner["spec"]["requirements"] == [
            {"key": "node.kubernetes.io/instance-type", "operator": "In", "values": ["m5.large"]}
        ]
        assert provisioner["spec"]["provider"]["instanceProfile"] == "custom-profile"
        assert provisioner["spec"]["ttlSecondsAfterEmpty"] == 30
        assert handle.resources == ("provisioner/default",)
        assert cluster.lookup("karpenter", "provisioner") == "default"

    def test_instance_profile_default(self, cluster):
        """Test the instance profile falls back to the cluster name."""
        assert KarpenterAddon().instance_profile(cluster) == "KarpenterNodeInstanceProfile-test-cluster"
        assert cluster.lookup(CLUSTER_SCOPE, "karpenter_instance_profile") is None

    @pytest.mark.asyncio
    async def test_deploy_requires_endpoint(self, fake_applier):
        """Test the cluster endpoint is a prerequisite."""
        cluster = ClusterHandle.create(name="dev", applier=fake_applier)

        with pytest.raises(DeployError, match="Prerequisites check failed for karpenter"):
            await KarpenterAddon().deploy(cluster.for_addon("karpenter"))


class TestClusterAutoscalerAddon:
    """Test the Cluster Autoscaler addon."""

    @pytest.mark.asyncio
    async def test_deploy_values(self, cluster, fake_applier):
        """Test auto-discovery and region values."""
        await ClusterAutoscalerAddon().deploy(cluster.for_addon("cluster-autoscaler"))

        release = fake_applier.release("kube-system", "blueprints-addon-cluster-autoscaler")
        assert release["values"] == {
            "autoDiscovery": {"clusterName": "test-cluster"},
            "awsRegion": "us-west-2",
        }

    def test_values_without_region(self, fake_applier):
        """Test the region is omitted when unknown."""
        cluster = ClusterHandle.create(name="dev", applier=fake_applier)

        assert ClusterAutoscalerAddon().build_values(cluster) == {"autoDiscovery": {"clusterName": "dev"}}
