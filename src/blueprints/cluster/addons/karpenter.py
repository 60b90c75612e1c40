"""Karpenter node provisioning addon."""

import dataclasses
from typing import Any

from blueprints.cluster.addons.base import HelmAddon
from blueprints.cluster.addons.cluster_autoscaler import ClusterAutoscalerAddon
from blueprints.cluster.addons.options import HelmAddonOptions
from blueprints.cluster.applier import ResourceHandle
from blueprints.cluster.handle import CLUSTER_SCOPE, ClusterHandle
from blueprints.cluster.render import convert_to_spec

KARPENTER = "karpenter"


class KarpenterOptions(HelmAddonOptions):
    """Configuration options for Karpenter.

    Attributes:
        default_provisioner_specs: Label -> allowed values map for a default
            Provisioner (e.g. {"node.kubernetes.io/instance-type": ["m5.large"]}).
            No Provisioner is created when unset.
        ttl_seconds_after_empty: Scale-down delay for empty nodes of the default Provisioner
    """

    name: str = KARPENTER
    namespace: str = KARPENTER
    chart: str = KARPENTER
    release: str = "ssp-addon-karpenter"
    repository: str | None = "https://charts.karpenter.sh"
    version: str | None = "0.5.3"
    default_provisioner_specs: dict[str, list[str]] | None = None
    ttl_seconds_after_empty: int = 30


class KarpenterAddon(HelmAddon):
    """Installs the Karpenter controller and an optional default Provisioner.

    The node role and instance profile are created outside this add-on; the
    instance profile name is read from the ``karpenter_instance_profile`` key
    of the cluster scope, falling back to ``KarpenterNodeInstanceProfile-<cluster>``.
    """

    addon_id = KARPENTER
    conflicts_with = (ClusterAutoscalerAddon,)
    options_model = KarpenterOptions
    options: KarpenterOptions

    PROVISIONER_TEMPLATE = "karpenter-provisioner.yaml.j2"

    async def check_prerequisites(self, cluster: ClusterHandle) -> bool:
        if not cluster.endpoint:
            self.log_error("Cluster endpoint is required by the Karpenter controller")
            return False
        return True

    def chart_values(self, cluster: ClusterHandle) -> dict[str, Any]:
        # Service account is provisioned together with its IAM role elsewhere
        return {
            "serviceAccount.create": False,
            "controller.clusterEndpoint": cluster.endpoint,
            "controller.clusterName": cluster.name,
        }

    def instance_profile(self, cluster: ClusterHandle) -> str:
        return cluster.lookup(
            CLUSTER_SCOPE,
            "karpenter_instance_profile",
            f"KarpenterNodeInstanceProfile-{cluster.name}",
        )

    async def install(self, cluster: ClusterHandle) -> ResourceHandle:
        chart = await super().install(cluster)
        if not self.options.default_provisioner_specs:
            return chart

        # The Provisioner CRD ships with the chart, so apply after it
        documents = self.renderer.render(
            self.PROVISIONER_TEMPLATE,
            {
                "name": "default",
                "requirements": convert_to_spec(self.options.default_provisioner_specs),
                "instanceProfile": self.instance_profile(cluster),
                "ttlSecondsAfterEmpty": self.options.ttl_seconds_after_empty,
            },
        )
        provisioner = await cluster.require_applier().apply(
            "default-provisioner", self.options.namespace, documents
        )
        cluster.publish("provisioner", "default")
        self.log_info("Default provisioner applied")
        return dataclasses.replace(chart, resources=chart.resources + provisioner.resources)
