"""Kubernetes Cluster Autoscaler addon."""

from typing import Any

from blueprints.cluster.addons.base import HelmAddon
from blueprints.cluster.addons.options import HelmAddonOptions
from blueprints.cluster.handle import ClusterHandle


class ClusterAutoscalerOptions(HelmAddonOptions):
    name: str = "cluster-autoscaler"
    namespace: str = "kube-system"
    chart: str = "cluster-autoscaler"
    release: str = "blueprints-addon-cluster-autoscaler"
    repository: str | None = "https://kubernetes.github.io/autoscaler"
    version: str | None = "9.37.0"


class ClusterAutoscalerAddon(HelmAddon):
    """Installs the Cluster Autoscaler configured for node group auto-discovery.

    Mutually exclusive with Karpenter; the conflict is declared on
    KarpenterAddon and checked in both directions.
    """

    addon_id = "cluster-autoscaler"
    options_model = ClusterAutoscalerOptions

    def chart_values(self, cluster: ClusterHandle) -> dict[str, Any]:
        values: dict[str, Any] = {"autoDiscovery.clusterName": cluster.name}
        if cluster.region:
            values["awsRegion"] = cluster.region
        return values
