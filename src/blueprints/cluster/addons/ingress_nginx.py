"""NGINX Ingress Controller addon."""

from typing import Any

from blueprints.cluster.addons.base import HelmAddon
from blueprints.cluster.addons.options import HelmAddonOptions
from blueprints.cluster.handle import ClusterHandle


class IngressNginxOptions(HelmAddonOptions):
    """Options for the NGINX Ingress Controller.

    Defaults: chart ingress-nginx 4.13.2 from the upstream repository,
    installed into kube-system.
    """

    name: str = "ingress-nginx"
    namespace: str = "kube-system"
    chart: str = "ingress-nginx"
    release: str = "ingress-nginx"
    repository: str | None = "https://kubernetes.github.io/ingress-nginx"
    version: str | None = "4.13.2"
    ingress_class: str = "nginx"


class IngressNginxAddon(HelmAddon):
    """NGINX Ingress Controller addon.

    Installs the controller using Helm and waits for the controller
    deployment to report available. Publishes ``ingress_class`` so that
    dependent add-ons can annotate their Ingress objects.
    """

    addon_id = "ingress-nginx"
    options_model = IngressNginxOptions
    options: IngressNginxOptions

    DEPLOYMENT_NAME = "ingress-nginx-controller"

    def chart_values(self, cluster: ClusterHandle) -> dict[str, Any]:
        return {
            "controller.ingressClassResource.name": self.options.ingress_class,
            "controller.updateStrategy.type": "RollingUpdate",
            "controller.updateStrategy.rollingUpdate.maxUnavailable": 1,
        }

    async def install(self, cluster: ClusterHandle):
        handle = await super().install(cluster)
        cluster.publish("ingress_class", self.options.ingress_class)
        return handle

    async def wait_for_ready(self, cluster: ClusterHandle, timeout: int = 120) -> bool:
        """Wait for the controller deployment to become available."""
        self.log_info("Waiting for NGINX Ingress Controller to be ready")
        ready = await cluster.require_applier().wait_ready(
            f"deployment/{self.DEPLOYMENT_NAME}", self.options.namespace, timeout
        )
        if ready:
            self.log_info("NGINX Ingress Controller is ready")
        return ready
