"""cert-manager addon."""

from typing import Any

from blueprints.cluster.addons.base import HelmAddon
from blueprints.cluster.addons.options import HelmAddonOptions
from blueprints.cluster.handle import ClusterHandle


class CertManagerOptions(HelmAddonOptions):
    name: str = "cert-manager"
    namespace: str = "cert-manager"
    chart: str = "cert-manager"
    release: str = "blueprints-addon-cert-manager"
    repository: str | None = "https://charts.jetstack.io"
    version: str | None = "v1.15.3"


class CertManagerAddon(HelmAddon):
    """Installs cert-manager with its CRDs.

    Required by add-ons that rely on admission webhooks with issued
    certificates (e.g. the ADOT operator).
    """

    addon_id = "cert-manager"
    options_model = CertManagerOptions

    def chart_values(self, cluster: ClusterHandle) -> dict[str, Any]:
        return {"crds.enabled": True}

    async def wait_for_ready(self, cluster: ClusterHandle, timeout: int = 120) -> bool:
        # The webhook must be serving before dependents create Certificates
        return await cluster.require_applier().wait_ready(
            "deployment/cert-manager-webhook", self.options.namespace, timeout
        )
