"""AWS Distro for OpenTelemetry (ADOT) operator addon."""

from typing import Any

from blueprints.cluster.addons.base import HelmAddon
from blueprints.cluster.addons.cert_manager import CertManagerAddon
from blueprints.cluster.addons.options import HelmAddonOptions
from blueprints.cluster.handle import ClusterHandle


class AdotCollectorOptions(HelmAddonOptions):
    name: str = "adot"
    namespace: str = "opentelemetry-operator-system"
    chart: str = "opentelemetry-operator"
    release: str = "blueprints-addon-adot"
    repository: str | None = "https://open-telemetry.github.io/opentelemetry-helm-charts"
    version: str | None = None


class AdotCollectorAddon(HelmAddon):
    """Installs the OpenTelemetry operator that manages ADOT collectors.

    Collector add-ons such as CloudWatch ADOT depend on this one.
    """

    addon_id = "adot"
    depends_on = (CertManagerAddon,)
    options_model = AdotCollectorOptions

    def chart_values(self, cluster: ClusterHandle) -> dict[str, Any]:
        return {
            "admissionWebhooks.certManager.enabled": True,
            "manager.collectorImage.repository": "public.ecr.aws/aws-observability/aws-otel-collector",
        }
