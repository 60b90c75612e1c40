"""CloudWatch ADOT collector addon.

Deploys an AWS Distro for OpenTelemetry (ADOT) Collector for CloudWatch,
which receives metrics from applications and forwards them to CloudWatch.
The collector can run as a deployment, daemonset, statefulset or sidecar.
"""

from pydantic import field_validator

from blueprints.cluster.addons.adot import AdotCollectorAddon
from blueprints.cluster.addons.base import BaseAddon
from blueprints.cluster.addons.options import AddonOptions, DeploymentMode
from blueprints.cluster.applier import ResourceHandle
from blueprints.cluster.handle import ClusterHandle
from blueprints.utils.validation import validate_namespace


class CloudWatchAdotOptions(AddonOptions):
    """Configuration options for the CloudWatch ADOT collector.

    Attributes:
        deployment_mode: Collector workload mode (default: deployment)
        namespace: Namespace to deploy the collector into (default: default)
        name: Collector name (default: adot-collector-cloudwatch)
    """

    deployment_mode: DeploymentMode = DeploymentMode.DEPLOYMENT
    namespace: str = "default"
    name: str = "adot-collector-cloudwatch"

    @field_validator("namespace")
    @classmethod
    def _check_namespace(cls, value: str) -> str:
        validate_namespace(value)
        return value


class CloudWatchAdotAddon(BaseAddon):
    """Applies the CloudWatch collector manifest rendered from a template."""

    addon_id = "cloudwatch-adot"
    depends_on = (AdotCollectorAddon,)
    options_model = CloudWatchAdotOptions
    options: CloudWatchAdotOptions

    TEMPLATE = "collector-config-cloudwatch.yaml.j2"

    async def check_prerequisites(self, cluster: ClusterHandle) -> bool:
        if not cluster.region:
            self.log_error("Cluster region is required to export metrics to CloudWatch")
            return False
        return True

    async def install(self, cluster: ClusterHandle) -> ResourceHandle:
        options = self.options
        namespace = cluster.register_namespace(options.namespace)
        documents = self.renderer.render(
            self.TEMPLATE,
            {
                "awsRegion": cluster.region,
                "deploymentMode": options.deployment_mode.value,
                "namespace": namespace,
                "clusterName": cluster.name,
                "name": options.name,
            },
        )
        handle = await cluster.require_applier().apply(options.name, namespace, documents)
        cluster.publish("collector", options.name)
        return handle
