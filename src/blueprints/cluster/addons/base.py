"""Base addon classes for all cluster add-ons."""

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar

from blueprints.cluster.addons.descriptor import AddonDescriptor
from blueprints.cluster.addons.options import AddonOptions, HelmAddonOptions
from blueprints.cluster.applier import ResourceHandle
from blueprints.cluster.handle import ClusterHandle
from blueprints.cluster.render import ManifestRenderer, TemplateRenderer, set_path
from blueprints.utils.errors import DeployError

logger = logging.getLogger(__name__)


class BaseAddon(ABC):
    """Abstract base class for cluster add-ons.

    Subclasses declare their relationships as class attributes, referencing
    other add-ons by class or by id:

        class CloudWatchAdotAddon(BaseAddon):
            depends_on = (AdotCollectorAddon,)

        class KarpenterAddon(HelmAddon):
            conflicts_with = (ClusterAutoscalerAddon,)

    ``descriptor()`` turns those declarations into an AddonDescriptor when the
    add-on is registered.
    """

    addon_id: ClassVar[str] = ""
    depends_on: ClassVar[tuple[Any, ...]] = ()
    conflicts_with: ClassVar[tuple[Any, ...]] = ()
    options_model: ClassVar[type[AddonOptions]] = AddonOptions

    def __init__(
        self, config: dict[str, Any] | None = None, renderer: ManifestRenderer | None = None
    ):
        """Initialize addon.

        Args:
            config: Optional option overrides, merged over the documented defaults
            renderer: Manifest renderer (default: built-in template renderer)

        Raises:
            InvalidConfigError: If config contains unknown or invalid options
        """
        self.config = dict(config or {})
        self.options = self.options_model.from_overrides(self.config)
        self.renderer = renderer or TemplateRenderer()
        self.addon_name = self.get_addon_id()

    @classmethod
    def get_addon_id(cls) -> str:
        """Return the add-on id (class name without "Addon", lowercased, by default)."""
        return cls.addon_id or cls.__name__.replace("Addon", "").lower()

    def descriptor(self) -> AddonDescriptor:
        """Describe this add-on for the resolver and orchestration engine."""
        return AddonDescriptor(
            id=self.addon_name,
            deploy=self.deploy,
            depends_on=frozenset(self.depends_on),
            conflicts_with=frozenset(self.conflicts_with),
        )

    def log_info(self, message: str) -> None:
        """Log info message with addon prefix."""
        logger.info(f"[{self.addon_name}] {message}")

    def log_warn(self, message: str) -> None:
        """Log warning message with addon prefix."""
        logger.warning(f"[{self.addon_name}] {message}")

    def log_error(self, message: str) -> None:
        """Log error message with addon prefix."""
        logger.error(f"[{self.addon_name}] {message}")

    async def check_prerequisites(self, cluster: ClusterHandle) -> bool:
        """Check if prerequisites for deployment are met.

        Returns:
            True if prerequisites are met, False otherwise
        """
        return True

    @abstractmethod
    async def install(self, cluster: ClusterHandle) -> ResourceHandle:
        """Render and apply the add-on.

        Must be idempotent: applying the same add-on twice updates the
        existing resources instead of creating duplicates.

        Returns:
            Handle for the created resources

        Raises:
            DeployError: If rendering or applying fails
        """

    async def wait_for_ready(self, cluster: ClusterHandle, timeout: int = 120) -> bool:
        """Wait for addon to be ready.

        Returns:
            True if addon became ready, False otherwise
        """
        # Default implementation - subclasses can override
        return True

    async def verify(self, cluster: ClusterHandle) -> bool:
        """Verify addon is functioning correctly.

        Returns:
            True if addon is verified, False otherwise
        """
        # Default implementation - subclasses can override
        return True

    async def deploy(self, cluster: ClusterHandle) -> ResourceHandle:
        """Run the complete deployment flow.

        check_prerequisites -> install -> wait_for_ready -> verify

        Raises:
            DeployError: If any step fails
        """
        self.log_info(f"Starting deployment to cluster '{cluster.name}'")

        if not await self.check_prerequisites(cluster):
            raise DeployError(f"Prerequisites check failed for {self.addon_name}")

        resource = await self.install(cluster)

        if not await self.wait_for_ready(cluster):
            self.log_warn("Addon installed but not ready within timeout")
            raise DeployError(f"Timeout waiting for {self.addon_name} to be ready")

        if not await self.verify(cluster):
            self.log_warn("Addon verification failed")
            raise DeployError(f"{self.addon_name} verification failed")

        self.log_info("Deployment completed successfully")
        return resource


class HelmAddon(BaseAddon):
    """Add-on installed from a Helm chart.

    Subclasses provide an options model with chart defaults and override
    ``chart_values`` to compute values from the cluster. Caller supplied
    ``values`` are applied last so they can override computed ones.
    """

    options_model: ClassVar[type[AddonOptions]] = HelmAddonOptions
    options: HelmAddonOptions

    def chart_values(self, cluster: ClusterHandle) -> dict[str, Any]:
        """Compute chart values for the cluster (dotted keys allowed)."""
        return {}

    def build_values(self, cluster: ClusterHandle) -> dict[str, Any]:
        """Expand computed values into a nested mapping and merge overrides."""
        values: dict[str, Any] = {}
        for path, value in self.chart_values(cluster).items():
            set_path(values, path, value)
        for path, value in self.options.values.items():
            set_path(values, path, value)
        return values

    async def install(self, cluster: ClusterHandle) -> ResourceHandle:
        options = self.options
        namespace = cluster.register_namespace(options.namespace)
        handle = await cluster.require_applier().install_chart(
            release=options.release,
            chart=options.chart,
            namespace=namespace,
            values=self.build_values(cluster),
            version=options.version,
            repository=options.repository,
            create_namespace=options.create_namespace,
        )
        cluster.publish("release", options.release)
        cluster.publish("namespace", namespace)
        return handle
