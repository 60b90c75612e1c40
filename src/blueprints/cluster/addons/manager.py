"""Addon manager for orchestrating addon installations."""

import logging
from typing import Any

from blueprints.cluster.addons.adot import AdotCollectorAddon
from blueprints.cluster.addons.base import BaseAddon
from blueprints.cluster.addons.cert_manager import CertManagerAddon
from blueprints.cluster.addons.cloudwatch_adot import CloudWatchAdotAddon
from blueprints.cluster.addons.cluster_autoscaler import ClusterAutoscalerAddon
from blueprints.cluster.addons.descriptor import AddonDescriptor, AddonId, RunReport
from blueprints.cluster.addons.engine import CancellationToken, Orchestrator
from blueprints.cluster.addons.ingress_nginx import IngressNginxAddon
from blueprints.cluster.addons.karpenter import KarpenterAddon
from blueprints.cluster.addons.resolver import DependencyGraph
from blueprints.cluster.handle import ClusterHandle
from blueprints.utils.errors import DuplicateAddonError

logger = logging.getLogger(__name__)

BUILTIN_ADDONS: tuple[type[BaseAddon], ...] = (
    AdotCollectorAddon,
    CertManagerAddon,
    CloudWatchAdotAddon,
    ClusterAutoscalerAddon,
    IngressNginxAddon,
    KarpenterAddon,
)


class AddonManager:
    """Registers add-ons and deploys them in dependency order.

    Registration is the only mutable phase. ``deploy_all`` resolves the whole
    registered set first; any resolution error is raised before a single
    add-on touches the cluster.
    """

    def __init__(self, max_concurrency: int = 4):
        """Initialize addon manager.

        Args:
            max_concurrency: Maximum number of add-ons deployed at once
        """
        self.orchestrator = Orchestrator(max_concurrency=max_concurrency)
        self._registry: dict[AddonId, AddonDescriptor] = {}
        self._addon_catalog: dict[str, type[BaseAddon]] = {}
        self._register_builtin_addons()

    def _register_builtin_addons(self) -> None:
        """Register available built-in addons and their aliases."""
        for addon_class in BUILTIN_ADDONS:
            self._addon_catalog[addon_class.get_addon_id()] = addon_class
        self._addon_catalog.update(
            {
                "ingress": IngressNginxAddon,
                "nginx": IngressNginxAddon,
                "autoscaler": ClusterAutoscalerAddon,
                "cloudwatch": CloudWatchAdotAddon,
            }
        )

    def _validate_addon_name(self, name: str) -> str:
        """Validate and normalize addon name.

        Raises:
            ValueError: If addon name is not in the catalog
        """
        name_lower = name.lower().strip()
        if name_lower not in self._addon_catalog:
            available = ", ".join(sorted(self._addon_catalog))
            raise ValueError(f"Unknown addon: '{name}'. Available addons: {available}")
        return name_lower

    def get_addon_instance(self, name: str, config: dict[str, Any] | None = None) -> BaseAddon:
        """Instantiate a built-in addon by name or alias.

        Raises:
            ValueError: If addon name is invalid
            InvalidConfigError: If config contains invalid options
        """
        addon_class = self._addon_catalog[self._validate_addon_name(name)]
        return addon_class(config)

    @property
    def catalog(self) -> dict[str, type[BaseAddon]]:
        """Built-in addon classes by name and alias."""
        return dict(self._addon_catalog)

    @property
    def known_ids(self) -> frozenset[AddonId]:
        """Ids that may be referenced by ``conflicts_with``."""
        catalog_ids = {addon_class.get_addon_id() for addon_class in self._addon_catalog.values()}
        return frozenset(catalog_ids | set(self._registry))

    @property
    def registered(self) -> list[AddonId]:
        """Registered add-on ids in registration order."""
        return list(self._registry)

    def register(self, addon: BaseAddon | AddonDescriptor, *, replace: bool = False) -> AddonDescriptor:
        """Register an add-on for the next run.

        Args:
            addon: Add-on instance or a ready-made descriptor
            replace: Overwrite an existing registration with the same id

        Returns:
            The registered descriptor

        Raises:
            DuplicateAddonError: If the id is already registered and replace is False
        """
        descriptor = addon.descriptor() if isinstance(addon, BaseAddon) else addon
        if descriptor.id in self._registry:
            if not replace:
                raise DuplicateAddonError(descriptor.id)
            logger.info(f"Replacing registration for add-on '{descriptor.id}'")
        self._registry[descriptor.id] = descriptor
        logger.debug(f"Registered add-on '{descriptor.id}'")
        return descriptor

    def add(self, name: str, config: dict[str, Any] | None = None, *, replace: bool = False) -> AddonDescriptor:
        """Instantiate a built-in addon by name and register it."""
        return self.register(self.get_addon_instance(name, config), replace=replace)

    def add_many(
        self, addon_names: list[str], configs: dict[str, dict[str, Any]] | None = None
    ) -> list[AddonDescriptor]:
        """Register several built-in addons, deduplicating aliases.

        Args:
            addon_names: Addon names or aliases
            configs: Optional addon-specific option overrides keyed by name or alias

        Raises:
            ValueError: If any name is unknown (nothing is registered in that case)
        """
        configs = configs or {}
        instances: dict[AddonId, BaseAddon] = {}
        for name in addon_names:
            normalized = self._validate_addon_name(name)
            addon_class = self._addon_catalog[normalized]
            addon_id = addon_class.get_addon_id()
            if addon_id in instances:
                continue
            config = configs.get(name) or configs.get(normalized) or configs.get(addon_id)
            instances[addon_id] = addon_class(config)
        return [self.register(addon) for addon in instances.values()]

    def graph(self) -> DependencyGraph:
        """Validate the registered set and return its dependency graph.

        Raises:
            ResolutionError: If the registered add-ons cannot be deployed together
        """
        return DependencyGraph.build(self._registry.values(), self.known_ids)

    def plan(self) -> list[AddonId]:
        """Return the deployment order without deploying anything."""
        return self.graph().order()

    async def deploy_all(self, cluster: ClusterHandle, timeout: float | None = None) -> RunReport:
        """Resolve and deploy every registered add-on.

        Args:
            cluster: Target cluster
            timeout: Seconds after which no further add-ons are started

        Returns:
            RunReport with one outcome per registered add-on

        Raises:
            ResolutionError: If the plan is invalid (nothing is deployed)
        """
        order = self.plan()
        if not order:
            return RunReport(outcomes=())

        logger.info(f"Deploying {len(order)} addon(s) to '{cluster.name}': {', '.join(order)}")
        token = CancellationToken()
        outcomes = await self.orchestrator.run(order, self._registry, cluster, timeout=timeout, token=token)
        report = RunReport(outcomes=tuple(outcomes), cancelled=token.cancelled)

        if report.success:
            logger.info(report.message)
        else:
            logger.warning(report.message)
        return report
