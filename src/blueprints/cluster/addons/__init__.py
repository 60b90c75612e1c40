"""Cluster add-on management for cluster blueprints.

This module provides the add-on contract, the dependency resolver and the
orchestration engine that deploys registered add-ons to a cluster.
"""

from blueprints.cluster.addons.adot import AdotCollectorAddon
from blueprints.cluster.addons.base import BaseAddon, HelmAddon
from blueprints.cluster.addons.cert_manager import CertManagerAddon
from blueprints.cluster.addons.cloudwatch_adot import CloudWatchAdotAddon
from blueprints.cluster.addons.cluster_autoscaler import ClusterAutoscalerAddon
from blueprints.cluster.addons.descriptor import (
    AddonDescriptor,
    AddonId,
    DeploymentOutcome,
    OutcomeStatus,
    RunReport,
    RunStatus,
)
from blueprints.cluster.addons.engine import CancellationToken, Orchestrator
from blueprints.cluster.addons.ingress_nginx import IngressNginxAddon
from blueprints.cluster.addons.karpenter import KarpenterAddon
from blueprints.cluster.addons.manager import AddonManager
from blueprints.cluster.addons.options import AddonOptions, DeploymentMode, HelmAddonOptions
from blueprints.cluster.addons.resolver import DependencyGraph, resolve

__all__ = [
    "AddonDescriptor",
    "AddonId",
    "AddonManager",
    "AddonOptions",
    "AdotCollectorAddon",
    "BaseAddon",
    "CancellationToken",
    "CertManagerAddon",
    "CloudWatchAdotAddon",
    "ClusterAutoscalerAddon",
    "DependencyGraph",
    "DeploymentMode",
    "DeploymentOutcome",
    "HelmAddon",
    "HelmAddonOptions",
    "IngressNginxAddon",
    "KarpenterAddon",
    "Orchestrator",
    "OutcomeStatus",
    "RunReport",
    "RunStatus",
    "resolve",
]
