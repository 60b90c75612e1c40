"""Cluster handle shared by every add-on during one orchestration run."""

import copy
import dataclasses
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from blueprints.cluster.applier import ResourceApplier
from blueprints.utils.validation import validate_namespace

logger = logging.getLogger(__name__)

# Scope holding values seeded by the caller rather than published by an add-on
CLUSTER_SCOPE = "cluster"


class _SharedState:
    """Mutable state shared by all views of one ClusterHandle.

    Add-ons may run concurrently (on the event loop or in worker threads), so
    every access goes through the lock.
    """

    def __init__(self, values: dict[str, Any] | None = None):
        self.lock = threading.Lock()
        self.namespaces: set[str] = set()
        self.values: dict[str, dict[str, Any]] = {CLUSTER_SCOPE: dict(values or {})}


@dataclass(frozen=True)
class ClusterHandle:
    """Reference to a target cluster plus shared run metadata.

    Identity fields are read-only. The values bag uses additive namespacing:
    each add-on receives a view scoped to its own id (see ``for_addon``) and
    can only publish into that scope, so concurrent add-ons never write the
    same key. Within a scope the last write wins.

    Attributes:
        name: Cluster name
        endpoint: API server endpoint, when known
        region: Cloud region, when known
        kubeconfig_path: Path to the kubeconfig used by the applier
        applier: ResourceApplier bound to this cluster
        owner: Add-on id this view publishes as (None for the caller's view)
    """

    name: str
    endpoint: str | None = None
    region: str | None = None
    kubeconfig_path: Path | None = None
    applier: ResourceApplier | None = field(default=None, repr=False, compare=False)
    owner: str | None = None
    _state: _SharedState = field(default_factory=_SharedState, repr=False, compare=False)

    @classmethod
    def create(
        cls,
        name: str,
        endpoint: str | None = None,
        region: str | None = None,
        kubeconfig_path: Path | None = None,
        applier: ResourceApplier | None = None,
        values: dict[str, Any] | None = None,
    ) -> "ClusterHandle":
        """Create a handle, seeding the ``cluster`` scope of the values bag."""
        return cls(
            name=name,
            endpoint=endpoint,
            region=region,
            kubeconfig_path=kubeconfig_path,
            applier=applier,
            _state=_SharedState(values),
        )

    def for_addon(self, addon_id: str) -> "ClusterHandle":
        """Return a view of this cluster that publishes into ``addon_id``'s scope.

        Raises:
            ValueError: If ``addon_id`` names the reserved ``cluster`` scope
        """
        if addon_id == CLUSTER_SCOPE:
            raise ValueError(f"Scope '{CLUSTER_SCOPE}' is reserved for caller supplied values")
        return dataclasses.replace(self, owner=addon_id)

    def require_applier(self) -> ResourceApplier:
        """Return the bound applier.

        Raises:
            RuntimeError: If the handle was created without an applier
        """
        if self.applier is None:
            raise RuntimeError(f"Cluster '{self.name}' has no resource applier configured")
        return self.applier

    # Namespace registry

    def register_namespace(self, namespace: str) -> str:
        """Record a namespace used by an add-on and return its name.

        Registering the same namespace twice is a no-op.
        """
        validate_namespace(namespace)
        with self._state.lock:
            self._state.namespaces.add(namespace)
        return namespace

    @property
    def namespaces(self) -> frozenset[str]:
        with self._state.lock:
            return frozenset(self._state.namespaces)

    # Values bag

    def publish(self, key: str, value: Any) -> None:
        """Publish a value into this view's add-on scope.

        Raises:
            PermissionError: If called on a view not scoped to an add-on
        """
        if self.owner is None:
            raise PermissionError("Only add-on scoped cluster views can publish values")
        with self._state.lock:
            self._state.values.setdefault(self.owner, {})[key] = value
        logger.debug(f"[{self.owner}] published '{key}'")

    def lookup(self, scope: str, key: str, default: Any = None) -> Any:
        """Read a value published by ``scope`` (an add-on id or ``cluster``)."""
        with self._state.lock:
            return copy.deepcopy(self._state.values.get(scope, {}).get(key, default))

    def values_for(self, scope: str) -> dict[str, Any]:
        """Return a copy of every value published by ``scope``."""
        with self._state.lock:
            return copy.deepcopy(self._state.values.get(scope, {}))

    @property
    def values(self) -> dict[str, dict[str, Any]]:
        """Snapshot of the whole values bag keyed by scope."""
        with self._state.lock:
            return copy.deepcopy(self._state.values)
