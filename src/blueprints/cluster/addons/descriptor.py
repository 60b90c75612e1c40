"""Add-on descriptors and deployment outcomes.

A descriptor is the unit of work the resolver and engine operate on. All
graph relevant facts (dependencies and conflicts) are plain fields, filled in
when the add-on is registered.
"""

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeAlias

from blueprints.cluster.handle import CLUSTER_SCOPE, ClusterHandle

AddonId: TypeAlias = str

DeployCallable: TypeAlias = Callable[[ClusterHandle], Awaitable[Any] | Any]


def addon_id_of(ref: Any) -> AddonId:
    """Normalize an add-on reference (id string or add-on class) to its id.

    Raises:
        TypeError: If ref is neither a string nor an add-on class
    """
    if isinstance(ref, str):
        return ref
    get_id = getattr(ref, "get_addon_id", None)
    if callable(get_id):
        return get_id()
    raise TypeError(f"Cannot reference add-on by {ref!r}; use an add-on class or id string")


@dataclass(frozen=True)
class AddonDescriptor:
    """Immutable description of one add-on for an orchestration run.

    Attributes:
        id: Unique add-on id
        deploy: Callable taking a ClusterHandle and returning a resource
            handle; may be a coroutine function. Raises DeployError on failure.
        depends_on: Ids that must deploy successfully before this one starts
        conflicts_with: Ids that must never be deployed in the same run
    """

    id: AddonId
    deploy: DeployCallable = field(compare=False, repr=False)
    depends_on: frozenset[AddonId] = frozenset()
    conflicts_with: frozenset[AddonId] = frozenset()

    def __post_init__(self) -> None:
        if not self.id or not isinstance(self.id, str):
            raise ValueError("Add-on id must be a non-empty string")
        if self.id == CLUSTER_SCOPE:
            raise ValueError(f"Add-on id '{CLUSTER_SCOPE}' is reserved for caller supplied values")
        if not callable(self.deploy):
            raise TypeError(f"Add-on '{self.id}' deploy must be callable")
        object.__setattr__(self, "depends_on", _normalize(self.depends_on))
        object.__setattr__(self, "conflicts_with", _normalize(self.conflicts_with))
        if self.id in self.conflicts_with:
            raise ValueError(f"Add-on '{self.id}' cannot conflict with itself")


def _normalize(refs: Iterable[Any]) -> frozenset[AddonId]:
    if isinstance(refs, str):
        refs = (refs,)
    return frozenset(addon_id_of(ref) for ref in refs)


class OutcomeStatus(str, Enum):
    """Terminal state of one add-on in a run."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class DeploymentOutcome:
    """Result of one add-on's deploy step.

    Attributes:
        addon_id: Add-on id
        status: Terminal status
        resource: Handle returned by deploy (succeeded only)
        error: Exception raised by deploy (failed only)
        reason: Human readable skip or failure reason
        blocked_by: Dependency ids whose outcome caused a skip
        duration: Seconds spent in deploy (0 for skipped add-ons)
    """

    addon_id: AddonId
    status: OutcomeStatus
    resource: Any = None
    error: BaseException | None = field(default=None, compare=False)
    reason: str | None = None
    blocked_by: tuple[AddonId, ...] = ()
    duration: float = 0.0

    @classmethod
    def succeeded(cls, addon_id: AddonId, resource: Any, duration: float = 0.0) -> "DeploymentOutcome":
        return cls(addon_id, OutcomeStatus.SUCCEEDED, resource=resource, duration=duration)

    @classmethod
    def failed(cls, addon_id: AddonId, error: BaseException, duration: float = 0.0) -> "DeploymentOutcome":
        return cls(addon_id, OutcomeStatus.FAILED, error=error, reason=str(error), duration=duration)

    @classmethod
    def skipped(
        cls, addon_id: AddonId, reason: str, blocked_by: Iterable[AddonId] = ()
    ) -> "DeploymentOutcome":
        return cls(addon_id, OutcomeStatus.SKIPPED, reason=reason, blocked_by=tuple(blocked_by))

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCEEDED


class RunStatus(str, Enum):
    """Overall status of an orchestration run."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class RunReport:
    """Aggregated outcomes of one ``deploy_all`` call.

    Callers decide whether failed or skipped entries matter to them; the
    overall status is SUCCEEDED only when every add-on succeeded.
    """

    outcomes: tuple[DeploymentOutcome, ...]
    cancelled: bool = False

    @property
    def overall_status(self) -> RunStatus:
        if self.cancelled:
            return RunStatus.CANCELLED
        if all(o.ok for o in self.outcomes):
            return RunStatus.SUCCEEDED
        return RunStatus.FAILED

    @property
    def success(self) -> bool:
        return self.overall_status is RunStatus.SUCCEEDED

    def outcome(self, addon_id: AddonId) -> DeploymentOutcome:
        """Return the outcome for an add-on.

        Raises:
            KeyError: If the add-on was not part of the run
        """
        for outcome in self.outcomes:
            if outcome.addon_id == addon_id:
                return outcome
        raise KeyError(addon_id)

    def _ids(self, status: OutcomeStatus) -> list[AddonId]:
        return [o.addon_id for o in self.outcomes if o.status is status]

    @property
    def succeeded(self) -> list[AddonId]:
        return self._ids(OutcomeStatus.SUCCEEDED)

    @property
    def failed(self) -> list[AddonId]:
        return self._ids(OutcomeStatus.FAILED)

    @property
    def skipped(self) -> list[AddonId]:
        return self._ids(OutcomeStatus.SKIPPED)

    @property
    def message(self) -> str:
        """One line summary, e.g. "Addons: 1/2 succeeded, 1 failed: b"."""
        if not self.outcomes:
            return "No addons specified"
        message = f"Addons: {len(self.succeeded)}/{len(self.outcomes)} succeeded"
        if self.failed:
            message += f", {len(self.failed)} failed: {', '.join(self.failed)}"
        if self.skipped:
            message += f", {len(self.skipped)} skipped: {', '.join(self.skipped)}"
        if self.cancelled:
            message += " (run cancelled)"
        return message

    def to_dict(self) -> dict[str, Any]:
        """Serializable summary of the run."""
        return {
            "success": self.success,
            "status": self.overall_status.value,
            "message": self.message,
            "results": {
                o.addon_id: {
                    "status": o.status.value,
                    "resource": str(o.resource) if o.resource is not None else None,
                    "reason": o.reason,
                    "blocked_by": list(o.blocked_by),
                    "duration": o.duration,
                }
                for o in self.outcomes
            },
            "failed": self.failed,
            "skipped": self.skipped,
        }
