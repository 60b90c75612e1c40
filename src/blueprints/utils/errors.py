"""Custom exception classes for cluster blueprints."""


class BlueprintsError(Exception):
    """Base exception for cluster blueprints errors."""

    pass


class ConfigurationError(BlueprintsError):
    """Raised when configuration is invalid or missing."""

    pass


class ConfigFileNotFoundError(ConfigurationError):
    """Raised when an add-on configuration file cannot be found."""

    pass


class InvalidConfigError(ConfigurationError):
    """Raised when a configuration file is invalid or malformed."""

    pass


class RegistrationError(BlueprintsError):
    """Raised when an add-on cannot be registered."""

    pass


class DuplicateAddonError(RegistrationError):
    """Raised when an add-on id is registered twice without replace=True."""

    def __init__(self, addon_id: str):
        self.addon_id = addon_id
        super().__init__(
            f"Add-on '{addon_id}' is already registered. "
            "Pass replace=True to overwrite the existing registration."
        )


class ResolutionError(BlueprintsError):
    """Raised when the registered add-ons do not form a deployable plan.

    Always raised before any add-on is deployed.
    """

    kind = "resolution"


class UnknownDependencyError(ResolutionError):
    """Raised when an add-on references an id that is not known."""

    kind = "unknown-dependency"

    def __init__(self, addon_id: str, reference: str, relation: str = "depends on"):
        self.addon_id = addon_id
        self.reference = reference
        self.relation = relation
        super().__init__(f"Add-on '{addon_id}' {relation} unknown add-on '{reference}'")


class CyclicDependencyError(ResolutionError):
    """Raised when depends_on relationships form a cycle."""

    kind = "cyclic-dependency"

    def __init__(self, cycle: list[str]):
        self.cycle = tuple(cycle)
        path = " -> ".join(list(cycle) + [cycle[0]])
        super().__init__(f"Cyclic add-on dependency: {path}")

    @property
    def members(self) -> frozenset[str]:
        return frozenset(self.cycle)


class ConflictingAddonsError(ResolutionError):
    """Raised when two registered add-ons are declared incompatible."""

    kind = "conflicting-addons"

    def __init__(self, pairs: list[tuple[str, str]]):
        self.pairs = tuple(pairs)
        self.addon_a, self.addon_b = self.pairs[0]
        described = ", ".join(f"'{a}' and '{b}'" for a, b in self.pairs)
        super().__init__(f"Conflicting add-ons registered together: {described}")


class DeployError(BlueprintsError):
    """Raised by an add-on when its deployment fails.

    Caught per add-on by the orchestration engine and recorded as a failed
    outcome; never aborts the whole run.
    """

    pass


class RenderError(DeployError):
    """Raised when a manifest template cannot be rendered."""

    pass


class ApplyError(DeployError):
    """Raised when rendered documents cannot be applied to the cluster."""

    pass


class HelmCommandError(ApplyError):
    """Raised when a helm CLI command fails."""

    pass


class KubectlCommandError(ApplyError):
    """Raised when a kubectl CLI command fails."""

    pass
