"""Typed configuration options for add-ons.

Every add-on declares a pydantic model whose field defaults are the
documented defaults. Caller overrides are merged shallowly over them: a
nested ``values`` mapping given by the caller replaces the default mapping as
a whole. Unknown keys are rejected.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from blueprints.utils.errors import InvalidConfigError
from blueprints.utils.validation import validate_namespace, validate_release_name


class AddonOptions(BaseModel):
    """Base class for add-on options."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    @classmethod
    def from_overrides(cls, overrides: Mapping[str, Any] | None = None):
        """Build options from documented defaults plus caller overrides.

        Raises:
            InvalidConfigError: If an override is unknown or has the wrong type
        """
        try:
            return cls.model_validate(dict(overrides or {}))
        except ValidationError as e:
            raise InvalidConfigError(f"Invalid options for {cls.__name__}: {e}") from e


class HelmAddonOptions(AddonOptions):
    """Options shared by every Helm chart based add-on.

    Attributes:
        name: Add-on display name
        namespace: Namespace the release is installed into
        chart: Chart name in the repository
        release: Helm release name
        repository: Chart repository URL
        version: Chart version (None installs the latest)
        values: Extra chart values, merged over the add-on's computed values
        create_namespace: Create the namespace if it does not exist
    """

    name: str
    namespace: str
    chart: str
    release: str
    repository: str | None = None
    version: str | None = None
    values: dict[str, Any] = Field(default_factory=dict)
    create_namespace: bool = True

    @field_validator("namespace")
    @classmethod
    def _check_namespace(cls, value: str) -> str:
        validate_namespace(value)
        return value

    @field_validator("release")
    @classmethod
    def _check_release(cls, value: str) -> str:
        validate_release_name(value)
        return value


class DeploymentMode(str, Enum):
    """Workload modes supported by the ADOT collector."""

    DEPLOYMENT = "deployment"
    DAEMONSET = "daemonset"
    STATEFULSET = "statefulset"
    SIDECAR = "sidecar"
