"""Unit tests for error classes."""

import pytest

from blueprints.utils.errors import (
    ApplyError,
    BlueprintsError,
    ConfigFileNotFoundError,
    ConfigurationError,
    ConflictingAddonsError,
    CyclicDependencyError,
    DeployError,
    DuplicateAddonError,
    HelmCommandError,
    KubectlCommandError,
    RegistrationError,
    RenderError,
    ResolutionError,
    UnknownDependencyError,
)


class TestErrorClasses:
    """Test custom error classes."""

    def test_configuration_error(self):
        """Test ConfigurationError."""
        error = ConfigurationError("Test config error")
        assert str(error) == "Test config error"
        assert isinstance(error, BlueprintsError)

    def test_config_file_not_found_is_configuration_error(self):
        """Test ConfigFileNotFoundError."""
        assert issubclass(ConfigFileNotFoundError, ConfigurationError)

    def test_duplicate_addon_error(self):
        """Test DuplicateAddonError."""
        error = DuplicateAddonError("ingress-nginx")
        assert error.addon_id == "ingress-nginx"
        assert "already registered" in str(error)
        assert "replace=True" in str(error)
        assert isinstance(error, RegistrationError)

    def test_unknown_dependency_error(self):
        """Test UnknownDependencyError."""
        error = UnknownDependencyError("adot", "cert-manager")
        assert str(error) == "Add-on 'adot' depends on unknown add-on 'cert-manager'"
        assert error.kind == "unknown-dependency"
        assert isinstance(error, ResolutionError)

    def test_cyclic_dependency_error(self):
        """Test CyclicDependencyError."""
        error = CyclicDependencyError(["a", "b"])
        assert error.cycle == ("a", "b")
        assert error.members == frozenset({"a", "b"})
        assert str(error) == "Cyclic add-on dependency: a -> b -> a"

    def test_conflicting_addons_error(self):
        """Test ConflictingAddonsError."""
        error = ConflictingAddonsError([("b", "c"), ("x", "y")])
        assert (error.addon_a, error.addon_b) == ("b", "c")
        assert error.pairs == (("b", "c"), ("x", "y"))
        assert "'b' and 'c'" in str(error)
        assert "'x' and 'y'" in str(error)

    @pytest.mark.parametrize(
        "error_class",
        [RenderError, ApplyError, HelmCommandError, KubectlCommandError],
    )
    def test_deploy_errors(self, error_class):
        """Test deploy time errors share DeployError."""
        error = error_class("Command failed")
        assert str(error) == "Command failed"
        assert isinstance(error, DeployError)

    def test_command_errors_are_apply_errors(self):
        """Test CLI failures are apply failures."""
        assert issubclass(HelmCommandError, ApplyError)
        assert issubclass(KubectlCommandError, ApplyError)
