"""Validation utilities for cluster blueprints."""

import re

_DNS_LABEL = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$")


def validate_dns_label(value: str, what: str = "Name") -> bool:
    """Validate a value follows Kubernetes DNS label conventions.

    Labels must:
    - Be lowercase
    - Start and end with alphanumeric characters
    - Contain only alphanumeric characters and hyphens
    - Be between 1 and 63 characters

    Args:
        value: Value to validate
        what: Human readable name of the value, used in error messages

    Returns:
        True if valid

    Raises:
        ValueError: If value is invalid
    """
    if not value:
        raise ValueError(f"{what} cannot be empty")

    if len(value) > 63:
        raise ValueError(f"{what} must be 63 characters or less")

    if not _DNS_LABEL.match(value):
        raise ValueError(
            f"{what} '{value}' must be lowercase alphanumeric with hyphens, "
            "starting and ending with alphanumeric characters"
        )

    return True


def validate_cluster_name(name: str) -> bool:
    """Validate cluster name follows Kubernetes naming conventions."""
    return validate_dns_label(name, "Cluster name")


def validate_namespace(namespace: str) -> bool:
    """Validate a Kubernetes namespace name."""
    return validate_dns_label(namespace, "Namespace")


def validate_release_name(release: str) -> bool:
    """Validate a Helm release name.

    Helm release names follow DNS label rules but are limited to 53 characters
    because Helm appends suffixes to generated resource names.
    """
    validate_dns_label(release, "Release name")
    if len(release) > 53:
        raise ValueError("Release name must be 53 characters or less")
    return True
