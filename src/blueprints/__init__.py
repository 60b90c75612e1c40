"""Dependency-aware Kubernetes add-on installer.

Registers cluster add-ons, resolves their dependencies and conflicts into a
deployment order and deploys them with failure isolation.
"""

from importlib.metadata import PackageNotFoundError, version

# Read version from package metadata with fallback
try:
    __version__ = version("cluster-blueprints")
except PackageNotFoundError:
    # Fallback for development/testing environments
    __version__ = "0.1.0"

__all__ = [
    "__version__",
]
