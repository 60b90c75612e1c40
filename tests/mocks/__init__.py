"""Test doubles for cluster blueprints."""

from tests.mocks.fake_applier import FakeApplier

__all__ = ["FakeApplier"]
