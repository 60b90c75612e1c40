"""Tests for table rendering."""

from rich.console import Console

from blueprints.cluster.addons.descriptor import DeploymentOutcome, RunReport
from blueprints.cluster.addons.manager import AddonManager
from blueprints.display.tables import create_catalog_table, create_outcome_table, create_plan_table
from blueprints.utils.errors import DeployError


def render(table) -> str:
    console = Console(width=200, record=True)
    console.print(table)
    return console.export_text()


def test_catalog_table_groups_aliases():
    """Test one row per add-on with its aliases and relationships."""
    table = create_catalog_table(AddonManager().catalog)

    assert table.row_count == 6
    text = render(table)
    assert "ingress, nginx" in text
    assert "cluster-autoscaler" in text


def test_plan_table():
    """Test one row per wave."""
    table = create_plan_table([["a", "b"], ["c"]])

    assert table.row_count == 2
    assert "a, b" in render(table)


def test_outcome_table():
    """Test outcome rows show resources and reasons."""
    report = RunReport(
        outcomes=(
            DeploymentOutcome.succeeded("a", "manifest/default/a"),
            DeploymentOutcome.failed("b", DeployError("apply rejected")),
        )
    )

    text = render(create_outcome_table(report))

    assert "manifest/default/a" in text
    assert "apply rejected" in text
    assert "succeeded" in text
    assert "failed" in text
