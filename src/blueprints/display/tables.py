"""Table rendering utilities for cluster blueprints."""

from typing import Dict, List, Type

from rich.table import Table

from blueprints.cluster.addons.base import BaseAddon
from blueprints.cluster.addons.descriptor import OutcomeStatus, RunReport, addon_id_of


def create_catalog_table(catalog: Dict[str, Type[BaseAddon]]) -> Table:
    """Create a table of built-in add-ons.

    Args:
        catalog: Add-on classes keyed by name or alias

    Returns:
        Rich Table with one row per add-on
    """
    table = Table(title="Add-ons")

    table.add_column("Name", style="cyan")
    table.add_column("Aliases", style="white")
    table.add_column("Depends on", style="white")
    table.add_column("Conflicts with", style="white")

    aliases: Dict[str, List[str]] = {}
    classes: Dict[str, Type[BaseAddon]] = {}
    for name, addon_class in catalog.items():
        addon_id = addon_class.get_addon_id()
        classes[addon_id] = addon_class
        if name != addon_id:
            aliases.setdefault(addon_id, []).append(name)

    for addon_id in sorted(classes):
        addon_class = classes[addon_id]
        depends = sorted(addon_id_of(ref) for ref in addon_class.depends_on)
        conflicts = sorted(addon_id_of(ref) for ref in addon_class.conflicts_with)
        table.add_row(
            addon_id,
            ", ".join(sorted(aliases.get(addon_id, []))) or "-",
            ", ".join(depends) or "-",
            ", ".join(conflicts) or "-",
        )

    return table


def create_plan_table(levels: List[List[str]]) -> Table:
    """Create a table for a deployment plan.

    Args:
        levels: Add-on ids grouped into waves that may deploy concurrently

    Returns:
        Rich Table with one row per wave
    """
    table = Table(title="Deployment Plan")

    table.add_column("Wave", style="cyan")
    table.add_column("Add-ons", style="white")

    for index, level in enumerate(levels, start=1):
        table.add_row(str(index), ", ".join(level))

    return table


def create_outcome_table(report: RunReport) -> Table:
    """Create a table for deployment outcomes.

    Args:
        report: Run report returned by deploy_all

    Returns:
        Rich Table with one row per add-on
    """
    table = Table(title="Deployment Results")

    table.add_column("Add-on", style="cyan")
    table.add_column("Status", style="white")
    table.add_column("Details", style="white")
    table.add_column("Duration", style="white", justify="right")

    for outcome in report.outcomes:
        status = outcome.status
        status_emoji = {
            OutcomeStatus.SUCCEEDED: "✓",
            OutcomeStatus.FAILED: "✗",
            OutcomeStatus.SKIPPED: "⚠",
        }.get(status, "?")
        status_style = {
            OutcomeStatus.SUCCEEDED: "green",
            OutcomeStatus.FAILED: "red",
            OutcomeStatus.SKIPPED: "yellow",
        }.get(status, "white")

        if outcome.ok:
            details = str(outcome.resource) if outcome.resource is not None else ""
        else:
            details = outcome.reason or ""

        table.add_row(
            outcome.addon_id,
            f"[{status_style}]{status_emoji} {status.value}[/{status_style}]",
            details,
            f"{outcome.duration:.1f}s",
        )

    return table
