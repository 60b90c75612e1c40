"""CLI interface for cluster blueprints.

Provides commands to list the built-in add-ons, preview a deployment plan and
deploy a set of add-ons to a cluster.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from blueprints import __version__
from blueprints.cluster.addons.manager import AddonManager
from blueprints.config import BlueprintsConfig, load_addon_configs
from blueprints.display.tables import (
    create_catalog_table,
    create_outcome_table,
    create_plan_table,
)
from blueprints.utils.errors import ConfigurationError, RegistrationError, ResolutionError

EXIT_SUCCESS = 0
EXIT_FAILED_RUN = 1
EXIT_USAGE_ERROR = 2
EXIT_INTERRUPTED = 130

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)


def setup_logging(log_level: str = "info") -> None:
    """Setup console logging through rich.

    Args:
        log_level: Logging level (debug, info, warning, error)
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=err_console,
                show_time=False,
                show_path=False,
                rich_tracebacks=True,
            )
        ],
        force=True,  # Override any existing config
    )


def build_parser() -> argparse.ArgumentParser:
    """Build argument parser for CLI.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="blueprints",
        description="Cluster blueprints - dependency-aware Kubernetes add-on installer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (debug, info, warning, error). Overrides LOG_LEVEL.",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"cluster-blueprints {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="List built-in add-ons")

    plan = subparsers.add_parser("plan", help="Show the deployment order for add-ons")
    plan.add_argument("addons", nargs="+", help="Add-on names or aliases")

    deploy = subparsers.add_parser("deploy", help="Deploy add-ons to a cluster")
    deploy.add_argument("addons", nargs="+", help="Add-on names or aliases")
    deploy.add_argument("--cluster", type=str, help="Cluster name (BLUEPRINTS_CLUSTER_NAME)")
    deploy.add_argument("--kubeconfig", type=str, help="Path to kubeconfig (KUBECONFIG)")
    deploy.add_argument(
        "--config",
        type=Path,
        help="YAML file mapping add-on names to option overrides",
    )
    deploy.add_argument(
        "--timeout",
        type=float,
        help="Seconds after which no further add-ons are started (BLUEPRINTS_DEPLOY_TIMEOUT)",
    )
    deploy.add_argument(
        "--concurrency",
        type=int,
        help="Maximum add-ons deployed at once (BLUEPRINTS_MAX_CONCURRENCY)",
    )

    return parser


def run_list_command() -> int:
    """Print the built-in add-on catalog."""
    manager = AddonManager()
    console.print(create_catalog_table(manager.catalog))
    return EXIT_SUCCESS


def run_plan_command(addons: list[str]) -> int:
    """Resolve add-ons and print the deployment plan without deploying."""
    manager = AddonManager()
    manager.add_many(addons)
    graph = manager.graph()
    console.print(create_plan_table(graph.levels()))
    console.print(f"Order: {' -> '.join(graph.order())}")
    return EXIT_SUCCESS


async def run_deploy_command(args: argparse.Namespace, config: BlueprintsConfig) -> int:
    """Deploy add-ons and print one result row per add-on.

    Returns:
        EXIT_SUCCESS if every add-on succeeded, EXIT_FAILED_RUN otherwise
    """
    if args.cluster:
        config.cluster_name = args.cluster
    if args.kubeconfig:
        config.kubeconfig = args.kubeconfig
    if args.timeout is not None:
        config.deploy_timeout = args.timeout
    if args.concurrency is not None:
        config.max_concurrency = args.concurrency

    cluster = config.cluster_handle()
    configs = load_addon_configs(args.config) if args.config else {}

    manager = AddonManager(max_concurrency=config.max_concurrency)
    manager.add_many(args.addons, configs)
    console.print(create_plan_table(manager.graph().levels()))

    plan_size = len(manager.registered)
    with console.status(
        f"[bold blue]Deploying {plan_size} add-on(s) to {cluster.name}...", spinner="dots"
    ):
        report = await manager.deploy_all(cluster, timeout=config.deploy_timeout)

    console.print(create_outcome_table(report))
    style = "green" if report.success else "red"
    console.print(f"[{style}]{report.message}[/{style}]")
    return EXIT_SUCCESS if report.success else EXIT_FAILED_RUN


async def async_main(argv: list[str] | None = None) -> int:
    """Async main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = BlueprintsConfig()
        if args.log_level:
            config.log_level = args.log_level.lower()
        setup_logging(config.log_level)

        if args.command == "list":
            return run_list_command()
        if args.command == "plan":
            return run_plan_command(args.addons)
        return await run_deploy_command(args, config)
    except (ConfigurationError, RegistrationError, ValueError) as e:
        err_console.print(f"[red]Configuration error: {e}[/red]")
        return EXIT_USAGE_ERROR
    except ResolutionError as e:
        err_console.print(f"[red]Cannot resolve add-ons: {e}[/red]")
        return EXIT_USAGE_ERROR


def main(argv: list[str] | None = None) -> None:
    """Main entry point for CLI."""
    try:
        exit_code = asyncio.run(async_main(argv))
    except KeyboardInterrupt:
        console.print("\n[dim]Interrupted[/dim]")
        sys.exit(EXIT_INTERRUPTED)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
