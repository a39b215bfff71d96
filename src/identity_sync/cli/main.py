"""Main CLI entry point."""

import json
import sys
from typing import Any, Dict, List, Tuple

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from identity_sync.config.parser import Config, ConfigValidationError
from identity_sync.reconcilers import RECONCILERS, ChangeType, ReconcilePlan
from identity_sync.state.manager import StateError, StateManager
from identity_sync.state.models import State
from identity_sync.utils.errors import ReconcileError, error_handler
from identity_sync.utils.logging import get_logger, setup_logging

console = Console()
logger = get_logger(__name__)

CHANGE_STYLES = {
    ChangeType.CREATE: ("+", "green"),
    ChangeType.UPDATE: ("~", "yellow"),
    ChangeType.REPLACE: ("-/+", "magenta"),
    ChangeType.DELETE: ("-", "red"),
    ChangeType.NO_CHANGE: (" ", "dim"),
}


@click.group()
@click.option('--log-level', default='warning', type=click.Choice(['debug', 'info', 'warning', 'error']))
@click.pass_context
def cli(ctx, log_level):
    """Reconcile identity platform configuration with a tenant."""
    ctx.ensure_object(dict)
    ctx.obj['log_level'] = log_level

    setup_logging(log_level)


def load_config(config_path: str) -> Config:
    """Load and validate configuration file."""
    try:
        config = Config(config_path)
        config.load()
        return config
    except FileNotFoundError:
        console.print(f"[red]Error:[/red] Configuration file not found: {config_path}")
        sys.exit(1)
    except ConfigValidationError as e:
        console.print("[red]Configuration validation failed:[/red]\n")
        console.print(str(e), markup=False)
        sys.exit(1)


def build_plans(config: Config, state: State) -> List[Tuple[str, ReconcilePlan]]:
    """Plan every configured resource, then deletions for untracked ones.

    Returns:
        (address, plan) pairs in configuration order
    """
    plans = []
    for resource in config.resources:
        d = state.resource_data_for(resource)
        plans.append((resource.address, RECONCILERS[resource.type].plan(d)))

    for orphan in state.orphaned(config.resources):
        reconciler = RECONCILERS.get(orphan.type)
        if reconciler is None:
            logger.warning(f"Ignoring {orphan.address} in state: unknown resource type")
            continue
        plans.append((orphan.address, reconciler.plan(state.removal_data_for(orphan))))

    return plans


def summarize(plans: List[Tuple[str, ReconcilePlan]]) -> Dict[str, int]:
    """Count resources to add, change and destroy; a replace counts as add and destroy."""
    counts = {"add": 0, "change": 0, "destroy": 0}
    for _, plan in plans:
        if plan.change_type in (ChangeType.CREATE, ChangeType.REPLACE):
            counts["add"] += 1
        if plan.change_type in (ChangeType.DELETE, ChangeType.REPLACE):
            counts["destroy"] += 1
        if plan.change_type == ChangeType.UPDATE:
            counts["change"] += 1
    return counts


def plan_to_dict(address: str, plan: ReconcilePlan) -> Dict[str, Any]:
    return {
        "address": address,
        "type": plan.resource_type,
        "id": plan.resource_id,
        "change": plan.change_type.value,
        "changed_fields": plan.changed_fields,
        "relationships": {
            path: {
                "add": diff.to_add,
                "remove": diff.to_remove,
                "modify": diff.modified,
            }
            for path, diff in plan.relationships.items()
        },
    }


@cli.command()
@click.option('--config', default='identity-sync.yaml', help='Path to configuration file')
def validate(config):
    """Validate configuration file without planning."""
    cfg = load_config(config)

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Type", style="cyan")
    table.add_column("Name")
    table.add_column("Depends on", style="dim")

    for resource in cfg.resources:
        table.add_row(resource.type, resource.name, ", ".join(resource.depends_on))

    console.print(table)
    console.print(f"[green]✓ Configuration is valid[/green] ({len(cfg.resources)} resources)")


@cli.command()
@click.option('--config', default='identity-sync.yaml', help='Path to configuration file')
@click.option('--state', 'state_path', default='.identity-sync/state.json', help='Path to state file')
@click.option('--json-output', is_flag=True, help='Output in JSON format')
def plan(config, state_path, json_output):
    """Show the changes needed to reach the configured state."""
    cfg = load_config(config)

    try:
        state = StateManager(state_path).load_or_empty()
    except StateError as e:
        console.print(f"[red]Error loading state:[/red] {e}")
        sys.exit(1)

    try:
        plans = build_plans(cfg, state)
    except ReconcileError as e:
        error_handler.log_error(e)
        sys.exit(1)

    counts = summarize(plans)

    if json_output:
        click.echo(json.dumps({
            "resources": [plan_to_dict(address, p) for address, p in plans],
            "summary": counts,
        }, indent=2, default=str))
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("", width=3)
    table.add_column("Resource", style="cyan")
    table.add_column("Change")
    table.add_column("Fields", style="dim")

    for address, p in plans:
        symbol, style = CHANGE_STYLES[p.change_type]
        table.add_row(
            f"[{style}]{symbol}[/{style}]",
            address,
            f"[{style}]{p.change_type.value}[/{style}]",
            ", ".join(p.changed_fields),
        )
    console.print(table)

    for address, p in plans:
        for path, diff in p.relationships.items():
            console.print(f"\n[bold]{address}.{path}[/bold]")
            for element in diff.to_add:
                console.print(f"  [green]+[/green] {escape(str(element))}", highlight=False)
            for element in diff.to_remove:
                console.print(f"  [red]-[/red] {escape(str(element))}", highlight=False)
            for element in diff.modified:
                console.print(f"  [yellow]~[/yellow] {escape(str(element))}", highlight=False)

    console.print(
        f"\nPlan: {counts['add']} to add, {counts['change']} to change, {counts['destroy']} to destroy."
    )


if __name__ == '__main__':
    cli()
