"""
Command line entry point for the Exchange connector.

Lets an operator (or a wrapper script of the orchestrator) list operations,
fetch their metadata and execute them with JSON parameters.
"""

import json
import sys
from typing import Any, Optional

import click
from rich.console import Console
from rich.table import Table

from .config_manager import LoggingConfig, setup_logging
from .connector import Connector
from .exceptions import ConnectorError
from .logging_config import configure_logging


def _echo_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


def _read_params(value: Optional[str]) -> Optional[str]:
    """Accept inline JSON or ``@path`` to a JSON file."""
    if value and value.startswith("@"):
        with open(value[1:], encoding="utf-8") as handle:
            return handle.read()
    return value


@click.group()
@click.option("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
@click.pass_context
def cli(ctx: click.Context, log_level: str) -> None:
    """Exchange Connector - CRUD operations on Exchange Online for IDM orchestrators."""
    try:
        logging_config = LoggingConfig(level=log_level)
    except ConnectorError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)
    configure_logging(logging_config.get_log_level())
    setup_logging(logging_config)
    ctx.ensure_object(dict)
    ctx.obj["connector"] = Connector()


@cli.command()
@click.pass_context
def operations(ctx: click.Context) -> None:
    """List the operations the connector exposes."""
    connector: Connector = ctx.obj["connector"]
    table = Table(title="Exchange Connector Operations")
    table.add_column("Operation", style="cyan")
    table.add_column("Class")
    table.add_column("Semantics", style="green")
    for handler in connector.operations():
        table.add_row(handler.name, handler.class_name, handler.semantics.value)
    Console().print(table)


@cli.command()
@click.argument("operation")
@click.pass_context
def meta(ctx: click.Context, operation: str) -> None:
    """Print the metadata (field picklist or parameter contract) of OPERATION."""
    connector: Connector = ctx.obj["connector"]
    try:
        _echo_json(connector.get_meta(operation))
    except ConnectorError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument("operation")
@click.option("--system-params", "-s", help="System parameters as JSON or @file")
@click.option("--function-params", "-f", help="Function parameters as JSON or @file")
@click.pass_context
def execute(
    ctx: click.Context,
    operation: str,
    system_params: Optional[str],
    function_params: Optional[str],
) -> None:
    """Execute OPERATION and print the resulting records as JSON."""
    connector: Connector = ctx.obj["connector"]
    try:
        result = connector.execute(
            operation, _read_params(system_params), _read_params(function_params)
        )
    except (ConnectorError, OSError) as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)
    finally:
        connector.unload()

    _echo_json(result.to_dict())
    if not result.ok:
        sys.exit(1)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
