"""Config command group for institution-abac CLI.

Provides configuration inspection subcommands.
"""

import json
import sys
from pathlib import Path

import click

from institution_abac.config import AppConfig, get_config_path

_config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default: OS config location)",
)


@click.group()
def config() -> None:
    """Configuration commands."""
    pass


@config.command("show")
@_config_option
def config_show(config_path: Path | None) -> None:
    """Display current configuration.

    Loads and validates config.json, then prints it as JSON
    (defaults included).
    """
    config_path = config_path or get_config_path()

    try:
        loaded = AppConfig.load_from_files(config_path)
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except ValueError as e:
        click.echo(f"Error: Invalid configuration: {e}", err=True)
        sys.exit(1)

    click.echo(json.dumps(loaded.model_dump(), indent=2))


@config.command("path")
def config_path_cmd() -> None:
    """Show config file path.

    Displays the OS-appropriate config file location.
    """
    path = get_config_path()
    click.echo(str(path))

    if not path.exists():
        click.echo("(file does not exist - run 'institution-abac init' to create)", err=True)
