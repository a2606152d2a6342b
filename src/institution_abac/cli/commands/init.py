"""Init command for institution-abac CLI.

Creates config.json and an empty rules.json in the OS config directory.
"""

import sys
from pathlib import Path

import click

from institution_abac.config import AppConfig, EngineConfig, LoggingConfig, StoreConfig, get_config_path
from institution_abac.constants import DEFAULT_TIMEZONE
from institution_abac.utils.rules import create_default_rules_file, get_rules_path, rules_exist


@click.command()
@click.option(
    "--non-interactive",
    is_flag=True,
    help="Skip prompts, require all options via flags",
)
@click.option("--log-dir", help="Base directory for system and audit logs")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING"], case_sensitive=False),
    default="INFO",
    help="System log verbosity (default: INFO)",
)
@click.option(
    "--timezone",
    default=DEFAULT_TIMEZONE,
    help=f"IANA timezone for calendar-day arithmetic (default: {DEFAULT_TIMEZONE})",
)
@click.option(
    "--rules-path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Rule file location (default: rules.json next to config.json)",
)
@click.option("--force", is_flag=True, help="Overwrite existing config without prompting")
def init(
    non_interactive: bool,
    log_dir: str | None,
    log_level: str,
    timezone: str,
    rules_path: Path | None,
    force: bool,
) -> None:
    """Initialize configuration.

    Creates configuration at the OS-appropriate location:
    - macOS: ~/Library/Application Support/institution-abac/
    - Linux: ~/.config/institution-abac/
    - Windows: C:\\Users\\<user>\\AppData\\Roaming\\institution-abac/

    An existing rule file is never overwritten; a new one starts empty,
    which denies every request until grants are added.
    """
    config_path = get_config_path()
    rules_path = rules_path or get_rules_path()

    if config_path.exists() and not force:
        if non_interactive:
            click.echo("Error: Config already exists. Use --force to overwrite.", err=True)
            sys.exit(1)
        if not click.confirm("Config already exists. Overwrite?", default=False):
            click.echo("Aborted.")
            sys.exit(0)

    if log_dir is None:
        if non_interactive:
            click.echo("Error: --log-dir is required with --non-interactive.", err=True)
            sys.exit(1)
        try:
            log_dir = click.prompt("Log directory", type=str)
        except click.Abort:
            click.echo("Aborted.")
            sys.exit(0)

    try:
        config = AppConfig(
            engine=EngineConfig(timezone=timezone),
            store=StoreConfig(rules_path=str(rules_path)),
            logging=LoggingConfig(log_dir=str(Path(log_dir).expanduser()), log_level=log_level.upper()),
        )
    except ValueError as e:
        click.echo(f"Error: Invalid configuration: {e}", err=True)
        sys.exit(1)

    try:
        config.save_to_file(config_path)
        click.echo(f"Configuration saved to {config_path}")

        if rules_exist(rules_path):
            click.echo(f"Rule file kept at {rules_path}")
        else:
            create_default_rules_file(rules_path)
            click.echo(f"Empty rule file created at {rules_path}")
    except OSError as e:
        click.echo(f"Error: Failed to save configuration: {e}", err=True)
        sys.exit(1)
