"""Main CLI entry point for institution-abac.

Defines the CLI group and registers all subcommands.

Commands:
    init      - Create config.json and an empty rules.json
    rules     - Rule file commands
        validate - Validate the rule file
        path     - Show rule file path
        list     - List grants, rules and period instances
    evaluate  - Evaluate one access request
    config    - Configuration commands
        show - Display current configuration
        path - Show config file path

Usage:
    institution-abac -h, --help      Show help message
    institution-abac -v, --version   Show version

Subcommand help:
    institution-abac COMMAND -h      Show help for a specific command
"""

import sys

import click

from institution_abac import __version__

from .commands.config import config
from .commands.evaluate import evaluate
from .commands.init import init
from .commands.rules import rules


class ReorderedGroup(click.Group):
    """Custom group that shows commands before custom help text."""

    def format_epilog(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        """Add extra help after commands section."""
        formatter.write(
            """
Quick Start:
  institution-abac init --log-dir ~/abac-logs     Create config and rule file
  institution-abac rules validate                 Check the rule file

Evaluate a request:
  institution-abac evaluate \\
    --role secretaria \\
    --resource matricula --action criar \\
    --institution 12 --phase active \\
    --payment-status paid \\
    --now 2026-03-01T10:00:00-03:00

Exit codes (evaluate):
  0  Allowed
  1  Denied
  2  Configuration or rule file error
"""
        )


@click.group(
    cls=ReorderedGroup,
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.pass_context
def cli(ctx: click.Context, version: bool) -> None:
    """institution-abac: contextual permission evaluation for institutions."""
    if version:
        click.echo(f"institution-abac {__version__}")
        sys.exit(0)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# Register commands
cli.add_command(init)
cli.add_command(rules)
cli.add_command(evaluate)
cli.add_command(config)


def main() -> None:
    """CLI entry point."""
    cli()
