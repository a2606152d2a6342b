"""Rules command group for institution-abac CLI.

Provides rule file inspection subcommands.
"""

import sys
from pathlib import Path

import click

from institution_abac.exceptions import ConfigurationError
from institution_abac.pdp.policy import PaymentStatusRule, PeriodRule, PhaseRule, RuleSet
from institution_abac.utils.rules import get_rules_path, load_rule_set

_path_option = click.option(
    "--path",
    "-p",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to rule file (default: OS config location)",
)


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count != 1 else ''}"


def _describe(rule: PhaseRule | PeriodRule | PaymentStatusRule) -> str:
    match rule:
        case PhaseRule():
            return f"phase={rule.phase} {'allow' if rule.is_allowed else 'deny'}"
        case PeriodRule():
            return f"{rule.period_type} -{rule.days_before_start}d/+{rule.days_after_end}d"
        case PaymentStatusRule():
            return f"payment_status={rule.payment_status} {'allow' if rule.is_allowed else 'deny'}"
    raise TypeError(f"Unknown rule type: {type(rule).__name__}")


def _load_or_exit(path: Path) -> RuleSet:
    try:
        return load_rule_set(path)
    except (OSError, ConfigurationError) as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)


@click.group()
def rules() -> None:
    """Rule file commands."""
    pass


@rules.command("validate")
@_path_option
def rules_validate(path: Path | None) -> None:
    """Validate rule file.

    Checks the rule file for:
    - Valid JSON syntax
    - Schema validation (vocabularies, non-negative day offsets)
    - Unique rule ids

    Exit codes:
        0: Rule file is valid
        1: Rule file is invalid or not found
    """
    rules_path = path or get_rules_path()
    rule_set = _load_or_exit(rules_path)

    active = sum(1 for r in rule_set.all_rules() if r.is_active)
    click.echo(f"✓ Rule file valid: {rules_path}")
    click.echo(f"  {_plural(len(rule_set.grants), 'grant')}")
    click.echo(f"  {_plural(len(rule_set.phase_rules), 'phase rule')}")
    click.echo(f"  {_plural(len(rule_set.period_rules), 'period rule')}")
    click.echo(f"  {_plural(len(rule_set.payment_rules), 'payment status rule')}")
    click.echo(f"  {_plural(len(rule_set.periods), 'period instance')}")
    click.echo(f"  {active} active of {len(rule_set.all_rules())} contextual rules")


@rules.command("path")
def rules_path_cmd() -> None:
    """Show rule file path.

    Displays the OS-appropriate rule file location.
    """
    path = get_rules_path()
    click.echo(str(path))

    if not path.exists():
        click.echo("(file does not exist - run 'institution-abac init' to create)", err=True)


@rules.command("list")
@_path_option
@click.option(
    "--kind",
    type=click.Choice(["grant", "phase", "period", "payment_status", "instance"]),
    help="Only list one kind of entry",
)
@click.option("--all", "show_all", is_flag=True, help="Include deactivated rules")
def rules_list(path: Path | None, kind: str | None, show_all: bool) -> None:
    """List grants, rules and period instances."""
    rule_set = _load_or_exit(path or get_rules_path())

    if kind in (None, "grant"):
        for grant in rule_set.grants:
            click.echo(f"grant           {grant.role:<16} {grant.resource}:{grant.action}")

    for rule in rule_set.all_rules():
        if kind not in (None, rule.kind):
            continue
        if not rule.is_active and not show_all:
            continue

        detail = _describe(rule)
        status = "" if rule.is_active else " (inactive)"
        click.echo(f"{rule.kind:<15} {rule.id:<16} {rule.resource}:{rule.action} {detail}{status}")

    if kind in (None, "instance"):
        for instance in rule_set.periods:
            if not instance.is_active and not show_all:
                continue
            scope = instance.institution_id or "global"
            if instance.polo_id:
                scope = f"{scope}/{instance.polo_id}"
            click.echo(
                f"instance        {instance.id:<16} {instance.period_type} {scope} "
                f"{instance.start_date.isoformat()} → {instance.end_date.isoformat()}"
            )
