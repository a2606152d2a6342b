"""Evaluate command for institution-abac CLI.

Runs one access request through the policy engine and reports the decision.
"""

import json
import sys
from datetime import datetime
from pathlib import Path
from typing import get_args

import click

from institution_abac.bootstrap import create_engine
from institution_abac.config import AppConfig, EngineConfig, get_config_path
from institution_abac.constants import InstitutionPhase, PaymentStatus
from institution_abac.context import RequestContext, Subject
from institution_abac.exceptions import AbacError, ConfigurationError
from institution_abac.pdp.decision import Decision
from institution_abac.pdp.engine import PolicyEngine
from institution_abac.pips import FileStore, PeriodResolver

# Exit codes
EXIT_ALLOWED = 0
EXIT_DENIED = 1
EXIT_CONFIG_ERROR = 2


def _parse_now(
    ctx: click.Context, param: click.Parameter, value: str | None
) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"not an ISO 8601 timestamp: {value!r}")


def _engine_for_rules(rules_path: Path, timezone: str | None) -> PolicyEngine:
    """Engine reading a rule file directly, without caching or audit."""
    engine_config = EngineConfig(timezone=timezone) if timezone else EngineConfig()
    file_store = FileStore(rules_path)
    return PolicyEngine(
        file_store,
        PeriodResolver(file_store, ttl_seconds=0),
        config=engine_config.model_copy(update={"error_mode": "raise"}),
    )


def _engine_from_config(config_path: Path, timezone: str | None) -> PolicyEngine:
    config = AppConfig.load_from_files(config_path)
    engine_update: dict[str, object] = {"error_mode": "raise"}
    if timezone:
        engine_update["timezone"] = EngineConfig(timezone=timezone).timezone
    config = config.model_copy(update={"engine": config.engine.model_copy(update=engine_update)})
    return create_engine(config)


def _print_decision(decision: Decision) -> None:
    label = "ALLOW" if decision.allowed else "DENY"
    click.echo(f"{label}: {decision.reason}")
    click.echo(f"  evaluated at: {decision.evaluated_at.isoformat()}")
    for dimension, verdict in decision.verdicts.model_dump().items():
        click.echo(f"  {dimension:<15} {verdict.value}")
    if decision.matched_rules:
        click.echo(f"  matched rules: {', '.join(decision.matched_rules)}")
    if decision.error:
        click.echo(f"  error: {decision.error}")


@click.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default: OS config location)",
)
@click.option(
    "--rules",
    "rules_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Evaluate against this rule file instead of the configured one",
)
@click.option("--timezone", help="IANA timezone override for calendar-day arithmetic")
@click.option("--role", "roles", multiple=True, required=True, help="Subject role (repeatable)")
@click.option("--subject-id", help="Subject identifier recorded in the audit log")
@click.option(
    "--member-of-institution",
    "member_institutions",
    multiple=True,
    help="Institution the subject belongs to (repeatable; omit for an unscoped subject)",
)
@click.option("--member-of-polo", "member_polos", multiple=True, help="Polo the subject belongs to (repeatable)")
@click.option("--resource", required=True, help="Requested resource (e.g., matricula)")
@click.option("--action", required=True, help="Requested action (e.g., criar)")
@click.option("--institution", "institution_id", help="Institution identifier")
@click.option("--polo", "polo_id", help="Polo (branch campus) identifier")
@click.option(
    "--phase",
    type=click.Choice(get_args(InstitutionPhase)),
    help="Institution lifecycle phase",
)
@click.option(
    "--payment-status",
    type=click.Choice(get_args(PaymentStatus)),
    help="Payer billing status",
)
@click.option(
    "--now",
    callback=_parse_now,
    help="ISO 8601 instant to evaluate at (default: current time)",
)
@click.option("--json", "as_json", is_flag=True, help="Print the decision as JSON")
def evaluate(
    config_path: Path | None,
    rules_path: Path | None,
    timezone: str | None,
    roles: tuple[str, ...],
    subject_id: str | None,
    member_institutions: tuple[str, ...],
    member_polos: tuple[str, ...],
    resource: str,
    action: str,
    institution_id: str | None,
    polo_id: str | None,
    phase: str | None,
    payment_status: str | None,
    now: datetime | None,
    as_json: bool,
) -> None:
    """Evaluate one access request.

    Uses the configured rule file and audit log unless --rules is given,
    in which case the file is read directly and nothing is audited.

    Exit codes:
        0: Allowed
        1: Denied
        2: Configuration or rule file error
    """
    try:
        if rules_path is not None:
            engine = _engine_for_rules(rules_path, timezone)
        else:
            engine = _engine_from_config(config_path or get_config_path(), timezone)
    except (FileNotFoundError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)

    scoped = bool(member_institutions or member_polos)
    subject = Subject(
        roles=list(roles),
        id=subject_id,
        institution_ids=list(member_institutions) if scoped else None,
        polo_ids=list(member_polos) if scoped else None,
    )
    context = RequestContext(
        institution_id=institution_id,
        polo_id=polo_id,
        institution_phase=phase,
        payment_status=payment_status,
        now=now,
    )

    try:
        decision = engine.evaluate(subject, resource, action, context)
    except ConfigurationError as e:
        click.echo(f"Error: Invalid rules: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    except AbacError as e:
        click.echo(f"Error: Evaluation failed ({type(e).__name__}): {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    finally:
        engine.close()

    if as_json:
        click.echo(json.dumps(decision.model_dump(mode="json"), indent=2))
    else:
        _print_decision(decision)

    sys.exit(EXIT_ALLOWED if decision.allowed else EXIT_DENIED)
