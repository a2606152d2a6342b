"""Engine assembly from AppConfig.

Wires the file-backed store, TTL caches, period resolver and audit logger
into a ready-to-use PolicyEngine:

    config = AppConfig.load_from_files(get_config_path())
    engine = create_engine(config)
    decision = engine.evaluate(subject, "matricula", "criar", context)
"""

from __future__ import annotations

from pathlib import Path

from institution_abac.config import AppConfig
from institution_abac.pdp.engine import PolicyEngine
from institution_abac.pips import CachingRuleStore, FileStore, PeriodResolver
from institution_abac.telemetry.audit import DecisionSink, create_decision_logger
from institution_abac.telemetry.system import configure_system_logger

__all__ = ["create_engine"]


def create_engine(
    config: AppConfig,
    *,
    decision_sink: DecisionSink | None = None,
    configure_logging: bool = True,
) -> PolicyEngine:
    """Build a PolicyEngine backed by the configured rule file.

    Args:
        config: Application configuration.
        decision_sink: Audit sink override. When None and
            config.logging.audit_decisions is set, decisions go to
            decisions.jsonl under the log dir.
        configure_logging: Attach the JSONL system log handler.

    Returns:
        Configured PolicyEngine.
    """
    if configure_logging:
        configure_system_logger(config.logging.system_log_path, config.logging.log_level)

    if decision_sink is None and config.logging.audit_decisions:
        decision_sink = create_decision_logger(config.logging.decisions_log_path)

    file_store = FileStore(Path(config.store.rules_path))
    rule_store = CachingRuleStore(file_store, ttl_seconds=config.engine.rule_cache_ttl_seconds)
    resolver = PeriodResolver(file_store, ttl_seconds=config.engine.period_cache_ttl_seconds)

    return PolicyEngine(
        rule_store,
        resolver,
        config=config.engine,
        decision_sink=decision_sink,
    )
