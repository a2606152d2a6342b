"""Rule file I/O."""

from institution_abac.utils.rules.rule_helpers import (
    create_default_rules_file,
    get_rules_path,
    load_rule_set,
    rules_exist,
    save_rule_set,
)

__all__ = [
    "create_default_rules_file",
    "get_rules_path",
    "load_rule_set",
    "rules_exist",
    "save_rule_set",
]
