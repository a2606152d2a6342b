"""Application-wide constants for institution-abac.

Constants that define engine behavior and rule vocabularies.
For user-configurable settings per deployment, see config.py.
"""

from typing import Literal

from platformdirs import user_config_dir

APP_NAME: str = "institution-abac"

# OS-specific config directory holding config.json and rules.json.
# - macOS: ~/Library/Application Support/institution-abac/
# - Linux: ~/.config/institution-abac/
# - Windows: %APPDATA%\institution-abac\
CONFIG_DIR: str = user_config_dir(APP_NAME)

CONFIG_FILENAME: str = "config.json"
RULES_FILENAME: str = "rules.json"

# Subdirectory created inside the user-specified log_dir
LOGS_SUBDIR: str = "institution_abac_logs"

# ============================================================================
# Rule Vocabularies
# ============================================================================

# Institution lifecycle, in order
InstitutionPhase = Literal[
    "prospecting",
    "onboarding",
    "implementation",
    "active",
    "suspended",
    "canceled",
]

PeriodType = Literal["financial", "academic", "enrollment", "certification"]

PaymentStatus = Literal["pending", "paid", "overdue", "refunded", "canceled"]

# Iteration order for the period evaluator (must list every PeriodType)
PERIOD_TYPES: tuple[PeriodType, ...] = ("financial", "academic", "enrollment", "certification")

# ============================================================================
# Time
# ============================================================================

# Timezone used for calendar-day arithmetic when an institution has no override
DEFAULT_TIMEZONE: str = "America/Sao_Paulo"

# ============================================================================
# Evaluation Deadline
# ============================================================================

# Upper bound on a single evaluate() call, covering every store/resolver call
DEFAULT_EVALUATION_DEADLINE_SECONDS: float = 2.0

MIN_EVALUATION_DEADLINE_SECONDS: float = 0.01
MAX_EVALUATION_DEADLINE_SECONDS: float = 60.0

# Worker threads running store/resolver calls under the deadline.
# Requests beyond this wait in the queue, and the wait counts against their deadline.
EVALUATION_WORKERS: int = 8

# ============================================================================
# Caching
# ============================================================================

# Rule lookups: rules change rarely, via administrator action
DEFAULT_RULE_CACHE_TTL_SECONDS: float = 60.0

# Period instance lists: boundaries change even more rarely than rules
DEFAULT_PERIOD_CACHE_TTL_SECONDS: float = 300.0

# 0 disables caching
MIN_CACHE_TTL_SECONDS: float = 0.0
MAX_CACHE_TTL_SECONDS: float = 3600.0

# ============================================================================
# Rule File
# ============================================================================

RULE_SET_VERSION: str = "1"
