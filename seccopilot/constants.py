"""Constants and configuration values for SecCopilot.

This module centralizes magic numbers and lookup tables that are used
across the analyzers, the correlation engine and the summary.
"""

VERSION = "1.0.0"


# =============================================================================
# Scoring
# =============================================================================

# Weight of each severity in priority and risk scores
SEVERITY_WEIGHTS = {
    "critical": 10,
    "high": 7,
    "medium": 4,
    "low": 1,
}

# Categories whose business impact is larger than their raw severity
CATEGORY_MULTIPLIERS = {
    "Secrets Management": 1.3,
    "Data Exposure": 1.3,
    "Injection": 1.2,
    "Access Control": 1.2,
}
DEFAULT_CATEGORY_MULTIPLIER = 1.0

BUSINESS_CONTEXT = {
    "critical": "Immediate business risk requiring executive attention",
    "high": "Significant security risk affecting operations",
    "medium": "Moderate risk requiring scheduled remediation",
    "low": "Minor security improvement opportunity",
}

# Risk level thresholds, checked from the top down
RISK_LEVEL_THRESHOLDS = (
    (80, "CRITICAL"),
    (60, "HIGH"),
    (40, "MEDIUM"),
)

MAX_TOP_CATEGORIES = 5
MAX_SUMMARY_RECOMMENDATIONS = 3
DEFAULT_RECOMMENDATION_IMPACT = "Security risk mitigation"


# =============================================================================
# File Caps
# =============================================================================

# Per-catalog maximum number of files read during one scan
MAX_WEB_SOURCE_FILES = 50
MAX_SCRIPT_FILES = 50
MAX_CONTAINER_BUILD_FILES = 50
MAX_SECRET_SCAN_FILES = 100
MAX_CLOUD_TEMPLATE_FILES = 50
MAX_TERRAFORM_FILES = 50
MAX_MANIFEST_FILES = 50

# Upper bound on paths listed from the scan root
MAX_LISTED_PATHS = 20000

# Files larger than this are skipped (1MB)
MAX_SCANNED_FILE_SIZE = 1024 * 1024

# Concurrent detector applications per analyzer
DEFAULT_MAX_WORKERS = 8

# Dependency, build output and version-control directories never scanned
EXCLUDED_DIRS = frozenset({
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "bower_components",
    "dist",
    "build",
    "venv",
    ".venv",
    "__pycache__",
    ".tox",
    ".mypy_cache",
    ".pytest_cache",
    "vendor",
    "target",
    "coverage",
    ".next",
    ".terraform",
})


# =============================================================================
# Correlation Delegation
# =============================================================================

DEFAULT_REASONING_TIMEOUT_SECONDS = 30.0
DEFAULT_ANTHROPIC_MODEL = "claude-3-5-sonnet-20241022"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"

# Number of input ids an attack chain references
MAX_CHAIN_REFERENCES = 5
