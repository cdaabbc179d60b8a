"""Screening constants shared across the SDK.

These values are referenced by the scoring engine, the analyzers, and the
questionnaire service.  The fallback thresholds encode the legacy
M-CHAT-style bucketing used when a questionnaire carries no scoring rules
(or none of its rules match).

The thresholds can be overridden via environment variables so that
deployments can adjust clinical cut-offs without code changes.
"""

import os

# Fallback risk buckets: score in [MEDIUM_MIN, MEDIUM_MAX] -> Medium,
# score > MEDIUM_MAX -> High, anything else -> Low.
FALLBACK_MEDIUM_MIN = float(os.getenv("FALLBACK_MEDIUM_MIN", "3"))
FALLBACK_MEDIUM_MAX = float(os.getenv("FALLBACK_MEDIUM_MAX", "6"))

# Applied when an administrator creates a questionnaire without options.
DEFAULT_ANSWER_OPTIONS: list[str] = ["yes", "no", "sometimes"]

# Questionnaire type recorded on assessments submitted without a
# questionnaire (legacy clients).
LEGACY_QUESTIONNAIRE_TYPE = "MCHAT"

# Binary instruments answer with exactly these labels (compared casefolded).
AFFIRMATIVE = "yes"
NEGATIVE = "no"

# Numeric answers at or above this value are called out by the rule-based
# analyzer as "areas requiring attention".
ATTENTION_ANSWER_THRESHOLD = float(os.getenv("ATTENTION_ANSWER_THRESHOLD", "2"))

# Progress reports compare at least this many assessments; a mean score
# change beyond +/- PROGRESS_SIGNIFICANT_CHANGE points is called out.
MIN_PROGRESS_ATTEMPTS = 2
PROGRESS_SIGNIFICANT_CHANGE = float(os.getenv("PROGRESS_SIGNIFICANT_CHANGE", "2"))

# Child name search and dashboard list sizes.
SEARCH_RESULT_LIMIT = 20
DASHBOARD_RECENT_REPORTS = 5

# Answer options of an imported CSV with no option columns.
CSV_FALLBACK_OPTIONS: list[str] = ["yes", "no"]
