"""
Configuration.

Label names, scoring thresholds and other knobs shared across modules
live here, so the parsing/matching code does not hard-code them inline.

Runtime settings (the GitHub token) are read from the environment.
"""

from __future__ import annotations

import os
from datetime import time

from traineetracker.errors import FatalError


# ---------------------------------------------------------------------------
# Issue labels (curriculum repos)
# ---------------------------------------------------------------------------

SPRINT_LABEL_PREFIX = "📅 Sprint "
SUBMIT_LABEL_PREFIX = "Submit:"
MANDATORY_LABEL = "🕐 Priority Mandatory"
STRETCH_LABEL = "🏝️ Priority Stretch"

# Submit label values that are known but do not produce an assignment yet.
RESERVED_SUBMIT_VALUES = ("None", "Codility", "Issue", "Slack")

# Sanity bound on sprint numbers; no course is anywhere near this long.
MIN_SPRINT_NUMBER = 1
MAX_SPRINT_NUMBER = 20


# ---------------------------------------------------------------------------
# Pull request labels
# ---------------------------------------------------------------------------

NEEDS_REVIEW_LABEL = "Needs Review"
REVIEWED_LABEL = "Reviewed"
COMPLETE_LABEL = "Complete"


# ---------------------------------------------------------------------------
# Regions & attendance
# ---------------------------------------------------------------------------

UNKNOWN_REGION = "unknown"

REGION_TIMEZONES = {
    "South Africa": "Africa/Johannesburg",
}
DEFAULT_TIMEZONE = "Europe/London"

CLASS_START_TIME = time(10, 0)
LATE_AFTER_MINUTES = 10

REGISTER_HEADINGS = ("Name", "Email", "Timestamp", "Course", "Module", "Day", "Location")
REGISTER_SPRINT_PREFIX = "sprint-"
REGISTER_WELCOME_SPRINT = "welcome-to-code-your-future"


# ---------------------------------------------------------------------------
# Progress status thresholds (heuristic, tune freely)
# ---------------------------------------------------------------------------

ON_TRACK_THRESHOLD = 5000
BEHIND_THRESHOLD = 2500


# ---------------------------------------------------------------------------
# GitHub
# ---------------------------------------------------------------------------

GITHUB_API_URL = "https://api.github.com"
GITHUB_TOKEN_ENV = "GH_TOKEN"
GITHUB_PAGE_SIZE = 100
HTTP_TIMEOUT_SECONDS = 30
# Modules whose issues are fetched at the same time.
GITHUB_FETCH_WORKERS = 4


def github_token() -> str:
    """
    Return the GitHub API token from the environment.
    """
    token = os.environ.get(GITHUB_TOKEN_ENV, "").strip()
    if not token:
        raise FatalError(f"{GITHUB_TOKEN_ENV} wasn't set - must be set to a GitHub API token")
    return token
