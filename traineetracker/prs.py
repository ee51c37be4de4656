"""
Pull requests (GitHub payload -> Pr).

Also holds the title format check used when validating a trainee's PR:

    Region | Cohort | Name | Sprint N | Assignment title
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

from traineetracker.config import COMPLETE_LABEL, NEEDS_REVIEW_LABEL, REVIEWED_LABEL
from traineetracker.model import Pr, PrState

_SPRINT_SECTION_RE = re.compile(r"^(S|s)print \d+$")

TITLE_SECTION_COUNT = 5


def pr_state_from_labels(labels: Iterable[str]) -> PrState:
    names = set(labels)
    if NEEDS_REVIEW_LABEL in names:
        return PrState.NEEDS_REVIEW
    if COMPLETE_LABEL in names:
        return PrState.COMPLETE
    if REVIEWED_LABEL in names:
        return PrState.REVIEWED
    return PrState.UNKNOWN


def _parse_github_time(value: Any) -> Optional[datetime]:
    if not value:
        return None
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def pr_from_github(payload: Mapping[str, Any], repo_name: str) -> Optional[Pr]:
    """
    Convert one entry of GitHub's "list pull requests" response.

    Returns None for PRs we can't or don't want to track:
    - the author's account was deleted
    - timestamps, title or URL are missing
    - closed without being marked Complete (abandoned work)
    """
    user = payload.get("user")
    if not user or not user.get("login"):
        return None

    labels = frozenset(
        str(label["name"]) for label in payload.get("labels") or [] if isinstance(label, Mapping) and label.get("name")
    )
    state = pr_state_from_labels(labels)

    is_closed = payload.get("state") == "closed"
    if is_closed and state != PrState.COMPLETE:
        return None

    created_at = _parse_github_time(payload.get("created_at"))
    updated_at = _parse_github_time(payload.get("updated_at"))
    url = payload.get("html_url")
    title = payload.get("title")
    if created_at is None or updated_at is None or not url or title is None:
        return None

    return Pr(
        repo_name=repo_name,
        number=int(payload.get("number", 0)),
        url=str(url),
        title=str(title),
        author=str(user["login"]),
        body=str(payload.get("body") or ""),
        state=state,
        created_at=created_at,
        updated_at=updated_at,
        is_closed=is_closed,
        labels=labels,
    )


def validate_pr_title(title: str) -> Optional[str]:
    """
    Check a PR title against the expected format.

    Returns None if the title is fine, otherwise the reason it isn't.
    """
    sections = title.split("|")
    if len(sections) != TITLE_SECTION_COUNT:
        return "Wrong number of parts separated by |s"

    sprint_section = sections[3].strip()
    if not _SPRINT_SECTION_RE.match(sprint_section):
        return (
            f"Sprint part ({sprint_section}) doesn't match expected format "
            "(example: 'Sprint 2', without quotes)"
        )

    if title.upper() == title:
        return "PR title should not all be in uppercase"

    return None
