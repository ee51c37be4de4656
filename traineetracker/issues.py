"""
Issue parsing (GitHub issue labels -> per-sprint assignments).

Curriculum repos describe coursework as issues. The labels carry the
structure:

    "📅 Sprint 2"            -> which sprint(s) the work belongs to
    "Submit:PR"              -> how trainees hand it in
    "🕐 Priority Mandatory"   -> mandatory or stretch

Rules:
- Issues that are themselves pull requests are ignored.
- Several sprint labels are allowed; each produces its own entry.
- Exactly one submit label is required.
- Exactly one priority label is required, but only when the submit label
  produces an assignment.
- Submit:None / Codility / Issue / Slack produce entries without an
  assignment, so their sprint labels are still checked against the module.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from traineetracker.config import (
    MANDATORY_LABEL,
    MAX_SPRINT_NUMBER,
    MIN_SPRINT_NUMBER,
    RESERVED_SUBMIT_VALUES,
    SPRINT_LABEL_PREFIX,
    STRETCH_LABEL,
    SUBMIT_LABEL_PREFIX,
)
from traineetracker.errors import IssueLabelError, LabelErrorKind, SprintRangeError
from traineetracker.model import AssignmentOptionality, ExpectedPullRequest

logger = logging.getLogger(__name__)

BAD_LABEL_SUFFIX = (
    "\n\nIf this issue was made by a curriculum team member it should be given a sprint label."
    "\nIf this issue was created by a trainee for step submission, it should probably be closed"
    " (and they should create the issue in their fork)."
)

_PRIORITY_LABELS = {
    MANDATORY_LABEL: AssignmentOptionality.MANDATORY,
    STRETCH_LABEL: AssignmentOptionality.STRETCH,
}

_SPRINT_NUMBER_RE = re.compile(r"[0-9]+")

# (sprint number, issue URL, assignment). The assignment is None for issues
# handed in some other way; their sprint numbers still have to fit the module.
IssueSprint = Tuple[int, str, Optional[ExpectedPullRequest]]


def label_names(issue: Mapping[str, Any]) -> List[str]:
    """
    Label names of a GitHub issue payload (labels may be objects or strings).
    """
    names: List[str] = []
    for label in issue.get("labels") or []:
        if isinstance(label, str):
            names.append(label)
        elif isinstance(label, Mapping) and label.get("name"):
            names.append(str(label["name"]))
    return names


@dataclass
class IssueLabels:
    """
    Accumulates the labels of one issue, at most one value per category.
    """

    issue_url: str
    sprint_numbers: List[int] = field(default_factory=list)
    submit_value: Optional[str] = None
    priorities: List[AssignmentOptionality] = field(default_factory=list)

    def add(self, label: str) -> None:
        if label.startswith(SPRINT_LABEL_PREFIX):
            self.sprint_numbers.append(self._sprint_number(label))

        if label.startswith(SUBMIT_LABEL_PREFIX):
            if self.submit_value is not None:
                raise IssueLabelError(
                    LabelErrorKind.DUPLICATE_SUBMIT_LABEL, self.issue_url, "duplicate submit labels"
                )
            self.submit_value = label[len(SUBMIT_LABEL_PREFIX):].strip()

        optionality = _PRIORITY_LABELS.get(label)
        if optionality is not None:
            self.priorities.append(optionality)

    def _sprint_number(self, label: str) -> int:
        suffix = label[len(SPRINT_LABEL_PREFIX):]
        if not _SPRINT_NUMBER_RE.fullmatch(suffix) or int(suffix) < MIN_SPRINT_NUMBER:
            raise IssueLabelError(
                LabelErrorKind.INVALID_SPRINT_LABEL,
                self.issue_url,
                f"sprint label wasn't (non-zero) number: {label}",
            )
        number = int(suffix)
        if number > MAX_SPRINT_NUMBER:
            raise SprintRangeError(number, f"label {label!r} on issue {self.issue_url}")
        return number

    def optionality(self) -> AssignmentOptionality:
        if not self.priorities:
            raise IssueLabelError(
                LabelErrorKind.MISSING_PRIORITY_LABEL, self.issue_url, f"no priority label.{BAD_LABEL_SUFFIX}"
            )
        if len(self.priorities) > 1:
            raise IssueLabelError(
                LabelErrorKind.DUPLICATE_PRIORITY_LABEL, self.issue_url, "duplicate priority labels"
            )
        return self.priorities[0]

    def build(self, title: str) -> List[IssueSprint]:
        if self.submit_value is None:
            raise IssueLabelError(
                LabelErrorKind.MISSING_SUBMIT_LABEL, self.issue_url, f"no submit label.{BAD_LABEL_SUFFIX}"
            )

        if self.submit_value in RESERVED_SUBMIT_VALUES:
            # TODO: model Codility, Issue and Slack submissions as assignments.
            logger.debug("Issue %s is submitted via %s, not tracked", self.issue_url, self.submit_value)
            return [(number, self.issue_url, None) for number in self.sprint_numbers]
        if self.submit_value != "PR":
            raise IssueLabelError(
                LabelErrorKind.UNRECOGNIZED_SUBMIT_VALUE,
                self.issue_url,
                f"submit label wasn't recognised: {self.submit_value}",
            )

        assignment = ExpectedPullRequest(
            title=title,
            html_url=self.issue_url,
            optionality=self.optionality(),
        )

        if not self.sprint_numbers:
            raise IssueLabelError(
                LabelErrorKind.MISSING_SPRINT_LABEL,
                self.issue_url,
                f"expected at least one sprint label but got none.{BAD_LABEL_SUFFIX}",
            )
        return [(number, self.issue_url, assignment) for number in self.sprint_numbers]


def parse_issue(issue: Mapping[str, Any]) -> List[IssueSprint]:
    """
    Parse one GitHub issue payload into (sprint_number, issue_url, assignment)
    entries, one per sprint label.

    Sprint numbers are 1-based, as written on the labels.
    """
    if issue.get("pull_request") is not None:
        return []

    url = str(issue.get("html_url", ""))
    labels = IssueLabels(issue_url=url)
    for name in label_names(issue):
        labels.add(name)
    return labels.build(str(issue.get("title", "")))


def parse_issues(issues: Iterable[Mapping[str, Any]]) -> List[IssueSprint]:
    """
    Parse a module's issues, sorted by title so the result does not depend
    on the order GitHub returned them in.
    """
    out: List[IssueSprint] = []
    for issue in sorted(issues, key=lambda i: str(i.get("title", ""))):
        out.extend(parse_issue(issue))
    return out
