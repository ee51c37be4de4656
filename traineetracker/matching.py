"""
Matching pull requests to assignments (CORE LOGIC).

For one trainee and one module:

1. Seed: every (sprint, assignment) slot starts as a Missing* state,
   depending on whether the sprint's class date has passed for the
   trainee's region. Attendance slots are then overwritten with the
   attendance states computed from the register.
2. Claim: a PR title like "London | Cohort | Name | Sprint 2 | Title"
   claims sprint 2. The last "sprint"/"week" part wins.
3. Search: the PR title's word set is compared against every still-open
   ExpectedPullRequest slot (only the claimed sprint if there is a claim).
   The best score wins; on ties the first slot in sprint order, then
   assignment order, wins.
4. Resolve: the winning slot is filled immediately. A PR that matched
   nothing is reported as unknown if it is still open, and dropped if it
   is closed.

PRs are processed strictly in the order given: since filled slots are not
reconsidered, reordering the input can change the result.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence

from traineetracker.config import MAX_SPRINT_NUMBER, MIN_SPRINT_NUMBER, UNKNOWN_REGION
from traineetracker.errors import SprintRangeError
from traineetracker.model import (
    AssignmentOptionality,
    AttendanceAssignment,
    ExpectedPullRequest,
    MissingButExpected,
    MissingButNotExpected,
    MissingStretch,
    Module,
    ModuleWithSubmissions,
    Pr,
    PullRequestSubmission,
    SprintWithSubmissions,
    SubmissionPresent,
    SubmissionState,
)
from traineetracker.titles import add_claim_tokens, make_title_more_matchable, match_count, title_word_set

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"(\d+)")


# ---------------------------------------------------------------------------
# Slot grid
# ---------------------------------------------------------------------------


class SlotGrid:
    """
    One SubmissionState per (sprint, assignment) slot, stored flat.

    Sprint i owns the index range [offsets[i], offsets[i + 1]).
    """

    def __init__(self, sizes: Sequence[int]) -> None:
        self._offsets = [0]
        for size in sizes:
            self._offsets.append(self._offsets[-1] + size)
        self._states: List[Optional[SubmissionState]] = [None] * self._offsets[-1]

    def __len__(self) -> int:
        return len(self._states)

    @property
    def sprint_count(self) -> int:
        return len(self._offsets) - 1

    def _index(self, sprint_index: int, assignment_index: int) -> int:
        start, end = self._offsets[sprint_index], self._offsets[sprint_index + 1]
        index = start + assignment_index
        if not start <= index < end:
            raise IndexError(f"No slot {assignment_index} in sprint {sprint_index}")
        return index

    def get(self, sprint_index: int, assignment_index: int) -> SubmissionState:
        state = self._states[self._index(sprint_index, assignment_index)]
        if state is None:
            raise LookupError(f"Slot ({sprint_index}, {assignment_index}) was never seeded")
        return state

    def set(self, sprint_index: int, assignment_index: int, state: SubmissionState) -> None:
        self._states[self._index(sprint_index, assignment_index)] = state

    def is_filled(self, sprint_index: int, assignment_index: int) -> bool:
        return self.get(sprint_index, assignment_index).is_submitted()

    def to_sprints(self) -> List[SprintWithSubmissions]:
        return [
            SprintWithSubmissions(
                submissions=[self.get(i, j) for j in range(self._offsets[i + 1] - self._offsets[i])]
            )
            for i in range(self.sprint_count)
        ]


def seed_slots(
    module: Module,
    attendance: Sequence[SubmissionState],
    region: str,
    today: Optional[date] = None,
) -> SlotGrid:
    """
    Step 1: default state for every slot, then overlay attendance states.

    `attendance` holds one state per sprint, aligned by index; sprints past
    its end keep their default attendance state.
    """
    grid = SlotGrid([sprint.assignment_count() for sprint in module.sprints])
    for sprint_index, sprint in enumerate(module.sprints):
        in_past = sprint.is_in_past(region, today)
        for assignment_index, assignment in enumerate(sprint.assignments):
            if not in_past:
                state: SubmissionState = MissingButNotExpected(assignment)
            elif assignment.optionality == AssignmentOptionality.MANDATORY:
                state = MissingButExpected(assignment)
            else:
                state = MissingStretch(assignment)

            if isinstance(assignment, AttendanceAssignment) and sprint_index < len(attendance):
                state = attendance[sprint_index]

            grid.set(sprint_index, assignment_index, state)
    return grid


# ---------------------------------------------------------------------------
# Claims
# ---------------------------------------------------------------------------


def extract_claimed_sprint(title: str) -> Optional[int]:
    """
    Step 2: the 1-based sprint number a PR title claims, if any.

    Raises SprintRangeError for numbers no real course could have.
    """
    claimed: Optional[int] = None
    for part in title.lower().split("|"):
        part = part.strip()
        if not (part.startswith("sprint") or part.startswith("week")):
            continue
        m = _NUMBER_RE.search(part)
        if not m:
            continue
        number = int(m.group(1))
        if not MIN_SPRINT_NUMBER <= number <= MAX_SPRINT_NUMBER:
            raise SprintRangeError(number, f"PR title {title!r}")
        claimed = number
    return claimed


# ---------------------------------------------------------------------------
# Best match
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Match:
    match_count: int
    sprint_index: int
    assignment_index: int
    optionality: AssignmentOptionality


def find_best_match(
    pr: Pr,
    claimed_sprint: Optional[int],
    module: Module,
    grid: SlotGrid,
) -> Optional[Match]:
    """
    Step 3: highest-scoring open ExpectedPullRequest slot for `pr`.

    Strictly-greater comparison: the first slot encountered keeps a tie.
    """
    best: Optional[Match] = None
    for sprint_index, sprint in enumerate(module.sprints):
        if claimed_sprint is not None and claimed_sprint - 1 != sprint_index:
            continue

        pr_words = title_word_set(pr.title)
        if claimed_sprint is not None:
            pr_words[f"sprint{claimed_sprint}"] = None

        for assignment_index, assignment in enumerate(sprint.assignments):
            if not isinstance(assignment, ExpectedPullRequest):
                continue
            if grid.is_filled(sprint_index, assignment_index):
                continue

            assignment_words = make_title_more_matchable(assignment.title)
            if claimed_sprint is not None:
                add_claim_tokens(assignment_words, claimed_sprint)

            count = match_count(assignment_words, pr_words)
            if count > (best.match_count if best else 0):
                best = Match(
                    match_count=count,
                    sprint_index=sprint_index,
                    assignment_index=assignment_index,
                    optionality=assignment.optionality,
                )
    return best


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def match_prs_to_assignments(
    module: Module,
    prs: Iterable[Pr],
    attendance: Sequence[SubmissionState] = (),
    region: str = UNKNOWN_REGION,
    today: Optional[date] = None,
) -> ModuleWithSubmissions:
    """
    Match one trainee's PRs for one module against the module's assignments.

    `prs` is consumed in order; that order is part of the result.
    """
    grid = seed_slots(module, attendance, region, today)

    unknown_prs: List[Pr] = []
    for pr in prs:
        claimed = extract_claimed_sprint(pr.title)
        best = find_best_match(pr, claimed, module, grid)

        if best is not None:
            logger.debug(
                "PR %s matched sprint %d assignment %d (%d words)",
                pr.url,
                best.sprint_index + 1,
                best.assignment_index,
                best.match_count,
            )
            grid.set(
                best.sprint_index,
                best.assignment_index,
                SubmissionPresent(PullRequestSubmission(pull_request=pr, optionality=best.optionality)),
            )
        elif not pr.is_closed:
            logger.debug("PR %s matched no assignment", pr.url)
            unknown_prs.append(pr)

    return ModuleWithSubmissions(sprints=grid.to_sprints(), unknown_prs=unknown_prs)
