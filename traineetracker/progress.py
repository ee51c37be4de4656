"""
Progress scoring.

Pure functions over matched modules:

- progress_score: weighted completion in [0, 10000]
- status: OnTrack / Behind / AtRisk derived from the score
- attendance: attended classes / recorded classes

The weights are ad hoc and can be tweaked freely; they only need to stay
deterministic.
"""

from __future__ import annotations

from typing import Iterable, Tuple, Union

from traineetracker.config import BEHIND_THRESHOLD, ON_TRACK_THRESHOLD
from traineetracker.model import (
    AssignmentOptionality,
    AttendanceAssignment,
    AttendanceKind,
    AttendanceSubmission,
    Fraction,
    MissingButExpected,
    MissingStretch,
    ModuleWithSubmissions,
    PrState,
    PullRequestSubmission,
    SubmissionPresent,
    SubmissionState,
    TraineeStatus,
    TraineeWithSubmissions,
)

MAX_SCORE = 10000

ATTENDANCE_MAX = 10
ATTENDANCE_POINTS = {
    AttendanceKind.ON_TIME: 10,
    AttendanceKind.LATE: 8,
    AttendanceKind.WRONG_DAY: 3,
    AttendanceKind.ABSENT: 0,
}

PR_MAX = {
    AssignmentOptionality.MANDATORY: 10,
    AssignmentOptionality.STRETCH: 12,
}
PR_IN_PROGRESS_POINTS = 6
PR_UNKNOWN_POINTS = 2

MISSING_ATTENDANCE_WEIGHT = 20
MISSING_PR_WEIGHT = 10
MISSING_STRETCH_WEIGHT = 2

Scorable = Union[TraineeWithSubmissions, ModuleWithSubmissions, Iterable[ModuleWithSubmissions]]


def _modules(source: Scorable) -> Iterable[ModuleWithSubmissions]:
    if isinstance(source, TraineeWithSubmissions):
        return source.modules.values()
    if isinstance(source, ModuleWithSubmissions):
        return [source]
    return source


def _states(source: Scorable) -> Iterable[SubmissionState]:
    for module in _modules(source):
        for sprint in module.sprints:
            yield from sprint.submissions


def state_points(state: SubmissionState) -> Tuple[int, int]:
    """
    (numerator, denominator) contribution of one slot.
    """
    if isinstance(state, SubmissionPresent):
        submission = state.submission
        if isinstance(submission, AttendanceSubmission):
            return ATTENDANCE_POINTS[submission.attendance.kind], ATTENDANCE_MAX
        if isinstance(submission, PullRequestSubmission):
            max_points = PR_MAX[submission.optionality]
            pr_state = submission.pull_request.state
            if pr_state == PrState.COMPLETE:
                return max_points, max_points
            if pr_state in (PrState.NEEDS_REVIEW, PrState.REVIEWED):
                return PR_IN_PROGRESS_POINTS, max_points
            return PR_UNKNOWN_POINTS, max_points
        raise TypeError(f"Unexpected submission: {submission!r}")

    if isinstance(state, MissingButExpected):
        if isinstance(state.assignment, AttendanceAssignment):
            return 0, MISSING_ATTENDANCE_WEIGHT
        return 0, MISSING_PR_WEIGHT

    if isinstance(state, MissingStretch):
        return 0, MISSING_STRETCH_WEIGHT

    # MissingButNotExpected: not due yet, doesn't count either way.
    return 0, 0


def progress_score(source: Scorable) -> int:
    numerator = 0
    denominator = 0
    for state in _states(source):
        n, d = state_points(state)
        numerator += n
        denominator += d
    if denominator == 0:
        return 0
    return (MAX_SCORE * numerator) // denominator


def status_for_score(score: int) -> TraineeStatus:
    if score >= ON_TRACK_THRESHOLD:
        return TraineeStatus.ON_TRACK
    if score >= BEHIND_THRESHOLD:
        return TraineeStatus.BEHIND
    return TraineeStatus.AT_RISK


def status(source: Scorable) -> TraineeStatus:
    return status_for_score(progress_score(source))


def attendance(source: Scorable) -> Fraction:
    """
    Classes attended (on time or late) out of classes with a recorded
    attendance state. Absent and wrong-day count only in the denominator.
    """
    numerator = 0
    denominator = 0
    for state in _states(source):
        if isinstance(state, SubmissionPresent) and isinstance(state.submission, AttendanceSubmission):
            denominator += 1
            if state.submission.attendance.kind in (AttendanceKind.ON_TIME, AttendanceKind.LATE):
                numerator += 1
    return Fraction(numerator=numerator, denominator=denominator)
