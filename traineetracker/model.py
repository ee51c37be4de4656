"""
Central data model definitions used across the project.

Everything here is built fresh for one computation from data that was
already fetched (schedule, issues, pull requests, register rows) and is
not mutated once handed back to the caller.

Tagged unions are modelled as a small family of frozen dataclasses plus a
Union alias, e.g. an Assignment is either an AttendanceAssignment or an
ExpectedPullRequest.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple, Union

from traineetracker.config import UNKNOWN_REGION


class AssignmentOptionality(Enum):
    MANDATORY = "Mandatory"
    STRETCH = "Stretch"


class PrState(Enum):
    NEEDS_REVIEW = "NeedsReview"
    REVIEWED = "Reviewed"
    COMPLETE = "Complete"
    UNKNOWN = "Unknown"


class TraineeStatus(Enum):
    ON_TRACK = "OnTrack"
    BEHIND = "Behind"
    AT_RISK = "AtRisk"


# ---------------------------------------------------------------------------
# Assignments & course structure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AttendanceAssignment:
    """
    Attending the class of a sprint. Always mandatory.
    """

    class_dates: Dict[str, date]

    @property
    def optionality(self) -> AssignmentOptionality:
        return AssignmentOptionality.MANDATORY

    def heading(self) -> str:
        return "Attendance"


@dataclass(frozen=True)
class ExpectedPullRequest:
    """
    A piece of coursework trainees hand in as a pull request.
    """

    title: str
    html_url: str
    optionality: AssignmentOptionality

    def heading(self) -> str:
        return f"PR: {self.title}"


Assignment = Union[AttendanceAssignment, ExpectedPullRequest]


def _today_utc() -> date:
    return datetime.now(timezone.utc).date()


@dataclass(frozen=True)
class Sprint:
    assignments: Tuple[Assignment, ...]
    dates: Dict[str, date]

    def assignment_count(self) -> int:
        return len(self.assignments)

    def is_in_past(self, region: str, today: Optional[date] = None) -> bool:
        """
        True if this sprint's class date for `region` is today or earlier.

        Regions we have no date for (including the "unknown" placeholder)
        count as past. This is provisional behaviour.
        """
        if region == UNKNOWN_REGION:
            return True
        class_date = self.dates.get(region)
        if class_date is None:
            return True
        if today is None:
            today = _today_utc()
        return class_date <= today


@dataclass(frozen=True)
class Module:
    sprints: Tuple[Sprint, ...]

    def assignment_count(self) -> int:
        return sum(sprint.assignment_count() for sprint in self.sprints)


@dataclass(frozen=True)
class Course:
    name: str
    start_date: date
    end_date: date
    modules: Dict[str, Module]

    def module_names(self) -> List[str]:
        return list(self.modules)


# ---------------------------------------------------------------------------
# Pull requests
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Pr:
    repo_name: str
    number: int
    url: str
    title: str
    author: str
    body: str = ""
    state: PrState = PrState.UNKNOWN
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    is_closed: bool = False
    labels: FrozenSet[str] = frozenset()


# ---------------------------------------------------------------------------
# Submissions
# ---------------------------------------------------------------------------


class AttendanceKind(Enum):
    ABSENT = "Absent"
    ON_TIME = "On time"
    LATE = "Late"
    WRONG_DAY = "Wrong day"


@dataclass(frozen=True)
class Attendance:
    """
    One trainee's attendance for one class, with the register it came from.
    """

    kind: AttendanceKind
    register_url: str


@dataclass(frozen=True)
class AttendanceSubmission:
    attendance: Attendance

    def display_text(self) -> str:
        return self.attendance.kind.value

    def link(self) -> str:
        return self.attendance.register_url


@dataclass(frozen=True)
class PullRequestSubmission:
    pull_request: Pr
    optionality: AssignmentOptionality

    def display_text(self) -> str:
        return f"#{self.pull_request.number}"

    def link(self) -> str:
        return self.pull_request.url


Submission = Union[AttendanceSubmission, PullRequestSubmission]


@dataclass(frozen=True)
class SubmissionPresent:
    submission: Submission

    def is_submitted(self) -> bool:
        return True


@dataclass(frozen=True)
class MissingButExpected:
    """
    Deadline passed, mandatory, nothing handed in.
    """

    assignment: Assignment

    def is_submitted(self) -> bool:
        return False


@dataclass(frozen=True)
class MissingStretch:
    """
    Deadline passed, optional, nothing handed in.
    """

    assignment: Assignment

    def is_submitted(self) -> bool:
        return False


@dataclass(frozen=True)
class MissingButNotExpected:
    """
    Deadline not reached yet.
    """

    assignment: Assignment

    def is_submitted(self) -> bool:
        return False


SubmissionState = Union[SubmissionPresent, MissingButExpected, MissingStretch, MissingButNotExpected]


@dataclass
class SprintWithSubmissions:
    submissions: List[SubmissionState]


@dataclass
class ModuleWithSubmissions:
    sprints: List[SprintWithSubmissions]
    unknown_prs: List[Pr] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Trainees & batches
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Trainee:
    github_login: str
    name: str
    email: Optional[str]
    region: str = UNKNOWN_REGION


@dataclass
class TraineeWithSubmissions:
    trainee: Trainee
    modules: Dict[str, ModuleWithSubmissions]


@dataclass
class Batch:
    name: str
    trainees: List[TraineeWithSubmissions]

    def unknown_prs(self) -> List[Pr]:
        return [pr for t in self.trainees for module in t.modules.values() for pr in module.unknown_prs]

    def all_regions(self) -> List[str]:
        """
        Regions of the batch's trainees, least common first.
        """
        counts = Counter(t.trainee.region for t in self.trainees)
        return [region for region, _count in sorted(counts.items(), key=lambda item: item[1])]


@dataclass(frozen=True)
class Fraction:
    numerator: int
    denominator: int
