"""
Course schedule -> Course / Module / Sprint tree.

The static schedule says, per module, how many sprints there are and on
which date each region has its class. Parsed issues add the pull request
assignments on top:

    sprint N = [Attendance] + [ExpectedPullRequest, ...]   (title order)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Sequence
from zoneinfo import ZoneInfo

from traineetracker.config import DEFAULT_TIMEZONE, REGION_TIMEZONES
from traineetracker.errors import FatalError, TrackerError
from traineetracker.issues import IssueSprint, parse_issues
from traineetracker.model import AttendanceAssignment, Course, Module, Sprint

logger = logging.getLogger(__name__)

SprintDates = Dict[str, date]


def region_timezone(region: str) -> ZoneInfo:
    return ZoneInfo(REGION_TIMEZONES.get(region, DEFAULT_TIMEZONE))


def _to_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


@dataclass(frozen=True)
class CourseSchedule:
    """
    Static schedule for one batch of a course.

    `sprints` maps module name -> list of {region: class date}, one entry
    per sprint, in sprint order.
    """

    start: date
    end: date
    sprints: Dict[str, List[SprintDates]]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CourseSchedule":
        """
        Build a schedule from plain values, dates given as ISO strings:

            {"start": "2025-01-01", "end": "2025-06-01",
             "sprints": {"Module-JS1": [{"London": "2025-01-11"}, ...]}}
        """
        try:
            sprints = {
                str(module): [
                    {str(region): _to_date(d) for region, d in sprint.items()} for sprint in module_sprints
                ]
                for module, module_sprints in data["sprints"].items()
            }
            return cls(start=_to_date(data["start"]), end=_to_date(data["end"]), sprints=sprints)
        except (KeyError, AttributeError, TypeError, ValueError) as err:
            raise FatalError(f"Invalid course schedule: {err}") from err

    def module_names(self) -> List[str]:
        return list(self.sprints)


def build_module(sprint_dates: Sequence[SprintDates], issue_sprints: Iterable[IssueSprint]) -> Module:
    """
    Seed every sprint with its attendance assignment, then append the
    parsed pull request assignments in the order given.

    Every sprint number is checked against the schedule, including those of
    issues that carry no assignment.
    """
    slots: List[list] = [[AttendanceAssignment(class_dates=dict(dates))] for dates in sprint_dates]

    for sprint_number, issue_url, assignment in issue_sprints:
        sprint_index = sprint_number - 1
        if sprint_index >= len(slots):
            raise FatalError(
                f"Found issue {issue_url} in sprint {sprint_number} "
                f"but module only has {len(slots)} sprints"
            )
        if assignment is not None:
            slots[sprint_index].append(assignment)

    return Module(
        sprints=tuple(
            Sprint(assignments=tuple(sprint_assignments), dates=dict(dates))
            for sprint_assignments, dates in zip(slots, sprint_dates)
        )
    )


def build_course(
    name: str,
    schedule: CourseSchedule,
    issues_by_module: Mapping[str, Iterable[Mapping[str, Any]]],
) -> Course:
    """
    Build the Course tree from the schedule and each module's raw issues.

    Modules without an entry in `issues_by_module` only get attendance.
    """
    modules: Dict[str, Module] = {}
    for module_name, sprint_dates in schedule.sprints.items():
        try:
            issue_sprints = parse_issues(issues_by_module.get(module_name, []))
            modules[module_name] = build_module(sprint_dates, issue_sprints)
        except TrackerError:
            logger.error("Failed to build module %s", module_name)
            raise
        logger.debug(
            "Module %s: %d sprints, %d assignments",
            module_name,
            len(sprint_dates),
            modules[module_name].assignment_count(),
        )

    return Course(name=name, start_date=schedule.start, end_date=schedule.end, modules=modules)
