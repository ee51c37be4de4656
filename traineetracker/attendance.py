"""
Attendance register -> attendance submission states.

The register is a sheet per module with one row per check-in:

    Name | Email | Timestamp | Course | Module | Day | Location

"Day" says which sprint the class belonged to ("sprint-3"). Rows are
grouped per sprint and per (lower-cased) email; each trainee's check-in
is then compared with the class date of their region:

- different local day              -> WrongDay
- more than 10 minutes after 10:00 -> Late
- otherwise                        -> OnTime
- no check-in and class is past    -> Absent
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

from traineetracker.config import (
    CLASS_START_TIME,
    LATE_AFTER_MINUTES,
    MAX_SPRINT_NUMBER,
    MIN_SPRINT_NUMBER,
    REGISTER_HEADINGS,
    REGISTER_SPRINT_PREFIX,
    REGISTER_WELCOME_SPRINT,
)
from traineetracker.errors import FatalError, SprintRangeError
from traineetracker.model import (
    Attendance,
    AttendanceAssignment,
    AttendanceKind,
    AttendanceSubmission,
    MissingButNotExpected,
    Module,
    SubmissionPresent,
    SubmissionState,
)
from traineetracker.schedule import region_timezone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegisterEntry:
    name: str
    email: str
    timestamp: datetime
    region: str
    register_url: str


@dataclass
class ModuleAttendance:
    register_url: str
    # sprint index -> email (lower-case) -> entry
    sprints: List[Dict[str, RegisterEntry]] = field(default_factory=list)

    def entry(self, sprint_index: int, email: str) -> Optional[RegisterEntry]:
        if sprint_index >= len(self.sprints):
            return None
        return self.sprints[sprint_index].get(email.strip().lower())


# ---------------------------------------------------------------------------
# Register parsing
# ---------------------------------------------------------------------------


def extract_register_sprint_number(cell: str) -> int:
    if cell == REGISTER_WELCOME_SPRINT:
        return 1
    if not cell.startswith(REGISTER_SPRINT_PREFIX):
        raise FatalError(f"Sprint '{cell}' didn't start with expected prefix '{REGISTER_SPRINT_PREFIX}'")
    try:
        number = int(cell[len(REGISTER_SPRINT_PREFIX):])
    except ValueError as err:
        raise FatalError(f"Failed to parse sprint number in '{cell}'") from err
    if not MIN_SPRINT_NUMBER <= number <= MAX_SPRINT_NUMBER:
        raise SprintRangeError(number, f"register cell {cell!r}")
    return number


def parse_timestamp(value: str) -> datetime:
    """
    Parse an RFC 3339 timestamp ("2025-01-11T10:05:00Z") into an aware UTC datetime.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as err:
        raise FatalError(f"Failed to parse timestamp '{value}'") from err
    if parsed.tzinfo is None:
        raise FatalError(f"Timestamp '{value}' has no UTC offset")
    return parsed.astimezone(timezone.utc)


def _cell(cells: Sequence[Any], index: int) -> str:
    value = cells[index]
    return "" if value is None else str(value).strip()


def read_module_register(
    rows: Sequence[Sequence[Any]],
    register_url: str,
    start_date: date,
    end_date: date,
) -> ModuleAttendance:
    """
    Group one module's register rows (header row first) per sprint and email.

    Check-ins on or before the course start, or on or after its end, belong
    to another batch and are skipped. Duplicate check-ins keep the first.
    """
    module = ModuleAttendance(register_url=register_url)
    if not rows:
        return module

    headings = tuple(_cell(rows[0], i) for i in range(min(len(rows[0]), len(REGISTER_HEADINGS))))
    if headings != REGISTER_HEADINGS:
        raise FatalError(f"Register sheet contained wrong headings: {', '.join(headings)}")

    for row_number, cells in enumerate(rows[1:], start=1):
        if not cells or not _cell(cells, 0):
            break
        if len(cells) < len(REGISTER_HEADINGS):
            raise FatalError(
                f"Not enough columns for row {row_number} - expected at least "
                f"{len(REGISTER_HEADINGS)}, got {len(cells)}"
            )

        try:
            sprint_number = extract_register_sprint_number(_cell(cells, 5))
            entry = RegisterEntry(
                name=_cell(cells, 0),
                email=_cell(cells, 1).lower(),
                timestamp=parse_timestamp(_cell(cells, 2)),
                region=_cell(cells, 6),
                register_url=register_url,
            )
        except FatalError as err:
            raise FatalError(f"Failed to read attendance from row {row_number}: {err}") from err

        day = entry.timestamp.date()
        if day <= start_date or day >= end_date:
            continue

        while len(module.sprints) < sprint_number:
            module.sprints.append({})
        sprint = module.sprints[sprint_number - 1]
        if entry.email in sprint:
            logger.warning(
                "Register sheet contained duplicate entry for sprint %d trainee %s", sprint_number, entry.email
            )
        else:
            sprint[entry.email] = entry

    return module


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------


def to_attendance(entry: RegisterEntry, class_date: date, region: str) -> Attendance:
    tz = region_timezone(region)
    start = datetime.combine(class_date, CLASS_START_TIME, tzinfo=tz)

    if entry.timestamp.astimezone(tz).date() != class_date:
        kind = AttendanceKind.WRONG_DAY
    elif (entry.timestamp - start) // timedelta(minutes=1) > LATE_AFTER_MINUTES:
        kind = AttendanceKind.LATE
    else:
        kind = AttendanceKind.ON_TIME
    return Attendance(kind=kind, register_url=entry.register_url)


def _class_dates(module: Module, sprint_index: int, region: str) -> List[date]:
    dates: List[date] = []
    for assignment in module.sprints[sprint_index].assignments:
        if isinstance(assignment, AttendanceAssignment) and region in assignment.class_dates:
            dates.append(assignment.class_dates[region])
    return dates


def trainee_module_attendance(
    module: Module,
    module_attendance: Optional[ModuleAttendance],
    email: Optional[str],
    region: str,
    module_name: str = "",
    today: Optional[date] = None,
) -> List[SubmissionState]:
    """
    One attendance state per sprint of `module` for one trainee.

    Trainees without a known email get no attendance states at all, so
    the matcher keeps its default attendance slots.
    """
    if email is None:
        return []
    if module_attendance is None:
        raise FatalError(f"Register contained no attendance for module {module_name}")

    states: List[SubmissionState] = []
    for sprint_index, sprint in enumerate(module.sprints):
        dates = _class_dates(module, sprint_index, region)
        if len(dates) != 1:
            states.append(MissingButNotExpected(AttendanceAssignment(class_dates={})))
            continue
        class_date = dates[0]

        entry = module_attendance.entry(sprint_index, email)
        if entry is not None:
            states.append(SubmissionPresent(AttendanceSubmission(to_attendance(entry, class_date, region))))
        elif sprint.is_in_past(region, today):
            absent = Attendance(kind=AttendanceKind.ABSENT, register_url=module_attendance.register_url)
            states.append(SubmissionPresent(AttendanceSubmission(absent)))
        else:
            states.append(MissingButNotExpected(AttendanceAssignment(class_dates={region: class_date})))
    return states
