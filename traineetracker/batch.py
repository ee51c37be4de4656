"""
Batch assembly.

Joins a built Course with already-fetched per-module PR lists and the
attendance register, producing one TraineeWithSubmissions per trainee.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Iterable, Mapping, Optional, Sequence

from traineetracker.attendance import ModuleAttendance, trainee_module_attendance
from traineetracker.matching import match_prs_to_assignments
from traineetracker.model import Batch, Course, ModuleWithSubmissions, Pr, Trainee, TraineeWithSubmissions

logger = logging.getLogger(__name__)


def trainee_with_submissions(
    trainee: Trainee,
    course: Course,
    prs_by_module: Mapping[str, Sequence[Pr]],
    register: Mapping[str, ModuleAttendance],
    today: Optional[date] = None,
) -> TraineeWithSubmissions:
    login = trainee.github_login.lower()
    modules: Dict[str, ModuleWithSubmissions] = {}
    for module_name, module in course.modules.items():
        trainee_prs = [pr for pr in prs_by_module.get(module_name, []) if pr.author.lower() == login]
        attendance = trainee_module_attendance(
            module,
            register.get(module_name),
            trainee.email,
            trainee.region,
            module_name=module_name,
            today=today,
        )
        modules[module_name] = match_prs_to_assignments(module, trainee_prs, attendance, trainee.region, today)
    return TraineeWithSubmissions(trainee=trainee, modules=modules)


def build_batch(
    name: str,
    course: Course,
    trainees: Iterable[Trainee],
    prs_by_module: Mapping[str, Sequence[Pr]],
    register: Mapping[str, ModuleAttendance],
    today: Optional[date] = None,
) -> Batch:
    """
    Match every trainee of a batch, ordered by GitHub login.
    """
    members = sorted(trainees, key=lambda t: t.github_login.lower())
    logger.info("Matching %d trainees across %d modules", len(members), len(course.modules))
    return Batch(
        name=name,
        trainees=[trainee_with_submissions(t, course, prs_by_module, register, today) for t in members],
    )
