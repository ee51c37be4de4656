"""
CLI (Command Line Interface).

Developer commands for checking how one PR is matched:

    traineetracker match <pr-url>
    traineetracker validate <pr-url>

Both fetch the module's issues and the PR author's PRs from GitHub (token
from $GH_TOKEN) and match them against a placeholder schedule whose
sprints are all in the future, so only PR matching is exercised.

Exit codes: 0 ok, 1 error, 2 PR failed validation.
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from typing import Tuple

from traineetracker.config import github_token
from traineetracker.errors import FatalError, TrackerError
from traineetracker.github import GithubClient, fetch_course, fetch_module_prs
from traineetracker.matching import match_prs_to_assignments
from traineetracker.model import Module, ModuleWithSubmissions, Pr, SubmissionState
from traineetracker.prs import validate_pr_title
from traineetracker.schedule import CourseSchedule

REGIONS = ("London", "West Midlands", "North West", "Sheffield", "Glasgow", "South Africa")
MATCH_REGION = "London"
PLACEHOLDER_DATE = date(2030, 1, 1)
PLACEHOLDER_SPRINT_COUNT = 3

COULD_NOT_MATCH_MESSAGE = (
    "Your PR couldn't be matched to an assignment in this module.\n\n"
    "Please check its title is in the correct format, and that you only have one PR per assignment."
)


def parse_pr_url(url: str) -> Tuple[str, str, int]:
    """
    Split "https://github.com/<org>/<repo>/pull/<number>" into its parts.
    """
    parts = url.strip().rstrip("/").split("/")
    if len(parts) != 7 or parts[5] != "pull":
        raise ValueError(f"Couldn't parse GitHub PR link {url}")
    try:
        number = int(parts[6])
    except ValueError as err:
        raise ValueError(f"Couldn't parse PR number in {url}") from err
    return parts[3], parts[4], number


def placeholder_schedule(module_name: str) -> CourseSchedule:
    sprint_dates = [{region: PLACEHOLDER_DATE for region in REGIONS} for _ in range(PLACEHOLDER_SPRINT_COUNT)]
    return CourseSchedule(start=PLACEHOLDER_DATE, end=PLACEHOLDER_DATE, sprints={module_name: sprint_dates})


def _match_author_prs(
    client: GithubClient, url: str, include_closed: bool
) -> Tuple[Pr, Module, ModuleWithSubmissions]:
    """
    Match all PRs by the author of the PR at `url` in its module.
    """
    org, module_name, number = parse_pr_url(url)
    course = fetch_course(client, org, "itp", placeholder_schedule(module_name))
    module = course.modules[module_name]

    module_prs = fetch_module_prs(client, org, module_name, include_closed=include_closed)
    pr = next((p for p in module_prs if p.number == number), None)
    if pr is None:
        raise FatalError(f"Failed to find PR {number} in list of PRs for module {module_name}")

    author_prs = [p for p in module_prs if p.author.lower() == pr.author.lower()]
    matched = match_prs_to_assignments(module, author_prs, [], MATCH_REGION)
    return pr, module, matched


def _cmd_match(args: argparse.Namespace, client: GithubClient) -> int:
    """
    Print every assignment slot of the module with its submission state.
    """
    _pr, module, matched = _match_author_prs(client, args.url, include_closed=True)

    for sprint_index, (sprint, sprint_with_submissions) in enumerate(zip(module.sprints, matched.sprints), start=1):
        print(f"Sprint {sprint_index}")
        for assignment, state in zip(sprint.assignments, sprint_with_submissions.submissions):
            print(f"  {assignment.heading()} - {_describe(state)}")

    for unknown in matched.unknown_prs:
        print(f"Unknown PR: #{unknown.number} {unknown.title} ({unknown.url})")
    return 0


def _describe(state: SubmissionState) -> str:
    if state.is_submitted():
        submission = state.submission
        return f"{submission.display_text()} {submission.link()}"
    return type(state).__name__


def _cmd_validate(args: argparse.Namespace, client: GithubClient) -> int:
    """
    Check that the PR matches an assignment and that its title is well formed.
    """
    pr, _module, matched = _match_author_prs(client, args.url, include_closed=False)

    if any(unknown.number == pr.number for unknown in matched.unknown_prs):
        print("Validation error: Could not match PR against assignment")
        print(COULD_NOT_MATCH_MESSAGE)
        return 2

    reason = validate_pr_title(pr.title)
    if reason is not None:
        print(f"Validation error: Bad title: {reason}")
        return 2

    print(f"OK: #{pr.number} {pr.title}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="traineetracker", description="Trainee tracker developer CLI")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log matching decisions")
    sub = parser.add_subparsers(dest="command", required=True)

    p_match = sub.add_parser("match", help="Show how a PR author's PRs match the module's assignments")
    p_match.add_argument("url", type=str, help="PR URL (e.g. https://github.com/org/Module-JS1/pull/12)")

    p_validate = sub.add_parser("validate", help="Validate a PR's title and that it matches an assignment")
    p_validate.add_argument("url", type=str, help="PR URL (e.g. https://github.com/org/Module-JS1/pull/12)")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        parse_pr_url(args.url)
        client = GithubClient(github_token())
        if args.command == "match":
            raise SystemExit(_cmd_match(args, client))
        if args.command == "validate":
            raise SystemExit(_cmd_validate(args, client))
    except (TrackerError, ValueError) as err:
        print(f"Error: {err}", file=sys.stderr)
        raise SystemExit(1)

    raise SystemExit(2)
