"""
Unit tests for matching PRs to assignments.

Matching contract:
- a PR fills at most one slot, a filled slot is never overwritten
- best word overlap wins, ties go to the first slot (sprint, then assignment order)
- a sprint claim in the title restricts the search to that sprint
- unmatched open PRs are "unknown", unmatched closed PRs are dropped
"""

import unittest
from datetime import date

from traineetracker.errors import FatalError, SprintRangeError
from traineetracker.matching import SlotGrid, extract_claimed_sprint, match_prs_to_assignments, seed_slots
from traineetracker.model import (
    AssignmentOptionality,
    Attendance,
    AttendanceAssignment,
    AttendanceKind,
    AttendanceSubmission,
    ExpectedPullRequest,
    MissingButExpected,
    MissingButNotExpected,
    MissingStretch,
    Module,
    Pr,
    PrState,
    PullRequestSubmission,
    Sprint,
    SubmissionPresent,
)

PAST = date(2025, 1, 11)
FUTURE = date(2030, 1, 1)
TODAY = date(2026, 1, 1)


def expected(title: str, optionality=AssignmentOptionality.MANDATORY) -> ExpectedPullRequest:
    return ExpectedPullRequest(title=title, html_url=f"https://github.com/org/Module-JS1/issues/{title}", optionality=optionality)


def make_module(*sprints, when: date = PAST) -> Module:
    return Module(
        sprints=tuple(
            Sprint(assignments=(AttendanceAssignment({"London": when}),) + tuple(assignments), dates={"London": when})
            for assignments in sprints
        )
    )


def make_pr(number: int, title: str, closed: bool = False) -> Pr:
    return Pr(
        repo_name="Module-JS1",
        number=number,
        url=f"https://github.com/org/Module-JS1/pull/{number}",
        title=title,
        author="trainee",
        state=PrState.COMPLETE if closed else PrState.NEEDS_REVIEW,
        is_closed=closed,
    )


def filled_by(state) -> int:
    assert isinstance(state, SubmissionPresent)
    assert isinstance(state.submission, PullRequestSubmission)
    return state.submission.pull_request.number


class TestExtractClaimedSprint(unittest.TestCase):
    def test_sprint_part(self) -> None:
        self.assertEqual(extract_claimed_sprint("London | March-2025 | First Last | Sprint 2 | thing"), 2)

    def test_week_part_and_no_space(self) -> None:
        self.assertEqual(extract_claimed_sprint("Glasgow | Week3 | thing"), 3)

    def test_last_claim_wins(self) -> None:
        self.assertEqual(extract_claimed_sprint("Sprint 1 | Week 4 | thing"), 4)

    def test_no_claim(self) -> None:
        self.assertIsNone(extract_claimed_sprint("Alarm clock"))
        self.assertIsNone(extract_claimed_sprint("London | Sprint | thing"))
        self.assertIsNone(extract_claimed_sprint("Finished sprint 2"))

    def test_out_of_range_is_fatal(self) -> None:
        for title in ("Sprint 25 | x", "Week 0 | x"):
            with self.subTest(title=title):
                with self.assertRaises(SprintRangeError) as ctx:
                    extract_claimed_sprint(title)
                self.assertIsInstance(ctx.exception, FatalError)


class TestSeeding(unittest.TestCase):
    def test_past_sprint_defaults(self) -> None:
        stretch = expected("Stretch thing", AssignmentOptionality.STRETCH)
        mandatory = expected("Mandatory thing")
        result = match_prs_to_assignments(make_module([mandatory, stretch]), [], [], "London", today=TODAY)

        states = result.sprints[0].submissions
        self.assertEqual(states[0], MissingButExpected(AttendanceAssignment({"London": PAST})))
        self.assertEqual(states[1], MissingButExpected(mandatory))
        self.assertEqual(states[2], MissingStretch(stretch))

    def test_future_sprint_defaults(self) -> None:
        mandatory = expected("Mandatory thing")
        result = match_prs_to_assignments(make_module([mandatory], when=FUTURE), [], [], "London", today=TODAY)
        self.assertEqual(result.sprints[0].submissions[1], MissingButNotExpected(mandatory))

    def test_unknown_region_counts_as_past(self) -> None:
        mandatory = expected("Mandatory thing")
        result = match_prs_to_assignments(make_module([mandatory], when=FUTURE), [], [], "unknown", today=TODAY)
        self.assertEqual(result.sprints[0].submissions[1], MissingButExpected(mandatory))

    def test_attendance_overlay_by_sprint_index(self) -> None:
        on_time = SubmissionPresent(AttendanceSubmission(Attendance(AttendanceKind.ON_TIME, "https://register")))
        module = make_module([], [])
        result = match_prs_to_assignments(module, [], [on_time], "London", today=TODAY)

        self.assertEqual(result.sprints[0].submissions, [on_time])
        self.assertEqual(result.sprints[1].submissions, [MissingButExpected(AttendanceAssignment({"London": PAST}))])

    def test_exactly_one_state_per_slot(self) -> None:
        module = make_module([expected("A"), expected("B")], [expected("C")])
        grid = seed_slots(module, [], "London", TODAY)
        self.assertEqual(len(grid), module.assignment_count())
        self.assertEqual([len(s.submissions) for s in grid.to_sprints()], [3, 2])


class TestMatching(unittest.TestCase):
    def test_claimed_sprint_scenario(self) -> None:
        assignment = expected("Sprint 2 | implement linked list")
        module = make_module([], [assignment])
        pr = make_pr(1, "London | March-2025 | First Last | Sprint 2 | implement_linked_list")

        result = match_prs_to_assignments(module, [pr], [], "London", today=TODAY)

        self.assertEqual(
            result.sprints[1].submissions[1],
            SubmissionPresent(PullRequestSubmission(pull_request=pr, optionality=AssignmentOptionality.MANDATORY)),
        )
        self.assertEqual(result.unknown_prs, [])

    def test_best_score_wins_over_earlier_slot(self) -> None:
        module = make_module([expected("Alarm clock"), expected("Quote generator app")])
        result = match_prs_to_assignments(module, [make_pr(1, "quote generator")], [], "London", today=TODAY)
        self.assertEqual(result.sprints[0].submissions[1], MissingButExpected(expected("Alarm clock")))
        self.assertEqual(filled_by(result.sprints[0].submissions[2]), 1)

    def test_ties_go_to_first_slot(self) -> None:
        module = make_module([expected("Build form")], [expected("Build table")])
        prs = [make_pr(1, "build"), make_pr(2, "build")]

        result = match_prs_to_assignments(module, prs, [], "London", today=TODAY)

        self.assertEqual(filled_by(result.sprints[0].submissions[1]), 1)
        self.assertEqual(filled_by(result.sprints[1].submissions[1]), 2)

    def test_stretch_optionality_is_carried(self) -> None:
        module = make_module([expected("Alarm clock", AssignmentOptionality.STRETCH)])
        result = match_prs_to_assignments(module, [make_pr(1, "alarmclock")], [], "London", today=TODAY)
        self.assertEqual(result.sprints[0].submissions[1].submission.optionality, AssignmentOptionality.STRETCH)

    def test_filled_slot_is_never_overwritten(self) -> None:
        module = make_module([expected("Alarm clock")])
        first, second = make_pr(1, "alarm clock"), make_pr(2, "alarm clock")

        result = match_prs_to_assignments(module, [first, second], [], "London", today=TODAY)

        self.assertEqual(filled_by(result.sprints[0].submissions[1]), 1)
        self.assertEqual(result.unknown_prs, [second])

    def test_input_order_decides_contested_slot(self) -> None:
        module = make_module([expected("Alarm clock")])
        full, partial = make_pr(1, "alarm clock"), make_pr(2, "alarm")

        in_order = match_prs_to_assignments(module, [full, partial], [], "London", today=TODAY)
        reversed_order = match_prs_to_assignments(module, [partial, full], [], "London", today=TODAY)

        self.assertEqual(filled_by(in_order.sprints[0].submissions[1]), 1)
        self.assertEqual(filled_by(reversed_order.sprints[0].submissions[1]), 2)
        self.assertEqual(reversed_order.unknown_prs, [full])

    def test_claim_restricts_search_to_claimed_sprint(self) -> None:
        module = make_module([expected("Alarm clock")], [expected("Todo list")])
        pr = make_pr(1, "Sprint 2 | alarm clock")

        result = match_prs_to_assignments(module, [pr], [], "London", today=TODAY)

        self.assertEqual(result.sprints[0].submissions[1], MissingButExpected(expected("Alarm clock")))
        self.assertEqual(result.unknown_prs, [pr])

    def test_claim_beyond_module_matches_nothing(self) -> None:
        module = make_module([expected("Alarm clock")])
        pr = make_pr(1, "Sprint 4 | alarm clock")
        result = match_prs_to_assignments(module, [pr], [], "London", today=TODAY)
        self.assertEqual(result.unknown_prs, [pr])

    def test_unmatched_open_pr_is_unknown(self) -> None:
        module = make_module([expected("Alarm clock")])
        pr = make_pr(1, "completely different")
        result = match_prs_to_assignments(module, [pr], [], "London", today=TODAY)
        self.assertEqual(result.unknown_prs, [pr])

    def test_unmatched_closed_pr_is_dropped(self) -> None:
        module = make_module([expected("Alarm clock")])
        pr = make_pr(1, "completely different", closed=True)

        result = match_prs_to_assignments(module, [pr], [], "London", today=TODAY)

        self.assertEqual(result.unknown_prs, [])
        self.assertFalse(result.sprints[0].submissions[1].is_submitted())

    def test_attendance_slots_are_not_matched(self) -> None:
        module = make_module([])
        pr = make_pr(1, "attendance")
        result = match_prs_to_assignments(module, [pr], [], "London", today=TODAY)
        self.assertEqual(result.unknown_prs, [pr])
        self.assertFalse(result.sprints[0].submissions[0].is_submitted())

    def test_bad_claim_aborts_matching(self) -> None:
        module = make_module([expected("Alarm clock")])
        with self.assertRaises(SprintRangeError):
            match_prs_to_assignments(module, [make_pr(1, "Sprint 21 | alarm clock")], [], "London", today=TODAY)


class TestSlotGrid(unittest.TestCase):
    def test_bounds(self) -> None:
        grid = SlotGrid([2, 1])
        self.assertEqual(len(grid), 3)
        self.assertEqual(grid.sprint_count, 2)
        with self.assertRaises(IndexError):
            grid.set(1, 1, MissingStretch(expected("x")))
        with self.assertRaises(LookupError):
            grid.get(0, 0)


if __name__ == "__main__":
    unittest.main()
