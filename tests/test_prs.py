"""
Unit tests for turning GitHub PR payloads into Pr objects and checking titles.
"""

import unittest
from datetime import datetime, timezone

from traineetracker.config import COMPLETE_LABEL, NEEDS_REVIEW_LABEL, REVIEWED_LABEL
from traineetracker.model import PrState
from traineetracker.prs import pr_from_github, pr_state_from_labels, validate_pr_title


def payload(**overrides) -> dict:
    data = {
        "number": 12,
        "html_url": "https://github.com/org/Module-JS1/pull/12",
        "title": "London | March-2025 | Ada Lovelace | Sprint 1 | Alarm clock",
        "body": "Done!",
        "state": "open",
        "user": {"login": "ada"},
        "labels": [{"name": NEEDS_REVIEW_LABEL}, {"name": "Module-JS1"}],
        "created_at": "2025-01-12T09:00:00Z",
        "updated_at": "2025-01-13T09:00:00Z",
    }
    data.update(overrides)
    return data


class TestPrState(unittest.TestCase):
    def test_precedence(self) -> None:
        self.assertEqual(pr_state_from_labels([COMPLETE_LABEL, NEEDS_REVIEW_LABEL]), PrState.NEEDS_REVIEW)
        self.assertEqual(pr_state_from_labels([REVIEWED_LABEL, COMPLETE_LABEL]), PrState.COMPLETE)
        self.assertEqual(pr_state_from_labels([REVIEWED_LABEL]), PrState.REVIEWED)
        self.assertEqual(pr_state_from_labels(["Module-JS1"]), PrState.UNKNOWN)


class TestPrFromGithub(unittest.TestCase):
    def test_open_pr(self) -> None:
        pr = pr_from_github(payload(), "Module-JS1")

        self.assertIsNotNone(pr)
        self.assertEqual(pr.number, 12)
        self.assertEqual(pr.author, "ada")
        self.assertEqual(pr.repo_name, "Module-JS1")
        self.assertEqual(pr.state, PrState.NEEDS_REVIEW)
        self.assertFalse(pr.is_closed)
        self.assertEqual(pr.labels, frozenset({NEEDS_REVIEW_LABEL, "Module-JS1"}))
        self.assertEqual(pr.created_at, datetime(2025, 1, 12, 9, tzinfo=timezone.utc))

    def test_closed_complete_pr_is_kept(self) -> None:
        pr = pr_from_github(payload(state="closed", labels=[{"name": COMPLETE_LABEL}]), "Module-JS1")
        self.assertTrue(pr.is_closed)
        self.assertEqual(pr.state, PrState.COMPLETE)

    def test_untrackable_prs_are_skipped(self) -> None:
        cases = {
            "closed unfinished": payload(state="closed"),
            "deleted account": payload(user=None),
            "no login": payload(user={}),
            "no timestamps": payload(created_at=None),
            "no url": payload(html_url=""),
        }
        for name, data in cases.items():
            with self.subTest(name=name):
                self.assertIsNone(pr_from_github(data, "Module-JS1"))

    def test_missing_body_is_empty(self) -> None:
        self.assertEqual(pr_from_github(payload(body=None), "Module-JS1").body, "")


class TestValidatePrTitle(unittest.TestCase):
    def test_good_title(self) -> None:
        self.assertIsNone(validate_pr_title("London | March-2025 | Ada Lovelace | Sprint 1 | Alarm clock"))
        self.assertIsNone(validate_pr_title("Glasgow|Cohort|Ada|sprint 12|Todo"))

    def test_wrong_number_of_parts(self) -> None:
        reason = validate_pr_title("London | Ada | Sprint 1 | Alarm clock")
        self.assertIn("number of parts", reason)

    def test_bad_sprint_part(self) -> None:
        for sprint in ("Week 1", "Sprint1", "Sprint one", "Sprint 1 and 2"):
            with self.subTest(sprint=sprint):
                reason = validate_pr_title(f"London | March-2025 | Ada | {sprint} | Alarm clock")
                self.assertIn(sprint, reason)


if __name__ == "__main__":
    unittest.main()
