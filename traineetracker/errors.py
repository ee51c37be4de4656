"""
Error classes.

Two families:
- UserFacingError: curriculum-authoring mistakes (badly labelled issues).
  The message always names the offending issue URL so it can be shown
  to whoever maintains the curriculum.
- FatalError: schedule/config drift or broken input data. These halt the
  whole computation instead of being skipped.

Missing submissions, missing attendance and unmatched pull requests are
NOT errors: they are normal states in the data model.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class TrackerError(Exception):
    """
    Base class for every error raised by this package.
    """


class UserFacingError(TrackerError):
    pass


class FatalError(TrackerError):
    pass


class LabelErrorKind(Enum):
    DUPLICATE_SUBMIT_LABEL = "DuplicateSubmitLabel"
    DUPLICATE_PRIORITY_LABEL = "DuplicatePriorityLabel"
    MISSING_SUBMIT_LABEL = "MissingSubmitLabel"
    MISSING_PRIORITY_LABEL = "MissingPriorityLabel"
    UNRECOGNIZED_SUBMIT_VALUE = "UnrecognizedSubmitValue"
    INVALID_SPRINT_LABEL = "InvalidSprintLabel"
    MISSING_SPRINT_LABEL = "MissingSprintLabel"


class IssueLabelError(UserFacingError):
    """
    An issue's labels could not be turned into an assignment.
    """

    def __init__(self, kind: LabelErrorKind, issue_url: str, detail: str) -> None:
        self.kind = kind
        self.issue_url = issue_url
        super().__init__(f"Failed to parse issue {issue_url} - {detail}")


class SprintRangeError(FatalError):
    """
    A sprint number fell outside the range any real course uses.
    """

    def __init__(self, number: int, source: Optional[str] = None) -> None:
        self.number = number
        self.source = source
        message = f"Sprint number was impractical - expected something between 1 and 20 but was {number}"
        if source:
            message += f" ({source})"
        super().__init__(message)
