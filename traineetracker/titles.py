"""
Title tokenization.

Turns free-text titles (assignment issue titles, PR titles) into
comparable word sets. A word set is an insertion-ordered dict with None
values, so duplicates collapse but first-seen order is kept.
"""

from __future__ import annotations

from typing import Dict


WordSet = Dict[str, None]

# Applied one after the other, each splitting the fragments of the previous.
_DELIMITERS = (" ", "_", "-", "/", "|")


def title_word_set(title: str) -> WordSet:
    """
    Lower-case `title` and split it on every delimiter.

    Empty fragments (e.g. from " | ") are kept as a token.
    """
    words = [title.lower()]
    for delimiter in _DELIMITERS:
        words = [part for word in words for part in word.split(delimiter)]
    return dict.fromkeys(words)


def make_title_more_matchable(title: str) -> WordSet:
    """
    Word set for an assignment title.

    Adjacent words are also glued together ("alarm clock" -> "alarmclock")
    because trainees often merge them when naming their PR.
    """
    words = title_word_set(title.rstrip("."))
    ordered = list(words)
    for first, second in zip(ordered, ordered[1:]):
        words[f"{first}{second}"] = None
    return words


def add_claim_tokens(words: WordSet, sprint_number: int) -> None:
    # Only titles that mention "sprint" treat the number as a discriminator.
    if "sprint" in words:
        words[f"sprint{sprint_number}"] = None
        words[f"week{sprint_number}"] = None


def match_count(left: WordSet, right: WordSet) -> int:
    return sum(1 for word in left if word in right)
