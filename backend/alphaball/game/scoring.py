"""Letter values and round point splitting.

Rare starting letters are worth more. A round's pool is split evenly with
floor division among everyone who answered validly; the remainder is dropped.
"""

from __future__ import annotations

from typing import Mapping, Sequence


LETTER_SCORES: dict[str, int] = {
    "A": 1, "B": 3, "C": 3, "D": 2, "E": 1, "F": 4, "G": 2, "H": 4, "I": 1,
    "J": 8, "K": 5, "L": 1, "M": 3, "N": 1, "O": 1, "P": 3, "Q": 10, "R": 1,
    "S": 1, "T": 1, "U": 1, "V": 4, "W": 4, "X": 8, "Y": 4, "Z": 10,
}


def points_for_letter(letter: str) -> int:
    key = (letter or "").strip().upper()
    if key not in LETTER_SCORES:
        raise ValueError(f"not a letter: {letter!r}")
    return LETTER_SCORES[key]


def distribute(point_pool: int, valid_player_names: Sequence[str]) -> dict[str, int]:
    if not valid_player_names:
        return {}
    share = point_pool // len(valid_player_names)
    return {name: share for name in valid_player_names}


def pick_winner(scores: Mapping[str, int]) -> str | None:
    """Highest score wins; on a tie the earliest entry in ``scores`` wins."""
    winner: str | None = None
    best = 0
    for name, score in scores.items():
        if winner is None or score > best:
            winner, best = name, score
    return winner
