from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from typing import Iterable, Literal

from .matcher import NameMatcher


ValidationReason = Literal["empty", "wrong_letter", "already_used", "not_found"]

# Partial-name overlap only applies to names longer than this.
_MIN_CONFLICT_NAME_LEN = 3
# Tokens this short ("de", "da", "jr") never count as an overlap.
_MIN_CONFLICT_TOKEN_LEN = 2


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    reason: ValidationReason | None = None
    matched_entity: str | None = None


def _fold_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_name(text: str) -> str:
    t = _fold_accents(text or "").lower()
    t = re.sub(r"[^a-z\s]", "", t)
    t = re.sub(r"\s+", " ", t)
    return t.strip()


def _tokens(name: str) -> list[str]:
    return [tok for tok in name.split(" ") if len(tok) > _MIN_CONFLICT_TOKEN_LEN]


def names_conflict(a: str, b: str) -> bool:
    """True if two normalized names refer to (possibly) the same player.

    An exact match always conflicts. For longer names any shared token also
    conflicts, including one token containing the other, so "henry" clashes
    with "thierry henry".
    """
    if not a or not b:
        return False
    if a == b:
        return True
    if len(a) <= _MIN_CONFLICT_NAME_LEN or len(b) <= _MIN_CONFLICT_NAME_LEN:
        return False

    for ta in _tokens(a):
        for tb in _tokens(b):
            if ta in tb or tb in ta:
                return True
    return False


def conflicts_with_used(name: str, used_answers: Iterable[str]) -> bool:
    return any(names_conflict(name, used) for used in used_answers)


def validate_answer(
    text: str,
    active_letter: str,
    used_answers: Iterable[str],
    candidates: NameMatcher | Iterable[str] | None = None,
) -> ValidationResult:
    """Decide whether ``text`` is an acceptable answer for ``active_letter``.

    ``candidates`` may be a prebuilt :class:`NameMatcher`, a plain collection
    of reference names, or ``None``. With ``None`` the reference lookup is
    skipped and the trimmed input stands in for the matched entity.
    """
    trimmed = (text or "").strip()
    if not trimmed:
        return ValidationResult(valid=False, reason="empty")

    letter = (active_letter or "").strip().lower()[:1]
    folded = _fold_accents(trimmed).lower()
    if not letter or not folded.startswith(letter):
        return ValidationResult(valid=False, reason="wrong_letter")

    used = list(used_answers)
    normalized = normalize_name(trimmed)
    if conflicts_with_used(normalized, used):
        return ValidationResult(valid=False, reason="already_used")

    if candidates is None:
        return ValidationResult(valid=True, matched_entity=trimmed)

    matcher = candidates if isinstance(candidates, NameMatcher) else NameMatcher(candidates)
    result = matcher.match(trimmed)
    if not result.matched or result.entity is None:
        return ValidationResult(valid=False, reason="not_found")

    if conflicts_with_used(normalize_name(result.entity), used):
        return ValidationResult(valid=False, reason="already_used")

    return ValidationResult(valid=True, matched_entity=result.entity)
