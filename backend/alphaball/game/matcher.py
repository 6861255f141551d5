from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from rapidfuzz import fuzz, process, utils


DEFAULT_THRESHOLD = 0.7
DEFAULT_MIN_LENGTH = 2


@dataclass(frozen=True)
class MatchResult:
    matched: bool
    entity: str | None = None
    similarity: float = 0.0


NO_MATCH = MatchResult(matched=False)


class NameMatcher:
    """Fuzzy lookup of free-text input against a fixed set of reference names.

    Scores come from ``fuzz.WRatio``, which takes the best of whole-string,
    partial-substring and token-set alignment; a surname on its own therefore
    scores high against the full name. Candidates are kept sorted so that
    ties always resolve to the same entry.
    """

    def __init__(
        self,
        candidates: Iterable[str],
        threshold: float = DEFAULT_THRESHOLD,
        min_length: int = DEFAULT_MIN_LENGTH,
    ) -> None:
        self.candidates: tuple[str, ...] = tuple(sorted({c for c in candidates if c and c.strip()}))
        self.threshold = threshold
        self.min_length = min_length
        self._processed = [utils.default_process(c) for c in self.candidates]

    def __len__(self) -> int:
        return len(self.candidates)

    def match(self, text: str) -> MatchResult:
        query = (text or "").strip()
        if len(query) < self.min_length or not self.candidates:
            return NO_MATCH

        processed = utils.default_process(query)
        if not processed:
            return NO_MATCH

        best = process.extractOne(processed, self._processed, scorer=fuzz.WRatio, processor=None)
        if best is None:
            return NO_MATCH

        _, score, index = best
        similarity = round(score / 100.0, 4)
        return MatchResult(
            matched=similarity >= self.threshold,
            entity=self.candidates[index],
            similarity=similarity,
        )


def match(text: str, candidates: Iterable[str], threshold: float = DEFAULT_THRESHOLD) -> MatchResult:
    return NameMatcher(candidates, threshold=threshold).match(text)
