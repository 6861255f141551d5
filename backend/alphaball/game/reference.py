from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import RLock

from .errors import ReferenceDataError, UnknownModeError
from .matcher import DEFAULT_MIN_LENGTH, DEFAULT_THRESHOLD, NameMatcher


logger = logging.getLogger(__name__)

GAME_MODES = ("legacy", "modern")
MODE_ALIASES = {"icons": "legacy"}


def resolve_mode(mode: str | None) -> str:
    m = (mode or "").strip().lower()
    m = MODE_ALIASES.get(m, m)
    if m not in GAME_MODES:
        raise UnknownModeError(mode or "")
    return m


class ReferenceDataset:
    """Read-only player names per game mode, loaded from a JSON file.

    The file maps team -> {"legacy": [...], "modern": [...]}. Names are
    loaded lazily on first use and matchers are built once per mode.
    """

    def __init__(
        self,
        path: str | Path,
        threshold: float = DEFAULT_THRESHOLD,
        min_length: int = DEFAULT_MIN_LENGTH,
    ) -> None:
        self.path = Path(path)
        self.threshold = threshold
        self.min_length = min_length
        self._lock = RLock()
        self._names: dict[str, tuple[str, ...]] | None = None
        self._matchers: dict[str, NameMatcher] = {}

    def _load(self) -> dict[str, tuple[str, ...]]:
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                database = json.load(fh)
        except FileNotFoundError as exc:
            raise ReferenceDataError(f"player database not found: {self.path}") from exc
        except (OSError, ValueError) as exc:
            raise ReferenceDataError(f"failed to read player database: {exc}") from exc

        if not isinstance(database, dict):
            raise ReferenceDataError("player database must be an object of teams")

        by_mode: dict[str, set[str]] = {m: set() for m in GAME_MODES}
        for team in database.values():
            if not isinstance(team, dict):
                continue
            for mode in GAME_MODES:
                names = team.get(mode)
                if isinstance(names, list):
                    by_mode[mode].update(n.strip() for n in names if isinstance(n, str) and n.strip())

        loaded = {mode: tuple(sorted(names)) for mode, names in by_mode.items()}
        logger.info(
            "[reference-loaded] path=%s %s",
            self.path,
            " ".join(f"{m}={len(n)}" for m, n in loaded.items()),
        )
        return loaded

    def names(self, mode: str) -> tuple[str, ...]:
        m = resolve_mode(mode)
        with self._lock:
            if self._names is None:
                self._names = self._load()
            return self._names[m]

    def matcher(self, mode: str) -> NameMatcher:
        m = resolve_mode(mode)
        with self._lock:
            cached = self._matchers.get(m)
            if cached is None:
                cached = NameMatcher(self.names(m), threshold=self.threshold, min_length=self.min_length)
                self._matchers[m] = cached
            return cached
