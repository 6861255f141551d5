from __future__ import annotations

from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Literal


GamePhase = Literal["idle", "active", "resolving", "inter_round", "complete"]

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
LAST_LETTER_INDEX = len(ALPHABET) - 1


@dataclass
class PlayerInfo:
    connection_id: str
    joined_at_ms: int
    last_seen_ms: int = 0


@dataclass
class RoundAnswer:
    answer: str
    is_valid: bool
    points: int = 0
    matched_player: str | None = None
    reason: str | None = None
    submitted_at_ms: int | None = None


@dataclass
class Room:
    room_id: str
    game_mode: str = "modern"
    phase: GamePhase = "idle"
    players: dict[str, PlayerInfo] = field(default_factory=dict)
    scores: dict[str, int] = field(default_factory=dict)
    current_letter: str = "A"
    current_letter_index: int = 0
    used_answers: list[str] = field(default_factory=list)
    round_answers: dict[str, RoundAnswer] = field(default_factory=dict)
    timer: int = 30
    winner: str | None = None
    reference_degraded: bool = False
    created_at_ms: int = 0
    last_activity_ms: int = 0
    # Bumped on every transition that supersedes pending callbacks.
    generation: int = 0
    timer_task: Any = field(default=None, repr=False, compare=False)
    lock: RLock = field(default_factory=RLock, repr=False, compare=False)

    @property
    def is_active(self) -> bool:
        return self.phase == "active"
