from __future__ import annotations

import logging
import time
from typing import Any, Callable

from ..realtime import events
from .errors import InfrastructureError, OperationalError
from .matcher import NameMatcher
from .models import ALPHABET, LAST_LETTER_INDEX, Room, RoundAnswer
from .reference import ReferenceDataset
from .scoring import distribute, pick_winner, points_for_letter
from .timers import Scheduler
from .validator import conflicts_with_used, normalize_name, validate_answer


logger = logging.getLogger(__name__)

# emit(event, payload, to=<room id or connection id>)
EmitFn = Callable[..., Any]

TICK_INTERVAL_SEC = 1


def now_ms() -> int:
    return int(time.time() * 1000)


def answer_public(answer: RoundAnswer) -> dict:
    return {
        "answer": answer.answer,
        "isValid": answer.is_valid,
        "points": answer.points,
        "matchedPlayer": answer.matched_player,
        "reason": answer.reason,
    }


class RoundEngine:
    """Drives the round state machine of a room.

    Phases: idle -> active -> resolving -> inter_round -> active ... -> complete.
    All mutations happen under ``room.lock``. Every scheduled callback carries
    the room generation it was created for and does nothing once the room has
    moved on, so a round resolves at most once per letter.
    """

    def __init__(
        self,
        emit: EmitFn,
        scheduler: Scheduler,
        reference: ReferenceDataset | None = None,
        *,
        round_duration_sec: int = 30,
        inter_round_delay_sec: int = 3,
        min_players: int = 1,
        trust_client_hint: bool = False,
    ) -> None:
        self._emit = emit
        self._scheduler = scheduler
        self.reference = reference
        self.round_duration_sec = round_duration_sec
        self.inter_round_delay_sec = inter_round_delay_sec
        self.min_players = min_players
        self.trust_client_hint = trust_client_hint

    # ---- outbound ----

    def _send(self, event: str, payload: dict, to: str) -> None:
        try:
            self._emit(event, payload, to=to)
        except Exception:
            logger.exception("[emit-failed] event=%s to=%s", event, to)

    def snapshot(self, room: Room) -> dict:
        with room.lock:
            if room.is_active:
                round_answers: dict[str, dict] = {name: {"answered": True} for name in room.round_answers}
            else:
                round_answers = {name: answer_public(a) for name, a in room.round_answers.items()}

            return {
                "roomId": room.room_id,
                "players": {
                    name: {"id": p.connection_id, "joinedAt": p.joined_at_ms}
                    for name, p in room.players.items()
                },
                "scores": dict(room.scores),
                "currentLetter": room.current_letter,
                "currentLetterIndex": room.current_letter_index,
                "usedPlayers": list(room.used_answers),
                "roundAnswers": round_answers,
                "timer": room.timer,
                "isActive": room.is_active,
                "phase": room.phase,
                "gameMode": room.game_mode,
                "referenceDegraded": room.reference_degraded,
                "winner": room.winner,
            }

    def broadcast_state(self, room: Room) -> None:
        self._send(events.GAME_STATE_UPDATE, self.snapshot(room), to=room.room_id)

    # ---- helpers ----

    def _touch(self, room: Room) -> None:
        room.last_activity_ms = now_ms()

    def _cancel_task(self, room: Room) -> None:
        if room.timer_task is not None:
            room.timer_task.cancel()
            room.timer_task = None
        room.generation += 1

    def _matcher_for(self, room: Room) -> NameMatcher | None:
        if self.reference is None:
            return None
        try:
            return self.reference.matcher(room.game_mode)
        except InfrastructureError as exc:
            logger.warning("[reference-unavailable] room=%s mode=%s error=%s", room.room_id, room.game_mode, exc)
            return None

    def _everyone_answered(self, room: Room) -> bool:
        return bool(room.players) and all(name in room.round_answers for name in room.players)

    def _schedule_tick(self, room: Room) -> None:
        room.timer_task = self._scheduler.call_later(TICK_INTERVAL_SEC, self._tick, room, room.generation)

    # ---- transitions ----

    def start_game(self, room: Room) -> None:
        with room.lock:
            if room.phase not in ("idle", "complete"):
                raise OperationalError("Game already active")
            if len(room.players) < max(1, self.min_players):
                raise OperationalError(f"Need at least {max(1, self.min_players)} player(s)")

            self._cancel_task(room)
            for name in room.players:
                room.scores.setdefault(name, 0)

            room.used_answers = []
            room.round_answers = {}
            room.winner = None
            room.current_letter_index = 0
            room.current_letter = ALPHABET[0]
            room.timer = self.round_duration_sec
            room.phase = "active"
            room.reference_degraded = self._matcher_for(room) is None
            self._touch(room)

            logger.info(
                "[game-start] room=%s players=%d mode=%s degraded=%s",
                room.room_id,
                len(room.players),
                room.game_mode,
                room.reference_degraded,
            )

            self._send(
                events.GAME_STARTED,
                {
                    "message": "Game started!",
                    "letter": room.current_letter,
                    "letterIndex": room.current_letter_index,
                    "timer": room.timer,
                },
                to=room.room_id,
            )
            if room.reference_degraded:
                self._send(
                    events.ERROR_MESSAGE,
                    {"message": "Player database unavailable; answers are only checked by starting letter"},
                    to=room.room_id,
                )
            self.broadcast_state(room)
            self._schedule_tick(room)

    def submit_answer(
        self,
        room: Room,
        player_name: str,
        text: str,
        client_hint: bool | None = None,
    ) -> RoundAnswer | None:
        """Record ``player_name``'s answer for the running round.

        Returns ``None`` when the submission is ignored: the player is not in
        the room, or already answered this round.
        """
        with room.lock:
            if player_name not in room.players:
                logger.debug("[answer-ignored] room=%s player=%s not_in_room", room.room_id, player_name)
                return None
            if not room.is_active:
                raise OperationalError("Game not active")
            if player_name in room.round_answers:
                logger.debug("[answer-ignored] room=%s player=%s duplicate", room.room_id, player_name)
                return None

            result = validate_answer(text, room.current_letter, room.used_answers, self._matcher_for(room))
            is_valid = result.valid
            reason: str | None = result.reason
            if is_valid and self.trust_client_hint and client_hint is False:
                is_valid = False
                reason = "client_rejected"

            answer = RoundAnswer(
                answer=(text or "").strip(),
                is_valid=is_valid,
                matched_player=result.matched_entity if is_valid else None,
                reason=reason,
                submitted_at_ms=now_ms(),
            )
            room.round_answers[player_name] = answer
            room.players[player_name].last_seen_ms = answer.submitted_at_ms or 0
            self._touch(room)

            logger.info(
                "[answer] room=%s letter=%s player=%s valid=%s reason=%s",
                room.room_id,
                room.current_letter,
                player_name,
                is_valid,
                reason,
            )
            self._send(events.PLAYER_ANSWERED, {"playerName": player_name, "answered": True}, to=room.room_id)

            if self._everyone_answered(room):
                self._resolve_round(room)

            return answer

    def _tick(self, room: Room, generation: int) -> None:
        with room.lock:
            if room.generation != generation or not room.is_active:
                return

            room.timer = max(0, room.timer - 1)
            self._touch(room)
            self._send(events.TIMER_UPDATE, {"timer": room.timer}, to=room.room_id)

            if room.timer <= 0:
                self._resolve_round(room)
                return

            self._schedule_tick(room)

    def _resolve_round(self, room: Room) -> None:
        # Caller holds room.lock.
        self._cancel_task(room)
        room.phase = "resolving"

        for name in room.players:
            if name not in room.round_answers:
                room.round_answers[name] = RoundAnswer(answer="", is_valid=False, reason="no_answer")

        valid_names = [name for name, a in room.round_answers.items() if a.is_valid]
        awarded = distribute(points_for_letter(room.current_letter), valid_names)
        for name, points in awarded.items():
            room.round_answers[name].points = points
            room.scores[name] = room.scores.get(name, 0) + points

        for name in valid_names:
            a = room.round_answers[name]
            credited = normalize_name(a.matched_player or a.answer)
            if credited and not conflicts_with_used(credited, room.used_answers):
                room.used_answers.append(credited)

        room.phase = "inter_round"
        self._touch(room)

        logger.info(
            "[round-complete] room=%s letter=%s valid=%d answers=%d",
            room.room_id,
            room.current_letter,
            len(valid_names),
            len(room.round_answers),
        )

        self._send(
            events.ROUND_COMPLETE,
            {
                "letter": room.current_letter,
                "letterIndex": room.current_letter_index,
                "answers": {name: answer_public(a) for name, a in room.round_answers.items()},
                "scores": dict(room.scores),
                "usedPlayers": list(room.used_answers),
            },
            to=room.room_id,
        )
        self.broadcast_state(room)

        room.timer_task = self._scheduler.call_later(
            self.inter_round_delay_sec, self._advance, room, room.generation
        )

    def _advance(self, room: Room, generation: int) -> None:
        with room.lock:
            if room.generation != generation or room.phase != "inter_round":
                return
            room.timer_task = None

            if room.current_letter_index >= LAST_LETTER_INDEX:
                self._complete_game(room)
                return

            room.generation += 1
            room.current_letter_index += 1
            room.current_letter = ALPHABET[room.current_letter_index]
            room.round_answers = {}
            room.timer = self.round_duration_sec
            room.phase = "active"
            self._touch(room)

            logger.info("[new-round] room=%s letter=%s", room.room_id, room.current_letter)
            self._send(
                events.NEW_ROUND,
                {"letter": room.current_letter, "letterIndex": room.current_letter_index, "timer": room.timer},
                to=room.room_id,
            )
            self.broadcast_state(room)
            self._schedule_tick(room)

    def _complete_game(self, room: Room) -> None:
        room.generation += 1
        room.phase = "complete"
        room.winner = pick_winner(room.scores)
        self._touch(room)

        logger.info("[game-complete] room=%s winner=%s", room.room_id, room.winner)
        self._send(events.GAME_COMPLETE, {"winner": room.winner, "scores": dict(room.scores)}, to=room.room_id)
        self.broadcast_state(room)

    def player_left(self, room: Room) -> None:
        """Resolve early if everyone still in the room has already answered."""
        with room.lock:
            if room.is_active and self._everyone_answered(room):
                self._resolve_round(room)

    def shutdown(self, room: Room) -> None:
        with room.lock:
            self._cancel_task(room)
