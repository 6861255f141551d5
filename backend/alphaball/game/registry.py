from __future__ import annotations

import logging
from threading import RLock

from ..realtime import events
from .engine import EmitFn, RoundEngine, now_ms
from .models import PlayerInfo, Room
from .timers import Scheduler


logger = logging.getLogger(__name__)


def normalize_room_id(raw: str | None) -> str:
    return (raw or "").strip().upper()


class RoomRegistry:
    """Owns every live room and which connection plays as whom.

    Rooms are created on first join and destroyed when the last player
    leaves or when idle for longer than ``idle_timeout_sec``. Destroying a
    room always shuts its engine timers down first.

    Player identity is the name: a second connection joining a room under
    an existing name takes that player over (last join wins).
    """

    def __init__(
        self,
        engine: RoundEngine,
        emit: EmitFn,
        idle_timeout_sec: int = 1800,
        default_mode: str = "modern",
    ) -> None:
        self.engine = engine
        self._emit = emit
        self.idle_timeout_sec = idle_timeout_sec
        self.default_mode = default_mode
        self._lock = RLock()
        self._rooms: dict[str, Room] = {}
        # connection id -> (room id, player name)
        self._connections: dict[str, tuple[str, str]] = {}

    def get(self, room_id: str) -> Room | None:
        with self._lock:
            return self._rooms.get(normalize_room_id(room_id))

    def list_rooms(self) -> list[Room]:
        with self._lock:
            return list(self._rooms.values())

    def get_or_create(self, room_id: str, mode: str | None = None) -> Room:
        code = normalize_room_id(room_id)
        if not code:
            raise ValueError("room id is required")

        with self._lock:
            room = self._rooms.get(code)
            if room is None:
                ts = now_ms()
                room = Room(
                    room_id=code,
                    game_mode=(mode or self.default_mode).strip().lower(),
                    timer=self.engine.round_duration_sec,
                    created_at_ms=ts,
                    last_activity_ms=ts,
                )
                self._rooms[code] = room
                logger.info("[room-created] room=%s mode=%s", code, room.game_mode)
            return room

    def lookup_connection(self, connection_id: str) -> tuple[str, str] | None:
        with self._lock:
            return self._connections.get(connection_id)

    def join(
        self,
        room_id: str,
        player_name: str,
        connection_id: str,
        mode: str | None = None,
    ) -> tuple[Room, int, str | None]:
        """Put ``player_name`` in ``room_id`` on ``connection_id``.

        Returns ``(room, players_count, replaced)`` where ``replaced`` is the
        connection that played as ``player_name`` before this join, if any.
        """
        with self._lock:
            room = self.get_or_create(room_id, mode=mode)

            # A connection plays in one room at a time.
            previous = self._connections.get(connection_id)
            if previous and previous != (room.room_id, player_name):
                self._leave_locked(connection_id)
                room = self.get_or_create(room_id, mode=mode)

            with room.lock:
                ts = now_ms()
                existing = room.players.get(player_name)
                replaced = None
                if existing is not None and existing.connection_id != connection_id:
                    replaced = existing.connection_id
                    self._connections.pop(existing.connection_id, None)
                    logger.info(
                        "[player-takeover] room=%s player=%s old=%s new=%s",
                        room.room_id,
                        player_name,
                        existing.connection_id,
                        connection_id,
                    )

                joined_at = existing.joined_at_ms if existing is not None else ts
                room.players[player_name] = PlayerInfo(
                    connection_id=connection_id,
                    joined_at_ms=joined_at,
                    last_seen_ms=ts,
                )
                room.scores.setdefault(player_name, 0)
                room.last_activity_ms = ts
                players_count = len(room.players)

            self._connections[connection_id] = (room.room_id, player_name)
            logger.info("[player-joined] room=%s player=%s players=%d", room.room_id, player_name, players_count)
            return room, players_count, replaced

    def leave(self, connection_id: str) -> tuple[str, str] | None:
        """Remove whichever player ``connection_id`` plays as.

        Returns ``(room_id, player_name)`` or ``None`` when the connection is
        not in any room (already left, replaced, or the room is gone).
        """
        with self._lock:
            return self._leave_locked(connection_id)

    def _leave_locked(self, connection_id: str) -> tuple[str, str] | None:
        entry = self._connections.pop(connection_id, None)
        if entry is None:
            return None

        room_id, player_name = entry
        room = self._rooms.get(room_id)
        if room is None:
            return None

        with room.lock:
            info = room.players.get(player_name)
            if info is None or info.connection_id != connection_id:
                return None
            del room.players[player_name]
            room.last_activity_ms = now_ms()
            remaining = len(room.players)

        logger.info("[player-left] room=%s player=%s players=%d", room_id, player_name, remaining)
        self._send(events.PLAYER_LEFT, {"playerName": player_name}, to=room_id)

        if remaining == 0:
            self._delete_locked(room_id, reason="empty")
        else:
            self.engine.player_left(room)
            self.engine.broadcast_state(room)
        return room_id, player_name

    def delete(self, room_id: str) -> bool:
        with self._lock:
            return self._delete_locked(normalize_room_id(room_id), reason="deleted")

    def _delete_locked(self, room_id: str, reason: str) -> bool:
        room = self._rooms.get(room_id)
        if room is None:
            return False

        self.engine.shutdown(room)
        del self._rooms[room_id]
        for conn_id, (rid, _) in list(self._connections.items()):
            if rid == room_id:
                del self._connections[conn_id]

        logger.info("[room-deleted] room=%s reason=%s", room_id, reason)
        return True

    def sweep(self, now: int | None = None) -> list[str]:
        ts = now if now is not None else now_ms()
        cutoff = ts - self.idle_timeout_sec * 1000
        with self._lock:
            stale = [code for code, room in self._rooms.items() if room.last_activity_ms < cutoff]
            for code in stale:
                self._delete_locked(code, reason="idle")
        return stale

    def start_sweeper(self, scheduler: Scheduler, interval_sec: int) -> None:
        def _run() -> None:
            try:
                removed = self.sweep()
                if removed:
                    logger.info("[sweep] removed=%d rooms=%s", len(removed), ",".join(removed))
            finally:
                scheduler.call_later(interval_sec, _run)

        scheduler.call_later(interval_sec, _run)

    def touch(self, room_id: str) -> Room | None:
        room = self.get(room_id)
        if room is not None:
            with room.lock:
                room.last_activity_ms = now_ms()
        return room

    def _send(self, event: str, payload: dict, to: str) -> None:
        try:
            self._emit(event, payload, to=to)
        except Exception:
            logger.exception("[emit-failed] event=%s to=%s", event, to)
