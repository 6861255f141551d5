from __future__ import annotations

import logging

from flask import request
from flask_socketio import SocketIO, close_room, emit, join_room, leave_room

from ..game.engine import answer_public
from ..game.errors import OperationalError, UnknownModeError
from ..game.reference import resolve_mode
from ..game.registry import RoomRegistry, normalize_room_id
from . import events


logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 24


def _validate_name(name: str) -> bool:
    n = (name or "").strip()
    if not n:
        return False
    if len(n) > MAX_NAME_LENGTH:
        return False
    # Avoid obvious HTML/script injection.
    if "<" in n or ">" in n:
        return False
    # No control characters.
    for ch in n:
        if ord(ch) < 32:
            return False
    return True


def _error(message: str) -> None:
    emit(events.ERROR_MESSAGE, {"message": message}, to=request.sid)


def register_socketio_handlers(socketio: SocketIO, registry: RoomRegistry) -> None:
    engine = registry.engine

    @socketio.on("connect")
    def on_connect():
        emit(
            events.CONNECTION_CONFIRMED,
            {"status": "connected", "message": "Connected to game server", "sid": request.sid},
        )

    @socketio.on(events.JOIN_ROOM)
    def on_join_room(data=None):
        payload = data if isinstance(data, dict) else {}
        room_id = normalize_room_id(str(payload.get("roomId", "")))
        player_name = str(payload.get("playerName", "")).strip()
        raw_mode = payload.get("mode")

        if not room_id or not _validate_name(player_name):
            _error("Invalid payload")
            return

        mode = None
        if raw_mode:
            try:
                mode = resolve_mode(str(raw_mode))
            except UnknownModeError:
                _error("Invalid game mode")
                return

        # Leaving a previous room is handled by the registry; mirror it on the socket side.
        previous = registry.lookup_connection(request.sid)
        if previous and previous[0] != room_id:
            leave_room(previous[0])

        room, players_count, replaced = registry.join(room_id, player_name, request.sid, mode=mode)
        if replaced is not None:
            leave_room(room.room_id, sid=replaced)
        join_room(room.room_id)

        emit(
            events.JOIN_CONFIRMED,
            {"roomId": room.room_id, "playerName": player_name, "playersCount": players_count},
            to=request.sid,
        )
        engine.broadcast_state(room)

    @socketio.on(events.START_GAME)
    def on_start_game(data=None):
        payload = data if isinstance(data, dict) else {}
        room_id = normalize_room_id(str(payload.get("roomId", "")))
        if not room_id:
            _error("Invalid payload")
            return

        room = registry.get(room_id)
        if room is None:
            _error("Room not found")
            return

        raw_mode = payload.get("mode")
        if raw_mode:
            try:
                mode = resolve_mode(str(raw_mode))
            except UnknownModeError:
                _error("Invalid game mode")
                return
            with room.lock:
                if room.phase in ("idle", "complete"):
                    room.game_mode = mode

        try:
            engine.start_game(room)
        except OperationalError as exc:
            logger.info("[start-rejected] room=%s reason=%s", room_id, exc.message)
            _error(exc.message)

    @socketio.on(events.SUBMIT_ANSWER)
    def on_submit_answer(data=None):
        payload = data if isinstance(data, dict) else {}
        room_id = normalize_room_id(str(payload.get("roomId", "")))
        answer_text = payload.get("answer")
        if not room_id or not isinstance(answer_text, str):
            _error("Invalid payload")
            return

        room = registry.get(room_id)
        if room is None:
            _error("Room not found")
            return

        # The connection decides who is answering, not the payload's playerName.
        # Connections that are no longer in the room are ignored.
        bound = registry.lookup_connection(request.sid)
        if bound is None or bound[0] != room.room_id:
            return
        player_name = bound[1]

        hint = payload.get("isValid")
        client_hint = hint if isinstance(hint, bool) else None

        try:
            answer = engine.submit_answer(room, player_name, answer_text, client_hint=client_hint)
        except OperationalError as exc:
            _error(exc.message)
            return

        if answer is not None:
            emit(events.ANSWER_RESULT, {"playerName": player_name, **answer_public(answer)}, to=request.sid)

    @socketio.on(events.LEAVE_ROOM)
    def on_leave_room(data=None):
        left = registry.leave(request.sid)
        if left is None:
            return
        room_id, _ = left
        leave_room(room_id)
        if registry.get(room_id) is None:
            close_room(room_id)

    @socketio.on(events.PING_ROOM)
    def on_ping_room(data=None):
        payload = data if isinstance(data, dict) else {}
        room = registry.touch(str(payload.get("roomId", "")))
        if room is not None:
            emit(events.PONG_ROOM, {"status": "alive"}, to=request.sid)

    @socketio.on("disconnect")
    def on_disconnect(*args):
        left = registry.leave(request.sid)
        if left is not None:
            logger.info("[disconnect] sid=%s room=%s player=%s", request.sid, left[0], left[1])
