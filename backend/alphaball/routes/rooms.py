from __future__ import annotations

from flask import Blueprint, current_app, jsonify

bp = Blueprint("rooms", __name__)


@bp.get("/rooms/<room_id>")
def get_room(room_id: str):
    registry = current_app.extensions["alphaball"]["registry"]
    room = registry.get(room_id)
    if not room:
        return jsonify({"error": "room_not_found"}), 404
    return jsonify(registry.engine.snapshot(room))
