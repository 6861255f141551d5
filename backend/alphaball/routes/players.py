from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify

from ..game.errors import ReferenceDataError, UnknownModeError

bp = Blueprint("players", __name__)

logger = logging.getLogger(__name__)


@bp.get("/players/<mode>")
def get_players(mode: str):
    reference = current_app.extensions["alphaball"]["reference"]
    if reference is None:
        return jsonify({"error": "Player database not configured"}), 500

    try:
        names = reference.names(mode)
    except UnknownModeError:
        return jsonify({"error": 'Invalid mode. Use "legacy" or "modern"'}), 400
    except ReferenceDataError as exc:
        logger.error("[players-failed] mode=%s error=%s", mode, exc)
        return jsonify({"error": "Failed to fetch players data"}), 500

    return jsonify(list(names))
