# monster_arena/routes.py
from flask import Blueprint, current_app, jsonify, request

from .errors import AuthorizationError, BattleError, SessionNotFoundError, ValidationError

arena_bp = Blueprint("arena", __name__, url_prefix="/api/battle")


def manager():
    return current_app.extensions["monster_arena"]


def current_user() -> str:
    user_id = (request.headers.get("X-User-Id") or "").strip()
    if not user_id:
        raise AuthorizationError("UNAUTHORIZED_ACCESS", "Missing X-User-Id header.")
    return user_id


def json_body() -> dict:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("INVALID_ACTION", "Request body must be a JSON object.")
    return body


@arena_bp.errorhandler(BattleError)
def battle_error(exc: BattleError):
    return jsonify(exc.to_dict()), exc.status


@arena_bp.route("/create", methods=["POST"])
def create_battle():
    user_id = current_user()
    body = json_body()
    battle_id = manager().create_session(
        user_id,
        body.get("player_team") or body.get("playerTeam"),
        body.get("ai_team") or body.get("aiTeam"),
        seed=body.get("seed") if isinstance(body.get("seed"), int) else None,
    )
    session = manager().require_session(battle_id, user_id)
    return jsonify({"battle_id": battle_id, "state": session.state.to_dict()}), 201


@arena_bp.route("/active", methods=["GET"])
def active_battle():
    state = manager().get_active_battle(current_user())
    return jsonify({"state": state.to_dict() if state else None})


@arena_bp.route("/stats", methods=["GET"])
def battle_stats():
    return jsonify(manager().stats())


@arena_bp.route("/<battle_id>", methods=["GET"])
def get_battle(battle_id):
    session = manager().require_session(battle_id, current_user())
    return jsonify(session.to_dict())


@arena_bp.route("/<battle_id>/turn", methods=["POST"])
def submit_turn(battle_id):
    outcome = manager().submit_turn(battle_id, current_user(), json_body())
    return jsonify(outcome.to_dict())


@arena_bp.route("/<battle_id>/ai-turn", methods=["POST"])
def ai_turn(battle_id):
    outcome = manager().process_ai_turn(battle_id, current_user())
    return jsonify(outcome.to_dict())


@arena_bp.route("/<battle_id>/forfeit", methods=["POST"])
def forfeit(battle_id):
    outcome = manager().forfeit(battle_id, current_user())
    return jsonify(outcome.to_dict())


@arena_bp.route("/<battle_id>", methods=["DELETE"])
def end_battle(battle_id):
    # ownership check first; end_session itself is idempotent
    user_id = current_user()
    if manager().get_session(battle_id, user_id) is None:
        raise SessionNotFoundError("BATTLE_NOT_FOUND", f"Battle {battle_id} not found or expired.")
    result = manager().end_session(battle_id)
    return jsonify({"ended": battle_id, "end_result": result.to_dict() if result else None})
