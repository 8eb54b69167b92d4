# monster_arena/sockets.py
import logging
from typing import Any, Dict, Optional

from flask import request
from flask_socketio import emit, join_room, leave_room

from .engine.models import AI, PLAYER, BattleState
from .errors import AuthorizationError, BattleError

logger = logging.getLogger(__name__)

# socket sid -> (user_id, battle_id)
sid_to_battle: Dict[str, tuple] = {}


def room_for(battle_id: str) -> str:
    return f"arena-{battle_id}"


def snapshot_for(state: BattleState) -> Dict[str, Any]:
    """
    UI-friendly view: both active monsters, the benches, and the log tail.
    """

    def pack(monster):
        return {
            "id": monster.id,
            "name": monster.name,
            "hp": monster.hp, "hp_max": monster.hp_max,
            "mp": monster.mp, "mp_max": monster.mp_max,
            "level": monster.level,
            "fainted": monster.fainted,
            "abilities": list(monster.abilities),
        }

    return {
        "battle_id": state.id,
        "status": state.status.value,
        "turn": state.turn_count,
        "current_turn": state.current_turn,
        "pending_swap": state.pending_swap,
        "you": pack(state.active_monster(PLAYER)),
        "enemy": pack(state.active_monster(AI)),
        "you_team": [pack(m) for m in state.player_team],
        "enemy_team": [pack(m) for m in state.ai_team],
        "statuses": [
            {"target": s.target_monster_id, "kind": s.kind.value, "turns": s.duration}
            for s in state.status_effects
        ],
        "log": state.log[-30:],
        "winner": state.winner,
        "log_length": len(state.log),
    }


def register_arena_socket_handlers(socketio, manager, ai_delay: Optional[float] = None):
    delay = float(manager.balance["ai_turn_delay_seconds"] if ai_delay is None else ai_delay)

    def publish(outcome):
        room = room_for(outcome.state.id)
        socketio.emit("arena_snapshot", snapshot_for(outcome.state), to=room)
        if outcome.end_result is not None:
            socketio.emit("arena_end", outcome.end_result.to_dict(), to=room)

    def run_ai_turn(user_id: str, battle_id: str):
        socketio.sleep(delay)
        try:
            outcome = manager.process_ai_turn(battle_id, user_id)
        except BattleError as exc:
            # battle ended or moved on while we slept
            logger.debug("skipped AI turn for %s: %s", battle_id, exc.code)
            return
        publish(outcome)
        if not outcome.state.is_terminal and outcome.state.current_turn == AI:
            run_ai_turn(user_id, battle_id)

    def schedule_ai(user_id: str, state: BattleState):
        if not state.is_terminal and state.current_turn == AI:
            socketio.start_background_task(run_ai_turn, user_id, state.id)

    def bound() -> tuple:
        entry = sid_to_battle.get(request.sid)
        if not entry:
            raise AuthorizationError("UNAUTHORIZED_ACCESS", "Join a battle first.")
        return entry

    @socketio.on("arena_join")
    def arena_join(payload):
        payload = payload if isinstance(payload, dict) else {}
        user_id = str(payload.get("user_id") or "").strip()
        battle_id = str(payload.get("battle_id") or "").strip()
        try:
            if not user_id:
                raise AuthorizationError("UNAUTHORIZED_ACCESS", "A user id is required.")
            session = (
                manager.require_session(battle_id, user_id) if battle_id else manager.get_user_battle(user_id)
            )
            if session is None:
                emit("arena_error", {"error": "BATTLE_NOT_FOUND", "message": "No active battle."})
                return
        except BattleError as exc:
            emit("arena_error", exc.to_dict())
            return

        sid_to_battle[request.sid] = (user_id, session.id)
        join_room(room_for(session.id))
        emit("arena_snapshot", snapshot_for(session.state))
        schedule_ai(user_id, session.state)

    @socketio.on("arena_action")
    def arena_action(payload):
        try:
            user_id, battle_id = bound()
            outcome = manager.submit_turn(battle_id, user_id, payload)
        except BattleError as exc:
            emit("arena_error", exc.to_dict())
            return
        publish(outcome)
        schedule_ai(user_id, outcome.state)

    @socketio.on("arena_forfeit")
    def arena_forfeit():
        try:
            user_id, battle_id = bound()
            outcome = manager.forfeit(battle_id, user_id)
        except BattleError as exc:
            emit("arena_error", exc.to_dict())
            return
        publish(outcome)

    @socketio.on("disconnect")
    def arena_disconnect(reason=None):
        # the session outlives the socket; expiry handles abandoned battles
        entry = sid_to_battle.pop(request.sid, None)
        if entry:
            leave_room(room_for(entry[1]))
