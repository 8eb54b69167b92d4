# monster_arena/engine/outcome.py
from typing import Any, Mapping

from .models import AI, PLAYER, BattleEndResult, BattleState, BattleStatus
from ..content.balance import DEFAULTS


def build_end_result(state: BattleState, balance: Mapping[str, Any] = DEFAULTS) -> BattleEndResult:
    """Rewards + player-side statistics for a finished battle."""
    if not state.is_terminal:
        raise ValueError(f"battle {state.id} has not ended")

    if state.status == BattleStatus.VICTORY:
        winner = PLAYER
        rewards = {"rank_xp": int(balance["victory_rank_xp"]), "gold": int(balance["victory_gold"])}
    elif state.status == BattleStatus.DEFEAT:
        winner = AI
        rewards = {"rank_xp": int(balance["defeat_rank_xp"]), "gold": 0}
    else:
        winner = None
        rewards = {"rank_xp": 0, "gold": 0}

    totals = state.totals[PLAYER]
    return BattleEndResult(
        battle_id=state.id,
        status=state.status,
        winner=winner,
        rewards=rewards,
        statistics={
            "turns_played": max(0, state.turn_count - 1),
            "damage_dealt": totals["damage_dealt"],
            "damage_taken": totals["damage_taken"],
            "abilities_used": totals["abilities_used"],
        },
    )


def summary_lines(state: BattleState) -> list:
    p, a = state.totals[PLAYER], state.totals[AI]
    return [
        f"Post-Combat Summary|FD:{p['damage_dealt']}|FH:{p['healing']}|"
        f"ED:{a['damage_dealt']}|EH:{a['healing']}"
    ]
