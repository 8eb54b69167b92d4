# monster_arena/engine/ai.py
from typing import List, Mapping, Optional

from .dice import rng_for
from .models import AI, Ability, ActionType, BattleState, CombatMonster, TargetScope, TurnAction
from ..content.abilities import ABILITIES


def _ally_target(state: BattleState) -> Optional[CombatMonster]:
    # most hurt healthy ally, bench order on ties
    hurt = [m for m in state.ai_team if not m.fainted and m.hp < m.hp_max]
    if not hurt:
        return None
    return min(hurt, key=lambda m: m.hp_percent())


def _usable(state: BattleState, monster: CombatMonster, catalog: Mapping[str, Ability]) -> List[Ability]:
    usable = []
    for ability_id in monster.abilities:
        ability = catalog.get(ability_id)
        if ability is None or ability.is_passive or ability.mp_cost > monster.mp:
            continue
        if ability.heals and ability.target_scope == TargetScope.SELF and monster.hp >= monster.hp_max:
            continue
        if ability.heals and ability.target_scope == TargetScope.ANY_ALLY and _ally_target(state) is None:
            continue
        usable.append(ability)
    return usable


def choose_ai_action(state: BattleState, catalog: Mapping[str, Ability] = ABILITIES) -> TurnAction:
    """
    Seeded pick among the affordable actives of the AI's active monster.
    Falls back to swapping in a bench monster, and forfeits when nothing can act.
    """
    monster = state.active_monster(AI)
    r = rng_for(state.seed, state.turn_count, stream="ai")

    if not monster.fainted:
        usable = _usable(state, monster, catalog)
        if usable:
            ability = r.choice(usable)
            target = None
            if ability.target_scope == TargetScope.ANY_ALLY:
                target = _ally_target(state).id
            return TurnAction(type=ActionType.USE_ABILITY, ability_id=ability.id, target_id=target)

    for index, candidate in enumerate(state.ai_team):
        if index == state.active_ai_index or candidate.fainted:
            continue
        if monster.fainted or _usable(state, candidate, catalog):
            return TurnAction(type=ActionType.SWAP_MONSTER, monster_id=candidate.id)

    return TurnAction(type=ActionType.FORFEIT)
