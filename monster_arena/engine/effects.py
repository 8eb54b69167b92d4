# monster_arena/engine/effects.py
from __future__ import annotations

import math
import random
from typing import Iterable, List, Optional, Tuple

from .dice import chance
from .models import (
    ActiveEffect,
    BattleState,
    CombatMonster,
    ModifierKind,
    StatModifier,
    StatusEffect,
    StatusInfliction,
    StatusKind,
    Trigger,
    other_side,
)
from .rules import apply_damage, apply_healing
from ..content.balance import CAPS

DOT_KINDS = (StatusKind.POISONED, StatusKind.BURNED)
SKIP_KINDS = (StatusKind.PARALYZED, StatusKind.FROZEN)
HOT_KINDS = (StatusKind.REGENERATING,)

STATUS_ADJECTIVES = {
    StatusKind.POISONED: "poisoned",
    StatusKind.BURNED: "burned",
    StatusKind.PARALYZED: "paralyzed",
    StatusKind.FROZEN: "frozen solid",
    StatusKind.CONFUSED: "confused",
    StatusKind.REGENERATING: "regenerating",
}

STATUS_NOUNS = {
    StatusKind.POISONED: "poison",
    StatusKind.BURNED: "burn",
    StatusKind.PARALYZED: "paralysis",
    StatusKind.FROZEN: "freeze",
    StatusKind.CONFUSED: "confusion",
    StatusKind.REGENERATING: "regeneration",
}


def effective_stat(monster: CombatMonster, stat: str, active_effects: Iterable[ActiveEffect]) -> int:
    """Resolve a stat through the active modifiers on ``monster``.

    FLAT values are summed onto the base first; every PERCENTAGE modifier then
    multiplies the running total in turn, so two +50% buffs compound to x2.25.
    The result is floored and never drops below 1.
    """
    value = float(monster.base_stat(stat))
    relevant = [e for e in active_effects if e.target_monster_id == monster.id and e.stat == stat]
    for effect in relevant:
        if effect.kind == ModifierKind.FLAT:
            value += float(effect.value)
    for effect in relevant:
        if effect.kind == ModifierKind.PERCENTAGE:
            value *= 1 + float(effect.value) / 100
    return max(CAPS["stat_min"], int(math.floor(value)))


def instantiate_modifier(
    modifier: StatModifier,
    effect_id: str,
    source_ability_id: str,
    target_monster_id: str,
    trigger: Optional[Trigger] = None,
) -> ActiveEffect:
    return ActiveEffect(
        id=effect_id,
        source_ability_id=source_ability_id,
        target_monster_id=target_monster_id,
        stat=modifier.stat,
        kind=modifier.kind,
        value=modifier.value,
        duration=modifier.duration,
        trigger=trigger,
    )


def has_effect_from(active_effects: Iterable[ActiveEffect], ability_id: str, monster_id: str) -> bool:
    return any(
        e.source_ability_id == ability_id and e.target_monster_id == monster_id
        for e in active_effects
    )


def tick_durations(effects: List[ActiveEffect]) -> Tuple[List[ActiveEffect], List[ActiveEffect]]:
    """Decrement bounded effects; returns (kept, expired). Unbounded effects are kept as-is."""
    kept: List[ActiveEffect] = []
    expired: List[ActiveEffect] = []
    for e in effects:
        if e.duration is None:
            kept.append(e)
            continue
        e.duration -= 1
        if e.duration > 0:
            kept.append(e)
        else:
            expired.append(e)
    return kept, expired


def statuses_on(state: BattleState, monster_id: str) -> List[StatusEffect]:
    return [s for s in state.status_effects if s.target_monster_id == monster_id]


def inflict_status(
    state: BattleState,
    target: CombatMonster,
    infliction: StatusInfliction,
    source_ability_id: str,
    acting_side: str,
    r: random.Random,
) -> Optional[StatusEffect]:
    """Roll and attach a status to ``target``. Re-inflicting refreshes the duration."""
    if target.fainted or not chance(infliction.chance, r):
        return None
    for status in statuses_on(state, target.id):
        if status.kind == infliction.kind:
            status.duration = max(status.duration, int(infliction.duration))
            status.value = max(status.value, float(infliction.value))
            return status
    status = StatusEffect(
        id=f"{infliction.kind.value.lower()}:{target.id}:t{state.turn_count}",
        kind=infliction.kind,
        target_monster_id=target.id,
        duration=int(infliction.duration),
        value=float(infliction.value),
        chance=float(infliction.chance),
        source_ability_id=source_ability_id,
        fresh=target.side == acting_side,
    )
    state.status_effects.append(status)
    return status


def start_of_turn(
    state: BattleState, side: str, log: List[str], r: random.Random, check_skip: bool = True
) -> Tuple[bool, List[str]]:
    """Damage and healing over time on the acting team, then turn-skip checks on its active monster.
    Swaps pass ``check_skip=False``: statuses never block switching out.

    Returns (action_skipped, damaged monster ids).
    """
    damaged: List[str] = []
    opponent = other_side(side)
    for monster in state.team(side):
        if monster.fainted:
            continue
        for status in statuses_on(state, monster.id):
            if status.kind in HOT_KINDS:
                amount = max(1, int(math.floor(monster.hp_max * status.value / 100)))
                healed = apply_healing(monster, amount)
                if healed > 0:
                    log.append(f"{monster.name} regains {healed} HP from {STATUS_NOUNS[status.kind]}!")
                    state.totals[side]["healing"] += healed
                continue
            if status.kind not in DOT_KINDS:
                continue
            amount = max(1, int(math.floor(monster.hp_max * status.value / 100)))
            dealt = apply_damage(monster, amount)
            if dealt <= 0:
                continue
            log.append(f"{monster.name} takes {dealt} damage from {STATUS_NOUNS[status.kind]}!")
            state.totals[side]["damage_taken"] += dealt
            state.totals[opponent]["damage_dealt"] += dealt
            if monster.id not in damaged:
                damaged.append(monster.id)

    active = state.active_monster(side)
    if not check_skip or active.fainted:
        return False, damaged
    for status in statuses_on(state, active.id):
        if status.kind in SKIP_KINDS:
            log.append(f"{active.name} is {STATUS_ADJECTIVES[status.kind]} and can't move!")
            return True, damaged
        if status.kind == StatusKind.CONFUSED and chance(status.chance, r):
            power = effective_stat(active, "power", state.active_effects)
            self_damage = max(1, int(math.floor(power * status.value / 100)))
            dealt = apply_damage(active, self_damage)
            log.append(f"{active.name} is confused and hurt itself for {dealt} damage!")
            state.totals[side]["damage_taken"] += dealt
            if active.id not in damaged:
                damaged.append(active.id)
            return True, damaged
    return False, damaged


def end_of_turn_statuses(state: BattleState, side: str, log: List[str]) -> None:
    """Tick statuses on the side that just acted; drop statuses on fainted monsters."""
    team_ids = {m.id for m in state.team(side)}
    kept: List[StatusEffect] = []
    for status in state.status_effects:
        target = state.find_monster(status.target_monster_id)
        if target is None or target.fainted:
            continue
        if status.target_monster_id not in team_ids:
            kept.append(status)
            continue
        if status.fresh:
            status.fresh = False
            kept.append(status)
            continue
        status.duration -= 1
        if status.duration > 0:
            kept.append(status)
        else:
            log.append(f"The {STATUS_NOUNS[status.kind]} on {target.name} wore off.")
    state.status_effects = kept


def end_of_turn_modifiers(state: BattleState, log: List[str]) -> None:
    kept, expired = tick_durations(state.active_effects)
    for effect in expired:
        target = state.find_monster(effect.target_monster_id)
        name = target.name if target else effect.target_monster_id
        log.append(f"The {effect.stat} modifier on {name} wore off.")
    state.active_effects = kept
