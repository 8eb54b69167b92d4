# monster_arena/engine/passives.py
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from .effects import has_effect_from, instantiate_modifier
from .models import (
    AI,
    PLAYER,
    Ability,
    ActivationScope,
    ActiveEffect,
    CombatMonster,
    PassiveEffectKind,
    Trigger,
)
from .rules import apply_healing, round_half_up
from ..content.abilities import ABILITIES


@dataclass
class Teams:
    player_team: List[CombatMonster]
    ai_team: List[CombatMonster]
    active_player_index: int = 0
    active_ai_index: int = 0

    def team(self, side: str) -> List[CombatMonster]:
        return self.player_team if side == PLAYER else self.ai_team

    def active_index(self, side: str) -> int:
        return self.active_player_index if side == PLAYER else self.active_ai_index


@dataclass
class PassiveResult:
    player_team: List[CombatMonster]
    ai_team: List[CombatMonster]
    active_effects: List[ActiveEffect]
    log: List[str] = field(default_factory=list)
    healing: Dict[str, int] = field(default_factory=lambda: {PLAYER: 0, AI: 0})


def _condition_met(
    trigger: Trigger,
    passive: Ability,
    monster: CombatMonster,
    side: str,
    index: int,
    teams: Teams,
    acting_side: str,
    damaged_monster_id: Optional[str],
) -> bool:
    if trigger == Trigger.ON_HP_THRESHOLD:
        if monster.id != damaged_monster_id:
            return False
        threshold = float(passive.trigger_condition_value or 0)
        return monster.hp_percent() <= threshold

    if trigger == Trigger.END_OF_TURN:
        if side != acting_side:
            return False
        scope = passive.activation_scope
        if scope in (ActivationScope.ACTIVE, ActivationScope.SELF):
            return index == teams.active_index(side)
        if scope == ActivationScope.BENCH:
            return True
        raise ValueError(f"unhandled activation scope {scope!r}")

    raise ValueError(f"unhandled passive trigger {trigger!r}")


def _fire(
    trigger: Trigger,
    passive: Ability,
    owner: CombatMonster,
    side: str,
    teams: Teams,
    effects: List[ActiveEffect],
    result: PassiveResult,
) -> None:
    result.log.append(f"{owner.name}'s {passive.name} activates!")

    for entry in passive.passive_effects:
        if entry.kind == PassiveEffectKind.HEAL_ACTIVE_ALLY_PERCENT:
            ally = teams.team(side)[teams.active_index(side)]
            if ally.fainted:
                continue
            amount = round_half_up(ally.hp_max * float(entry.value) / 100)
            healed = apply_healing(ally, amount)
            result.healing[side] += healed
            result.log.append(f"{owner.name} heals {ally.name} for {healed} HP!")

        elif entry.kind == PassiveEffectKind.GRANT_STAT_MODIFIER:
            if entry.modifier is None:
                continue
            effect_id = f"{owner.id}-{passive.id}-{entry.modifier.stat}"
            existing = next((e for e in effects if e.id == effect_id), None)
            if existing is not None:
                # END_OF_TURN re-fires refresh instead of stacking
                existing.duration = entry.modifier.duration
                continue
            effects.append(
                instantiate_modifier(entry.modifier, effect_id, passive.id, owner.id, trigger=trigger)
            )

        else:
            raise ValueError(f"unhandled passive effect kind {entry.kind!r}")


def apply_passives(
    trigger: Trigger,
    teams: Teams,
    active_effects: List[ActiveEffect],
    acting_side: str,
    damaged_monster_id: Optional[str] = None,
    catalog: Mapping[str, Ability] = ABILITIES,
) -> PassiveResult:
    """Fire every passive on either team whose ``trigger`` condition holds.

    Works on copies: ``teams`` and ``active_effects`` are never mutated. Monsters
    are scanned player team first, then AI team, each in bench order, so the log
    comes out in a stable order.
    """
    working = Teams(
        player_team=copy.deepcopy(teams.player_team),
        ai_team=copy.deepcopy(teams.ai_team),
        active_player_index=teams.active_player_index,
        active_ai_index=teams.active_ai_index,
    )
    effects = copy.deepcopy(active_effects)
    result = PassiveResult(player_team=working.player_team, ai_team=working.ai_team, active_effects=effects)

    for side in (PLAYER, AI):
        for index, monster in enumerate(working.team(side)):
            if monster.fainted:
                continue
            for ability_id in monster.abilities:
                passive = catalog.get(ability_id)
                if passive is None or not passive.is_passive or passive.activation_trigger != trigger:
                    continue
                if not _condition_met(trigger, passive, monster, side, index, working, acting_side, damaged_monster_id):
                    continue
                if trigger == Trigger.ON_HP_THRESHOLD and has_effect_from(effects, passive.id, monster.id):
                    continue
                _fire(trigger, passive, monster, side, working, effects, result)

    return result
