# monster_arena/engine/resolver.py
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Mapping, Optional

from .dice import rng_for
from .effects import (
    STATUS_ADJECTIVES,
    effective_stat,
    end_of_turn_modifiers,
    end_of_turn_statuses,
    inflict_status,
    instantiate_modifier,
    start_of_turn,
)
from .models import (
    AI,
    PLAYER,
    SIDES,
    Ability,
    ActionType,
    BattleResult,
    BattleState,
    BattleStatus,
    CombatMonster,
    DamageFormula,
    ModifierKind,
    TargetScope,
    Trigger,
    TurnAction,
    TurnOutcome,
    TurnSnapshot,
    other_side,
)
from .outcome import build_end_result, summary_lines
from .passives import PassiveResult, Teams, apply_passives
from .rules import affinity_multiplier, apply_damage, apply_healing, compute_damage, compute_healing
from ..content.abilities import ABILITIES
from ..content.balance import DEFAULTS
from ..errors import TerminalStateError, ValidationError

logger = logging.getLogger(__name__)


def resolve_targets(
    state: BattleState,
    side: str,
    actor: CombatMonster,
    ability: Ability,
    target_id: Optional[str],
) -> List[CombatMonster]:
    scope = ability.target_scope
    opponent = other_side(side)

    if scope == TargetScope.SELF:
        return [actor]

    if scope == TargetScope.SINGLE_OPPONENT:
        target = state.active_monster(opponent)
        if target_id is not None and target_id != target.id:
            raise ValidationError("INVALID_TARGET", f"{ability.name} can only hit the opposing active monster.")
        if target.fainted:
            raise ValidationError("INVALID_TARGET", "There is no opponent left to target.")
        return [target]

    if scope == TargetScope.ALL_OPPONENTS:
        targets = [m for m in state.team(opponent) if not m.fainted]
        if not targets:
            raise ValidationError("INVALID_TARGET", "There is no opponent left to target.")
        return targets

    if scope == TargetScope.ANY_ALLY:
        if not target_id:
            raise ValidationError("INVALID_TARGET", f"{ability.name} needs an ally target.")
        target = next((m for m in state.team(side) if m.id == target_id), None)
        if target is None:
            raise ValidationError("INVALID_TARGET", f"'{target_id}' is not on your team.")
        if target.fainted:
            raise ValidationError("INVALID_TARGET", f"{target.name} has fainted.")
        return [target]

    raise ValueError(f"unhandled target scope {scope!r}")


def validate_action(
    state: BattleState,
    action: TurnAction,
    side: str,
    catalog: Mapping[str, Ability] = ABILITIES,
) -> Optional[Ability]:
    """Raise before anything is touched if ``action`` is illegal right now.

    Returns the catalog ability for USE_ABILITY, otherwise None.
    """
    if state.is_terminal:
        raise TerminalStateError("BATTLE_ALREADY_ENDED", f"Battle is already over ({state.status.value}).")
    if side not in SIDES:
        raise ValidationError("INVALID_ACTION", f"Unknown side '{side}'.")

    if action.type == ActionType.FORFEIT:
        return None

    if side != state.current_turn:
        raise ValidationError("NOT_YOUR_TURN", f"It is the {state.current_turn}'s turn.")

    actor = state.active_monster(side)

    if action.type == ActionType.SWAP_MONSTER:
        team = state.team(side)
        index = next((i for i, m in enumerate(team) if m.id == action.monster_id), None)
        if index is None:
            raise ValidationError("MONSTER_NOT_FOUND", f"'{action.monster_id}' is not on your team.")
        if team[index].fainted:
            raise ValidationError("MONSTER_FAINTED", f"{team[index].name} has fainted and cannot battle.")
        if index == state.active_index(side):
            raise ValidationError("ALREADY_ACTIVE", f"{team[index].name} is already in battle.")
        return None

    if side == PLAYER and state.pending_swap:
        raise ValidationError("SWAP_REQUIRED", f"{actor.name} has fainted. Send out another monster.")
    if actor.fainted:
        raise ValidationError("ATTACKER_FAINTED", f"{actor.name} has 0 HP and cannot act.")

    ability = catalog.get(action.ability_id or "")
    if ability is None or action.ability_id not in actor.abilities:
        raise ValidationError("UNKNOWN_ABILITY", f"{actor.name} does not know '{action.ability_id}'.")
    if ability.is_passive:
        raise ValidationError("PASSIVE_ABILITY", f"{ability.name} is passive and cannot be used directly.")
    if actor.mp < ability.mp_cost:
        raise ValidationError(
            "INSUFFICIENT_MP", f"{actor.name} needs {ability.mp_cost} MP for {ability.name} (has {actor.mp})."
        )
    resolve_targets(state, side, actor, ability, action.target_id)
    return ability


def hp_snapshot(state: BattleState) -> Dict[str, Any]:
    return {
        "monsters": {m.id: {"hp": m.hp, "mp": m.mp} for m in state.all_monsters()},
        "active_player_index": state.active_player_index,
        "active_ai_index": state.active_ai_index,
    }


def _teams_of(state: BattleState) -> Teams:
    return Teams(
        player_team=state.player_team,
        ai_team=state.ai_team,
        active_player_index=state.active_player_index,
        active_ai_index=state.active_ai_index,
    )


def _merge_passives(state: BattleState, result: PassiveResult, passive_log: List[str]) -> None:
    state.player_team = result.player_team
    state.ai_team = result.ai_team
    state.active_effects = result.active_effects
    for side, healed in result.healing.items():
        state.totals[side]["healing"] += healed
    state.log.extend(result.log)
    passive_log.extend(result.log)


def run_turn(
    state: BattleState,
    action: TurnAction,
    side: Optional[str] = None,
    catalog: Mapping[str, Ability] = ABILITIES,
    balance: Mapping[str, Any] = DEFAULTS,
) -> TurnOutcome:
    """
    Resolve one action for ``side`` (defaults to whoever's turn it is).

    The incoming state is never mutated: the turn runs on a deep copy that is
    returned in the outcome. Illegal actions raise before the copy is made.
    """
    side = side or state.current_turn
    ability = validate_action(state, action, side, catalog)

    before = hp_snapshot(state)
    state = copy.deepcopy(state)
    log_start = len(state.log)
    r = rng_for(state.seed, state.turn_count)
    opponent = other_side(side)
    results: List[BattleResult] = []
    passive_log: List[str] = []
    alive_at_start = {m.id for m in state.all_monsters() if not m.fainted}
    turn_number = state.turn_count

    def announce_faints() -> None:
        for monster in state.all_monsters():
            if monster.fainted and monster.id in alive_at_start:
                alive_at_start.discard(monster.id)
                state.log.append(f"{monster.name} has fainted!")

    def replace_fainted() -> None:
        # AI sends out its next healthy monster; the player has to pick one
        for s in SIDES:
            active = state.active_monster(s)
            if not active.fainted:
                continue
            bench = [i for i, m in enumerate(state.team(s)) if not m.fainted]
            if not bench:
                continue
            if s == AI:
                state.set_active_index(AI, bench[0])
                state.log.append(f"Opponent sends out {state.ai_team[bench[0]].name}!")
            else:
                state.pending_swap = True

    def finish(end_turn: bool) -> TurnOutcome:
        if end_turn:
            end_of_turn_statuses(state, side, state.log)
            end_of_turn_modifiers(state, state.log)
            state.turn_count += 1
            state.current_turn = PLAYER if state.pending_swap else opponent

        if not state.is_terminal:
            if state.team_wiped(PLAYER):
                state.status, state.winner = BattleStatus.DEFEAT, AI
                state.log.append("All of your monsters have fainted. Defeat.")
            elif state.team_wiped(AI):
                state.status, state.winner = BattleStatus.VICTORY, PLAYER
                state.log.append("All enemy monsters have fainted. Victory!")

        end_result = None
        if state.is_terminal:
            state.pending_swap = False
            state.log.extend(summary_lines(state))
            end_result = build_end_result(state, balance)

        if balance.get("record_history", True):
            state.turn_history.append(
                TurnSnapshot(
                    turn_number=turn_number,
                    side=side,
                    action=action.to_dict(),
                    before=before,
                    after=hp_snapshot(state),
                    damage=sum(res.damage for res in results),
                    healing=sum(res.healing for res in results),
                )
            )
        return TurnOutcome(
            state=state,
            ability_results=results,
            passive_log=passive_log,
            log=state.log[log_start:],
            end_result=end_result,
        )

    if action.type == ActionType.FORFEIT:
        state.status = BattleStatus.DEFEAT if side == PLAYER else BattleStatus.VICTORY
        state.winner = opponent
        state.log.append("You forfeited the battle." if side == PLAYER else "The opponent forfeited the battle.")
        logger.info("battle %s forfeited by %s", state.id, side)
        return finish(end_turn=False)

    state.log.append(f"Turn {turn_number}")

    skipped, damaged = start_of_turn(
        state, side, state.log, r, check_skip=action.type == ActionType.USE_ABILITY
    )
    actor = state.active_monster(side)

    if action.type == ActionType.SWAP_MONSTER:
        index = next(i for i, m in enumerate(state.team(side)) if m.id == action.monster_id)
        incoming = state.team(side)[index]
        if not actor.fainted:
            state.log.append(f"{actor.name} withdraws from battle.")
        state.set_active_index(side, index)
        if side == PLAYER:
            state.pending_swap = False
        state.log.append(f"{incoming.name} enters the battle!")

    elif skipped or actor.fainted:
        pass

    else:
        actor.mp -= ability.mp_cost
        state.totals[side]["abilities_used"] += 1
        targets = resolve_targets(state, side, actor, ability, action.target_id)
        hits = ability.min_hits
        if ability.max_hits > ability.min_hits:
            hits = r.randint(ability.min_hits, ability.max_hits)

        for target in targets:
            result = BattleResult(target_id=target.id)

            if ability.heals:
                stat = effective_stat(actor, ability.scaling_stat, state.active_effects)
                healed = apply_healing(target, compute_healing(stat, ability))
                result.healing = healed
                state.totals[side]["healing"] += healed
                state.log.append(f"{actor.name} uses {ability.name} on {target.name}, healing {healed} HP.")

            elif target.side != side:
                attack = effective_stat(actor, ability.scaling_stat, state.active_effects)
                defense = effective_stat(target, "defense", state.active_effects)
                amount = compute_damage(attack, defense, ability, target.resistances, target.weaknesses)
                dealt = landed = 0
                for hit in range(1, hits + 1):
                    if target.fainted:
                        break
                    step = apply_damage(target, amount)
                    dealt += step
                    landed += 1
                    if hits > 1:
                        state.log.append(
                            f"{actor.name} hits {target.name} with {ability.name} ({hit}/{hits}) for {step} damage!"
                        )
                result.damage = dealt
                state.totals[side]["damage_dealt"] += dealt
                state.totals[opponent]["damage_taken"] += dealt
                if hits == 1:
                    state.log.append(f"{actor.name} uses {ability.name} on {target.name} for {dealt} damage!")
                else:
                    state.log.append(f"{ability.name} hit {target.name} {landed} times for a total of {dealt} damage!")
                if ability.damage_formula == DamageFormula.TYPE_MATCHUP:
                    mult = affinity_multiplier(ability.affinity, target.resistances, target.weaknesses)
                    if mult > 1:
                        state.log.append("It's super effective!")
                    elif mult < 1:
                        state.log.append("It's not very effective...")
                if target.id not in damaged:
                    damaged.append(target.id)

            else:
                state.log.append(f"{actor.name} uses {ability.name}!")

            for slot, modifier in enumerate(ability.stat_modifiers):
                if target.fainted:
                    break
                state.active_effects.append(
                    instantiate_modifier(
                        modifier,
                        f"{ability.id}:{target.id}:{modifier.stat}:t{turn_number}:{slot}",
                        ability.id,
                        target.id,
                    )
                )
                direction = "rose" if modifier.value >= 0 else "fell"
                state.log.append(f"{target.name}'s {modifier.stat} {direction}!")
                unit = "%" if modifier.kind == ModifierKind.PERCENTAGE else ""
                result.status_effects_applied.append(f"{modifier.stat} {modifier.value:+g}{unit}")

            if ability.status_effect is not None:
                status = inflict_status(state, target, ability.status_effect, ability.id, side, r)
                if status is not None:
                    state.log.append(f"{target.name} is {STATUS_ADJECTIVES[status.kind]}!")
                    result.status_effects_applied.append(status.kind.value)

            results.append(result)

    announce_faints()
    replace_fainted()

    for monster_id in damaged:
        passive = apply_passives(
            Trigger.ON_HP_THRESHOLD, _teams_of(state), state.active_effects, side, monster_id, catalog
        )
        _merge_passives(state, passive, passive_log)
    _merge_passives(
        state,
        apply_passives(Trigger.END_OF_TURN, _teams_of(state), state.active_effects, side, catalog=catalog),
        passive_log,
    )

    return finish(end_turn=True)
