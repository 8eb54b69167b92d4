"""Automated regression suite for monster arena turn resolution.

Exercises BattleState + run_turn + the session manager directly, with a small
purpose-built ability catalog so numbers stay easy to follow.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple


_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from monster_arena.engine.effects import effective_stat  # noqa: E402
from monster_arena.engine.models import (  # noqa: E402
    AI,
    PLAYER,
    Ability,
    AbilityType,
    ActionType,
    ActiveEffect,
    BattleState,
    BattleStatus,
    CombatMonster,
    ModifierKind,
    PassiveEffect,
    PassiveEffectKind,
    StatModifier,
    TargetScope,
    Trigger,
    TurnAction,
)
from monster_arena.engine.resolver import run_turn  # noqa: E402
from monster_arena.errors import ConflictError, TerminalStateError, ValidationError  # noqa: E402
from monster_arena.sessions import BattleSessionManager  # noqa: E402


CATALOG = {
    "strike": Ability(id="strike", name="Strike", power_multiplier=0.5),
    "big_spell": Ability(id="big_spell", name="Big Spell", mp_cost=100, power_multiplier=2.0),
    "mend": Ability(
        id="mend",
        name="Mend",
        mp_cost=5,
        power_multiplier=1.0,
        target_scope=TargetScope.ANY_ALLY,
        heals=True,
    ),
    "rally": Ability(
        id="rally",
        name="Rally",
        ability_type=AbilityType.PASSIVE,
        activation_trigger=Trigger.ON_HP_THRESHOLD,
        trigger_condition_value=50,
        passive_effects=(
            PassiveEffect(
                kind=PassiveEffectKind.GRANT_STAT_MODIFIER,
                modifier=StatModifier("power", ModifierKind.PERCENTAGE, 50, duration=3),
            ),
        ),
    ),
}


def monster(
    monster_id: str,
    side: str,
    power: int = 100,
    defense: int = 0,
    hp: int = 200,
    hp_max: Optional[int] = None,
    mp: int = 50,
    abilities: Iterable[str] = ("strike",),
) -> CombatMonster:
    return CombatMonster(
        id=monster_id,
        name=monster_id.title(),
        side=side,
        power=power,
        defense=defense,
        speed=50,
        hp=hp,
        hp_max=hp_max if hp_max is not None else hp,
        mp=mp,
        mp_max=mp,
        abilities=list(abilities),
    )


def make_battle(player_team, ai_team, seed: int = 123, current_turn: str = PLAYER) -> BattleState:
    return BattleState(
        id="regression",
        player_team=list(player_team),
        ai_team=list(ai_team),
        seed=seed,
        current_turn=current_turn,
        log=["Battle Started!"],
    )


def state_extract(state: BattleState) -> Dict[str, Any]:
    return {
        "turn": state.turn_count,
        "current_turn": state.current_turn,
        "status": state.status.value,
        "monsters": {
            m.id: {"hp": m.hp, "hp_max": m.hp_max, "mp": m.mp} for m in state.all_monsters()
        },
        "effects": sorted((e.id, e.duration) for e in state.active_effects),
        "statuses": sorted((s.id, s.duration) for s in state.status_effects),
    }


def _assert_invariants(state: BattleState, prior_turn: int, prior_log_len: int) -> None:
    assert state.turn_count == prior_turn + 1, "run_turn should advance turn_count exactly once"
    new_lines = state.log[prior_log_len:]
    header = f"Turn {prior_turn}"
    assert sum(1 for line in new_lines if line == header) == 1, "duplicate/missing turn header for a single turn"

    for m in state.all_monsters():
        assert 0 <= m.hp <= m.hp_max, f"hp out of range for {m.id}"
        assert m.mp >= 0, f"negative mp for {m.id}"
    for effect in state.active_effects:
        if effect.duration is not None:
            assert effect.duration > 0, f"expired effect kept: {effect.id}"


def submit_turn(state: BattleState, side: str, ability_id: str, target_id: Optional[str] = None, catalog=None):
    prior_turn, prior_log_len = state.turn_count, len(state.log)
    action = TurnAction(type=ActionType.USE_ABILITY, ability_id=ability_id, target_id=target_id)
    outcome = run_turn(state, action, side, catalog=catalog or CATALOG)
    if outcome.state.is_terminal:
        return outcome
    _assert_invariants(outcome.state, prior_turn, prior_log_len)
    return outcome


def run_turns(state: BattleState, moves: Iterable[Tuple[str, str]]):
    outcomes = []
    for side, ability_id in moves:
        outcome = submit_turn(state, side, ability_id)
        outcomes.append(outcome)
        state = outcome.state
    return outcomes


def scenario_flat_before_percentage() -> bool:
    m = monster("brute", PLAYER, power=100)
    effects = [
        ActiveEffect("pct", "x", m.id, "power", ModifierKind.PERCENTAGE, 20, duration=2),
        ActiveEffect("flat", "x", m.id, "power", ModifierKind.FLAT, 50, duration=2),
    ]
    assert effective_stat(m, "power", effects) == 180, "FLAT must apply before PERCENTAGE (180, not 170)"
    return True


def scenario_mitigated_damage_rounds_half_up() -> bool:
    state = make_battle([monster("attacker", PLAYER, power=120)], [monster("target", AI, defense=60)])
    outcome = submit_turn(state, PLAYER, "strike")
    assert outcome.ability_results[0].damage == 38, "120 x 0.5 into 60 defense should deal 38"
    assert outcome.state.ai_team[0].hp == 162
    return True


def scenario_damage_never_below_one() -> bool:
    state = make_battle([monster("gnat", PLAYER, power=1)], [monster("wall", AI, defense=1000)])
    outcome = submit_turn(state, PLAYER, "strike")
    assert outcome.ability_results[0].damage == 1, "damaging abilities always deal at least 1"
    return True


def scenario_heal_clamps_to_max() -> bool:
    healer = monster("healer", PLAYER, power=100, abilities=("mend",))
    ally = monster("ally", PLAYER, hp=95, hp_max=100)
    state = make_battle([healer, ally], [monster("foe", AI)])
    outcome = submit_turn(state, PLAYER, "mend", target_id="ally")
    assert outcome.state.player_team[1].hp == 100, "healing must clamp at hp_max"
    assert outcome.ability_results[0].healing == 5, "reported healing is what was actually restored"
    return True


def scenario_threshold_passive_fires_once() -> bool:
    tank = monster("tank", PLAYER, hp=110, hp_max=200, abilities=("strike", "rally"))
    state = make_battle([tank], [monster("pecker", AI, power=40, hp=1000)], current_turn=AI)
    outcomes = run_turns(state, [(AI, "strike"), (PLAYER, "strike"), (AI, "strike")])

    activations = [line for o in outcomes for line in o.passive_log if "Rally activates" in line]
    assert len(activations) == 1, f"threshold passive should fire once while its buff is up, got {activations}"
    assert outcomes[0].state.player_team[0].hp == 90
    return True


def scenario_rejected_action_leaves_state_untouched() -> bool:
    state = make_battle([monster("caster", PLAYER, mp=10, abilities=("big_spell",))], [monster("foe", AI)])
    before = state.to_dict()
    try:
        submit_turn(state, PLAYER, "big_spell")
    except ValidationError as exc:
        assert exc.code == "INSUFFICIENT_MP"
    else:
        raise AssertionError("casting without MP should be rejected")
    assert state.to_dict() == before, "a rejected action must not touch the state"
    return True


def scenario_last_faint_is_defeat_then_terminal() -> bool:
    state = make_battle([monster("fragile", PLAYER, hp=1)], [monster("foe", AI)], current_turn=AI)
    outcome = submit_turn(state, AI, "strike")
    assert outcome.state.status == BattleStatus.DEFEAT
    assert outcome.state.winner == AI
    assert outcome.end_result is not None and outcome.end_result.rewards["rank_xp"] == 5
    try:
        submit_turn(outcome.state, PLAYER, "strike")
    except TerminalStateError:
        return True
    raise AssertionError("turns after defeat must raise TerminalStateError")


def scenario_ai_sends_out_next_monster() -> bool:
    state = make_battle([monster("hero", PLAYER)], [monster("weak", AI, hp=1), monster("backup", AI)])
    outcome = submit_turn(state, PLAYER, "strike")
    assert outcome.state.status == BattleStatus.ACTIVE
    assert outcome.state.active_ai_index == 1
    assert "Opponent sends out Backup!" in outcome.log
    return True


def scenario_player_must_swap_after_faint() -> bool:
    state = make_battle(
        [monster("weak", PLAYER, hp=1), monster("reserve", PLAYER)], [monster("foe", AI)], current_turn=AI
    )
    outcome = submit_turn(state, AI, "strike")
    assert outcome.state.pending_swap and outcome.state.current_turn == PLAYER
    try:
        submit_turn(outcome.state, PLAYER, "strike")
    except ValidationError as exc:
        assert exc.code == "SWAP_REQUIRED"
    else:
        raise AssertionError("acting before swapping out a fainted monster should fail")

    swapped = run_turn(outcome.state, TurnAction(type=ActionType.SWAP_MONSTER, monster_id="reserve"), PLAYER,
                       catalog=CATALOG)
    assert swapped.state.active_player_index == 1
    assert not swapped.state.pending_swap and swapped.state.current_turn == AI
    return True


def scenario_same_seed_same_result() -> bool:
    state = make_battle([monster("a", PLAYER)], [monster("b", AI)], seed=99)
    first = submit_turn(state, PLAYER, "strike")
    second = submit_turn(state, PLAYER, "strike")
    assert state_extract(first.state) == state_extract(second.state)
    assert first.log == second.log
    return True


def scenario_one_live_battle_per_user() -> bool:
    manager = BattleSessionManager(clock=lambda: 1000.0, catalog=CATALOG)
    battle_id = manager.create_session("u1", [monster("a", PLAYER)], [monster("b", AI)])
    try:
        manager.create_session("u1", [monster("a", PLAYER)], [monster("b", AI)])
    except ConflictError:
        pass
    else:
        raise AssertionError("second live battle for one user should conflict")
    manager.end_session(battle_id)
    manager.create_session("u1", [monster("a", PLAYER)], [monster("b", AI)])
    return True


SCENARIOS = [
    scenario_flat_before_percentage,
    scenario_mitigated_damage_rounds_half_up,
    scenario_damage_never_below_one,
    scenario_heal_clamps_to_max,
    scenario_threshold_passive_fires_once,
    scenario_rejected_action_leaves_state_untouched,
    scenario_last_faint_is_defeat_then_terminal,
    scenario_ai_sends_out_next_monster,
    scenario_player_must_swap_after_faint,
    scenario_same_seed_same_result,
    scenario_one_live_battle_per_user,
]


def run_all() -> List[Tuple[str, bool, str]]:
    results: List[Tuple[str, bool, str]] = []
    for scenario in SCENARIOS:
        try:
            scenario()
            results.append((scenario.__name__, True, ""))
        except AssertionError as exc:
            results.append((scenario.__name__, False, str(exc)))
    return results
