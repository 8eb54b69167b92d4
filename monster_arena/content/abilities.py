# monster_arena/content/abilities.py
from typing import Dict

from ..engine.models import (
    Ability,
    AbilityType,
    ActivationScope,
    DamageFormula,
    ModifierKind,
    PassiveEffect,
    PassiveEffectKind,
    StatModifier,
    StatusInfliction,
    StatusKind,
    TargetScope,
    Trigger,
)


def _catalog(*abilities: Ability) -> Dict[str, Ability]:
    catalog: Dict[str, Ability] = {}
    for ability in abilities:
        if ability.id in catalog:
            raise ValueError(f"duplicate ability id '{ability.id}'")
        catalog[ability.id] = ability
    return catalog


ABILITIES = _catalog(
    # --- actives ---
    Ability(
        id="basic_attack",
        name="Basic Attack",
        power_multiplier=0.6,
        description="A plain strike at the opposing active monster.",
    ),
    Ability(
        id="flame_lash",
        name="Flame Lash",
        mp_cost=10,
        power_multiplier=0.9,
        damage_formula=DamageFormula.TYPE_MATCHUP,
        affinity="fire",
        status_effect=StatusInfliction(StatusKind.BURNED, duration=2, value=5, chance=0.3),
    ),
    Ability(
        id="tidal_crash",
        name="Tidal Crash",
        mp_cost=15,
        power_multiplier=1.1,
        damage_formula=DamageFormula.TYPE_MATCHUP,
        affinity="water",
    ),
    Ability(
        id="venom_fang",
        name="Venom Fang",
        mp_cost=8,
        power_multiplier=0.5,
        status_effect=StatusInfliction(StatusKind.POISONED, duration=3, value=8),
    ),
    Ability(
        id="static_jolt",
        name="Static Jolt",
        mp_cost=12,
        power_multiplier=0.4,
        scaling_stat="speed",
        status_effect=StatusInfliction(StatusKind.PARALYZED, duration=1, chance=0.35),
    ),
    Ability(
        id="frost_breath",
        name="Frost Breath",
        mp_cost=14,
        power_multiplier=0.7,
        status_effect=StatusInfliction(StatusKind.FROZEN, duration=1, chance=0.2),
    ),
    Ability(
        id="dizzy_spores",
        name="Dizzy Spores",
        mp_cost=10,
        power_multiplier=0.3,
        status_effect=StatusInfliction(StatusKind.CONFUSED, duration=2, value=40, chance=0.5),
    ),
    Ability(
        id="quake_stomp",
        name="Quake Stomp",
        mp_cost=20,
        power_multiplier=0.5,
        target_scope=TargetScope.ALL_OPPONENTS,
        description="Hits every healthy opposing monster, benched ones included.",
    ),
    Ability(
        id="shell_bash",
        name="Shell Bash",
        mp_cost=6,
        power_multiplier=0.8,
        scaling_stat="defense",
    ),
    Ability(
        id="intimidating_roar",
        name="Intimidating Roar",
        mp_cost=8,
        power_multiplier=0.2,
        stat_modifiers=(StatModifier("defense", ModifierKind.PERCENTAGE, -20, duration=3),),
    ),
    Ability(
        id="battle_cry",
        name="Battle Cry",
        mp_cost=10,
        power_multiplier=0,
        target_scope=TargetScope.SELF,
        stat_modifiers=(StatModifier("power", ModifierKind.PERCENTAGE, 30, duration=3),),
    ),
    Ability(
        id="fury_swipes",
        name="Fury Swipes",
        mp_cost=9,
        power_multiplier=0.25,
        min_hits=2,
        max_hits=4,
        description="Two to four quick slashes at the opposing active monster.",
    ),
    Ability(
        id="rejuvenate",
        name="Rejuvenate",
        mp_cost=10,
        power_multiplier=0,
        target_scope=TargetScope.SELF,
        status_effect=StatusInfliction(StatusKind.REGENERATING, duration=3, value=6),
        description="Restores 6% of max HP at the start of each of the next three own turns.",
    ),
    Ability(
        id="mending_light",
        name="Mending Light",
        mp_cost=12,
        power_multiplier=0.5,
        scaling_stat="defense",
        target_scope=TargetScope.ANY_ALLY,
        heals=True,
    ),
    Ability(
        id="regenerate",
        name="Regenerate",
        mp_cost=8,
        power_multiplier=0.4,
        target_scope=TargetScope.SELF,
        heals=True,
    ),
    # --- passives ---
    Ability(
        id="soothing_aura",
        name="Soothing Aura",
        ability_type=AbilityType.PASSIVE,
        activation_trigger=Trigger.END_OF_TURN,
        activation_scope=ActivationScope.BENCH,
        passive_effects=(PassiveEffect(PassiveEffectKind.HEAL_ACTIVE_ALLY_PERCENT, value=5),),
    ),
    Ability(
        id="last_stand",
        name="Last Stand",
        ability_type=AbilityType.PASSIVE,
        activation_trigger=Trigger.ON_HP_THRESHOLD,
        trigger_condition_value=50,
        passive_effects=(
            PassiveEffect(
                PassiveEffectKind.GRANT_STAT_MODIFIER,
                modifier=StatModifier("power", ModifierKind.PERCENTAGE, 50, duration=3),
            ),
        ),
    ),
    Ability(
        id="thick_hide",
        name="Thick Hide",
        ability_type=AbilityType.PASSIVE,
        activation_trigger=Trigger.ON_HP_THRESHOLD,
        trigger_condition_value=30,
        passive_effects=(
            PassiveEffect(
                PassiveEffectKind.GRANT_STAT_MODIFIER,
                modifier=StatModifier("defense", ModifierKind.FLAT, 20),
            ),
        ),
    ),
    Ability(
        id="adrenaline_surge",
        name="Adrenaline Surge",
        ability_type=AbilityType.PASSIVE,
        activation_trigger=Trigger.END_OF_TURN,
        activation_scope=ActivationScope.ACTIVE,
        passive_effects=(
            PassiveEffect(
                PassiveEffectKind.GRANT_STAT_MODIFIER,
                modifier=StatModifier("speed", ModifierKind.FLAT, 10, duration=3),
            ),
        ),
    ),
)
