# monster_arena/engine/rules.py
import math
from typing import Iterable

from .models import Ability, DamageFormula
from ..content.balance import CAPS


def clamp(x: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, x))


def round_half_up(x: float) -> int:
    # builtin round() is banker's rounding: round(36.5) == 36
    return int(math.floor(x + 0.5))


def mitigate(attack_power: float, defense: int) -> float:
    # diminishing returns, never full immunity
    return attack_power * (100 / (100 + max(defense, 0)))


def affinity_multiplier(affinity, resistances: Iterable[str], weaknesses: Iterable[str]) -> float:
    if not affinity:
        return 1.0
    key = affinity.lower()
    multiplier = 1.0
    if key in {r.lower() for r in resistances}:
        multiplier *= CAPS["resisted_multiplier"]
    if key in {w.lower() for w in weaknesses}:
        multiplier *= CAPS["weakness_multiplier"]
    return multiplier


def compute_damage(attacker_stat: int, defender_defense: int, ability: Ability,
                   resistances: Iterable[str] = (), weaknesses: Iterable[str] = ()) -> int:
    """Damage for one hit. ``attacker_stat`` is the effective value of ``ability.scaling_stat``."""
    attack_power = attacker_stat * float(ability.power_multiplier)
    if ability.damage_formula == DamageFormula.TYPE_MATCHUP:
        raw = attack_power * affinity_multiplier(ability.affinity, resistances, weaknesses)
        return max(CAPS["damage_min"], int(math.floor(raw)))
    raw = mitigate(attack_power, defender_defense)
    return max(CAPS["damage_min"], round_half_up(raw))


def compute_healing(healer_stat: int, ability: Ability) -> int:
    return max(0, round_half_up(healer_stat * float(ability.power_multiplier)))


def apply_healing(monster, amount: int) -> int:
    """Raise hp within [hp, hp_max]; returns the hp actually restored."""
    before = monster.hp
    monster.hp = clamp(monster.hp + max(0, amount), monster.hp, monster.hp_max)
    return monster.hp - before


def apply_damage(monster, amount: int) -> int:
    before = monster.hp
    monster.hp = max(0, monster.hp - max(0, amount))
    return before - monster.hp
