# monster_arena/engine/roster.py
from typing import Any, Dict, List, Mapping, Optional

from .models import AI, PLAYER, CombatMonster
from .rules import clamp
from ..content.balance import DEFAULTS
from ..content.monsters import MONSTERS
from ..errors import ValidationError


def build_monster(
    monster_id: str,
    side: str,
    slot: int,
    level: int = 1,
    hp: Optional[int] = None,
    catalog: Mapping[str, Dict[str, Any]] = MONSTERS,
) -> CombatMonster:
    """
    Turns a catalog record + level into a CombatMonster.
    Level upgrades only touch base stats and stay fixed for the battle.
    """
    record = catalog.get(monster_id)
    if record is None:
        raise ValidationError("UNKNOWN_MONSTER", f"Unknown monster '{monster_id}'.")

    try:
        level = clamp(int(level or 1), 1, DEFAULTS["max_level"])
    except (TypeError, ValueError):
        raise ValidationError("INVALID_TEAM", f"Bad level for '{monster_id}'.") from None
    stats = dict(record["base_stats"])
    for upgrade_level, bonus in sorted(record.get("level_upgrades", {}).items()):
        if int(upgrade_level) > level:
            continue
        for stat, delta in bonus.items():
            stats[stat] = stats.get(stat, 0) + delta

    per_level = record.get("per_level", {})
    hp_max = record["resources"]["hp"] + (level - 1) * per_level.get("hp", 0)
    mp_max = record["resources"].get("mp", 0) + (level - 1) * per_level.get("mp", 0)
    try:
        current_hp = hp_max if hp is None else clamp(int(hp), 0, hp_max)
    except (TypeError, ValueError):
        raise ValidationError("INVALID_TEAM", f"Bad hp for '{monster_id}'.") from None

    return CombatMonster(
        id=f"{side}-{slot}-{monster_id}",
        name=record["name"],
        side=side,
        power=stats["power"],
        defense=stats["defense"],
        speed=stats["speed"],
        hp=current_hp,
        hp_max=hp_max,
        mp=mp_max,
        mp_max=mp_max,
        abilities=list(record.get("abilities", [])),
        monster_id=monster_id,
        level=level,
        resistances=list(record.get("resistances", [])),
        weaknesses=list(record.get("weaknesses", [])),
    )


def build_team(picks: Any, side: str, catalog: Mapping[str, Dict[str, Any]] = MONSTERS) -> List[CombatMonster]:
    """``picks``: ``[{"monster_id": "emberfang", "level": 3}, ...]`` or bare ids."""
    if side not in (PLAYER, AI):
        raise ValueError(f"unknown side '{side}'")
    if not isinstance(picks, list) or not picks:
        raise ValidationError("INVALID_TEAM", f"The {side} team needs at least one monster.")
    if len(picks) > DEFAULTS["max_team_size"]:
        raise ValidationError("INVALID_TEAM", f"Teams are limited to {DEFAULTS['max_team_size']} monsters.")

    team = []
    for slot, pick in enumerate(picks):
        if isinstance(pick, str):
            pick = {"monster_id": pick}
        if not isinstance(pick, dict):
            raise ValidationError("INVALID_TEAM", "Each team entry must be a monster id or an object.")
        team.append(
            build_monster(
                str(pick.get("monster_id", "")),
                side,
                slot,
                level=pick.get("level", 1),
                hp=pick.get("hp"),
                catalog=catalog,
            )
        )
    return team
