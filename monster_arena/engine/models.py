# monster_arena/engine/models.py
from __future__ import annotations

import threading
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..errors import ValidationError

PLAYER = "player"
AI = "ai"
SIDES = (PLAYER, AI)

STATS = ("power", "defense", "speed")


def other_side(side: str) -> str:
    return AI if side == PLAYER else PLAYER


class AbilityType(str, Enum):
    ACTIVE = "ACTIVE"
    PASSIVE = "PASSIVE"


class TargetScope(str, Enum):
    SINGLE_OPPONENT = "SINGLE_OPPONENT"
    ALL_OPPONENTS = "ALL_OPPONENTS"   # active + bench
    ANY_ALLY = "ANY_ALLY"
    SELF = "SELF"


class Trigger(str, Enum):
    END_OF_TURN = "END_OF_TURN"
    ON_HP_THRESHOLD = "ON_HP_THRESHOLD"


class ActivationScope(str, Enum):
    SELF = "SELF"
    ACTIVE = "ACTIVE"
    BENCH = "BENCH"


class ModifierKind(str, Enum):
    FLAT = "FLAT"
    PERCENTAGE = "PERCENTAGE"


class DamageFormula(str, Enum):
    MITIGATED = "MITIGATED"         # 100 / (100 + defense)
    TYPE_MATCHUP = "TYPE_MATCHUP"   # x0.75 resisted / x1.25 weak


class PassiveEffectKind(str, Enum):
    HEAL_ACTIVE_ALLY_PERCENT = "HEAL_ACTIVE_ALLY_PERCENT"
    GRANT_STAT_MODIFIER = "GRANT_STAT_MODIFIER"


class StatusKind(str, Enum):
    POISONED = "POISONED"
    BURNED = "BURNED"
    PARALYZED = "PARALYZED"
    FROZEN = "FROZEN"
    CONFUSED = "CONFUSED"
    REGENERATING = "REGENERATING"   # heal over time


class BattleStatus(str, Enum):
    ACTIVE = "active"
    VICTORY = "victory"
    DEFEAT = "defeat"
    ABANDONED = "abandoned"


class ActionType(str, Enum):
    USE_ABILITY = "USE_ABILITY"
    SWAP_MONSTER = "SWAP_MONSTER"
    FORFEIT = "FORFEIT"


@dataclass(frozen=True)
class StatModifier:
    stat: str
    kind: ModifierKind
    value: float                       # PERCENTAGE: whole percent, 50 == +50%
    duration: Optional[int] = None     # None == lasts the whole battle


@dataclass(frozen=True)
class PassiveEffect:
    kind: PassiveEffectKind
    value: float = 0
    modifier: Optional[StatModifier] = None


@dataclass(frozen=True)
class StatusInfliction:
    kind: StatusKind
    duration: int = 2
    value: float = 0
    chance: float = 1.0


@dataclass(frozen=True)
class Ability:
    """Catalog entry. Passives are discriminated by ``activation_trigger``."""

    id: str
    name: str
    ability_type: AbilityType = AbilityType.ACTIVE
    mp_cost: int = 0
    power_multiplier: float = 0.5
    scaling_stat: str = "power"
    target_scope: TargetScope = TargetScope.SINGLE_OPPONENT
    heals: bool = False
    damage_formula: DamageFormula = DamageFormula.MITIGATED
    affinity: Optional[str] = None
    stat_modifiers: Tuple[StatModifier, ...] = ()
    status_effect: Optional[StatusInfliction] = None
    activation_trigger: Optional[Trigger] = None
    activation_scope: ActivationScope = ActivationScope.SELF
    trigger_condition_value: Optional[float] = None
    passive_effects: Tuple[PassiveEffect, ...] = ()
    min_hits: int = 1
    max_hits: int = 1
    description: str = ""

    def __post_init__(self) -> None:
        if self.scaling_stat not in STATS:
            raise ValueError(f"{self.id}: unknown scaling stat '{self.scaling_stat}'")
        if self.ability_type == AbilityType.PASSIVE and self.activation_trigger is None:
            raise ValueError(f"{self.id}: passive abilities need an activation trigger")
        if self.ability_type == AbilityType.ACTIVE and self.activation_trigger is not None:
            raise ValueError(f"{self.id}: active abilities cannot declare an activation trigger")
        if not 1 <= self.min_hits <= self.max_hits:
            raise ValueError(f"{self.id}: hits must satisfy 1 <= min_hits <= max_hits")

    @property
    def is_passive(self) -> bool:
        return self.ability_type == AbilityType.PASSIVE


@dataclass
class CombatMonster:
    id: str
    name: str
    side: str
    power: int
    defense: int
    speed: int
    hp: int
    hp_max: int
    mp: int = 0
    mp_max: int = 0
    abilities: List[str] = field(default_factory=list)   # ability ids, display order
    monster_id: Optional[str] = None                     # catalog id
    level: int = 1
    resistances: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)

    @property
    def fainted(self) -> bool:
        return self.hp <= 0

    def base_stat(self, stat: str) -> int:
        if stat not in STATS:
            raise ValueError(f"unknown stat '{stat}'")
        return int(getattr(self, stat))

    def hp_percent(self) -> float:
        return (self.hp / max(1, self.hp_max)) * 100


@dataclass
class ActiveEffect:
    id: str
    source_ability_id: str
    target_monster_id: str
    stat: str
    kind: ModifierKind
    value: float
    duration: Optional[int] = None
    trigger: Optional[Trigger] = None   # set when a passive sourced it


@dataclass
class StatusEffect:
    id: str
    kind: StatusKind
    target_monster_id: str
    duration: int
    value: float = 0
    chance: float = 1.0
    source_ability_id: Optional[str] = None
    fresh: bool = False                 # skip the first duration tick (self-applied)


@dataclass(frozen=True)
class TurnAction:
    type: ActionType
    ability_id: Optional[str] = None
    target_id: Optional[str] = None
    monster_id: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Any) -> "TurnAction":
        """Parse ``{"type": ..., "payload": {"abilityId", "targetId", "monsterId"}}``."""
        if not isinstance(data, dict):
            raise ValidationError("INVALID_ACTION", "Action must be an object.")
        raw_type = str(data.get("type", "")).strip().upper()
        try:
            action_type = ActionType(raw_type)
        except ValueError:
            raise ValidationError("INVALID_ACTION", f"Unknown action type '{raw_type}'.") from None

        payload = data.get("payload") or {}
        if not isinstance(payload, dict):
            raise ValidationError("INVALID_ACTION", "Action payload must be an object.")

        def pick(*keys: str) -> Optional[str]:
            for key in keys:
                value = payload.get(key)
                if value is not None:
                    return str(value)
            return None

        return cls(
            type=action_type,
            ability_id=pick("abilityId", "ability_id"),
            target_id=pick("targetId", "target_id"),
            monster_id=pick("monsterId", "monster_id"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "payload": {
                "abilityId": self.ability_id,
                "targetId": self.target_id,
                "monsterId": self.monster_id,
            },
        }


@dataclass
class BattleResult:
    target_id: str
    damage: int = 0
    healing: int = 0
    status_effects_applied: List[str] = field(default_factory=list)


@dataclass
class TurnSnapshot:
    turn_number: int
    side: str
    action: Dict[str, Any]
    before: Dict[str, Any]
    after: Dict[str, Any]
    damage: int = 0
    healing: int = 0


def _empty_totals() -> Dict[str, Dict[str, int]]:
    return {
        side: {"damage_dealt": 0, "damage_taken": 0, "healing": 0, "abilities_used": 0}
        for side in SIDES
    }


@dataclass
class BattleState:
    id: str
    player_team: List[CombatMonster]
    ai_team: List[CombatMonster]
    active_player_index: int = 0
    active_ai_index: int = 0
    turn_count: int = 1
    current_turn: str = PLAYER
    status: BattleStatus = BattleStatus.ACTIVE
    log: List[str] = field(default_factory=list)
    active_effects: List[ActiveEffect] = field(default_factory=list)
    status_effects: List[StatusEffect] = field(default_factory=list)
    turn_history: List[TurnSnapshot] = field(default_factory=list)
    totals: Dict[str, Dict[str, int]] = field(default_factory=_empty_totals)
    seed: int = 0
    winner: Optional[str] = None
    pending_swap: bool = False          # player must swap before acting

    def team(self, side: str) -> List[CombatMonster]:
        return self.player_team if side == PLAYER else self.ai_team

    def active_index(self, side: str) -> int:
        return self.active_player_index if side == PLAYER else self.active_ai_index

    def set_active_index(self, side: str, index: int) -> None:
        if side == PLAYER:
            self.active_player_index = index
        else:
            self.active_ai_index = index

    def active_monster(self, side: str) -> CombatMonster:
        return self.team(side)[self.active_index(side)]

    def all_monsters(self) -> Iterator[CombatMonster]:
        yield from self.player_team
        yield from self.ai_team

    def find_monster(self, monster_id: Optional[str]) -> Optional[CombatMonster]:
        for monster in self.all_monsters():
            if monster.id == monster_id:
                return monster
        return None

    def team_wiped(self, side: str) -> bool:
        return all(m.fainted for m in self.team(side))

    @property
    def is_terminal(self) -> bool:
        return self.status != BattleStatus.ACTIVE

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BattleEndResult:
    battle_id: str
    status: BattleStatus
    winner: Optional[str]
    rewards: Dict[str, int]
    statistics: Dict[str, int]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TurnOutcome:
    state: BattleState
    ability_results: List[BattleResult] = field(default_factory=list)
    passive_log: List[str] = field(default_factory=list)
    log: List[str] = field(default_factory=list)       # lines added this turn
    end_result: Optional[BattleEndResult] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.to_dict(),
            "ability_results": [asdict(r) for r in self.ability_results],
            "passive_log": list(self.passive_log),
            "log": list(self.log),
            "end_result": self.end_result.to_dict() if self.end_result else None,
        }


@dataclass
class BattleSession:
    id: str
    user_id: str
    state: BattleState
    created_at: float
    last_activity: float
    expires_at: float
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "created_at": self.created_at,
            "last_activity": self.last_activity,
            "expires_at": self.expires_at,
            "state": self.state.to_dict(),
        }
