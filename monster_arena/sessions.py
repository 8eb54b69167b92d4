# monster_arena/sessions.py
import copy
import logging
import secrets
import sys
import threading
import time
from typing import Any, Callable, Dict, List, Mapping, Optional

from .content.abilities import ABILITIES
from .content.balance import DEFAULTS
from .engine.ai import choose_ai_action
from .engine.models import (
    AI,
    PLAYER,
    Ability,
    ActionType,
    BattleEndResult,
    BattleSession,
    BattleState,
    BattleStatus,
    CombatMonster,
    TurnAction,
    TurnOutcome,
)
from .engine.outcome import build_end_result, summary_lines
from .engine.resolver import run_turn
from .engine.roster import build_team
from .errors import (
    AuthorizationError,
    BattleError,
    ConflictError,
    SessionNotFoundError,
    TerminalStateError,
    ValidationError,
)

logger = logging.getLogger(__name__)

BattleEndListener = Callable[[str, BattleEndResult], None]


class SessionStore:
    """In-memory sessions by battle id, plus the user -> battle index."""

    def __init__(self):
        self.lock = threading.RLock()
        self.sessions: Dict[str, BattleSession] = {}
        self.user_battles: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self.sessions)

    def get(self, battle_id: str) -> Optional[BattleSession]:
        with self.lock:
            return self.sessions.get(battle_id)

    def put(self, session: BattleSession) -> None:
        with self.lock:
            self.sessions[session.id] = session
            self.user_battles[session.user_id] = session.id

    def pop(self, battle_id: str) -> Optional[BattleSession]:
        with self.lock:
            session = self.sessions.pop(battle_id, None)
            if session and self.user_battles.get(session.user_id) == battle_id:
                del self.user_battles[session.user_id]
            return session

    def battle_for_user(self, user_id: str) -> Optional[str]:
        with self.lock:
            return self.user_battles.get(user_id)

    def all(self) -> List[BattleSession]:
        with self.lock:
            return list(self.sessions.values())


def _memory_usage() -> Optional[int]:
    # peak RSS of this process (KiB on Linux); informational only, not available on Windows
    if sys.platform == "win32":
        return None
    import resource

    return int(resource.getrusage(resource.RUSAGE_SELF).ru_maxrss)


def _require_user(user_id: Any) -> str:
    if not isinstance(user_id, str) or not user_id.strip():
        raise AuthorizationError("UNAUTHORIZED_ACCESS", "A user id is required.")
    return user_id.strip()


def _coerce_team(team: Any, side: str) -> List[CombatMonster]:
    if isinstance(team, list) and team and all(isinstance(m, CombatMonster) for m in team):
        monsters = copy.deepcopy(team)
        for monster in monsters:
            monster.side = side
        return monsters
    return build_team(team, side)


class BattleSessionManager:
    """
    Owns every live battle. One session per user; sliding expiry refreshed on
    each successful read or write. Turns for one battle run under that
    session's lock, so concurrent submits are serialized.
    """

    def __init__(
        self,
        store: Optional[SessionStore] = None,
        ttl: Optional[float] = None,
        clock: Callable[[], float] = time.time,
        balance: Optional[Mapping[str, Any]] = None,
        on_battle_end: Optional[BattleEndListener] = None,
        catalog: Mapping[str, Ability] = ABILITIES,
    ):
        self.store = store or SessionStore()
        self.balance = dict(DEFAULTS)
        self.balance.update(balance or {})
        self.ttl = float(ttl if ttl is not None else self.balance["session_ttl_seconds"])
        self.clock = clock
        self.on_battle_end = on_battle_end
        self.catalog = catalog

    # --- lifecycle ---

    def create_session(self, user_id: str, player_team: Any, ai_team: Any, seed: Optional[int] = None) -> str:
        user_id = _require_user(user_id)
        players = _coerce_team(player_team, PLAYER)
        enemies = _coerce_team(ai_team, AI)

        stale = None
        with self.store.lock:
            now = self.clock()
            current_id = self.store.battle_for_user(user_id)
            current = self.store.get(current_id) if current_id else None
            if current is not None:
                if not current.is_expired(now):
                    # finished or not, a session blocks until it is ended or expires
                    raise ConflictError(
                        "BATTLE_ALREADY_IN_PROGRESS", f"User already has a battle ({current.id})."
                    )
                stale = current.id

            battle_id = f"battle_{int(now * 1000)}_{secrets.token_hex(4)}"
            state = BattleState(
                id=battle_id,
                player_team=players,
                ai_team=enemies,
                seed=seed if seed is not None else secrets.randbits(32),
                log=["Battle Started!"],
            )
            self.store.put(
                BattleSession(
                    id=battle_id,
                    user_id=user_id,
                    state=state,
                    created_at=now,
                    last_activity=now,
                    expires_at=now + self.ttl,
                )
            )

        # evicted outside the store lock: end_session takes the session lock and runs the listener
        if stale is not None:
            self.end_session(stale, reason="expired")
        logger.info("battle %s created for user %s", battle_id, user_id)
        return battle_id

    def get_session(self, battle_id: str, user_id: str) -> Optional[BattleSession]:
        session = self.store.get(battle_id)
        if session is None:
            return None
        if session.user_id != user_id:
            logger.debug("user %s denied access to battle %s", user_id, battle_id)
            raise AuthorizationError("UNAUTHORIZED_ACCESS", "This battle belongs to another user.")
        if session.is_expired(self.clock()):
            self.end_session(battle_id, reason="expired")
            return None
        self._touch(session)
        return session

    def require_session(self, battle_id: str, user_id: str) -> BattleSession:
        session = self.get_session(battle_id, user_id)
        if session is None:
            raise SessionNotFoundError("BATTLE_NOT_FOUND", f"Battle {battle_id} not found or expired.")
        return session

    def update_session(self, battle_id: str, user_id: str, new_state: BattleState) -> BattleSession:
        session = self.require_session(battle_id, user_id)
        with session.lock:
            session.state = new_state
            self._touch(session)
        return session

    def end_session(self, battle_id: str, reason: str = "ended") -> Optional[BattleEndResult]:
        """Remove a battle. Safe to call twice; a still-running battle is abandoned."""
        session = self.store.pop(battle_id)
        if session is None:
            return None

        result = None
        with session.lock:
            if not session.state.is_terminal:
                state = copy.deepcopy(session.state)
                state.status = BattleStatus.ABANDONED
                state.pending_swap = False
                state.log.append("Battle abandoned.")
                state.log.extend(summary_lines(state))
                session.state = state
                result = build_end_result(state, self.balance)

        logger.info("battle %s %s (user %s)", battle_id, reason, session.user_id)
        if result is not None:
            self._emit(session.user_id, result)
        return result

    def sweep_expired(self) -> int:
        now = self.clock()
        expired = [s for s in self.store.all() if s.is_expired(now)]
        for session in expired:
            self.end_session(session.id, reason="expired")
        if expired:
            logger.info("swept %d expired battle(s)", len(expired))
        return len(expired)

    # --- inbound operations ---

    def get_user_battle(self, user_id: str) -> Optional[BattleSession]:
        battle_id = self.store.battle_for_user(user_id)
        if battle_id is None:
            return None
        return self.get_session(battle_id, user_id)

    def get_active_battle(self, user_id: str) -> Optional[BattleState]:
        session = self.get_user_battle(_require_user(user_id))
        return session.state if session else None

    def submit_turn(self, battle_id: str, user_id: str, action: Any, side: str = PLAYER) -> TurnOutcome:
        if not isinstance(action, TurnAction):
            action = TurnAction.from_payload(action)
        session = self.require_session(battle_id, user_id)

        with session.lock:
            try:
                outcome = run_turn(session.state, action, side, catalog=self.catalog, balance=self.balance)
            except BattleError as exc:
                logger.debug("battle %s rejected %s from %s: %s", battle_id, action.type.value, side, exc.code)
                raise
            session.state = outcome.state
            self._touch(session)

        if outcome.end_result is not None:
            logger.info("battle %s finished: %s", battle_id, outcome.state.status.value)
            self._emit(session.user_id, outcome.end_result)
        return outcome

    def process_ai_turn(self, battle_id: str, user_id: str) -> TurnOutcome:
        session = self.require_session(battle_id, user_id)
        with session.lock:
            state = session.state
            if state.is_terminal:
                raise TerminalStateError("BATTLE_ALREADY_ENDED", f"Battle is already over ({state.status.value}).")
            if state.current_turn != AI:
                raise ValidationError("NOT_AI_TURN", "It is not the opponent's turn.")
            action = choose_ai_action(state, self.catalog)
            return self.submit_turn(battle_id, user_id, action, side=AI)

    def forfeit(self, battle_id: str, user_id: str) -> TurnOutcome:
        return self.submit_turn(battle_id, user_id, TurnAction(type=ActionType.FORFEIT), side=PLAYER)

    def stats(self) -> Dict[str, Optional[int]]:
        with self.store.lock:
            return {
                "active_sessions": len(self.store),
                "active_users": len(self.store.user_battles),
                "memory_usage": _memory_usage(),
            }

    # --- internals ---

    def _touch(self, session: BattleSession) -> None:
        now = self.clock()
        session.last_activity = now
        session.expires_at = now + self.ttl

    def _emit(self, user_id: str, result: BattleEndResult) -> None:
        if self.on_battle_end is None:
            return
        try:
            self.on_battle_end(user_id, result)
        except Exception:
            logger.exception("battle end listener failed for %s", result.battle_id)
