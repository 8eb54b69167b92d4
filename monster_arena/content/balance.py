# monster_arena/content/balance.py
DEFAULTS = {
    "session_ttl_seconds": 30 * 60,
    "sweep_interval_seconds": 5 * 60,
    "ai_turn_delay_seconds": 1.5,
    "record_history": True,
    "victory_rank_xp": 50,
    "victory_gold": 25,
    "defeat_rank_xp": 5,
    "max_team_size": 5,
    "max_level": 10,
}

CAPS = {
    "stat_min": 1,
    "damage_min": 1,
    "resisted_multiplier": 0.75,
    "weakness_multiplier": 1.25,
}
