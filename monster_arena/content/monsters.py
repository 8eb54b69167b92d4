# monster_arena/content/monsters.py
MONSTERS = {
    "emberfang": {
        "name": "Emberfang",
        "type": "fire",
        "base_stats": {"power": 120, "defense": 60, "speed": 95},
        "resources": {"hp": 400, "mp": 120},
        "per_level": {"hp": 50, "mp": 20},
        "level_upgrades": {3: {"power": 10}, 5: {"speed": 10}, 8: {"power": 15}},
        "resistances": ["fire"],
        "weaknesses": ["water"],
        "abilities": ["basic_attack", "flame_lash", "battle_cry", "last_stand"],
    },
    "tidecaller": {
        "name": "Tidecaller",
        "type": "water",
        "base_stats": {"power": 100, "defense": 80, "speed": 80},
        "resources": {"hp": 450, "mp": 150},
        "per_level": {"hp": 50, "mp": 20},
        "level_upgrades": {3: {"defense": 10}, 6: {"power": 10}},
        "resistances": ["water", "fire"],
        "weaknesses": ["electric"],
        "abilities": ["basic_attack", "tidal_crash", "mending_light", "soothing_aura"],
    },
    "voltwing": {
        "name": "Voltwing",
        "type": "electric",
        "base_stats": {"power": 95, "defense": 50, "speed": 130},
        "resources": {"hp": 350, "mp": 140},
        "per_level": {"hp": 40, "mp": 25},
        "level_upgrades": {4: {"speed": 15}},
        "resistances": ["electric"],
        "weaknesses": ["earth"],
        "abilities": ["basic_attack", "static_jolt", "adrenaline_surge", "fury_swipes"],
    },
    "mossback": {
        "name": "Mossback",
        "type": "earth",
        "base_stats": {"power": 85, "defense": 130, "speed": 45},
        "resources": {"hp": 550, "mp": 100},
        "per_level": {"hp": 60, "mp": 15},
        "level_upgrades": {3: {"defense": 15}, 7: {"defense": 15}},
        "resistances": ["earth", "electric"],
        "weaknesses": ["fire"],
        "abilities": ["basic_attack", "shell_bash", "quake_stomp", "regenerate", "rejuvenate", "thick_hide"],
    },
    "fungloom": {
        "name": "Fungloom",
        "type": "earth",
        "base_stats": {"power": 90, "defense": 75, "speed": 70},
        "resources": {"hp": 420, "mp": 130},
        "per_level": {"hp": 45, "mp": 20},
        "level_upgrades": {5: {"power": 10}},
        "resistances": ["water"],
        "weaknesses": ["fire"],
        "abilities": ["basic_attack", "venom_fang", "dizzy_spores", "soothing_aura"],
    },
    "frostmaw": {
        "name": "Frostmaw",
        "type": "water",
        "base_stats": {"power": 110, "defense": 90, "speed": 60},
        "resources": {"hp": 480, "mp": 110},
        "per_level": {"hp": 55, "mp": 15},
        "level_upgrades": {4: {"power": 10}, 8: {"defense": 10}},
        "resistances": ["water"],
        "weaknesses": ["fire", "electric"],
        "abilities": ["basic_attack", "frost_breath", "intimidating_roar", "last_stand"],
    },
}
