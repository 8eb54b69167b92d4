# monster_arena/engine/dice.py
import random


def rng_for(seed: int, turn: int, stream: str = "") -> random.Random:
    # deterministic per battle seed + turn (+ stream, so AI picks don't shift combat rolls)
    return random.Random(f"{seed}:{turn}{':' + stream if stream else ''}")


def chance(probability: float, r: random.Random) -> bool:
    if probability >= 1.0:
        return True
    if probability <= 0.0:
        return False
    return r.random() < probability
