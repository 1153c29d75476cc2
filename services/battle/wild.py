# services/battle/wild.py
from __future__ import annotations

import random
from typing import List, Sequence, Tuple

from models.content import Move
from models.monster import MAX_MOVE_SLOTS, MoveSlot, Species
from services.battle.models import Combatant
from services.content.registry import ContentRegistry
from services.monster_stats import max_hp_for

LEVEL_BAND = (-2, 1)

Stack = Tuple[List[str], List[str]]


def roll_enemy_level(lead_level: int, rng: random.Random) -> int:
    lo, hi = LEVEL_BAND
    return max(1, int(lead_level) + rng.randint(lo, hi))


def roll_loadout(level: int, registry: ContentRegistry, rng: random.Random) -> List[Stack]:
    """
    1..4 мувів: кожен = випадкова база + (з шансом від рівня) ще ефект і бонус.
    """
    bases = [e.code for e in registry.base_effects()]
    if not bases:
        return []
    extras = [e.code for e in registry.effects() if not e.base_flag_eligible]
    bonuses = registry.bonus_codes()

    count = rng.randint(1, max(1, min(MAX_MOVE_SLOTS, 1 + level // 3)))
    extra_chance = min(0.6, 0.05 * level)
    bonus_chance = min(0.5, 0.04 * level)

    out: List[Stack] = []
    for _ in range(count):
        stack = [rng.choice(bases)]
        picked_bonuses: List[str] = []
        if extras and rng.random() < extra_chance:
            stack.append(rng.choice(extras))
        if bonuses and rng.random() < bonus_chance:
            picked_bonuses.append(rng.choice(bonuses))
        out.append((stack, picked_bonuses))
    return out


def build_enemy(
    species: Species,
    level: int,
    moves: Sequence[Move],
    registry: ContentRegistry,
) -> Combatant:
    # дикий монстр: нейтральний growth, повне HP
    hp = max_hp_for(species.base, None, level)
    return Combatant(
        side="enemy",
        species_id=species.id,
        species_name=species.name,
        level=level,
        hp=hp,
        max_hp=hp,
        base=dict(species.base),
        growth={},
        moves=[
            MoveSlot(move_id=m.id, current_pp=registry.max_pp_for_stack(m.stack_effects))
            for m in moves[:MAX_MOVE_SLOTS]
        ],
    )
