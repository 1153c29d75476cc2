# services/monster_stats.py
from __future__ import annotations

import math
import random
from typing import Dict, Mapping, Optional

from models.monster import STAT_KEYS

LEVEL_SCALED = ("HP", "PHY", "MAG", "DEF", "RES", "SPD")
UNSCALED = ("ACC", "EVA")

LEVEL_STEP = 0.075

GROWTH_SPREAD_PRIMARY = 0.10
GROWTH_SPREAD_SECONDARY = 0.05


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def level_factor(level: int) -> float:
    return 1 + (max(1, int(level)) - 1) * LEVEL_STEP


def derive_stats(
    base: Mapping[str, float],
    growth: Optional[Mapping[str, float]],
    level: int,
) -> Dict[str, int]:
    """
    Поточні стати монстра: base * growth * крива рівня.
    ACC/EVA від рівня не залежать. Без growth -> нейтральний (1.0).
    Нічого не кешуємо, щоб зміна level/growth одразу відбивалась.
    """
    growth = growth or {}
    factor = level_factor(level)

    out: Dict[str, int] = {}
    for stat in STAT_KEYS:
        raw = float(base.get(stat, 0) or 0) * float(growth.get(stat, 1.0) or 1.0)
        if stat in LEVEL_SCALED:
            raw *= factor
        out[stat] = round_half_up(max(1.0, raw))
    return out


def apply_mods(stats: Mapping[str, int], mods: Optional[Mapping[str, float]]) -> Dict[str, int]:
    """
    effective = round(stat * (1 + накопичена частка)), мінімум 1.
    """
    mods = mods or {}
    out: Dict[str, int] = {}
    for stat, value in stats.items():
        frac = float(mods.get(stat, 0.0) or 0.0)
        out[stat] = max(1, round_half_up(value * (1 + frac)))
    return out


def roll_growth(rng: random.Random) -> Dict[str, float]:
    """
    Індивідуальний множник на стат: ±10% для основних, ±5% для ACC/EVA.
    Кидається один раз при створенні монстра.
    """
    growth: Dict[str, float] = {}
    for stat in STAT_KEYS:
        spread = GROWTH_SPREAD_SECONDARY if stat in UNSCALED else GROWTH_SPREAD_PRIMARY
        growth[stat] = round(rng.uniform(1 - spread, 1 + spread), 3)
    return growth


def max_hp_for(base: Mapping[str, float], growth: Optional[Mapping[str, float]], level: int) -> int:
    return derive_stats(base, growth, level)["HP"]
