# services/progress.py
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from loguru import logger

from models.monster import Monster, Species
from services.monster_stats import max_hp_for, round_half_up

LEARN_STEP = 1
LEARN_CAP = 100
MIN_XP_GAIN = 5


# ───────────────────── КРИВА XP ─────────────────────

def xp_required_for(level: int) -> int:
    """
    Скільки XP треба, щоб перейти з цього level на наступний.
    """
    L = max(1, int(level))
    return 20 + L * L * 10


def calc_xp_reward(enemy_level: int) -> int:
    return max(MIN_XP_GAIN, round_half_up(10 + int(enemy_level) * 4))


@dataclass
class ProgressResult:
    xp_gained: int
    levels_gained: int = 0
    messages: List[str] = field(default_factory=list)
    learned: List[str] = field(default_factory=list)


# ───────────────────── LEARN LIST ─────────────────────

def record_learn_list(
    monster: Monster,
    effect_codes: Iterable[str],
    bonus_codes: Iterable[str],
) -> List[str]:
    """
    +1 п.п. за кожен різний код переможеного ворога (кап 100).
    Вже вивчені назавжди коди пропускаємо.
    """
    bumped: List[str] = []

    def _bump(table: Dict[str, int], known: List[str], codes: Iterable[str]) -> None:
        for code in dict.fromkeys(codes):
            if not code or code in known:
                continue
            table[code] = min(LEARN_CAP, int(table.get(code, 0)) + LEARN_STEP)
            bumped.append(code)

    _bump(monster.learn_list.effects, monster.learned_pool.effects, effect_codes)
    _bump(monster.learn_list.bonuses, monster.learned_pool.bonuses, bonus_codes)
    return bumped


def roll_learn_list(monster: Monster, rng: random.Random) -> List[str]:
    """
    На кожен новий рівень: randint(1..100) <= відсоток -> код переходить у learned_pool.
    """
    messages: List[str] = []

    for kind, table, pool in (
        ("effect", monster.learn_list.effects, monster.learned_pool.effects),
        ("bonus", monster.learn_list.bonuses, monster.learned_pool.bonuses),
    ):
        for code, pct in list(table.items()):
            if rng.randint(1, 100) > int(pct):
                continue
            if code not in pool:
                pool.append(code)
            del table[code]
            messages.append(f"Learned {kind}: {code}")

    return messages


# ───────────────────── XP + LEVEL-UP ─────────────────────

def award_xp(
    monster: Monster,
    enemy_level: int,
    species: Species,
    rng: random.Random,
) -> ProgressResult:
    """
    Додаємо XP і робимо level-up скільки треба разів. Залишок XP НЕ губиться.
    Мутує monster; зберігає викликач одним UPDATE.
    """
    name = monster.nickname or species.name
    gain = calc_xp_reward(enemy_level)
    result = ProgressResult(xp_gained=gain)
    result.messages.append(f"{name} gained {gain} XP.")

    monster.xp += gain
    while monster.xp >= xp_required_for(monster.level):
        monster.xp -= xp_required_for(monster.level)
        monster.level += 1
        result.levels_gained += 1

        old_max = monster.max_hp
        new_max = max_hp_for(species.base, monster.growth, monster.level)
        heal = max(2, round_half_up((new_max - old_max) / 2))
        monster.max_hp = new_max
        monster.hp = min(new_max, monster.hp + heal)
        result.messages.append(f"{name} grew to Lv{monster.level}!")

        learned = roll_learn_list(monster, rng)
        result.learned.extend(m.split(": ", 1)[1] for m in learned)
        result.messages.extend(learned)

    if result.levels_gained:
        logger.info(
            "progress: monster={} +{}xp -> lvl {} xp {}/{} learned={}",
            monster.id,
            gain,
            monster.level,
            monster.xp,
            xp_required_for(monster.level),
            result.learned,
        )
    return result
