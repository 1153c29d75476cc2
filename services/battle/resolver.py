# services/battle/resolver.py
from __future__ import annotations

import random
from typing import Dict, List, Optional

from models.content import Effect, Move
from models.monster import STAT_KEYS
from services.battle.models import Combatant
from services.content.registry import ContentRegistry
from services.monster_stats import apply_mods, derive_stats, round_half_up

DEFAULT_ACCURACY = 0.95
SELF_ACCURACY = 0.99
ACCURACY_MIN = 0.05
ACCURACY_MAX = 0.99
ACCURACY_UP = 0.10

FALLBACK_POWER = 1.0
STRUGGLE_POWER = 8.0

RATIO_MIN = 0.25
RATIO_MAX = 2.5


# ───────────────────── імена для логу ─────────────────────

def display_name(c: Combatant) -> str:
    prefix = "Your" if c.side == "you" else "Wild"
    return f"{prefix} {c.nickname or c.species_name}"


def possessive(c: Combatant) -> str:
    return f"{display_name(c)}'s"


# ───────────────────── математика ─────────────────────

def live_stats(c: Combatant, mods: Dict[str, Dict[str, float]]) -> Dict[str, int]:
    return apply_mods(derive_stats(c.base, c.growth, c.level), mods.get(c.side))


def calc_damage(power: float, attacker_level: int, atk: int, defense: int) -> int:
    ratio = atk / max(1, defense)
    ratio = max(RATIO_MIN, min(RATIO_MAX, ratio))
    return max(1, round_half_up(power * (0.6 + 0.08 * attacker_level) * ratio))


def effect_accuracy(effect: Effect, move: Move) -> float:
    if effect.target == "self":
        return SELF_ACCURACY

    acc = effect.accuracy
    if acc is None:
        acc = move.accuracy
    if acc is None:
        acc = DEFAULT_ACCURACY
    if "accuracy_up" in move.stack_bonuses:
        acc += ACCURACY_UP
    return max(ACCURACY_MIN, min(ACCURACY_MAX, acc))


# ───────────────────── наслідки ─────────────────────

def _apply_damage(
    attacker: Combatant,
    target: Combatant,
    power: float,
    channel: str,
    move_name: str,
    mods: Dict[str, Dict[str, float]],
    log: List[str],
) -> int:
    a = live_stats(attacker, mods)
    d = live_stats(target, mods)
    if channel == "special":
        atk, defense = a["MAG"], d["RES"]
    else:
        atk, defense = a["PHY"], d["DEF"]

    dmg = calc_damage(power, attacker.level, atk, defense)
    target.hp = max(0, target.hp - dmg)
    log.append(f"{possessive(attacker)} {move_name} dealt {dmg} damage to {display_name(target)}.")
    return dmg


def _apply_status(
    attacker: Combatant,
    target: Combatant,
    effect: Effect,
    move_name: str,
    log: List[str],
) -> None:
    # одночасно лише один негативний статус
    if target.status and target.status != "none":
        log.append(
            f"{display_name(target)} is already {target.status}; {move_name} had no further effect."
        )
        return

    status = (effect.stat or effect.code).lower()
    target.status = status
    if target is attacker:
        log.append(f"{display_name(attacker)} became {status}.")
    else:
        log.append(f"{possessive(attacker)} {move_name} inflicted {status} on {display_name(target)}.")


def _apply_stat_change(
    attacker: Combatant,
    target: Combatant,
    effect: Effect,
    move_name: str,
    mods: Dict[str, Dict[str, float]],
    log: List[str],
) -> None:
    stat = (effect.stat or "").upper()
    if stat not in STAT_KEYS:
        log.append(f"{possessive(attacker)} {move_name} had no noticeable effect.")
        return

    amount = float(effect.amount or 0.0)
    side_mods = mods.setdefault(target.side, {})
    # стекаються адитивно в межах бою
    side_mods[stat] = round(side_mods.get(stat, 0.0) + amount, 4)

    verb = "raised" if amount >= 0 else "lowered"
    whose = "its" if target is attacker else possessive(target)
    pct = round_half_up(abs(amount) * 100)
    log.append(f"{possessive(attacker)} {move_name} {verb} {whose} {stat} by {pct}%.")


# ───────────────────── resolve ─────────────────────

def resolve_move(
    attacker: Combatant,
    defender: Combatant,
    move: Move,
    *,
    registry: ContentRegistry,
    mods: Dict[str, Dict[str, float]],
    rng: random.Random,
    log: List[str],
    move_name: Optional[str] = None,
) -> None:
    """
    Проганяє стек ефектів по черзі. Кожен ефект кидає точність окремо:
    промах скасовує лише цей ефект. Якщо захисник упав - решта стеку не виконується.
    Мутує attacker/defender/mods на місці, пише рядки в log.
    """
    name = move_name or move.name

    if not move.stack_effects:
        # запасний варіант для невалідного муву: простий фіз. удар
        if rng.random() < DEFAULT_ACCURACY:
            _apply_damage(attacker, defender, STRUGGLE_POWER, "physical", name, mods, log)
        else:
            log.append(f"{possessive(attacker)} {name} missed {display_name(defender)}.")
        return

    for code in move.stack_effects:
        if defender.hp <= 0:
            break

        effect = registry.effect_by_code(code)
        if effect is None:
            log.append(f"{possessive(attacker)} {name} applied {code}.")
            continue

        target = attacker if effect.target == "self" else defender

        if effect.target != "self":
            if rng.random() >= effect_accuracy(effect, move):
                log.append(f"{possessive(attacker)} {name} missed {display_name(defender)}.")
                continue

        if effect.effect_type == "damage":
            channel = "special" if (effect.stat or "").upper() == "MAG" else "physical"
            if effect.amount is not None:
                power = effect.amount
            elif move.power is not None:
                power = move.power
            else:
                power = FALLBACK_POWER
            _apply_damage(attacker, target, power, channel, name, mods, log)
        elif effect.effect_type == "status":
            _apply_status(attacker, target, effect, name, log)
        elif effect.effect_type == "stat_change":
            _apply_stat_change(attacker, target, effect, name, mods, log)
        else:
            log.append(f"{possessive(attacker)} {name} applied {code}.")
