# services/battle/engine.py
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from loguru import logger

from core.errors import (
    BadMoveReference,
    BadPartyIndex,
    CaptureOrFinishPending,
    MustSwitchFirst,
    NoPP,
    NotAllowedToCapture,
    YouFainted,
)
from models.content import Move
from models.monster import Monster
from services.battle.models import BattleSession, Combatant, TurnRequest
from services.battle.resolver import display_name, resolve_move
from services.content.registry import ContentRegistry
from services.content.species import SpeciesCatalog
from services.progress import ProgressResult, award_xp, record_learn_list

RUN_CHANCE = 0.8
CAPTURE_CHANCE = 0.6

# заглушка, якщо у ворога нема мувів: resolver зробить простий фіз. удар
STRUGGLE = Move(id=0, name="Struggle", stack_effects=[], stack_bonuses=[])


@dataclass
class BattleContext:
    registry: ContentRegistry
    species: SpeciesCatalog
    moves: Dict[int, Move]
    rng: random.Random


@dataclass
class TurnOutcome:
    result: str = "active"
    progress: Optional[ProgressResult] = None
    log: List[str] = field(default_factory=list)


# ───────────────────── party helpers ─────────────────────

def living_indices(party: List[Monster], exclude: Optional[int] = None) -> List[int]:
    return [i for i, m in enumerate(party) if m.hp > 0 and i != exclude]


def snapshot_monster(monster: Monster, ctx: BattleContext) -> Combatant:
    species = ctx.species.by_id(monster.species_id)
    if species is None:
        raise RuntimeError(f"unknown species {monster.species_id}")
    return Combatant(
        side="you",
        monster_id=monster.id,
        species_id=monster.species_id,
        species_name=species.name,
        nickname=monster.nickname,
        level=monster.level,
        hp=monster.hp,
        max_hp=monster.max_hp,
        base=dict(species.base),
        growth=dict(monster.growth),
        moves=[s.model_copy() for s in monster.moves],
    )


def sync_active(session: BattleSession, party: List[Monster]) -> None:
    """
    hp + PP активного знімка -> запис у party (його потім зберігає сервіс).
    """
    monster = party[session.you_index]
    monster.hp = session.you.hp
    monster.moves = [s.model_copy() for s in session.you.moves]


def _switch_in(session: BattleSession, party: List[Monster], index: int, ctx: BattleContext) -> None:
    session.you = snapshot_monster(party[index], ctx)
    session.you_index = index
    session.log.append(f"Go, {display_name(session.you)}!")


def _enemy_move(session: BattleSession, ctx: BattleContext) -> Move:
    if not session.enemy.moves:
        return STRUGGLE
    return ctx.moves.get(session.enemy.moves[0].move_id) or STRUGGLE


def _enemy_acts(session: BattleSession, move: Move, ctx: BattleContext) -> None:
    resolve_move(
        session.enemy,
        session.you,
        move,
        registry=ctx.registry,
        mods=session.mods,
        rng=ctx.rng,
        log=session.log,
    )


# ───────────────────── START ─────────────────────

def start_battle(
    player_id: int,
    party: List[Monster],
    enemy: Combatant,
    biome: str,
    ctx: BattleContext,
) -> BattleSession:
    alive = living_indices(party)
    if not alive:
        raise YouFainted()

    index = alive[0]
    session = BattleSession(
        player_id=player_id,
        biome=biome,
        you=snapshot_monster(party[index], ctx),
        you_index=index,
        enemy=enemy,
    )
    session.log.append(f"A wild {enemy.species_name} (Lv{enemy.level}) appeared!")
    session.log.append(f"Go, {display_name(session.you)}!")
    return session


# ───────────────────── FAINT HANDLING ─────────────────────

def _after_you_fainted(
    session: BattleSession,
    party: List[Monster],
    ctx: BattleContext,
    outcome: TurnOutcome,
) -> TurnOutcome:
    """
    0 живих -> wipe; 1 живий -> автозаміна; 2+ -> гравець обирає сам (require_switch).
    """
    sync_active(session, party)
    session.log.append(f"{display_name(session.you)} fainted!")

    alive = living_indices(party, exclude=session.you_index)
    if not alive:
        session.state = "wiped"
        session.log.append("All your monsters have fainted!")
        outcome.result = "you_team_wiped"
    elif len(alive) == 1:
        _switch_in(session, party, alive[0], ctx)
    else:
        session.require_switch = True
        session.log.append("Choose your next monster.")
    return outcome


def _on_enemy_fainted(
    session: BattleSession,
    party: List[Monster],
    ctx: BattleContext,
    outcome: TurnOutcome,
) -> TurnOutcome:
    enemy = session.enemy
    session.log.append(f"{display_name(enemy)} fainted!")

    effects: List[str] = []
    bonuses: List[str] = []
    for slot in enemy.moves:
        move = ctx.moves.get(slot.move_id)
        if move:
            effects.extend(move.stack_effects)
            bonuses.extend(move.stack_bonuses)

    monster = party[session.you_index]
    record_learn_list(monster, effects, bonuses)

    species = ctx.species.by_id(monster.species_id)
    if species is None:
        raise RuntimeError(f"unknown species {monster.species_id}")
    progress = award_xp(monster, enemy.level, species, ctx.rng)
    session.log.extend(progress.messages)

    session.you.level = monster.level
    session.you.hp = monster.hp
    session.you.max_hp = monster.max_hp

    session.allow_capture = True
    outcome.progress = progress
    return outcome


# ───────────────────── TURN ─────────────────────

def _guard(session: BattleSession, action: str) -> None:
    if session.require_switch and action != "switch":
        raise MustSwitchFirst()
    if session.allow_capture:
        raise CaptureOrFinishPending()


def _turn_move(
    session: BattleSession,
    party: List[Monster],
    index: Optional[int],
    ctx: BattleContext,
    outcome: TurnOutcome,
) -> TurnOutcome:
    you = session.you
    if index is None or not 0 <= index < len(you.moves):
        raise BadMoveReference()
    slot = you.moves[index]
    move = ctx.moves.get(slot.move_id)
    if move is None:
        raise BadMoveReference()
    if slot.current_pp <= 0:
        raise NoPP()

    enemy_move = _enemy_move(session, ctx)
    enemy_acted = False

    if enemy_move.priority > 0:
        _enemy_acts(session, enemy_move, ctx)
        enemy_acted = True
        if you.hp <= 0:
            session.turn += 1
            return _after_you_fainted(session, party, ctx, outcome)

    resolve_move(
        you,
        session.enemy,
        move,
        registry=ctx.registry,
        mods=session.mods,
        rng=ctx.rng,
        log=session.log,
        move_name=slot.name_custom or move.name,
    )
    # PP -1 і при влучанні, і при промаху
    slot.current_pp = max(0, slot.current_pp - 1)
    sync_active(session, party)

    if session.enemy.hp <= 0:
        # ворог упав: контратаки в цьому ході нема
        session.turn += 1
        return _on_enemy_fainted(session, party, ctx, outcome)

    if not enemy_acted:
        _enemy_acts(session, enemy_move, ctx)
        if you.hp <= 0:
            session.turn += 1
            return _after_you_fainted(session, party, ctx, outcome)

    sync_active(session, party)
    session.turn += 1
    return outcome


def _turn_switch(
    session: BattleSession,
    party: List[Monster],
    index: Optional[int],
    ctx: BattleContext,
    outcome: TurnOutcome,
) -> TurnOutcome:
    if (
        index is None
        or not 0 <= index < len(party)
        or index == session.you_index
        or party[index].hp <= 0
    ):
        raise BadPartyIndex()

    if session.require_switch:
        # вимушена заміна безкоштовна: ворог не ходить
        session.require_switch = False
        _switch_in(session, party, index, ctx)
        return outcome

    enemy_move = _enemy_move(session, ctx)
    enemy_acted = False

    if enemy_move.priority > 0:
        _enemy_acts(session, enemy_move, ctx)
        enemy_acted = True
        sync_active(session, party)
        if session.you.hp <= 0:
            session.log.append(f"{display_name(session.you)} fainted!")

    if session.you.hp > 0:
        session.log.append(f"{display_name(session.you)}, come back!")
    _switch_in(session, party, index, ctx)

    if not enemy_acted:
        _enemy_acts(session, enemy_move, ctx)
        if session.you.hp <= 0:
            session.turn += 1
            return _after_you_fainted(session, party, ctx, outcome)

    sync_active(session, party)
    session.turn += 1
    return outcome


def _turn_run(session: BattleSession, ctx: BattleContext, outcome: TurnOutcome) -> TurnOutcome:
    if ctx.rng.random() < RUN_CHANCE:
        session.state = "escaped"
        session.log.append("Got away safely!")
        outcome.result = "escaped"
        return outcome

    # ворог за невдалу втечу не б'є
    session.log.append("Couldn't get away!")
    session.turn += 1
    return outcome


def take_turn(
    session: BattleSession,
    party: List[Monster],
    request: TurnRequest,
    ctx: BattleContext,
) -> TurnOutcome:
    """
    Один хід. Помилки (MustSwitchFirst, NoPP, ...) кидаються ДО будь-яких змін стану.
    """
    _guard(session, request.action)

    start = len(session.log)
    outcome = TurnOutcome()

    if request.action == "move":
        _turn_move(session, party, request.index, ctx, outcome)
    elif request.action == "switch":
        _turn_switch(session, party, request.index, ctx, outcome)
    else:
        _turn_run(session, ctx, outcome)

    outcome.log = session.log[start:]
    logger.debug(
        "battle: player={} action={} result={} turn={}",
        session.player_id,
        request.action,
        outcome.result,
        session.turn,
    )
    return outcome


# ───────────────────── CAPTURE ─────────────────────

def attempt_capture(session: BattleSession, ctx: BattleContext) -> bool:
    """
    Фіксовані 60% після нокауту. При невдачі сесія лишається відкритою.
    """
    if not session.allow_capture:
        raise NotAllowedToCapture()

    if ctx.rng.random() < CAPTURE_CHANCE:
        session.state = "captured"
        session.log.append(f"Gotcha! {display_name(session.enemy)} was captured!")
        return True

    session.log.append("The capture failed!")
    return False
