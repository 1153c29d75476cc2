# services/battle/service.py
from __future__ import annotations

import random
from typing import Dict, Iterable, List, Optional

from loguru import logger

from core.errors import NoActiveBattle, YouFainted
from models.monster import Monster, MoveSlot
from services.battle.engine import (
    BattleContext,
    attempt_capture,
    living_indices,
    start_battle,
    take_turn,
)
from services.battle.models import (
    BattleResponse,
    BattleSession,
    BattleView,
    MoveView,
    TurnRequest,
)
from services.battle.wild import build_enemy, roll_enemy_level, roll_loadout
from services.content.registry import ContentRegistry
from services.content.species import SpeciesCatalog
from services.monster_stats import max_hp_for, roll_growth

# поля монстра, які бій може змінити
_PERSISTED = ("hp", "max_hp", "level", "xp", "moves", "learned_pool", "learn_list")


class BattleService:
    """
    Async-обгортка над чистою машиною станів (engine.py):
    читає party/сесію, проганяє хід, пише зміни назад.
    Один хід на гравця одночасно (turn_lock).
    """

    def __init__(
        self,
        *,
        sessions,
        party,
        world,
        registry: ContentRegistry,
        species: SpeciesCatalog,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.sessions = sessions
        self.party = party
        self.world = world
        self.registry = registry
        self.species = species
        self.rng = rng or random.Random()

    # ───────── helpers ─────────

    async def _context(self, party: Iterable[Monster], extra: Iterable[MoveSlot] = ()) -> BattleContext:
        ids = {slot.move_id for m in party for slot in m.moves}
        ids.update(slot.move_id for slot in extra)
        moves = await self.registry.moves_by_ids(ids)
        return BattleContext(registry=self.registry, species=self.species, moves=moves, rng=self.rng)

    def _view(self, session: BattleSession, ctx: BattleContext) -> BattleView:
        pp: List[MoveView] = []
        for i, slot in enumerate(session.you.moves):
            move = ctx.moves.get(slot.move_id)
            pp.append(
                MoveView(
                    index=i,
                    move_id=slot.move_id,
                    name=slot.name_custom or (move.name if move else f"move#{slot.move_id}"),
                    current_pp=slot.current_pp,
                    max_pp=self.registry.max_pp_for_stack(move.stack_effects if move else []),
                    stack_effects=list(move.stack_effects) if move else [],
                    stack_bonuses=list(move.stack_bonuses) if move else [],
                )
            )
        return BattleView(
            you=session.you,
            you_index=session.you_index,
            enemy=session.enemy,
            pp=pp,
            mods=session.mods,
            allow_capture=session.allow_capture,
            require_switch=session.require_switch,
            turn=session.turn,
            log=session.log,
        )

    async def _persist_party(self, before: Dict[int, dict], party: List[Monster]) -> None:
        for m in party:
            old = before.get(m.id)
            if old is None:
                continue
            now = m.model_dump(include=set(_PERSISTED))
            fields = {k: getattr(m, k) for k in _PERSISTED if now[k] != old[k]}
            if fields:
                await self.party.mutate(m.id, fields)

    async def _load(self, player_id: int) -> BattleSession:
        session = await self.sessions.load(player_id)
        if session is None:
            raise NoActiveBattle()
        return session

    async def _load_party_for(self, session: BattleSession) -> List[Monster]:
        party = await self.party.get(session.player_id)
        idx = session.you_index
        if idx >= len(party) or party[idx].id != session.you.monster_id:
            # party змінилась поза боєм: сесія вже не відповідає даним
            logger.warning("battle: party out of sync, dropping session player={}", session.player_id)
            await self.sessions.delete(session.player_id)
            raise NoActiveBattle()
        return party

    # ───────── START ─────────

    async def start(self, player_id: int) -> BattleResponse:
        async with self.sessions.turn_lock(player_id):
            # старий бій (якщо був) викидаємо
            await self.sessions.delete(player_id)

            party = await self.party.get(player_id)
            alive = living_indices(party)
            if not alive:
                raise YouFainted()

            tile = await self.world.current_tile(player_id)
            biome = tile.get("biome") or "grassland"
            species = self.species.weighted_random_for_biome(biome, self.rng)

            level = roll_enemy_level(party[alive[0]].level, self.rng)
            moves = [
                await self.registry.ensure_move(stack, bonuses)
                for stack, bonuses in roll_loadout(level, self.registry, self.rng)
            ]
            enemy = build_enemy(species, level, moves, self.registry)

            ctx = await self._context(party, enemy.moves)
            session = start_battle(player_id, party, enemy, biome, ctx)
            await self.sessions.save(session, create=True)

        logger.info(
            "battle: start player={} biome={} enemy={} lvl={} moves={}",
            player_id,
            biome,
            species.name,
            level,
            [m.name for m in moves],
        )
        return BattleResponse(result="active", battle=self._view(session, ctx), log=list(session.log))

    # ───────── VIEW ─────────

    async def current(self, player_id: int) -> BattleResponse:
        session = await self._load(player_id)
        party = await self._load_party_for(session)
        ctx = await self._context(party, session.enemy.moves)
        return BattleResponse(result="active", battle=self._view(session, ctx), log=[])

    # ───────── TURN ─────────

    async def turn(self, player_id: int, request: TurnRequest) -> BattleResponse:
        async with self.sessions.turn_lock(player_id):
            session = await self._load(player_id)
            party = await self._load_party_for(session)
            before = {m.id: m.model_dump(include=set(_PERSISTED)) for m in party}

            ctx = await self._context(party, session.enemy.moves)
            outcome = take_turn(session, party, request, ctx)

            await self._persist_party(before, party)

            if outcome.result in ("escaped", "you_team_wiped"):
                await self.sessions.delete(player_id)
                logger.info("battle: end player={} result={}", player_id, outcome.result)
                return BattleResponse(result=outcome.result, log=outcome.log)

            if not await self.sessions.save(session):
                # бій закрили через finish, поки хід рахувався
                logger.info("battle: finished during turn player={}", player_id)
                raise NoActiveBattle()

        return BattleResponse(result="active", battle=self._view(session, ctx), log=outcome.log)

    # ───────── CAPTURE ─────────

    async def capture(self, player_id: int) -> BattleResponse:
        async with self.sessions.turn_lock(player_id):
            session = await self._load(player_id)
            start = len(session.log)
            ctx = BattleContext(registry=self.registry, species=self.species, moves={}, rng=self.rng)

            if not attempt_capture(session, ctx):
                if not await self.sessions.save(session):
                    raise NoActiveBattle()
                party = await self.party.get(player_id)
                ctx = await self._context(party, session.enemy.moves)
                return BattleResponse(
                    result="failed",
                    battle=self._view(session, ctx),
                    log=session.log[start:],
                )

            enemy = session.enemy
            growth = roll_growth(self.rng)
            hp = max_hp_for(enemy.base, growth, enemy.level)
            monster = await self.party.create(
                player_id,
                species_id=enemy.species_id,
                level=enemy.level,
                growth=growth,
                moves=[s.model_copy() for s in enemy.moves],
                hp=hp,
                max_hp=hp,
            )
            await self.sessions.delete(player_id)

        logger.info(
            "battle: captured player={} species={} lvl={} monster={}",
            player_id,
            enemy.species_name,
            enemy.level,
            monster.id,
        )
        return BattleResponse(result="captured", log=session.log[start:], captured=monster)

    # ───────── FINISH ─────────

    async def finish(self, player_id: int) -> BattleResponse:
        # завжди успішно, без локу
        await self.sessions.delete(player_id)
        return BattleResponse(result="finished")
