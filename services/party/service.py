# services/party/service.py
from __future__ import annotations

import random
from typing import List, Optional

from loguru import logger

from core.errors import (
    BadMoveReference,
    BattleInProgress,
    MonsterNotFound,
    PartyNotEmpty,
    UnknownSpecies,
)
from models.monster import MAX_MOVE_SLOTS, Monster, MoveSlot, MoveSlotEditRequest
from services.content.registry import ContentRegistry
from services.content.species import SpeciesCatalog
from services.monster_stats import max_hp_for, roll_growth
from services.move_stack import clamp_pp, validate_stack

STARTER_LEVEL = 5


class PartyService:
    def __init__(
        self,
        *,
        party,
        sessions,
        registry: ContentRegistry,
        species: SpeciesCatalog,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.party = party
        self.sessions = sessions
        self.registry = registry
        self.species = species
        self.rng = rng or random.Random()

    async def _ensure_no_battle(self, player_id: int) -> None:
        if await self.sessions.load(player_id) is not None:
            raise BattleInProgress()

    async def _get(self, player_id: int, monster_id: int) -> Monster:
        monster = await self.party.get_one(player_id, monster_id)
        if monster is None:
            raise MonsterNotFound()
        return monster

    async def list_party(self, player_id: int) -> List[Monster]:
        return await self.party.get(player_id)

    # ───────── STARTER ─────────

    async def grant_starter(self, player_id: int, species_id: int, nickname: Optional[str] = None) -> Monster:
        if await self.party.get(player_id):
            raise PartyNotEmpty()

        species = self.species.by_id(species_id)
        if species is None:
            raise UnknownSpecies()

        bases = sorted(e.code for e in self.registry.base_effects())
        if not bases:
            raise RuntimeError("content has no base effects")
        move = await self.registry.ensure_move([self.rng.choice(bases)], [])

        growth = roll_growth(self.rng)
        hp = max_hp_for(species.base, growth, STARTER_LEVEL)
        monster = await self.party.create(
            player_id,
            species_id=species.id,
            level=STARTER_LEVEL,
            growth=growth,
            moves=[MoveSlot(move_id=move.id, current_pp=self.registry.max_pp_for_stack(move.stack_effects))],
            hp=hp,
            max_hp=hp,
            nickname=nickname,
        )
        logger.info("party: starter player={} species={} monster={}", player_id, species.name, monster.id)
        return monster

    # ───────── MOVE EDITOR ─────────

    async def edit_move_slot(
        self,
        player_id: int,
        monster_id: int,
        slot_index: int,
        request: MoveSlotEditRequest,
    ) -> Monster:
        """
        Стек з редактора -> validate_stack -> ensure_move -> слот.
        PP тільки зменшується до нового максимуму; новий слот стартує з повним PP.
        """
        await self._ensure_no_battle(player_id)
        monster = await self._get(player_id, monster_id)

        if not 0 <= slot_index < MAX_MOVE_SLOTS or slot_index > len(monster.moves):
            raise BadMoveReference()

        stack, bonuses = validate_stack(self.registry, request.effects, request.bonuses)
        move = await self.registry.ensure_move(stack, bonuses)
        max_pp = self.registry.max_pp_for_stack(move.stack_effects)

        moves = [s.model_copy() for s in monster.moves]
        if slot_index < len(moves):
            old = moves[slot_index]
            moves[slot_index] = MoveSlot(
                move_id=move.id,
                current_pp=clamp_pp(old.current_pp, max_pp),
                name_custom=request.name_custom if request.name_custom is not None else old.name_custom,
            )
        else:
            moves.append(MoveSlot(move_id=move.id, current_pp=max_pp, name_custom=request.name_custom))

        await self.party.mutate(monster.id, {"moves": moves})
        monster.moves = moves
        logger.info(
            "party: move slot edit player={} monster={} slot={} move={} ({})",
            player_id,
            monster.id,
            slot_index,
            move.id,
            move.name,
        )
        return monster

    # ───────── HEAL ─────────

    async def heal_party(self, player_id: int) -> List[Monster]:
        await self._ensure_no_battle(player_id)
        party = await self.party.get(player_id)

        move_ids = {s.move_id for m in party for s in m.moves}
        moves = await self.registry.moves_by_ids(move_ids)

        for m in party:
            healed = []
            for s in m.moves:
                mv = moves.get(s.move_id)
                max_pp = self.registry.max_pp_for_stack(mv.stack_effects if mv else [])
                healed.append(MoveSlot(move_id=s.move_id, current_pp=max_pp, name_custom=s.name_custom))
            m.moves = healed
            m.hp = m.max_hp
            await self.party.mutate(m.id, {"hp": m.hp, "moves": m.moves})

        return party

    # ───────── RELEASE ─────────

    async def release(self, player_id: int, monster_id: int) -> None:
        await self._ensure_no_battle(player_id)
        monster = await self._get(player_id, monster_id)
        await self.party.delete(monster.id)
        logger.info("party: released player={} monster={}", player_id, monster.id)
